"""Destinations for exported clip bytes."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class OutputSink(Protocol):
    def deliver(self, data: bytes, mime_type: str, filename: str) -> None:
        ...


class FileSink:
    """Writes each delivery into a directory, never overwriting."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.written: list[Path] = []

    def deliver(self, data: bytes, mime_type: str, filename: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        k = 2
        while path.exists():
            path = self.directory / f"{Path(filename).stem}_{k}{Path(filename).suffix}"
            k += 1
        path.write_bytes(data)
        self.written.append(path)
        logger.info("Wrote %s (%s, %d bytes)", path, mime_type, len(data))


@dataclass
class Delivery:
    data: bytes
    mime_type: str
    filename: str


@dataclass
class MemorySink:
    """Keeps deliveries in memory, e.g. to stream them back over HTTP.

    With ``keep`` set, only the most recent ``keep`` deliveries are retained.
    """

    deliveries: list[Delivery] = field(default_factory=list)
    keep: int | None = None

    def deliver(self, data: bytes, mime_type: str, filename: str) -> None:
        self.deliveries.append(Delivery(data=data, mime_type=mime_type, filename=filename))
        if self.keep is not None and len(self.deliveries) > self.keep:
            del self.deliveries[: len(self.deliveries) - self.keep]

    @property
    def last(self) -> Delivery | None:
        return self.deliveries[-1] if self.deliveries else None
