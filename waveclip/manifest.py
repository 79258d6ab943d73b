"""JSON manifest schema — the contract between CLI/API and the export pipeline."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from waveclip.models import EXPORT_FORMATS, TimeRange


@dataclass
class DisplayConfig:
    """Geometry of the waveform view that regions are expressed in."""

    width: int = 512
    playhead_interval: float = 0.05


@dataclass
class ExportConfig:
    """Output format and destination for exported clips."""

    format: str = "wav"
    bitrate: int = 128
    output_dir: Path = Path(".")

    def __post_init__(self) -> None:
        self.output_dir = Path(self.output_dir)
        if self.format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format {self.format!r}")
        if self.bitrate <= 0:
            raise ValueError(f"Bitrate must be positive, got {self.bitrate}")


@dataclass
class Manifest:
    """Top-level export manifest. Regions are given in seconds."""

    input: Path
    regions: list[TimeRange] = field(default_factory=list)
    version: str = "1"
    display: DisplayConfig = field(default_factory=DisplayConfig)
    export: ExportConfig = field(default_factory=ExportConfig)


def parse_region(text: str) -> TimeRange:
    """Parse ``START:END`` (seconds) into a TimeRange."""
    try:
        start_s, end_s = text.split(":")
        start, end = float(start_s), float(end_s)
    except ValueError:
        raise ValueError(f"Region must look like START:END in seconds, got {text!r}") from None
    if end <= start:
        raise ValueError(f"Region end must be after start, got {text!r}")
    return TimeRange(start=start, end=end)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data:
        raise ValueError("Manifest must contain an 'input' field")

    display = DisplayConfig(**data["display"]) if "display" in data else DisplayConfig()
    export = ExportConfig(**data["export"]) if "export" in data else ExportConfig()
    regions = [TimeRange(start=float(r["start"]), end=float(r["end"])) for r in data.get("regions", [])]

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        regions=regions,
        display=display,
        export=export,
    )
