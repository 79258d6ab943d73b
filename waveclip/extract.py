"""Offline rendering of a sub-range of a decoded buffer into a new PCM clip."""

import asyncio
import logging
from typing import Protocol

import numpy as np

from waveclip.models import DecodedAudio, PcmClip

logger = logging.getLogger(__name__)

RENDER_QUANTUM = 128
QUANTA_PER_YIELD = 64


class OutOfRange(ValueError):
    """Raised when an extraction range falls outside the source audio."""
    pass


class OfflineRenderer(Protocol):
    async def render(
        self,
        audio: DecodedAudio,
        channels: int,
        length: int,
        sample_rate: int,
        offset: float,
    ) -> np.ndarray:
        """Play ``audio`` from ``offset`` seconds into a ``(channels, length)`` buffer."""
        ...


class NumpyOfflineRenderer:
    """Non-realtime renderer that copies source frames quantum by quantum.

    Frames past the end of the source render as silence. The event loop gets
    control back between batches of quanta so long renders do not starve
    other callbacks.
    """

    def __init__(self, quantum: int = RENDER_QUANTUM, quanta_per_yield: int = QUANTA_PER_YIELD) -> None:
        self.quantum = quantum
        self.quanta_per_yield = quanta_per_yield

    async def render(
        self,
        audio: DecodedAudio,
        channels: int,
        length: int,
        sample_rate: int,
        offset: float,
    ) -> np.ndarray:
        out = np.zeros((channels, length), dtype=np.float32)
        source = audio.samples[:channels]
        cursor = int(round(offset * sample_rate))

        quanta = 0
        for pos in range(0, length, self.quantum):
            n = min(self.quantum, length - pos)
            chunk = source[:, cursor + pos:cursor + pos + n]
            out[:, pos:pos + chunk.shape[1]] = chunk
            quanta += 1
            if quanta % self.quanta_per_yield == 0:
                await asyncio.sleep(0)

        logger.debug("Rendered %d frames from offset %.4fs in %d quanta", length, offset, quanta)
        return out


async def extract_range(
    audio: DecodedAudio,
    start_time: float,
    end_time: float,
    renderer: OfflineRenderer | None = None,
) -> PcmClip:
    """Render ``[start_time, end_time)`` of ``audio`` as a standalone clip.

    Raises:
        OutOfRange: unless ``0 <= start_time < end_time <= audio.duration``.
    """
    if not (0 <= start_time < end_time <= audio.duration):
        raise OutOfRange(
            f"Cannot extract [{start_time}, {end_time}) from {audio.duration:.3f}s of audio"
        )

    renderer = renderer or NumpyOfflineRenderer()
    length = int(round((end_time - start_time) * audio.sample_rate))
    samples = await renderer.render(
        audio,
        channels=audio.channels,
        length=length,
        sample_rate=audio.sample_rate,
        offset=start_time,
    )
    return PcmClip(samples=samples, sample_rate=audio.sample_rate)
