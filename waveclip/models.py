"""Shared data types used across WaveClip."""

from dataclasses import dataclass

import numpy as np

EXPORT_FORMATS = {
    "wav": "audio/wav",
    "mp3": "audio/mp3",
}


@dataclass
class TimeRange:
    """A start/end time pair in seconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(eq=False)
class Region:
    """A selected interval in pixel space over the waveform display.

    Compared by identity: two regions with the same bounds are still
    different selections.
    """

    start: float
    end: float


@dataclass(frozen=True, eq=False)
class DecodedAudio:
    """A decoded audio buffer, shape ``(channels, frames)``, float32 in [-1, 1]."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(1, -1)
        if samples.ndim != 2 or samples.shape[0] < 1:
            raise ValueError(f"Expected (channels, frames) samples, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if samples is self.samples:
            samples = samples.copy()
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def length(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]


@dataclass
class PcmClip:
    """Rendered PCM for one extracted region, consumed by a single encoder."""

    samples: np.ndarray
    sample_rate: int

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def length(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def as_audio(self) -> DecodedAudio:
        """View the clip as a playable buffer."""
        return DecodedAudio(samples=self.samples, sample_rate=self.sample_rate)


@dataclass
class ProbeResult:
    """Audio stream metadata extracted via ffprobe."""

    duration: float
    sample_rate: int
    channels: int
    codec_audio: str
