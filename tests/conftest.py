"""Shared test fixtures and fake backends."""

from pathlib import Path

import numpy as np
import pytest

from waveclip.models import DecodedAudio

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_audio(seconds: float = 2.0, sample_rate: int = 1000, channels: int = 2) -> DecodedAudio:
    """Deterministic ramp: channel c, frame i -> (i / frames) * (-1) ** c."""
    frames = int(round(seconds * sample_rate))
    ramp = np.arange(frames, dtype=np.float32) / frames
    samples = np.stack([ramp * (-1) ** c for c in range(channels)])
    return DecodedAudio(samples=samples, sample_rate=sample_rate)


class FakeHandle:
    def __init__(self) -> None:
        self.elapsed = 0.0
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class FakePlaybackBackend:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.handles: list[FakeHandle] = []
        self.on_ended = None

    def start(self, audio, offset, duration, on_ended):
        handle = FakeHandle()
        self.calls.append((audio, offset, duration))
        self.handles.append(handle)
        self.on_ended = on_ended
        return handle


class FakeEncoder:
    """Returns one byte per block, empty for the very first block."""

    def __init__(self, channels: int, sample_rate: int, bitrate: int) -> None:
        self.channels = channels
        self.sample_rate = sample_rate
        self.bitrate = bitrate
        self.blocks: list[tuple] = []
        self.flushed = 0
        FakeEncoder.instances.append(self)

    instances: list["FakeEncoder"] = []

    def encode_block(self, left, right):
        self.blocks.append((left.copy(), None if right is None else right.copy()))
        return b"" if len(self.blocks) == 1 else bytes([len(self.blocks)])

    def flush(self) -> bytes:
        self.flushed += 1
        return b"END"


class BrokenEncoder(FakeEncoder):
    def encode_block(self, left, right):
        raise RuntimeError("bad sample rate")


@pytest.fixture(autouse=True)
def _reset_fake_encoders():
    FakeEncoder.instances.clear()
    yield


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def audio() -> DecodedAudio:
    return make_audio()


@pytest.fixture
def backend() -> FakePlaybackBackend:
    return FakePlaybackBackend()
