"""Orchestrator: one waveform view with its selections, playback and exports."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np

from waveclip import ffutil
from waveclip.encoders.mp3 import DEFAULT_BITRATE, EncoderFactory, LameMp3Encoder, encode_mp3
from waveclip.encoders.wav import encode_wav
from waveclip.extract import OfflineRenderer, extract_range
from waveclip.models import EXPORT_FORMATS, DecodedAudio, PcmClip, Region, TimeRange
from waveclip.playback import (
    DEFAULT_INTERVAL,
    PlaybackBackend,
    PlaybackController,
    PlaybackHandle,
    PlaybackState,
    SoundDevicePlayback,
)
from waveclip.regions import RegionSet
from waveclip.sinks import MemorySink, OutputSink
from waveclip.timeaxis import TimeAxisMapper

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    filename: str
    mime_type: str
    size: int
    time_range: TimeRange


class WaveformSession:
    """Owns everything mutable about one loaded waveform.

    Gesture sources feed it resolved events (``point_selected``,
    ``range_dragged``, ``range_double_clicked``) in pixel coordinates; the
    session maps them through its :class:`TimeAxisMapper` onto the region set,
    the playback controller and the export pipeline.
    """

    def __init__(
        self,
        audio: DecodedAudio,
        width: float,
        playback_backend: PlaybackBackend | None = None,
        renderer: OfflineRenderer | None = None,
        sink: OutputSink | None = None,
        on_position: Callable[[float], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        encoder_factory: EncoderFactory = LameMp3Encoder,
        bitrate: int = DEFAULT_BITRATE,
        playhead_interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.audio = audio
        self.mapper = TimeAxisMapper(width, audio.duration)
        self.regions = RegionSet(width=width)
        self.backend = playback_backend or SoundDevicePlayback()
        self.playback = PlaybackController(
            audio, self.mapper, self.backend, on_position=on_position, interval=playhead_interval
        )
        self.renderer = renderer
        self.sink = sink if sink is not None else MemorySink()
        self.on_error = on_error
        self.encoder_factory = encoder_factory
        self.bitrate = bitrate
        self.clock = clock

    @classmethod
    def load(
        cls,
        path: Path,
        width: float,
        on_error: Callable[[Exception], None] | None = None,
        **kwargs,
    ) -> "WaveformSession":
        """Decode ``path`` and open a session on it.

        Load and decode failures are passed to ``on_error`` before being
        re-raised.
        """
        try:
            audio = ffutil.decode_audio(Path(path))
        except (ffutil.LoadError, ffutil.DecodeError) as e:
            logger.warning("Could not load %s: %s", path, e)
            if on_error:
                on_error(e)
            raise
        return cls(audio, width, on_error=on_error, **kwargs)

    @property
    def width(self) -> float:
        return self.mapper.width

    @property
    def state(self) -> PlaybackState:
        return self.playback.state

    # --- Gestures ---

    def point_selected(self, x: float) -> PlaybackState:
        """Click: play from ``x``, stopping at the end of the region under it."""
        region = self.regions.find_region_containing(x)
        start = self.mapper.pixel_to_time(x)
        if region is not None:
            return self.playback.play(start, self.mapper.pixel_to_time(region.end))
        return self.playback.play(start)

    def range_dragged(self, x0: float, x1: float) -> Region | None:
        start, end = (min(max(x, 0), self.width) for x in sorted((x0, x1)))
        return self.regions.add_region(start, end)

    def range_double_clicked(self, x: float) -> Region | None:
        region = self.regions.find_region_containing(x)
        if region is not None:
            self.regions.remove_region(region)
            logger.debug("Removed region [%s, %s]", region.start, region.end)
        return region

    def region_at(self, x: float) -> Region | None:
        return self.regions.find_region_containing(x)

    # --- Clips ---

    async def extract(self, region: Region) -> PcmClip:
        span = self.mapper.region_to_time(region)
        return await extract_range(self.audio, span.start, span.end, self.renderer)

    async def play_clip(self, region: Region) -> PlaybackHandle:
        """Play an extracted copy of ``region``, independent of the main playhead."""
        clip = await self.extract(region)
        return self.backend.start(clip.as_audio(), 0.0, None, lambda: None)

    async def export(self, region: Region, fmt: str = "wav") -> ExportResult:
        """Extract ``region``, encode it as ``fmt`` and deliver it to the sink.

        Nothing reaches the sink if extraction or encoding fails.
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format {fmt!r}; expected one of {sorted(EXPORT_FORMATS)}")

        span = self.mapper.region_to_time(region)
        clip = await self.extract(region)
        if fmt == "mp3":
            data = encode_mp3(clip, bitrate=self.bitrate, encoder_factory=self.encoder_factory)
        else:
            data = encode_wav(clip)

        mime_type = EXPORT_FORMATS[fmt]
        filename = f"file_{int(self.clock() * 1000)}.{fmt}"
        self.sink.deliver(data, mime_type, filename)
        logger.info(
            "Exported %.3f-%.3fs (%.3fs clip) as %s (%d bytes)", span.start, span.end, clip.duration, filename, len(data)
        )
        return ExportResult(filename=filename, mime_type=mime_type, size=len(data), time_range=span)

    # --- Display ---

    def peaks(self, bins: int | None = None) -> np.ndarray:
        """Min/max of the first channel per display column, shape ``(bins, 2)``."""
        bins = int(bins or self.width)
        if bins <= 0:
            raise ValueError(f"bins must be positive, got {bins}")
        out = np.zeros((bins, 2), dtype=np.float32)
        for i, chunk in enumerate(np.array_split(self.audio.channel(0), bins)):
            if chunk.size:
                out[i] = (chunk.min(), chunk.max())
        return out

    # --- Lifecycle ---

    def stop(self) -> None:
        self.playback.stop()

    def close(self) -> None:
        self.playback.stop()
        self.regions.clear()
