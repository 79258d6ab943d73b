"""Play/stop state machine with a periodic playhead report."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

import numpy as np

from waveclip.models import DecodedAudio
from waveclip.timeaxis import TimeAxisMapper

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.05


class PlaybackState(Enum):
    IDLE = "idle"
    PLAYING = "playing"


class PlaybackHandle(Protocol):
    @property
    def elapsed(self) -> float:
        """Seconds played since start."""
        ...

    def stop(self) -> None:
        ...


class PlaybackBackend(Protocol):
    def start(
        self,
        audio: DecodedAudio,
        offset: float,
        duration: float | None,
        on_ended: Callable[[], None],
    ) -> PlaybackHandle:
        """Begin playing ``audio`` at ``offset``; call ``on_ended`` on the loop when it finishes."""
        ...


class PeriodicCallback:
    """Repeating ``loop.call_later`` timer.

    After :meth:`cancel` returns the callback will not run again.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.interval = interval
        self.callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._handle = self._loop.call_later(self.interval, self._tick)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._tick)
        self.callback()


@dataclass(eq=False)
class PlaybackSession:
    start: float
    ticker: PeriodicCallback
    handle: PlaybackHandle | None = None


class PlaybackController:
    """Drives one playback session at a time over a decoded buffer.

    Calling :meth:`play` while already playing stops playback instead of
    restarting it at the new position.
    """

    def __init__(
        self,
        audio: DecodedAudio,
        mapper: TimeAxisMapper,
        backend: PlaybackBackend,
        on_position: Callable[[float], None] | None = None,
        interval: float = DEFAULT_INTERVAL,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.audio = audio
        self.mapper = mapper
        self.backend = backend
        self.on_position = on_position
        self.interval = interval
        self._loop = loop
        self._session: PlaybackSession | None = None

    @property
    def state(self) -> PlaybackState:
        return PlaybackState.PLAYING if self._session is not None else PlaybackState.IDLE

    @property
    def position(self) -> float | None:
        """Current playhead in seconds, or None when idle."""
        session = self._session
        if session is None or session.handle is None:
            return None
        return session.start + session.handle.elapsed

    def play(self, start: float = 0.0, end: float | None = None) -> PlaybackState:
        if self._session is not None:
            logger.info("play() during playback; stopping instead of restarting")
            self.stop()
            return self.state

        duration = None if end is None else max(end - start, 0.0)
        ticker = PeriodicCallback(self.interval, lambda: self._report(session), self._loop)
        session = PlaybackSession(start=start, ticker=ticker)

        self._session = session
        try:
            session.handle = self.backend.start(
                self.audio, start, duration, lambda: self._on_ended(session)
            )
        except Exception:
            self._session = None
            raise

        # The backend may already have reported the end.
        if self._session is session:
            session.ticker.start()
            logger.info("Playing from %.3fs (duration %s)", start, duration)
        return self.state

    def stop(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        session.ticker.cancel()
        if session.handle is not None:
            session.handle.stop()
        logger.info("Playback stopped")

    def _report(self, session: PlaybackSession) -> None:
        if self.on_position is None:
            return
        # An end signalled from inside backend.start arrives before the handle is set
        elapsed = session.handle.elapsed if session.handle is not None else 0.0
        self.on_position(self.mapper.time_to_pixel(session.start + elapsed))

    def _on_ended(self, session: PlaybackSession) -> None:
        if session is not self._session:
            return
        session.ticker.cancel()
        self._report(session)
        self._session = None
        logger.info("Playback reached the end")


class _StreamHandle:
    def __init__(self, frames: np.ndarray, sample_rate: int) -> None:
        self.frames = frames
        self.sample_rate = sample_rate
        self.position = 0
        self.stream = None

    @property
    def elapsed(self) -> float:
        return min(self.position, len(self.frames)) / self.sample_rate

    def callback(self, outdata, frames, time, status) -> None:
        import sounddevice as sd

        chunk = self.frames[self.position:self.position + frames]
        outdata[:len(chunk)] = chunk
        outdata[len(chunk):] = 0
        self.position += frames
        if len(chunk) < frames:
            raise sd.CallbackStop

    def stop(self) -> None:
        if self.stream is not None:
            self.stream.stop()
            self.stream.close()
            self.stream = None


class SoundDevicePlayback:
    """``PlaybackBackend`` that plays through PortAudio via ``sounddevice``.

    The stream's finished callback runs on the PortAudio thread and is
    handed back to the event loop.
    """

    def start(
        self,
        audio: DecodedAudio,
        offset: float,
        duration: float | None,
        on_ended: Callable[[], None],
    ) -> _StreamHandle:
        import sounddevice as sd

        loop = asyncio.get_running_loop()
        first = int(round(offset * audio.sample_rate))
        last = audio.length if duration is None else first + int(round(duration * audio.sample_rate))
        frames = np.ascontiguousarray(audio.samples[:, first:last].T, dtype=np.float32)
        handle = _StreamHandle(frames, audio.sample_rate)

        def ended() -> None:
            handle.stop()
            on_ended()

        def finished() -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(ended)

        handle.stream = sd.OutputStream(
            samplerate=audio.sample_rate,
            channels=audio.channels,
            dtype="float32",
            callback=handle.callback,
            finished_callback=finished,
        )
        handle.stream.start()
        return handle
