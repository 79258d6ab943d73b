"""Pixel <-> time conversion for a fixed-width waveform display."""

from waveclip.models import Region, TimeRange


class InvalidDuration(ValueError):
    """Raised when a mapper is built for audio with no positive duration."""
    pass


class TimeAxisMapper:
    def __init__(self, width: float, duration: float) -> None:
        if duration <= 0:
            raise InvalidDuration(f"Duration must be positive, got {duration}")
        if width <= 0:
            raise ValueError(f"Width must be positive, got {width}")
        self.width = width
        self.duration = duration
        self._scale = width / duration

    def pixel_to_time(self, x: float) -> float:
        return x / self._scale

    def time_to_pixel(self, t: float) -> float:
        return t * self._scale

    def region_to_time(self, region: Region) -> TimeRange:
        """Resolve a pixel-space region to seconds.

        The end is clamped to the duration so a region reaching the right
        edge never lands a rounding error past the end of the audio.
        """
        start = max(self.pixel_to_time(region.start), 0.0)
        end = min(self.pixel_to_time(region.end), self.duration)
        return TimeRange(start=start, end=end)
