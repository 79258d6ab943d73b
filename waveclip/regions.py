"""Ordered set of non-overlapping selection regions."""

import logging
import math
from typing import Iterator

from waveclip.models import Region

logger = logging.getLogger(__name__)

_SENTINEL = Region(start=-1, end=-1)


class RegionSet:
    """Regions sorted by start, with ``region[i].end < region[i + 1].start``.

    A new region is trimmed against its neighbours on insert rather than
    merged: it starts one pixel after the preceding region and stops one
    pixel before the following one.
    """

    def __init__(self, width: float | None = None) -> None:
        self.width = width
        self._regions: list[Region] = []

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(list(self._regions))

    def __contains__(self, region: object) -> bool:
        return any(r is region for r in self._regions)

    @property
    def regions(self) -> tuple[Region, ...]:
        return tuple(self._regions)

    def add_region(self, start: float, end: float) -> Region | None:
        """Insert ``[start, end]`` trimmed against its neighbours.

        Returns the inserted region, or None when trimming leaves nothing
        (e.g. the new range lies entirely inside an existing one).
        """
        if not (math.isfinite(start) and math.isfinite(end)):
            raise ValueError(f"Region bounds must be finite, got [{start}, {end}]")
        if start > end:
            raise ValueError(f"Region start {start} is after end {end}")
        if self.width is not None and (start < 0 or end > self.width):
            raise ValueError(f"Region [{start}, {end}] outside display [0, {self.width}]")

        index = len(self._regions)
        following = None
        for i, r in enumerate(self._regions):
            if r.start > start:
                index = i
                following = r
                break

        preceding = self._regions[index - 1] if index > 0 else _SENTINEL

        effective_start = max(start, preceding.end + 1)
        if following is not None and end >= following.start:
            effective_end = following.start - 1
        else:
            effective_end = end

        if effective_start > effective_end:
            logger.debug("Dropping degenerate region [%s, %s] after trim", start, end)
            return None

        region = Region(start=effective_start, end=effective_end)
        self._regions.insert(index, region)
        logger.debug("Added region [%s, %s] at index %d", effective_start, effective_end, index)
        return region

    def find_region_containing(self, point: float) -> Region | None:
        for r in self._regions:
            if r.start <= point <= r.end:
                return r
        return None

    def remove_region(self, region: Region) -> None:
        for i, r in enumerate(self._regions):
            if r is region:
                del self._regions[i]
                return

    def clear(self) -> None:
        self._regions.clear()
