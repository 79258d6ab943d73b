"""Tests for pixel/time mapping."""

import pytest

from waveclip.models import Region
from waveclip.timeaxis import InvalidDuration, TimeAxisMapper


class TestTimeAxisMapper:
    def test_pixel_to_time(self):
        m = TimeAxisMapper(width=512, duration=8.0)
        assert m.pixel_to_time(0) == 0.0
        assert m.pixel_to_time(64) == pytest.approx(1.0)
        assert m.pixel_to_time(512) == pytest.approx(8.0)

    def test_time_to_pixel(self):
        m = TimeAxisMapper(width=512, duration=8.0)
        assert m.time_to_pixel(2.0) == pytest.approx(128.0)

    @pytest.mark.parametrize("width, duration", [(512, 8.0), (333, 7.1), (1920, 0.013), (1, 3600.0)])
    def test_round_trips(self, width, duration):
        m = TimeAxisMapper(width, duration)
        for i in range(11):
            t = duration * i / 10
            x = width * i / 10
            assert m.pixel_to_time(m.time_to_pixel(t)) == pytest.approx(t)
            assert m.time_to_pixel(m.pixel_to_time(x)) == pytest.approx(x)

    @pytest.mark.parametrize("duration", [0.0, -1.0])
    def test_non_positive_duration(self, duration):
        with pytest.raises(InvalidDuration):
            TimeAxisMapper(width=512, duration=duration)

    def test_invalid_duration_is_value_error(self):
        with pytest.raises(ValueError):
            TimeAxisMapper(width=512, duration=0)

    def test_non_positive_width(self):
        with pytest.raises(ValueError, match="Width"):
            TimeAxisMapper(width=0, duration=1.0)


class TestRegionToTime:
    def test_maps_both_bounds(self):
        m = TimeAxisMapper(width=100, duration=2.0)
        span = m.region_to_time(Region(start=10, end=20))
        assert span.start == pytest.approx(0.2)
        assert span.end == pytest.approx(0.4)

    def test_right_edge_clamped_to_duration(self):
        m = TimeAxisMapper(width=333, duration=7.1)
        span = m.region_to_time(Region(start=0, end=333))
        assert span.end <= 7.1
        assert span.end == pytest.approx(7.1)
