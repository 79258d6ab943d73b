"""Tests for manifest loading and validation."""

import json
from pathlib import Path

import pytest

from waveclip.manifest import (
    DisplayConfig,
    ExportConfig,
    Manifest,
    load_manifest,
    parse_region,
)
from waveclip.models import TimeRange


class TestDisplayConfig:
    def test_defaults(self):
        cfg = DisplayConfig()
        assert cfg.width == 512
        assert cfg.playhead_interval == 0.05


class TestExportConfig:
    def test_defaults(self):
        cfg = ExportConfig()
        assert cfg.format == "wav"
        assert cfg.bitrate == 128
        assert cfg.output_dir == Path(".")

    def test_output_dir_coerced(self):
        assert ExportConfig(output_dir="clips").output_dir == Path("clips")

    def test_bad_format(self):
        with pytest.raises(ValueError, match="Unsupported export format"):
            ExportConfig(format="flac")

    def test_bad_bitrate(self):
        with pytest.raises(ValueError, match="Bitrate"):
            ExportConfig(bitrate=0)


class TestManifest:
    def test_minimal(self):
        m = Manifest(input=Path("in.mp3"))
        assert m.version == "1"
        assert m.regions == []
        assert m.export.format == "wav"


class TestParseRegion:
    def test_valid(self):
        assert parse_region("1.5:3") == TimeRange(start=1.5, end=3.0)

    @pytest.mark.parametrize("text", ["1.5", "a:b", "1:2:3", "3:1", "2:2"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_region(text)


class TestLoadManifest:
    def test_load_sample(self, sample_manifest_path: Path):
        m = load_manifest(sample_manifest_path)
        assert m.version == "1"
        assert m.input == Path("song.mp3")
        assert m.regions == [TimeRange(1.5, 3.0), TimeRange(10.0, 12.25)]
        assert m.display.width == 800
        assert m.display.playhead_interval == 0.1
        assert m.regions[1].duration == pytest.approx(2.25)
        assert m.export.format == "mp3"
        assert m.export.bitrate == 192
        assert m.export.output_dir == Path("clips")

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_manifest(bad)

    def test_load_missing_fields(self, tmp_path: Path):
        incomplete = tmp_path / "incomplete.json"
        incomplete.write_text('{"version": "1"}')
        with pytest.raises(ValueError, match="must contain"):
            load_manifest(incomplete)

    def test_load_defaults(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text('{"input": "a.wav"}')
        m = load_manifest(path)
        assert m.regions == []
        assert m.display == DisplayConfig()
