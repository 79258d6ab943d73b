"""Unit tests for ffutil — probing and decoding through mocked subprocesses."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from waveclip.ffutil import (
    DecodeError,
    FFmpegNotFoundError,
    LoadError,
    check_ffmpeg,
    decode_audio,
    probe,
)


PROBE_JSON = {
    "format": {"duration": "3.0"},
    "streams": [
        {
            "codec_type": "audio",
            "codec_name": "mp3",
            "sample_rate": "44100",
            "channels": 2,
        },
    ],
}

# Three interleaved stereo frames
PCM_BYTES = np.array([0.1, -0.1, 0.2, -0.2, 0.3, -0.3], dtype="<f4").tobytes()


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "song.mp3"
    path.write_bytes(b"fake mp3 data")
    return path


# ---------------------------------------------------------------------------
# check_ffmpeg
# ---------------------------------------------------------------------------

class TestCheckFfmpeg:
    @patch("waveclip.ffutil.shutil.which", return_value=None)
    def test_missing(self, mock_which):
        with pytest.raises(FFmpegNotFoundError, match="not found on PATH"):
            check_ffmpeg()

    @patch("waveclip.ffutil.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_present(self, mock_which):
        check_ffmpeg()

    def test_is_a_load_error(self):
        assert issubclass(FFmpegNotFoundError, LoadError)


# ---------------------------------------------------------------------------
# probe
# ---------------------------------------------------------------------------

class TestProbe:
    @patch("waveclip.ffutil.subprocess.run")
    def test_basic(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON))
        result = probe(Path("song.mp3"))
        assert result.duration == 3.0
        assert result.sample_rate == 44100
        assert result.channels == 2
        assert result.codec_audio == "mp3"

    @patch("waveclip.ffutil.subprocess.run")
    def test_no_audio_stream(self, mock_run):
        data = {
            "format": {"duration": "60.0"},
            "streams": [{"codec_type": "video", "codec_name": "h264"}],
        }
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps(data))
        with pytest.raises(DecodeError, match="No audio stream"):
            probe(Path("video.mp4"))

    @patch("waveclip.ffutil.subprocess.run")
    def test_unreadable(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="")
        with pytest.raises(DecodeError, match="could not read"):
            probe(Path("song.mp3"))


# ---------------------------------------------------------------------------
# decode_audio
# ---------------------------------------------------------------------------

class TestDecodeAudio:
    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError, match="not found"):
            decode_audio(tmp_path / "nope.mp3")

    @patch("waveclip.ffutil.check_ffmpeg")
    @patch("waveclip.ffutil.subprocess.run")
    def test_deinterleaves(self, mock_run, mock_check, audio_file):
        mock_run.side_effect = [
            MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON)),
            MagicMock(returncode=0, stdout=PCM_BYTES, stderr=b""),
        ]
        audio = decode_audio(audio_file)
        assert audio.channels == 2
        assert audio.sample_rate == 44100
        assert audio.length == 3
        np.testing.assert_allclose(audio.channel(0), [0.1, 0.2, 0.3], rtol=1e-6)
        np.testing.assert_allclose(audio.channel(1), [-0.1, -0.2, -0.3], rtol=1e-6)

    @patch("waveclip.ffutil.check_ffmpeg")
    @patch("waveclip.ffutil.subprocess.run")
    def test_command_shape(self, mock_run, mock_check, audio_file):
        mock_run.side_effect = [
            MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON)),
            MagicMock(returncode=0, stdout=PCM_BYTES, stderr=b""),
        ]
        decode_audio(audio_file)
        cmd = mock_run.call_args_list[1][0][0]
        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-f") + 1] == "f32le"
        assert cmd[cmd.index("-ac") + 1] == "2"
        assert cmd[cmd.index("-ar") + 1] == "44100"

    @patch("waveclip.ffutil.check_ffmpeg")
    @patch("waveclip.ffutil.subprocess.run")
    def test_ffmpeg_failure(self, mock_run, mock_check, audio_file):
        mock_run.side_effect = [
            MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON)),
            MagicMock(returncode=1, stdout=b"", stderr=b"Invalid data found when processing input"),
        ]
        with pytest.raises(DecodeError, match="Invalid data"):
            decode_audio(audio_file)

    @patch("waveclip.ffutil.check_ffmpeg")
    @patch("waveclip.ffutil.subprocess.run")
    def test_empty_output(self, mock_run, mock_check, audio_file):
        mock_run.side_effect = [
            MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON)),
            MagicMock(returncode=0, stdout=b"", stderr=b""),
        ]
        with pytest.raises(DecodeError, match="no samples"):
            decode_audio(audio_file)

    @patch("waveclip.ffutil.shutil.which", return_value=None)
    def test_ffmpeg_missing(self, mock_which, audio_file):
        with pytest.raises(LoadError):
            decode_audio(audio_file)
