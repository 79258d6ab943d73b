"""FFmpeg/ffprobe subprocess helpers for loading source audio."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

import numpy as np

from waveclip.models import DecodedAudio, ProbeResult

logger = logging.getLogger(__name__)


class LoadError(RuntimeError):
    """Raised when the source audio cannot be read at all."""
    pass


class DecodeError(RuntimeError):
    """Raised when ffmpeg cannot decode the source into PCM."""
    pass


class FFmpegNotFoundError(LoadError):
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def probe(input_path: Path) -> ProbeResult:
    """Extract audio stream metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise DecodeError(f"ffprobe could not read {input_path} (rc={result.returncode})")
    data = json.loads(result.stdout)

    audio_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "audio"), None
    )
    if audio_stream is None:
        raise DecodeError(f"No audio stream found in {input_path}")

    return ProbeResult(
        duration=float(data["format"]["duration"]),
        sample_rate=int(audio_stream["sample_rate"]),
        channels=int(audio_stream["channels"]),
        codec_audio=audio_stream["codec_name"],
    )


def decode_audio(input_path: Path) -> DecodedAudio:
    """Decode the first audio stream to float32 PCM at its native rate.

    Raises:
        LoadError: the file does not exist or ffmpeg is missing.
        DecodeError: ffprobe/ffmpeg could not decode the stream.
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise LoadError(f"Audio file not found: {input_path}")
    check_ffmpeg()

    info = probe(input_path)
    cmd = [
        "ffmpeg",
        "-v", "error",
        "-i", str(input_path),
        "-vn",
        "-f", "f32le",
        "-acodec", "pcm_f32le",
        "-ac", str(info.channels),
        "-ar", str(info.sample_rate),
        "-",
    ]
    result = subprocess.run(cmd, capture_output=True)
    if result.returncode != 0:
        stderr = (result.stderr or b"").decode(errors="replace")
        raise DecodeError(f"ffmpeg failed to decode {input_path.name}: {stderr[-500:]}")

    interleaved = np.frombuffer(result.stdout, dtype="<f4")
    frames = len(interleaved) // info.channels
    if frames == 0:
        raise DecodeError(f"ffmpeg produced no samples for {input_path.name}")
    samples = interleaved[:frames * info.channels].reshape(frames, info.channels).T

    logger.info(
        "Decoded %s: %d ch, %d Hz, %d frames", input_path.name, info.channels, info.sample_rate, frames
    )
    return DecodedAudio(samples=samples, sample_rate=info.sample_rate)
