"""PCM16, WAV and MP3 encoders for extracted clips."""

from waveclip.encoders.mp3 import EncodingError, LameMp3Encoder, encode_mp3
from waveclip.encoders.pcm import float_to_int16
from waveclip.encoders.wav import build_wav_header, encode_wav, parse_wav_header

__all__ = [
    "EncodingError",
    "LameMp3Encoder",
    "build_wav_header",
    "encode_mp3",
    "encode_wav",
    "float_to_int16",
    "parse_wav_header",
]
