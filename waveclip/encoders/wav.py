"""Canonical 44-byte RIFF/WAVE writer for 16-bit PCM."""

import struct
from dataclasses import dataclass

from waveclip.encoders.pcm import float_to_int16
from waveclip.models import PcmClip

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16

# ChunkID, ChunkSize, Format, Subchunk1ID, Subchunk1Size, AudioFormat,
# NumChannels, SampleRate, ByteRate, BlockAlign, BitsPerSample,
# Subchunk2ID, Subchunk2Size
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass
class WavHeader:
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int


def build_wav_header(channels: int, sample_rate: int, frames: int) -> bytes:
    bytes_per_sample = BITS_PER_SAMPLE // 8
    data_size = frames * channels * bytes_per_sample
    return _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * channels * bytes_per_sample,
        channels * bytes_per_sample,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def parse_wav_header(data: bytes) -> WavHeader:
    """Read back a header written by :func:`build_wav_header`."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"WAV data too short for a header: {len(data)} bytes")
    (riff, _chunk_size, wave, fmt, fmt_size, audio_format, channels, sample_rate,
     byte_rate, block_align, bits, data_id, data_size) = _HEADER.unpack_from(data)
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_id != b"data":
        raise ValueError("Not a canonical RIFF/WAVE header")
    if fmt_size != 16 or audio_format != 1:
        raise ValueError(f"Unsupported WAV format (fmt size {fmt_size}, format {audio_format})")
    return WavHeader(
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )


def encode_wav(clip: PcmClip) -> bytes:
    """Header followed by interleaved little-endian PCM16 frames."""
    pcm = float_to_int16(clip.samples)
    header = build_wav_header(clip.channels, clip.sample_rate, clip.length)
    return header + pcm.T.astype("<i2").tobytes()
