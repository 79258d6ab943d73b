"""Block-based MP3 export on top of an external LAME encoder."""

import logging
from typing import Callable, Protocol

import numpy as np

from waveclip.encoders.pcm import float_to_int16
from waveclip.models import PcmClip

logger = logging.getLogger(__name__)

DEFAULT_BITRATE = 128
SAMPLE_BLOCK_SIZE = 1152  # one MPEG-1 Layer III frame granule pair


class EncodingError(RuntimeError):
    """Raised when the lossy encoder rejects input or fails mid-stream."""
    pass


class Mp3Encoder(Protocol):
    def encode_block(self, left: np.ndarray, right: np.ndarray | None) -> bytes:
        ...

    def flush(self) -> bytes:
        ...


EncoderFactory = Callable[[int, int, int], Mp3Encoder]


class LameMp3Encoder:
    """``Mp3Encoder`` backed by the ``lameenc`` bindings."""

    def __init__(self, channels: int, sample_rate: int, bitrate: int = DEFAULT_BITRATE) -> None:
        import lameenc

        self.channels = channels
        self._encoder = lameenc.Encoder()
        self._encoder.set_bit_rate(bitrate)
        self._encoder.set_in_sample_rate(sample_rate)
        self._encoder.set_channels(channels)
        self._encoder.set_quality(2)

    def encode_block(self, left: np.ndarray, right: np.ndarray | None) -> bytes:
        if self.channels == 2:
            pcm = np.column_stack([left, right if right is not None else left])
        else:
            pcm = left
        return bytes(self._encoder.encode(np.ascontiguousarray(pcm, dtype="<i2").tobytes()))

    def flush(self) -> bytes:
        return bytes(self._encoder.flush())


def encode_mp3(
    clip: PcmClip,
    bitrate: int = DEFAULT_BITRATE,
    encoder_factory: EncoderFactory = LameMp3Encoder,
) -> bytes:
    """Feed the clip to the encoder in fixed-size blocks and drain it.

    Only the first two channels are encoded; MP3 carries at most stereo.

    Raises:
        EncodingError: if the encoder fails at any point. No partial stream
            is returned.
    """
    channels = min(clip.channels, 2)
    left = float_to_int16(clip.samples[0])
    right = float_to_int16(clip.samples[1]) if channels > 1 else None

    chunks: list[bytes] = []
    try:
        encoder = encoder_factory(channels, clip.sample_rate, bitrate)
        for i in range(0, len(left), SAMPLE_BLOCK_SIZE):
            left_block = left[i:i + SAMPLE_BLOCK_SIZE]
            right_block = right[i:i + SAMPLE_BLOCK_SIZE] if right is not None else None
            buf = encoder.encode_block(left_block, right_block)
            if len(buf) > 0:
                chunks.append(buf)

        buf = encoder.flush()
        if len(buf) > 0:
            chunks.append(buf)
    except EncodingError:
        raise
    except Exception as e:
        raise EncodingError(f"MP3 encoding failed: {e}") from e

    data = b"".join(chunks)
    logger.debug("Encoded %d frames into %d MP3 bytes (%d chunks)", clip.length, len(data), len(chunks))
    return data
