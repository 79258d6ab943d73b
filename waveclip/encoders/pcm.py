"""Float -> signed 16-bit PCM conversion shared by every export path."""

import numpy as np

INT16_SCALE = 32767
INT16_MIN = -32768
INT16_MAX = 32767


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """Scale by 32767, round half to even, and clamp to the int16 range."""
    scaled = np.rint(np.asarray(samples, dtype=np.float64) * INT16_SCALE)
    return np.clip(scaled, INT16_MIN, INT16_MAX).astype(np.int16)
