"""WaveClip — waveform region selection and clip export."""

__version__ = "0.1.0"
