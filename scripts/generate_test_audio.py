#!/usr/bin/env python3
"""Generate a synthetic stereo audio file for WaveClip export testing.

Produces a ~10-second 44.1 kHz file with alternating tones and silence:
  0-2s   440 Hz tone
  2-3s   silence
  3-6s   880 Hz tone
  6-7s   silence
  7-10s  660 Hz tone
"""

import subprocess
import sys
from pathlib import Path


def generate_test_audio(output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    audio_filter = (
        "sine=f=440:d=2:r=44100[a0];"
        "anullsrc=r=44100:cl=mono,atrim=duration=1[s0];"
        "sine=f=880:d=3:r=44100[a1];"
        "anullsrc=r=44100:cl=mono,atrim=duration=1[s1];"
        "sine=f=660:d=3:r=44100[a2];"
        "[a0][s0][a1][s1][a2]concat=n=5:v=0:a=1,aformat=channel_layouts=stereo[aout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", audio_filter,
        "-map", "[aout]",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/tones.wav")
    generate_test_audio(out)
