"""Thin CLI entry point — builds a Manifest and drives a WaveformSession."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from waveclip.encoders.mp3 import EncodingError
from waveclip.extract import OutOfRange
from waveclip.ffutil import DecodeError, LoadError
from waveclip.manifest import DisplayConfig, ExportConfig, Manifest, load_manifest, parse_region
from waveclip.models import EXPORT_FORMATS
from waveclip.playback import PlaybackState
from waveclip.session import WaveformSession
from waveclip.sinks import FileSink


async def _export(session: WaveformSession, manifest: Manifest) -> int:
    exported = 0
    for span in manifest.regions:
        region = session.range_dragged(
            session.mapper.time_to_pixel(span.start),
            session.mapper.time_to_pixel(span.end),
        )
        if region is None:
            print(f"  Skipped {span.start:.2f}-{span.end:.2f}s (inside an earlier region)")
            continue
        try:
            result = await session.export(region, manifest.export.format)
        except OutOfRange as e:
            print(f"  Skipped {span.start:.2f}-{span.end:.2f}s: {e}", file=sys.stderr)
            continue
        got = result.time_range
        print(f"  {got.start:.2f}-{got.end:.2f}s ({got.duration:.2f}s) -> {result.filename} ({result.size} bytes)")
        exported += 1
    return exported


async def _play(session: WaveformSession, start: float, end: float | None) -> None:
    session.playback.play(start, end)
    try:
        while session.state is PlaybackState.PLAYING:
            await asyncio.sleep(session.playback.interval)
    finally:
        session.stop()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="waveclip",
        description="WaveClip — select regions of an audio file and export them as WAV or MP3.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    exp = sub.add_parser("export", help="Export regions of an audio file")
    exp.add_argument("audio", nargs="?", type=Path, help="Input audio file")
    exp.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    exp.add_argument("--region", "-r", action="append", default=[], help="Region as START:END in seconds (repeatable)")
    exp.add_argument("--format", "-f", choices=sorted(EXPORT_FORMATS), default="wav", help="Output format")
    exp.add_argument("--bitrate", type=int, default=128, help="MP3 bitrate in kbps")
    exp.add_argument("--output-dir", "-o", type=Path, default=Path("."), help="Output directory")
    exp.add_argument("--width", type=int, default=512, help="Waveform width in pixels that regions snap to")

    play = sub.add_parser("play", help="Play an audio file, printing the playhead position")
    play.add_argument("audio", type=Path, help="Input audio file")
    play.add_argument("--start", type=float, default=0.0, help="Start time in seconds")
    play.add_argument("--end", type=float, default=None, help="End time in seconds")
    play.add_argument("--width", type=int, default=512, help="Waveform width in pixels")

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from waveclip.web import create_app
        app = create_app()
        print(f"WaveClip web API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if args.command == "play":
        def on_position(px: float) -> None:
            print(f"\r  playhead {px:7.1f}px", end="", flush=True)

        try:
            session = WaveformSession.load(args.audio, args.width, on_position=on_position)
        except (LoadError, DecodeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        try:
            asyncio.run(_play(session, args.start, args.end))
        except KeyboardInterrupt:
            pass
        print()
        return

    try:
        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.audio:
            m = Manifest(
                input=args.audio,
                regions=[parse_region(r) for r in args.region],
                display=DisplayConfig(width=args.width),
                export=ExportConfig(format=args.format, bitrate=args.bitrate, output_dir=args.output_dir),
            )
        else:
            print("Error: provide either an AUDIO argument or --manifest.", file=sys.stderr)
            sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not m.regions:
        print("No regions given; nothing to export.")
        return

    sink = FileSink(m.export.output_dir)
    try:
        session = WaveformSession.load(
            m.input,
            m.display.width,
            sink=sink,
            bitrate=m.export.bitrate,
            playhead_interval=m.display.playhead_interval,
        )
        count = asyncio.run(_export(session, m))
    except (LoadError, DecodeError, EncodingError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! Exported {count} of {len(m.regions)} regions to {m.export.output_dir}")
    for path in sink.written:
        print(f"  {path}")
