"""
CLI entry point for the live kaleidoscope viewer.

Usage:
    mangankyo [options]
    python -m mangankyo [options]
"""

import argparse
import logging
import sys
from pathlib import Path

from mangankyo.config import DEFAULT_SCALE, EXPORT_MODES, FACING_MODES, SessionConfig
from mangankyo.logging_config import setup_logging
from mangankyo.sources import StaticImageSource, camera_factory
from mangankyo.viewer import LiveViewer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mangankyo",
        description="Live camera kaleidoscope with seamless repeat-tile export",
    )

    # Pattern
    parser.add_argument(
        "-s", "--scale", type=float, default=DEFAULT_SCALE,
        help=f"Triangle base as a fraction of the shorter frame side, 0.1-2.0 (default: {DEFAULT_SCALE})",
    )
    parser.add_argument(
        "--facing", type=str, default="front", choices=FACING_MODES,
        help="Camera to start with (default: front)",
    )

    # Window
    parser.add_argument("--width", type=int, default=1280, help="Window width (default: 1280)")
    parser.add_argument("--height", type=int, default=720, help="Window height (default: 720)")
    parser.add_argument("-f", "--fps", type=int, default=60, help="Target frame rate (default: 60)")

    # Sources
    parser.add_argument("--front-camera", type=int, default=0, help="Device index of the front camera")
    parser.add_argument("--back-camera", type=int, default=1, help="Device index of the back camera")
    parser.add_argument(
        "--image", type=Path, default=None,
        help="Use a still image instead of a camera",
    )

    # Export
    parser.add_argument(
        "--export-mode", type=str, default="display", choices=EXPORT_MODES,
        help="What the quick-export key saves (default: display)",
    )
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=Path("."),
        help="Directory for exported PNGs (default: current directory)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        config = SessionConfig(
            scale=args.scale,
            facing_mode=args.facing,
            width=args.width,
            height=args.height,
            fps=args.fps,
            export_mode=args.export_mode,
            output_dir=args.output_dir,
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.image is not None:
        if not args.image.exists():
            print(f"Error: Image not found: {args.image}", file=sys.stderr)
            sys.exit(1)
        image = args.image
        factory = lambda facing: StaticImageSource(image, facing_mode=facing)  # noqa: E731
    else:
        factory = camera_factory({"front": args.front_camera, "back": args.back_camera})

    print(f"Starting viewer {config.width}x{config.height} @ {config.fps}fps, scale {config.scale:.1f}")
    print("Keys: s/space export, d display, p pattern, m export mode, f camera, +/- scale, q quit")

    viewer = LiveViewer(config, factory)
    status = viewer.run()

    if viewer.exports:
        print(f"\nSaved {len(viewer.exports)} image(s) to {config.output_dir}")
    sys.exit(status)


if __name__ == "__main__":
    main()
