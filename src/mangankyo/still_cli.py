"""
CLI entry point for rendering one kaleidoscope still from an image.

Usage:
    mangankyo-still <image> [options]
"""

import argparse
import logging
import sys
from pathlib import Path

from mangankyo.config import DEFAULT_SCALE, EXPORT_MODES, SessionConfig
from mangankyo.errors import MangankyoError
from mangankyo.io.exporter import ExportRequest, Exporter
from mangankyo.logging_config import setup_logging
from mangankyo.render import RenderLoop
from mangankyo.scheduler import ImmediateScheduler
from mangankyo.sources import SourceManager, StaticImageSource


def render_still(
    image: Path,
    output_dir: Path,
    mode: str = "display",
    scale: float = DEFAULT_SCALE,
    width: int = 1280,
    height: int = 720,
) -> Path:
    """
    Render one frame from ``image`` and export it.

    Returns:
        Path of the written PNG.
    """
    config = SessionConfig(scale=scale, width=width, height=height, output_dir=output_dir)
    sources = SourceManager(lambda facing: StaticImageSource(image, facing_mode=facing))

    with RenderLoop(sources, config) as loop:
        if not loop.start():
            raise loop.last_error
        loop.run(ImmediateScheduler(max_ticks=1))
        return Exporter(loop).export(ExportRequest(mode), output_dir)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mangankyo-still",
        description="Render a kaleidoscope still from an image file",
    )
    parser.add_argument("image", type=Path, help="Input image (png, jpg, ...)")
    parser.add_argument(
        "-o", "--output-dir", type=Path, default=Path("."),
        help="Directory for the PNG (default: current directory)",
    )
    parser.add_argument(
        "-m", "--mode", type=str, default="display", choices=EXPORT_MODES,
        help="display: whole view, pattern: one repeat tile (default: display)",
    )
    parser.add_argument(
        "-s", "--scale", type=float, default=DEFAULT_SCALE,
        help=f"Triangle base as a fraction of the shorter image side (default: {DEFAULT_SCALE})",
    )
    parser.add_argument("--width", type=int, default=1280, help="View width (default: 1280)")
    parser.add_argument("--height", type=int, default=720, help="View height (default: 720)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if not args.image.exists():
        print(f"Error: Image not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    print(f"Rendering {args.mode} still from {args.image} (scale {args.scale})")
    try:
        output = render_still(
            args.image,
            args.output_dir,
            mode=args.mode,
            scale=args.scale,
            width=args.width,
            height=args.height,
        )
    except (MangankyoError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
