"""Command line renderer for the orbit animation.

Renders the animated demo scene tile by tile on a pool of worker threads,
writes every finished frame to its own image file and, when a display is
available, shows the tiles in a preview window as they complete. Closing the
window (or pressing Escape/Q) stops the render after the tiles already queued
have finished.

Usage:
    sidequest OUTPUT [options]
    python -m sidequest OUTPUT [options]

OUTPUT is a path template; ``%n`` is replaced with the frame number.

Example:
    sidequest renders/orbit_%n.png --width 256 --height 256 --samples 64 --frames 12
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import TYPE_CHECKING

from tqdm import tqdm

from sidequest.core.frame import Frame, FrameAssembler
from sidequest.core.params import RenderParams, SampleParams
from sidequest.core.pipeline import DEFAULT_POLL_INTERVAL_MS, TickResult, render_pipeline
from sidequest.errors import ConfigurationError, SidequestError
from sidequest.preview.export import FRAME_NUMBER_PLACEHOLDER, save_frame
from sidequest.scene.orbit import OrbitAnimation

if TYPE_CHECKING:
    from sidequest.core.tiles import Tile
    from sidequest.preview.interactive import TilePreview

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="sidequest",
        description="Render the orbit animation with a tiled, multi-threaded path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "output",
        metavar="OUTPUT",
        help=f"Output path template; {FRAME_NUMBER_PLACEHOLDER} is replaced with the frame number",
    )
    parser.add_argument(
        "-t",
        "--threads",
        type=int,
        default=os.cpu_count() or 1,
        help="Number of worker threads (default: CPU count)",
    )
    parser.add_argument(
        "-w",
        "--width",
        type=int,
        default=512,
        help="Image width in pixels (default: 512)",
    )
    parser.add_argument(
        "-H",
        "--height",
        type=int,
        default=512,
        help="Image height in pixels (default: 512)",
    )
    parser.add_argument(
        "-s",
        "--samples",
        type=int,
        default=1000,
        help="Samples per pixel (default: 1000)",
    )
    parser.add_argument(
        "-f",
        "--frames",
        type=int,
        default=30,
        help="Number of animation frames (default: 30)",
    )
    parser.add_argument(
        "--tilesize",
        type=int,
        default=64,
        help="Tile edge length in pixels (default: 64)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=12,
        help="Maximum scattering events per path (default: 12)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Root random seed for reproducible renders (default: random)",
    )
    parser.add_argument(
        "--poll-ms",
        type=int,
        default=DEFAULT_POLL_INTERVAL_MS,
        help=f"Preview refresh interval in milliseconds (default: {DEFAULT_POLL_INTERVAL_MS})",
    )
    parser.add_argument(
        "--no-preview",
        action="store_true",
        help="Do not open the preview window",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show the progress bar",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    args = parser.parse_args(argv)
    if args.poll_ms <= 0:
        parser.error(f"--poll-ms must be positive, got {args.poll_ms}")
    return args


def configure_logging(verbosity: int) -> None:
    """Set the root log level from the number of -v flags."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


def open_preview(width: int, height: int) -> TilePreview | None:
    """Initialize Taichi and create the preview, or None without a display."""
    # Lazy imports so Taichi is only loaded when a window is wanted
    import taichi as ti

    from sidequest.preview.interactive import TilePreview

    if not TilePreview.is_display_available():
        logger.warning("No display available; rendering without preview")
        return None
    ti.init(arch=ti.cpu)
    return TilePreview(width, height)


def _always_run() -> TickResult:
    return TickResult.RUN


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        render_params = RenderParams(
            width=args.width,
            height=args.height,
            tile_size=args.tilesize,
            tile_queue=max(2 * args.threads, 1),
            threads=args.threads,
            seed=args.seed,
        )
        sample_params = SampleParams(samples=args.samples, bounce_limit=args.bounces)
        animation = OrbitAnimation(args.frames, sample_params)
    except ValueError as e:
        # ConfigurationError is a ValueError
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.frames > 1 and FRAME_NUMBER_PLACEHOLDER not in args.output:
        logger.warning(
            "Output %r has no %s placeholder; every frame overwrites the same file",
            args.output,
            FRAME_NUMBER_PLACEHOLDER,
        )

    preview = None if args.no_preview else open_preview(args.width, args.height)

    print(
        f"Rendering {args.frames} frames at {args.width}x{args.height}, "
        f"{args.samples} spp, {args.threads} threads..."
    )

    progress = tqdm(
        total=render_params.tiles_per_frame() * args.frames,
        unit="tile",
        desc="Rendering",
        disable=args.no_progress,
    )

    def on_frame(frame_num: int, frame: Frame) -> None:
        path = save_frame(frame, args.output, frame_num)
        progress.write(f"Saved frame {frame_num} to {path}")

    assembler = FrameAssembler(render_params, on_frame=on_frame)

    def on_tile(tile: Tile) -> None:
        assembler.add_tile(tile)
        if preview is not None:
            preview.update_tile(tile)
        progress.update(1)

    tick = preview.poll if preview is not None else _always_run

    try:
        stats = render_pipeline(animation, on_tile, tick, args.poll_ms, render_params)
    except SidequestError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2 if isinstance(e, ConfigurationError) else 1
    finally:
        progress.close()
        if preview is not None:
            preview.close()

    if stats.cancelled:
        print(f"Cancelled; {len(assembler.in_flight)} frames left incomplete")
    print(
        f"Done: {stats.tiles_completed} tiles of {stats.frames_started} frames "
        f"in {stats.elapsed:.2f}s"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
