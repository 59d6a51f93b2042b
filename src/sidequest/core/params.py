"""Render and sampling configuration.

Both parameter sets are plain frozen dataclasses validated on construction,
so a bad value is reported before any thread is started. They are passed to
the pipeline explicitly; nothing here is process-wide state.

Example:
    >>> params = RenderParams(width=512, height=288, tile_size=64, tile_queue=8, threads=4)
    >>> params.tiles_per_frame()
    40
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sidequest.errors import ConfigurationError

if TYPE_CHECKING:
    from sidequest.core.frame import Frame
    from sidequest.core.tiles import TileRect


def _require_positive(owner: str, **values: int) -> None:
    for name, value in values.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigurationError(f"{owner}.{name} must be an integer, got {value!r}")
        if value < 1:
            raise ConfigurationError(f"{owner}.{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class SampleParams:
    """Per-frame Monte Carlo settings.

    Attributes:
        samples: Number of samples averaged per pixel.
        bounce_limit: Maximum number of scattering events along a path.
    """

    samples: int
    bounce_limit: int

    def __post_init__(self) -> None:
        _require_positive("SampleParams", samples=self.samples, bounce_limit=self.bounce_limit)


@dataclass(frozen=True)
class RenderParams:
    """Output and scheduling configuration for a render pipeline.

    Attributes:
        width: Output width in pixels.
        height: Output height in pixels.
        tile_size: Edge length of a tile in pixels. Tiles on the right and
            bottom edges are clipped to the frame.
        tile_queue: Capacity of the tile work queue. This bounds how far
            frame generation can run ahead of the workers.
        threads: Number of worker threads.
        seed: Root seed for the per-tile random streams. ``None`` draws fresh
            OS entropy for every run.
    """

    width: int
    height: int
    tile_size: int
    tile_queue: int
    threads: int
    seed: int | None = None

    def __post_init__(self) -> None:
        _require_positive(
            "RenderParams",
            width=self.width,
            height=self.height,
            tile_size=self.tile_size,
            tile_queue=self.tile_queue,
            threads=self.threads,
        )
        if self.seed is not None and (not isinstance(self.seed, int) or self.seed < 0):
            raise ConfigurationError(f"RenderParams.seed must be a non-negative integer, got {self.seed!r}")

    @property
    def tile_columns(self) -> int:
        return -(-self.width // self.tile_size)

    @property
    def tile_rows(self) -> int:
        return -(-self.height // self.tile_size)

    def tiles_per_frame(self) -> int:
        """Number of tiles a frame is split into: ceil(w/ts) * ceil(h/ts)."""
        return self.tile_columns * self.tile_rows

    def tile_rects(self) -> Iterator[TileRect]:
        """Yield the tiles of one frame in row-major order.

        The last column and row are clipped to the frame boundary, so the
        rectangles cover every pixel exactly once.
        """
        from sidequest.core.tiles import TileRect

        index = 0
        for top in range(0, self.height, self.tile_size):
            tile_h = min(self.tile_size, self.height - top)
            for left in range(0, self.width, self.tile_size):
                tile_w = min(self.tile_size, self.width - left)
                yield TileRect(index=index, left=left, top=top, width=tile_w, height=tile_h)
                index += 1

    def uninitialized_frame(self) -> Frame:
        """Create an empty assembly buffer sized for one output frame."""
        from sidequest.core.frame import Frame

        return Frame(self.width, self.height, self.tiles_per_frame())
