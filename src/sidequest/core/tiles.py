"""Tile geometry and per-tile rendering.

A frame is split into square tiles (clipped at the right and bottom edges).
Workers render one tile at a time: every pixel is sampled ``samples`` times,
each sample with a fresh sub-pixel jitter, camera ray and light path, and the
mean is written into a buffer owned by the worker until the finished ``Tile``
is handed to the consumer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from sidequest.core.integrator import trace_paths
from sidequest.errors import TileRenderError

if TYPE_CHECKING:
    from sidequest.core.pipeline import FrameData


@dataclass(frozen=True)
class TileRect:
    """Position and size of one tile within a frame.

    Attributes:
        index: Row-major index of the tile within its frame.
        left: Column of the tile's left edge.
        top: Row of the tile's top edge.
        width: Tile width in pixels (clipped at the frame edge).
        height: Tile height in pixels (clipped at the frame edge).
    """

    index: int
    left: int
    top: int
    width: int
    height: int

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass
class Tile:
    """A rendered rectangle of one frame.

    Attributes:
        frame_num: Index of the frame the tile belongs to.
        left: Column of the tile's left edge in the frame.
        top: Row of the tile's top edge in the frame.
        buf: Linear RGB radiance, float32 array of shape (height, width, 3).
    """

    frame_num: int
    left: int
    top: int
    buf: npt.NDArray[np.float32]

    @property
    def width(self) -> int:
        return int(self.buf.shape[1])

    @property
    def height(self) -> int:
        return int(self.buf.shape[0])


def pixel_to_ndc(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
    width: int,
    height: int,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Convert continuous pixel coordinates to camera device coordinates.

    Pixel (0, 0) is the top-left corner of the image. The result has v = 1 at
    the top edge and v = -1 at the bottom, and u spans [-aspect, aspect].

    Args:
        x: Column coordinates, possibly fractional (jittered).
        y: Row coordinates, possibly fractional (jittered).
        width: Frame width in pixels.
        height: Frame height in pixels.

    Returns:
        Tuple (u, v) of device coordinates.
    """
    aspect = width / height
    u = (2.0 * x / width - 1.0) * aspect
    v = 1.0 - 2.0 * y / height
    return u, v


def render_tile(
    frame_num: int,
    frame: FrameData,
    rect: TileRect,
    width: int,
    height: int,
    rng: np.random.Generator,
) -> Tile:
    """Render one tile of a frame.

    Args:
        frame_num: Index of the frame being rendered.
        frame: Scene, camera and sample settings of the frame.
        rect: Which part of the frame to render.
        width: Full frame width in pixels.
        height: Full frame height in pixels.
        rng: Random generator owned by the calling worker.

    Returns:
        The finished tile.

    Raises:
        TileRenderError: If any pixel came out NaN or infinite, which means
            the scene data itself is broken.
    """
    xs = np.arange(rect.left, rect.left + rect.width, dtype=np.float64)
    ys = np.arange(rect.top, rect.top + rect.height, dtype=np.float64)
    px, py = np.meshgrid(xs, ys)
    px = px.ravel()
    py = py.ravel()
    n = px.size

    samples = frame.params.samples
    accum = np.zeros((n, 3))
    for _ in range(samples):
        u, v = pixel_to_ndc(px + rng.random(n), py + rng.random(n), width, height)
        ray = frame.camera.generate_ray(u, v, rng)
        accum += trace_paths(ray.origin, ray.direction, frame.scene, rng, frame.params.bounce_limit)

    buf = (accum / samples).reshape(rect.height, rect.width, 3).astype(np.float32)
    if not np.isfinite(buf).all():
        raise TileRenderError(frame_num, rect.left, rect.top, "non-finite radiance in tile")
    return Tile(frame_num=frame_num, left=rect.left, top=rect.top, buf=buf)
