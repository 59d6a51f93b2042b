"""Frame assembly from out-of-order tiles.

Tiles reach the consumer in whatever order workers finish them, possibly
interleaved across several frames. A ``Frame`` collects the tiles of one
frame index; ``FrameAssembler`` keeps one ``Frame`` per frame index still in
flight and hands each frame off as soon as its last tile arrives.

Neither class renders or locks anything: they are only ever touched by the
pipeline's single consumer thread.

Example:
    >>> from sidequest.core.params import RenderParams
    >>> params = RenderParams(width=128, height=64, tile_size=64, tile_queue=4, threads=2)
    >>> assembler = FrameAssembler(params, on_frame=lambda num, frame: print(num))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from sidequest.core.params import RenderParams
    from sidequest.core.tiles import Tile

logger = logging.getLogger(__name__)

# Callback receives (frame_num, completed_frame)
FrameCallback = Callable[[int, "Frame"], None]


class Frame:
    """Full-frame pixel buffer plus bookkeeping of the tiles written so far.

    Attributes:
        buf: Linear RGB float32 array of shape (height, width, 3).
        tiles_total: Number of tiles that make up the frame.
    """

    def __init__(self, width: int, height: int, tiles_total: int) -> None:
        self.buf: npt.NDArray[np.float32] = np.zeros((height, width, 3), dtype=np.float32)
        self.tiles_total = tiles_total
        self._received: set[tuple[int, int]] = set()

    @property
    def width(self) -> int:
        return int(self.buf.shape[1])

    @property
    def height(self) -> int:
        return int(self.buf.shape[0])

    @property
    def tiles_received(self) -> int:
        """Number of distinct tiles written so far."""
        return len(self._received)

    def tile_ready(self, tile: Tile) -> None:
        """Copy a finished tile into the frame at its offset.

        Raises:
            ValueError: If the tile does not fit inside the frame.
        """
        bottom = tile.top + tile.height
        right = tile.left + tile.width
        if tile.left < 0 or tile.top < 0 or right > self.width or bottom > self.height:
            raise ValueError(
                f"Tile at ({tile.left}, {tile.top}) of size {tile.width}x{tile.height} "
                f"does not fit in a {self.width}x{self.height} frame"
            )
        self.buf[tile.top:bottom, tile.left:right] = tile.buf
        self._received.add((tile.left, tile.top))

    def is_done(self) -> bool:
        """True once every tile of the frame has been received."""
        return len(self._received) == self.tiles_total

    def __repr__(self) -> str:
        return (
            f"Frame(width={self.width}, height={self.height}, "
            f"tiles={self.tiles_received}/{self.tiles_total})"
        )


class FrameAssembler:
    """Merges tiles of any number of in-flight frames.

    Frames are created lazily when their first tile arrives and dropped right
    after ``on_frame`` has been called for them.

    Attributes:
        params: Render parameters used to size new frames.
    """

    def __init__(self, params: RenderParams, on_frame: FrameCallback | None = None) -> None:
        self.params = params
        self._on_frame = on_frame
        self._frames: dict[int, Frame] = {}

    @property
    def in_flight(self) -> list[int]:
        """Frame indices with at least one but not all tiles received."""
        return sorted(self._frames)

    def add_tile(self, tile: Tile) -> Frame | None:
        """Merge a tile; return its frame if the tile completed it."""
        frame = self._frames.get(tile.frame_num)
        if frame is None:
            frame = self.params.uninitialized_frame()
            self._frames[tile.frame_num] = frame

        frame.tile_ready(tile)
        if not frame.is_done():
            return None

        logger.debug("Frame %d complete", tile.frame_num)
        if self._on_frame is not None:
            self._on_frame(tile.frame_num, frame)
        del self._frames[tile.frame_num]
        return frame

    __call__ = add_tile
