"""Live tile preview window using Taichi GGUI.

The preview shows each tile as soon as the consumer receives it and doubles
as the pipeline's cancellation source: ``poll`` presents the window, pumps
its events, and answers ``TickResult.EXIT`` once the window is closed or
Escape/Q is pressed.

GGUI windows must be driven from the thread that created them. Both the tile
consumer and the cancellation source run on the pipeline's calling thread,
so that is where all window calls happen.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> preview = TilePreview(512, 512)
    >>> render_pipeline(frames, preview.update_tile, preview.poll, 100, params)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from sidequest.core.pipeline import TickResult
from sidequest.preview.tonemap import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    import numpy.typing as npt

    from sidequest.core.tiles import Tile

logger = logging.getLogger(__name__)

# Keys that close the preview and cancel the render
EXIT_KEYS = (ti.ui.ESCAPE, "q")


class TilePreview:
    """Progressive preview of the frame currently being rendered.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field holding the displayed image, indexed
            (x, y) with the origin at the bottom-left as GGUI expects.
        pixels: Display-encoded image, (height, width, 3), top row first.

    Example:
        >>> preview = TilePreview(256, 256)
        >>> preview.update_tile(tile)
        >>> preview.poll()
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Sidequest Render Preview",
        tone_map: ToneMapMethod = "none",
    ) -> None:
        """Create the display buffers; the window itself opens lazily.

        Note:
            Taichi must already be initialized (``ti.init``).
        """
        self.width = width
        self.height = height
        self._title = title
        self._tone_map = tone_map
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None
        self._dirty = False

        self.pixels: npt.NDArray[np.float32] = np.zeros((height, width, 3), dtype=np.float32)
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(name=self._title, res=(self.width, self.height), vsync=False)
        self._canvas = self._window.get_canvas()

    @property
    def window(self) -> ti.ui.Window:
        """The GGUI window, created on first access."""
        self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_tile(self, tile: Tile) -> None:
        """Draw a finished tile into the preview image.

        Raises:
            ValueError: If the tile lies outside the preview area.
        """
        bottom = tile.top + tile.height
        right = tile.left + tile.width
        if right > self.width or bottom > self.height:
            raise ValueError(
                f"Tile at ({tile.left}, {tile.top}) of size {tile.width}x{tile.height} "
                f"exceeds the {self.width}x{self.height} preview"
            )
        self.pixels[tile.top:bottom, tile.left:right] = process_image_for_display(
            tile.buf, tone_map_method=self._tone_map
        )
        self._dirty = True

    def _upload(self) -> None:
        # Taichi fields are (x, y) with y up; numpy images are (row, col) with
        # row 0 at the top
        image = np.ascontiguousarray(np.transpose(np.flipud(self.pixels), (1, 0, 2)))
        self.display_image.from_numpy(image)
        self._dirty = False

    def show_frame(self) -> None:
        """Present the current preview image."""
        if self._dirty:
            self._upload()
        self.canvas.set_image(self.display_image)
        self.window.show()

    def poll(self) -> TickResult:
        """Cancellation source: refresh the window and check for close/exit keys."""
        window = self.window
        if not window.running:
            return TickResult.EXIT
        while window.get_event(ti.ui.PRESS):
            if window.event.key in EXIT_KEYS:
                logger.info("Preview closed by key press")
                window.running = False
                return TickResult.EXIT
        self.show_frame()
        return TickResult.RUN

    def close(self) -> None:
        """Close the window; it cannot be reopened afterwards."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check whether a display is available for GUI rendering."""
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        if os.uname().sysname == "Darwin":
            # SSH sessions without X forwarding have no display
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)
