"""Exception hierarchy for the renderer.

Configuration problems are reported before any rendering starts. Everything
that goes wrong once the pipeline is running is a ``RenderError``; the
pipeline wraps the original exception with the frame/tile it concerns and
chains it as ``__cause__``.
"""

from __future__ import annotations


class SidequestError(Exception):
    """Base class for all renderer errors."""


class ConfigurationError(SidequestError, ValueError):
    """Invalid render or sample parameters."""


class RenderError(SidequestError, RuntimeError):
    """A failure while the render pipeline was running."""


class FrameSourceError(RenderError):
    """The frame source raised while producing a frame."""

    def __init__(self, frame_num: int, message: str) -> None:
        super().__init__(f"frame {frame_num}: {message}")
        self.frame_num = frame_num


class _TileError(RenderError):
    def __init__(self, frame_num: int, left: int, top: int, message: str) -> None:
        super().__init__(f"frame {frame_num}, tile ({left}, {top}): {message}")
        self.frame_num = frame_num
        self.left = left
        self.top = top


class TileRenderError(_TileError):
    """A worker failed to render a tile."""


class TileSinkError(_TileError):
    """The tile consumer raised while handling a finished tile."""
