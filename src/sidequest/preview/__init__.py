"""Preview module for output and visualization.

Components:
    tonemap: Tone mapping (Reinhard, exposure) and sRGB encoding
    export: Per-frame image files from an output path template
    interactive: Taichi GGUI window showing tiles as they arrive

Example:
    >>> from sidequest.preview import save_frame
    >>> save_frame(frame, "render_%n.png", frame_num)  # doctest: +SKIP

The interactive preview is not imported here because it needs Taichi to be
initialized; use ``from sidequest.preview.interactive import TilePreview``.
"""

from sidequest.preview.export import (
    frame_output_path,
    save_frame,
    save_png_from_array,
)
from sidequest.preview.tonemap import (
    ToneMapMethod,
    linear_to_srgb,
    process_image_for_display,
    srgb_to_linear,
    to_display_uint8,
    tone_map,
    tone_map_exposure,
    tone_map_reinhard,
)

__all__ = [
    # Tone mapping
    "ToneMapMethod",
    "tone_map",
    "tone_map_reinhard",
    "tone_map_exposure",
    "linear_to_srgb",
    "srgb_to_linear",
    "process_image_for_display",
    "to_display_uint8",
    # Export
    "frame_output_path",
    "save_frame",
    "save_png_from_array",
]
