"""Image export for finished frames.

Each completed frame is written to its own file. The output path is a
template in which ``%n`` is replaced with the frame number; the file format
follows the extension (anything Pillow can write, typically PNG).

Example:
    >>> frame_output_path("out/frame_%n.png", 7)
    'out/frame_7.png'
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from sidequest.preview.tonemap import ToneMapMethod, to_display_uint8

if TYPE_CHECKING:
    from sidequest.core.frame import Frame

# Placeholder replaced by the frame number in output path templates
FRAME_NUMBER_PLACEHOLDER = "%n"


def frame_output_path(template: str, frame_num: int) -> str:
    """Substitute the frame number into an output path template."""
    return template.replace(FRAME_NUMBER_PLACEHOLDER, str(frame_num))


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float | None = None,
    exposure: float = 1.0,
) -> Path:
    """Encode a linear image and save it to ``filepath``.

    Args:
        image: Linear HDR image of shape (H, W, 3).
        filepath: Destination; the extension selects the format.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Power-law gamma; ``None`` uses the sRGB transfer curve.
        exposure: Exposure for exposure tone mapping.

    Returns:
        The path written.
    """
    path = Path(filepath)
    image_uint8 = to_display_uint8(image, tone_map_method=tone_map, gamma=gamma, exposure=exposure)
    path.parent.mkdir(parents=True, exist_ok=True)

    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(path)
    return path


def save_frame(
    frame: Frame,
    template: str,
    frame_num: int,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float | None = None,
) -> Path:
    """Write a completed frame to the path derived from ``template``.

    Returns:
        The path written.
    """
    return save_png_from_array(
        frame.buf,
        frame_output_path(template, frame_num),
        tone_map=tone_map,
        gamma=gamma,
    )
