"""Tone mapping and display encoding for rendered radiance.

The renderer works in linear RGB with unbounded values. Before a frame is
written to an 8-bit image or shown in the preview window it goes through:
1. Tone mapping (optional): compress HDR values into [0, 1]
2. sRGB encoding: the standard piecewise transfer curve, or a plain
   power-law gamma when one is given
3. Quantization to uint8

Example:
    >>> import numpy as np
    >>> to_display_uint8(np.full((2, 2, 3), 0.5, dtype=np.float32))[0, 0]
    array([188, 188, 188], dtype=uint8)
"""

from __future__ import annotations

from typing import Literal

import numpy as np
import numpy.typing as npt

# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Reinhard operator c / (1 + c), applied per channel."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32], exposure: float = 1.0
) -> npt.NDArray[np.float32]:
    """Exposure operator 1 - exp(-c * exposure)."""
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def tone_map(
    image: npt.NDArray[np.float32],
    method: ToneMapMethod = "none",
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply the named tone mapping operator.

    Raises:
        ValueError: For an unknown method.
    """
    if method == "reinhard":
        return tone_map_reinhard(image)
    if method == "exposure":
        return tone_map_exposure(image, exposure)
    if method != "none":
        raise ValueError(f"Unknown tone mapping method: {method}")
    return np.asarray(image, dtype=np.float32)


def linear_to_srgb(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Encode linear values in [0, 1] with the sRGB transfer curve."""
    image = np.clip(image, 0.0, 1.0)
    encoded = np.where(
        image <= 0.0031308,
        12.92 * image,
        1.055 * np.power(image, 1.0 / 2.4) - 0.055,
    )
    return encoded.astype(np.float32)


def srgb_to_linear(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    """Decode sRGB-encoded values in [0, 1] to linear values."""
    image = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    return np.where(
        image <= 0.04045,
        image / 12.92,
        np.power((image + 0.055) / 1.055, 2.4),
    )


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map_method: ToneMapMethod = "none",
    gamma: float | None = None,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Tone map and encode a linear image for display, result in [0, 1].

    Args:
        image: Linear HDR image of shape (H, W, 3).
        tone_map_method: Tone mapping operator to apply first.
        gamma: If given, encode with out = in^(1/gamma) instead of the sRGB
            curve. 1.0 leaves values linear.
        exposure: Exposure for the "exposure" operator.

    Returns:
        Display-ready float32 image in [0, 1].
    """
    result = tone_map(image, tone_map_method, exposure)
    if gamma is None:
        return linear_to_srgb(result)
    result = np.clip(result, 0.0, 1.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)
    return result.astype(np.float32)


def to_display_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map_method: ToneMapMethod = "none",
    gamma: float | None = None,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Tone map, encode and quantize a linear image to 8 bits per channel."""
    processed = process_image_for_display(image, tone_map_method, gamma, exposure)
    return np.round(processed * 255.0).astype(np.uint8)
