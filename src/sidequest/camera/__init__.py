"""Camera module for view and ray generation.

Components:
    base: The ``Camera`` protocol (``generate_ray(u, v, rng) -> Ray``)
    perspective: Pinhole perspective camera with look-at positioning
    defocus: Thin-lens depth-of-field decorator wrapping any camera

Ray generation uses normalized device coordinates:
    u in [-aspect, aspect]: left to right across the image
    v in [-1, 1]: bottom to top across the image

Cameras compose by wrapping rather than inheritance:

    >>> camera = DefocusCamera(PerspectiveCamera(...), focus_distance=14.0)  # doctest: +SKIP
"""

from .base import Camera
from .defocus import DefocusCamera
from .perspective import PerspectiveCamera

__all__ = [
    "Camera",
    "PerspectiveCamera",
    "DefocusCamera",
]
