"""Animated demo scene: glowing spheres orbiting a large base sphere.

Frame ``i`` of an ``n`` frame animation uses the angle ``a = 2*pi*i/n``, so
the last frame leads smoothly back into the first and the animation loops.

Scene layout (center, radius, emission, reflectivity):
    - base sphere at (0, -2, 0), r=3, dim violet glow
    - top light at (0, 3, 0), r=1.5, pale green
    - two spheres at x=+-4 bobbing along y, red and blue, with emission
      pulsing over the loop
    - two dark spheres orbiting the base in the xz plane, one almost mirror
      grey and one nearly black

Example:
    >>> from sidequest.core.params import SampleParams
    >>> animation = OrbitAnimation(frame_count=30, sample_params=SampleParams(100, 12))
    >>> animation(0).scene.objects[0].radius
    3.0
    >>> animation(30) is None
    True
"""

from __future__ import annotations

import math

import numpy as np

from sidequest.camera.defocus import DefocusCamera
from sidequest.camera.perspective import PerspectiveCamera
from sidequest.core.params import SampleParams
from sidequest.core.pipeline import FrameData
from sidequest.preview.tonemap import srgb_to_linear
from sidequest.scene.world import Color, Scene, SceneObject

# Camera placement
LOOKFROM = (12.0, 8.0, 12.0)
LOOKAT = (0.0, 0.0, 0.0)
VUP = (0.0, 1.0, 0.0)
VFOV_DEGREES = 45.0
FOCUS_DISTANCE = 14.0

# Dark slate grey, given in sRGB
AMBIENT_SRGB = (47, 79, 79)
AMBIENT_SCALE = 0.4

MARGIN = 1e-5


def _scaled(color: Color, factor: float) -> Color:
    return (color[0] * factor, color[1] * factor, color[2] * factor)


def ambient_radiance() -> Color:
    """Background radiance in linear RGB."""
    linear = srgb_to_linear(np.array(AMBIENT_SRGB, dtype=np.float64) / 255.0) * AMBIENT_SCALE
    return (float(linear[0]), float(linear[1]), float(linear[2]))


def orbit_scene(angle: float) -> Scene:
    """Build the scene at animation angle ``angle`` (radians)."""
    sin_a = math.sin(angle)
    cos_a = math.cos(angle)
    black = (0.0, 0.0, 0.0)

    objects = (
        SceneObject.new(0.0, -2.0, 0.0, 3.0, _scaled((0.894, 0.345, 0.925), 0.25), 0.5),
        SceneObject.new(0.0, 3.0, 0.0, 1.5, _scaled((0.8, 1.0, 0.8), 0.9), 0.75),
        SceneObject.new(
            4.0, -2.25 * sin_a, 0.0, 1.0, _scaled((1.0, 0.2, 0.2), 0.75 * (cos_a + 1.0) / 2.0), 0.95
        ),
        SceneObject.new(
            -4.0, 2.25 * sin_a, 0.0, 1.0, _scaled((0.2, 0.2, 1.0), 0.75 * (sin_a + 1.0) / 2.0), 0.95
        ),
        SceneObject.new(4.0 * sin_a, 0.0, 4.0 * cos_a, 1.0, black, 0.95),
        SceneObject.new(-4.0 * sin_a, 0.0, -4.0 * cos_a, 1.0, black, 0.05),
    )
    return Scene(objects=objects, ambient=ambient_radiance(), margin=MARGIN)


def orbit_camera(aperture_radius: float = 0.1) -> DefocusCamera:
    """The demo camera: a perspective view with shallow depth of field."""
    base = PerspectiveCamera(LOOKFROM, LOOKAT, VUP, VFOV_DEGREES, near=0.1, far=100.0)
    return DefocusCamera(base, focus_distance=FOCUS_DISTANCE, aperture_radius=aperture_radius)


class OrbitAnimation:
    """Frame source for the orbit animation.

    Calling the animation with a frame index returns that frame's
    ``FrameData``, or ``None`` once ``frame_count`` frames have been produced.

    Attributes:
        frame_count: Number of frames in the loop.
        sample_params: Samples and bounce limit used for every frame.
    """

    def __init__(
        self,
        frame_count: int,
        sample_params: SampleParams,
        aperture_radius: float = 0.1,
    ) -> None:
        if frame_count < 1:
            raise ValueError(f"frame_count must be >= 1, got {frame_count}")
        self.frame_count = frame_count
        self.sample_params = sample_params
        self._camera = orbit_camera(aperture_radius)

    def angle(self, index: int) -> float:
        return 2.0 * math.pi * index / self.frame_count

    def __call__(self, index: int) -> FrameData | None:
        if index >= self.frame_count:
            return None
        return FrameData(
            scene=orbit_scene(self.angle(index)),
            camera=self._camera,
            params=self.sample_params,
        )
