"""Depth-of-field decorator for any camera.

``DefocusCamera`` wraps another camera and simulates a thin lens: for each
ray of the wrapped camera it finds the point in focus at ``focus_distance``
along the ray, moves the ray origin to a uniformly sampled point on a disk of
``aperture_radius`` around the original origin (perpendicular to the ray),
and aims the new ray back at the focal point. Objects at the focus distance
stay sharp; everything nearer or farther blurs.

Example:
    >>> from sidequest.camera.perspective import PerspectiveCamera
    >>> base = PerspectiveCamera((12.0, 8.0, 12.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0), 45.0)
    >>> camera = DefocusCamera(base, focus_distance=14.0, aperture_radius=0.2)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from sidequest.camera.base import Camera, Coordinate
from sidequest.core.ray import Ray, build_onb_from_normal, normalize, random_in_unit_disk


@dataclass(frozen=True)
class DefocusCamera:
    """Thin-lens defocus layered on a base camera.

    Attributes:
        camera: The wrapped camera. May itself be a decorator.
        focus_distance: Distance along each ray that stays in focus.
        aperture_radius: Lens radius. Zero reproduces the wrapped camera.
    """

    camera: Camera
    focus_distance: float
    aperture_radius: float = 0.1

    def __post_init__(self) -> None:
        if self.focus_distance <= 0.0:
            raise ValueError(f"Focus distance must be positive, got {self.focus_distance}")
        if self.aperture_radius < 0.0:
            raise ValueError(f"Aperture radius must be non-negative, got {self.aperture_radius}")

    def generate_ray(self, u: Coordinate, v: Coordinate, rng: np.random.Generator) -> Ray:
        """Generate the wrapped camera's rays and jitter them across the lens."""
        ray = self.camera.generate_ray(u, v, rng)
        if self.aperture_radius == 0.0:
            return ray

        origin = np.atleast_2d(ray.origin)
        direction = np.atleast_2d(ray.direction)
        focal_point = origin + self.focus_distance * direction

        disk = self.aperture_radius * random_in_unit_disk(rng, origin.shape[0])
        tangent, bitangent, _ = build_onb_from_normal(direction)
        lens_point = origin + disk[:, 0:1] * tangent + disk[:, 1:2] * bitangent

        new_direction = normalize(focal_point - lens_point)
        if ray.origin.ndim == 1:
            return Ray(origin=lens_point[0], direction=new_direction[0])
        return Ray(origin=lens_point, direction=new_direction)
