"""Immutable scene description.

A scene is an ordered collection of spheres, each with an emitted radiance
and a reflectivity, lit by a constant ambient radiance for rays that escape.
Once built, a scene is shared read-only by every worker rendering the
frame's tiles, so the per-object data is packed into read-only numpy arrays
(Structure-of-Arrays, one row per object) at construction.

Example:
    >>> scene = Scene(
    ...     objects=(SceneObject.new(0, 0, -3, 1.0, (1.0, 0.5, 0.2), 0.0),),
    ...     ambient=(0.1, 0.1, 0.1),
    ...     margin=1e-5,
    ... )
    >>> len(scene)
    1
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

Color = tuple[float, float, float]
Point = tuple[float, float, float]


def _as_triple(name: str, value: Iterable[float]) -> tuple[float, float, float]:
    triple = tuple(float(v) for v in value)
    if len(triple) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(triple)}")
    if not all(math.isfinite(v) for v in triple):
        raise ValueError(f"{name} must be finite, got {triple}")
    return triple  # type: ignore[return-value]


def _frozen(values: Sequence, shape: tuple[int, ...]) -> npt.NDArray[np.float64]:
    array = np.asarray(values, dtype=np.float64).reshape(shape)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class SceneObject:
    """A renderable sphere.

    Attributes:
        center: Sphere center in world space.
        radius: Sphere radius, > 0.
        emission: Emitted radiance (linear RGB).
        reflectivity: Fraction of incoming light diffusely scattered, in
            [0, 1]. It is also the probability a path continues after hitting
            the object.
    """

    center: Point
    radius: float
    emission: Color
    reflectivity: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_triple("center", self.center))
        object.__setattr__(self, "emission", _as_triple("emission", self.emission))
        radius = float(self.radius)
        reflectivity = float(self.reflectivity)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        if not 0.0 <= reflectivity <= 1.0:
            raise ValueError(f"Reflectivity {self.reflectivity} is outside [0, 1]")
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "reflectivity", reflectivity)

    @classmethod
    def new(
        cls,
        x: float,
        y: float,
        z: float,
        radius: float,
        emission: Color,
        reflectivity: float,
    ) -> SceneObject:
        """Shorthand constructor: (x, y, z, radius, emission, reflectivity)."""
        return cls(center=(x, y, z), radius=radius, emission=emission, reflectivity=reflectivity)


@dataclass(frozen=True)
class Scene:
    """Objects, ambient radiance and intersection margin for one frame.

    Attributes:
        objects: The scene's spheres, in order.
        ambient: Radiance returned for rays that hit nothing.
        margin: Hits closer than this distance are ignored. This keeps rays
            leaving a surface from re-hitting it due to rounding.
        centers: (M, 3) read-only array of object centers.
        radii: (M,) read-only array of radii.
        emission: (M, 3) read-only array of emitted radiance.
        reflectivity: (M,) read-only array of reflectivities.
    """

    objects: tuple[SceneObject, ...]
    ambient: Color = (0.0, 0.0, 0.0)
    margin: float = 1e-5
    centers: npt.NDArray[np.float64] = field(init=False, repr=False, compare=False)
    radii: npt.NDArray[np.float64] = field(init=False, repr=False, compare=False)
    emission: npt.NDArray[np.float64] = field(init=False, repr=False, compare=False)
    reflectivity: npt.NDArray[np.float64] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        objects = tuple(self.objects)
        margin = float(self.margin)
        if not math.isfinite(margin) or margin < 0.0:
            raise ValueError(f"Scene margin must be a non-negative number, got {self.margin}")

        count = len(objects)
        object.__setattr__(self, "objects", objects)
        object.__setattr__(self, "ambient", _as_triple("ambient", self.ambient))
        object.__setattr__(self, "margin", margin)
        object.__setattr__(self, "centers", _frozen([o.center for o in objects], (count, 3)))
        object.__setattr__(self, "radii", _frozen([o.radius for o in objects], (count,)))
        object.__setattr__(self, "emission", _frozen([o.emission for o in objects], (count, 3)))
        object.__setattr__(
            self, "reflectivity", _frozen([o.reflectivity for o in objects], (count,))
        )

    def __len__(self) -> int:
        return len(self.objects)

    @property
    def ambient_array(self) -> npt.NDArray[np.float64]:
        return np.asarray(self.ambient, dtype=np.float64)
