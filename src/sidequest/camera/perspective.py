"""Perspective camera model for primary ray generation.

The camera builds an orthonormal basis (u, v, w) from its view parameters:
- w: points from the look-at target toward the eye (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

A ray for device coordinates (x, y) starts at the eye and passes through the
point on the near plane at

    eye - near * w + x * near * tan(fov/2) * u + y * near * tan(fov/2) * v

The caller folds the image aspect ratio into x, so the camera itself is
independent of the output resolution.

Example:
    >>> import numpy as np
    >>> camera = PerspectiveCamera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=45.0,
    ... )
    >>> ray = camera.generate_ray(0.0, 0.0, np.random.default_rng())
    >>> ray.direction
    array([ 0.,  0., -1.])
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt

from sidequest.camera.base import Coordinate
from sidequest.core.ray import Ray, normalize


@dataclass(frozen=True)
class PerspectiveCamera:
    """Pinhole perspective projection.

    Attributes:
        lookfrom: Eye position in world space.
        lookat: Point the camera looks at.
        vup: Up direction used to orient the camera (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        near: Distance from the eye to the view plane.
        far: Far plane distance. Informational only: rays are not clipped.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    near: float = 0.1
    far: float = 100.0
    _origin: npt.NDArray[np.float64] = field(init=False, repr=False, compare=False)
    _basis: tuple[npt.NDArray[np.float64], ...] = field(init=False, repr=False, compare=False)
    _half_height: float = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {self.vfov}")
        if self.near <= 0.0:
            raise ValueError(f"Near plane distance must be positive, got {self.near}")
        if self.far <= self.near:
            raise ValueError(f"Far plane ({self.far}) must lie beyond the near plane ({self.near})")

        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookat = np.array(self.lookat, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        w = lookfrom - lookat
        w_len = np.linalg.norm(w)
        if w_len < 1e-12:
            raise ValueError("Camera lookfrom and lookat must differ")
        w = w / w_len

        u = np.cross(vup, w)
        u_len = np.linalg.norm(u)
        if u_len < 1e-12:
            raise ValueError("Camera up vector must not be parallel to the view direction")
        u = u / u_len
        v = np.cross(w, u)

        object.__setattr__(self, "_origin", lookfrom)
        object.__setattr__(self, "_basis", (u, v, w))
        object.__setattr__(
            self, "_half_height", self.near * math.tan(math.radians(self.vfov) / 2.0)
        )

    @property
    def origin(self) -> npt.NDArray[np.float64]:
        """Eye position."""
        return self._origin.copy()

    @property
    def basis(self) -> tuple[npt.NDArray[np.float64], ...]:
        """The (right, up, backward) orthonormal basis."""
        return tuple(axis.copy() for axis in self._basis)

    def generate_ray(self, u: Coordinate, v: Coordinate, rng: np.random.Generator) -> Ray:
        """Build rays from the eye through the near plane.

        Args:
            u: Horizontal device coordinate(s) in [-aspect, aspect].
            v: Vertical device coordinate(s) in [-1, 1], bottom to top.
            rng: Unused; a pinhole needs no randomness.

        Returns:
            A Ray whose origin/direction have shape (3,) for scalar inputs or
            (N, 3) for arrays of N coordinates.
        """
        u_arr = np.asarray(u, dtype=np.float64)
        v_arr = np.asarray(v, dtype=np.float64)
        right, up, back = self._basis

        offset = (
            -self.near * back
            + (u_arr * self._half_height)[..., None] * right
            + (v_arr * self._half_height)[..., None] * up
        )
        direction = normalize(offset)
        origin = np.broadcast_to(self._origin, direction.shape).copy()
        return Ray(origin=origin, direction=direction)
