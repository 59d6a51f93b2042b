"""Camera interface shared by every camera model."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt

from sidequest.core.ray import Ray

Coordinate = float | npt.NDArray[np.float64]


@runtime_checkable
class Camera(Protocol):
    """Anything that maps normalized device coordinates to world-space rays.

    ``u`` runs left to right over [-aspect, aspect] and ``v`` bottom to top
    over [-1, 1]; both may be scalars or equally-shaped arrays (one ray per
    element). Cameras that need randomness draw it from ``rng`` only, so a
    ray batch is fully determined by its inputs and the generator state.

    Camera decorators (see ``DefocusCamera``) wrap another ``Camera`` and
    implement the same method.
    """

    def generate_ray(self, u: Coordinate, v: Coordinate, rng: np.random.Generator) -> Ray:
        ...
