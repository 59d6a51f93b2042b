"""Lambertian (ideal diffuse) scattering.

Every object in a scene scatters diffusely: the BRDF is reflectivity / pi.
Directions are importance sampled with a cosine-weighted hemisphere around
the normal, so the cosine and pi terms cancel against the PDF and the
per-bounce weight is just the reflectivity:

    weight = (reflectivity / pi) * cos(theta) / (cos(theta) / pi)
           = reflectivity
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from sidequest.core.ray import near_zero, sample_cosine_hemisphere


def scatter_lambertian(
    normal: npt.NDArray[np.float64], rng: np.random.Generator
) -> npt.NDArray[np.float64]:
    """Sample scattered directions for a batch of diffuse hits.

    Args:
        normal: Unit normals facing the incoming rays, shape (N, 3).
        rng: Random generator to draw from.

    Returns:
        Unit directions in the hemisphere around each normal, shape (N, 3).
    """
    direction, _ = sample_cosine_hemisphere(normal, rng)

    # Rounding can collapse a grazing sample; fall back to the normal
    degenerate = near_zero(direction)
    if degenerate.any():
        direction[degenerate] = normal[degenerate]
    return direction
