"""Ray data structure and vector utilities for batched ray tracing.

Rays are traced a whole tile at a time, so everything here works on numpy
arrays whose last axis holds the x, y, z components. A single vector is just
an array of shape (3,); a batch is (N, 3). Random sampling helpers take an
explicit ``numpy.random.Generator`` so callers control the random stream.

Example:
    >>> import numpy as np
    >>> ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> ray_at(ray, 5.0)
    array([ 0.,  0., -5.])
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

Vec3Array = npt.NDArray[np.float64]

# Below this length a direction is considered degenerate
DEGENERATE_LENGTH = 1e-12


def vec3(x: float, y: float, z: float) -> Vec3Array:
    """Build a single 3-vector."""
    return np.array([x, y, z], dtype=np.float64)


@dataclass(frozen=True)
class Ray:
    """A ray (or batch of rays) with origin points and direction vectors.

    Attributes:
        origin: Ray origins, shape (3,) or (N, 3).
        direction: Ray directions, same shape as origin. Cameras produce
            normalized directions but this is not enforced.
    """

    origin: Vec3Array
    direction: Vec3Array

    def __len__(self) -> int:
        return 1 if self.origin.ndim == 1 else self.origin.shape[0]


def ray_at(ray: Ray, t: float | npt.NDArray[np.float64]) -> Vec3Array:
    """Compute the point(s) origin + t * direction."""
    t = np.asarray(t, dtype=np.float64)
    if t.ndim:
        t = t[..., None]
    return ray.origin + t * ray.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vec3Array, b: Vec3Array) -> npt.NDArray[np.float64]:
    """Row-wise dot product over the last axis."""
    return np.einsum("...i,...i->...", a, b)


def length(v: Vec3Array) -> npt.NDArray[np.float64]:
    """Row-wise Euclidean length."""
    return np.sqrt(dot(v, v))


def cross(a: Vec3Array, b: Vec3Array) -> Vec3Array:
    """Row-wise cross product."""
    return np.cross(a, b)


def normalize(v: Vec3Array) -> Vec3Array:
    """Normalize vectors to unit length.

    Zero-length (and non-finite) vectors come back as zero vectors instead of
    NaNs, so degenerate directions can be detected downstream.
    """
    v = np.asarray(v, dtype=np.float64)
    n = length(v)
    ok = np.isfinite(n) & (n > DEGENERATE_LENGTH)
    safe = np.where(ok, n, 1.0)
    return np.where(ok[..., None], v / safe[..., None], 0.0)


def near_zero(v: Vec3Array) -> npt.NDArray[np.bool_]:
    """Check whether every component of each vector is near zero."""
    return np.all(np.abs(v) < 1e-8, axis=-1)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


def random_in_unit_disk(rng: np.random.Generator, n: int) -> npt.NDArray[np.float64]:
    """Sample ``n`` points uniformly (by area) on the unit disk.

    Uses the polar mapping r = sqrt(xi1), phi = 2 pi xi2 rather than
    rejection sampling so each point costs exactly two draws.

    Returns:
        Array of shape (n, 2) with x^2 + y^2 <= 1.
    """
    r = np.sqrt(rng.random(n))
    phi = 2.0 * np.pi * rng.random(n)
    return np.stack([r * np.cos(phi), r * np.sin(phi)], axis=-1)


def random_cosine_direction(rng: np.random.Generator, n: int) -> Vec3Array:
    """Sample ``n`` local directions with PDF cos(theta) / pi (z-up frame)."""
    r1 = rng.random(n)
    r2 = rng.random(n)
    phi = 2.0 * np.pi * r1
    sqrt_r2 = np.sqrt(r2)
    return np.stack(
        [np.cos(phi) * sqrt_r2, np.sin(phi) * sqrt_r2, np.sqrt(1.0 - r2)],
        axis=-1,
    )


def build_onb_from_normal(normal: Vec3Array) -> tuple[Vec3Array, Vec3Array, Vec3Array]:
    """Build orthonormal bases whose z-axis is the given (unit) normal.

    Args:
        normal: Unit vectors, shape (3,) or (N, 3).

    Returns:
        A tuple (tangent, bitangent, normal).
    """
    # Pick a helper axis that is not parallel to the normal
    helper = np.where(
        (np.abs(normal[..., 0]) > 0.9)[..., None],
        np.array([0.0, 1.0, 0.0]),
        np.array([1.0, 0.0, 0.0]),
    )
    tangent = normalize(cross(helper, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


def local_to_world(
    local_dir: Vec3Array, tangent: Vec3Array, bitangent: Vec3Array, normal: Vec3Array
) -> Vec3Array:
    """Transform local (z-up) directions into the world frame."""
    return (
        local_dir[..., 0:1] * tangent
        + local_dir[..., 1:2] * bitangent
        + local_dir[..., 2:3] * normal
    )


def sample_cosine_hemisphere(
    normal: Vec3Array, rng: np.random.Generator
) -> tuple[Vec3Array, npt.NDArray[np.float64]]:
    """Cosine-weighted hemisphere sampling around each normal.

    Args:
        normal: Unit surface normals, shape (N, 3).
        rng: Random generator to draw from.

    Returns:
        A tuple (direction, pdf) with world-space unit directions and the
        density cos(theta) / pi of each sample.
    """
    local_dir = random_cosine_direction(rng, normal.shape[0])
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = dot(world_dir, normal) / np.pi
    return world_dir, pdf
