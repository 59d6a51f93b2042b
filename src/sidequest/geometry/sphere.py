"""Sphere primitive with robust, batched ray-sphere intersection.

Intersection uses the numerically stable quadratic formula from Ray Tracing
Gems (chapter 7) to avoid catastrophic cancellation when b^2 is nearly equal
to 4ac. All N rays are tested against all M spheres at once; the result is an
(N, M) matrix of hit distances with ``inf`` marking a miss.

Example:
    >>> import numpy as np
    >>> origins = np.zeros((1, 3))
    >>> directions = np.array([[0.0, 0.0, -1.0]])
    >>> centers = np.array([[0.0, 0.0, -5.0]])
    >>> hit_spheres(origins, directions, centers, np.array([1.0]), 1e-4)
    array([[4.]])
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

FloatArray = npt.NDArray[np.float64]


def _solve_quadratic_robust(
    h: FloatArray, a: FloatArray, c: FloatArray, sqrt_d: FloatArray
) -> tuple[FloatArray, FloatArray]:
    """Solve a*t^2 + 2*h*t + c = 0 for both roots, smallest first.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant h^2 - a*c.

    Returns:
        Tuple (t0, t1) with t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = np.where(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    with np.errstate(divide="ignore", invalid="ignore"):
        tangent = np.abs(q) < 1e-10
        safe_q = np.where(tangent, 1.0, q)
        # Standard formula for grazing rays where q vanishes
        t0 = np.where(tangent, (-h - sqrt_d) / a, q / a)
        t1 = np.where(tangent, (-h + sqrt_d) / a, c / safe_q)

    return np.minimum(t0, t1), np.maximum(t0, t1)


def hit_spheres(
    origins: FloatArray,
    directions: FloatArray,
    centers: FloatArray,
    radii: FloatArray,
    t_min: float,
    t_max: float = np.inf,
) -> FloatArray:
    """Intersect a batch of rays with a batch of spheres.

    The ray-sphere intersection solves
        |origin + t * direction - center|^2 = radius^2
    i.e. a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, origin - center)
        c = dot(origin - center, origin - center) - radius^2

    The nearer root is taken when it lies in (t_min, t_max); otherwise the
    farther one (the ray starts inside the sphere).

    Args:
        origins: Ray origins, shape (N, 3).
        directions: Ray directions, shape (N, 3). Need not be normalized but
            must be non-zero.
        centers: Sphere centers, shape (M, 3).
        radii: Sphere radii, shape (M,).
        t_min: Hits at t <= t_min are ignored (self-intersection margin).
        t_max: Hits at t >= t_max are ignored.

    Returns:
        Array of shape (N, M) with the hit distance per ray/sphere pair, or
        ``inf`` where the ray misses.
    """
    oc = origins[:, None, :] - centers[None, :, :]
    a = np.einsum("ni,ni->n", directions, directions)[:, None]
    h = np.einsum("ni,nmi->nm", directions, oc)
    c = np.einsum("nmi,nmi->nm", oc, oc) - radii[None, :] ** 2

    discriminant = h * h - a * c
    hit = discriminant >= 0.0
    sqrt_d = np.sqrt(np.where(hit, discriminant, 0.0))

    t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

    near_ok = (t0 > t_min) & (t0 < t_max)
    far_ok = (t1 > t_min) & (t1 < t_max)
    t = np.where(near_ok, t0, np.where(far_ok, t1, np.inf))
    return np.where(hit, t, np.inf)


def sphere_normals(
    points: FloatArray, centers: FloatArray, radii: FloatArray
) -> FloatArray:
    """Outward unit normals at points on the given spheres (row-aligned)."""
    return (points - centers) / radii[:, None]
