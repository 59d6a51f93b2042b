"""Path tracing integrator for Monte Carlo light transport.

Estimates the radiance arriving along a ray by following a random light path
through the scene:

1. Find the nearest object beyond the scene margin. A ray that escapes picks
   up the scene's ambient radiance and the path ends.
2. Add the object's emitted radiance.
3. If bounces remain, continue with probability equal to the object's
   reflectivity along a cosine-weighted diffuse direction. The bounce weight
   is reflectivity / continuation probability, the usual Russian roulette
   correction, which keeps the estimator unbiased.
4. A path that runs out of bounces or loses the roulette stops with only the
   emitted term; no ambient light is added for it.

The recursion is unrolled into a loop over bounces, and all paths of a batch
advance together with an ``active`` mask, so a whole tile's worth of
samples costs one numpy pass per bounce.

Example:
    >>> import numpy as np
    >>> from sidequest.core.ray import Ray, vec3
    >>> from sidequest.scene.world import Scene, SceneObject
    >>> scene = Scene(objects=(SceneObject.new(0, 0, -5, 1.0, (2.0, 1.0, 0.5), 0.0),))
    >>> ray = Ray(origin=vec3(0, 0, 0), direction=vec3(0, 0, -1))
    >>> trace(ray, scene, np.random.default_rng(0), bounce_limit=4)
    array([2. , 1. , 0.5])
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from sidequest.core.ray import DEGENERATE_LENGTH, Ray, length
from sidequest.materials.lambertian import scatter_lambertian
from sidequest.scene.intersection import intersect_scene
from sidequest.scene.world import Scene

Radiance = npt.NDArray[np.float64]


def _continuation_probability(reflectivity: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Russian roulette survival probability for a diffuse bounce."""
    return reflectivity


def trace_paths(
    origins: npt.NDArray[np.float64],
    directions: npt.NDArray[np.float64],
    scene: Scene,
    rng: np.random.Generator,
    bounce_limit: int,
) -> Radiance:
    """Trace a batch of independent light paths.

    Args:
        origins: Ray origins, shape (N, 3).
        directions: Ray directions, shape (N, 3). Zero-length or non-finite
            directions are treated as a miss with no contribution.
        scene: The scene to trace against.
        rng: Random generator for the roulette and scattering draws.
        bounce_limit: Maximum number of scattering events per path. Zero means
            only the first hit's emission is returned.

    Returns:
        Estimated radiance per path, shape (N, 3).
    """
    origins = np.array(origins, dtype=np.float64, copy=True).reshape(-1, 3)
    directions = np.array(directions, dtype=np.float64, copy=True).reshape(-1, 3)
    n = origins.shape[0]

    radiance = np.zeros((n, 3))
    throughput = np.ones(n)
    remaining = np.full(n, int(bounce_limit))

    with np.errstate(invalid="ignore", over="ignore"):
        lengths = length(directions)
        active = np.isfinite(lengths) & (lengths > DEGENERATE_LENGTH) & np.isfinite(origins).all(axis=1)
        directions[active] /= lengths[active, None]

    ambient = scene.ambient_array

    while active.any():
        paths = np.flatnonzero(active)
        rec = intersect_scene(scene, origins[paths], directions[paths])

        # Escaped rays see the ambient radiance
        escaped = paths[~rec.hit]
        radiance[escaped] += throughput[escaped, None] * ambient
        active[escaped] = False

        hits = paths[rec.hit]
        if hits.size == 0:
            break
        obj = rec.object_index[rec.hit]
        radiance[hits] += throughput[hits, None] * scene.emission[obj]

        reflectivity = scene.reflectivity[obj]
        survival = _continuation_probability(reflectivity)
        roll = rng.random(hits.size)
        survive = (remaining[hits] > 0) & (roll < survival)

        active[hits[~survive]] = False
        if not survive.any():
            continue

        bounced = hits[survive]
        throughput[bounced] *= reflectivity[survive] / survival[survive]
        remaining[bounced] -= 1
        origins[bounced] = rec.point[rec.hit][survive]
        directions[bounced] = scatter_lambertian(rec.normal[rec.hit][survive], rng)

    return radiance


def trace(ray: Ray, scene: Scene, rng: np.random.Generator, bounce_limit: int) -> Radiance:
    """Estimate the radiance arriving along a ray (or batch of rays).

    Args:
        ray: A single ray (origin/direction of shape (3,)) or a batch (N, 3).
        scene: The scene to trace against.
        rng: Random generator for all stochastic decisions.
        bounce_limit: Maximum number of scattering events per path.

    Returns:
        Radiance of shape (3,) for a single ray, or (N, 3) for a batch.
    """
    origin = np.asarray(ray.origin, dtype=np.float64)
    result = trace_paths(origin, ray.direction, scene, rng, bounce_limit)
    if origin.ndim == 1:
        return result[0]
    return result
