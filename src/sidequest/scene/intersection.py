"""Scene-level ray intersection.

Tests a batch of rays against every sphere in a ``Scene`` and keeps the
closest hit beyond the scene's margin, together with the surface normal
oriented against the incoming ray.

Example:
    >>> import numpy as np
    >>> from sidequest.scene.world import Scene, SceneObject
    >>> scene = Scene(objects=(SceneObject.new(0, 0, -5, 1.0, (1, 1, 1), 0.0),))
    >>> rec = intersect_scene(scene, np.zeros((1, 3)), np.array([[0.0, 0.0, -1.0]]))
    >>> bool(rec.hit[0]), float(rec.t[0])
    (True, 4.0)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from sidequest.core.ray import dot
from sidequest.geometry.sphere import hit_spheres, sphere_normals
from sidequest.scene.world import Scene


@dataclass
class SceneHit:
    """Closest-hit results for a batch of N rays.

    Attributes:
        hit: (N,) boolean mask of rays that hit something.
        t: (N,) hit distance, ``inf`` for misses.
        object_index: (N,) index of the object hit, -1 for misses.
        point: (N, 3) hit points (zero for misses).
        normal: (N, 3) unit normals facing the incoming ray (zero for misses).
        front_face: (N,) True where the ray hit the outside of the sphere.
    """

    hit: npt.NDArray[np.bool_]
    t: npt.NDArray[np.float64]
    object_index: npt.NDArray[np.intp]
    point: npt.NDArray[np.float64]
    normal: npt.NDArray[np.float64]
    front_face: npt.NDArray[np.bool_]


def _make_miss_record(n: int) -> SceneHit:
    return SceneHit(
        hit=np.zeros(n, dtype=bool),
        t=np.full(n, np.inf),
        object_index=np.full(n, -1, dtype=np.intp),
        point=np.zeros((n, 3)),
        normal=np.zeros((n, 3)),
        front_face=np.zeros(n, dtype=bool),
    )


def intersect_scene(
    scene: Scene,
    origins: npt.NDArray[np.float64],
    directions: npt.NDArray[np.float64],
    t_max: float = np.inf,
) -> SceneHit:
    """Find the nearest object along each ray.

    Objects closer than ``scene.margin`` are ignored.

    Args:
        scene: The scene to test against.
        origins: Ray origins, shape (N, 3).
        directions: Unit ray directions, shape (N, 3).
        t_max: Hits at or beyond this distance are ignored.

    Returns:
        A SceneHit describing the closest intersection of every ray.
    """
    n = origins.shape[0]
    result = _make_miss_record(n)
    if n == 0 or len(scene) == 0:
        return result

    t_all = hit_spheres(origins, directions, scene.centers, scene.radii, scene.margin, t_max)
    nearest = np.argmin(t_all, axis=1)
    t = t_all[np.arange(n), nearest]
    hit = np.isfinite(t)

    idx = nearest[hit]
    t_hit = t[hit]
    points = origins[hit] + t_hit[:, None] * directions[hit]
    outward = sphere_normals(points, scene.centers[idx], scene.radii[idx])

    # Front face: the ray travels against the outward normal
    front = dot(directions[hit], outward) <= 0.0
    normals = np.where(front[:, None], outward, -outward)

    result.hit = hit
    result.t = np.where(hit, t, np.inf)
    result.object_index[hit] = idx
    result.point[hit] = points
    result.normal[hit] = normals
    result.front_face[hit] = front
    return result
