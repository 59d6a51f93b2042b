"""Geometry module: sphere primitives and batched intersection.

Intersection routines test N rays against M spheres in one vectorized pass:
    t = hit_spheres(origins, directions, centers, radii, t_min)
"""

from .sphere import hit_spheres, sphere_normals

__all__ = [
    "hit_spheres",
    "sphere_normals",
]
