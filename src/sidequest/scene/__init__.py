"""Scene module for scene description and ray-scene queries.

Components:
    world: Immutable ``Scene`` of ``SceneObject`` spheres plus ambient light
    intersection: Closest-hit queries against a scene
    orbit: Animated demo scene used by the command line renderer

Scene data is packed Structure-of-Arrays style (one numpy row per object) so
a batch of rays is tested against all objects at once.
"""

from .intersection import SceneHit, intersect_scene
from .world import Scene, SceneObject

# orbit is not imported here: it depends on the pipeline, which in turn
# depends on this package. Use `from sidequest.scene.orbit import ...`.

__all__ = [
    "Scene",
    "SceneObject",
    "SceneHit",
    "intersect_scene",
]
