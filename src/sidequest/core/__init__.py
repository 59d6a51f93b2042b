"""Core rendering module.

Components:
    ray: Ray data structure, vector utilities and random sampling
    params: Render and sampling configuration
    integrator: Monte Carlo path tracing (Russian roulette on reflectivity)
    tiles: Tile geometry and per-tile rendering
    frame: Frame assembly from out-of-order tiles
    pipeline: Producer, worker pool and result channel driving a render

Everything operates on numpy arrays so a whole tile's worth of rays advances
through the integrator in a single batch.
"""

from .frame import Frame, FrameAssembler
from .params import RenderParams, SampleParams
from .ray import (
    Ray,
    build_onb_from_normal,
    cross,
    dot,
    length,
    local_to_world,
    near_zero,
    normalize,
    random_cosine_direction,
    random_in_unit_disk,
    ray_at,
    sample_cosine_hemisphere,
    vec3,
)

# Note: integrator, tiles and pipeline are NOT imported here to avoid circular
# imports with the scene package. Import them directly, e.g.
#   from sidequest.core.pipeline import RenderPipeline, FrameData

__all__ = [
    "Ray",
    "ray_at",
    "vec3",
    "dot",
    "length",
    "cross",
    "normalize",
    "near_zero",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
    "RenderParams",
    "SampleParams",
    "Frame",
    "FrameAssembler",
]
