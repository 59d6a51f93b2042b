"""Tile-based animated path tracer.

This package renders animated scenes of emitting/scattering spheres with a
Monte Carlo path tracer, farming fixed-size tiles out to a pool of worker
threads and streaming finished tiles back to a single consumer:
- Perspective camera with a composable depth-of-field (defocus) decorator
- Unbiased path tracing with Russian roulette on surface reflectivity
- Bounded work queue for backpressure, cooperative cancellation
- Per-frame assembly of out-of-order tiles, PNG export, live preview

Subpackages:
    core: Ray utilities, integrator, tiles, frame assembly and the pipeline
    camera: Camera models with ray generation
    geometry: Ray/sphere intersection
    materials: Diffuse scattering
    scene: Scene description, intersection, and the animated demo scene
    preview: Tone mapping, image export and the interactive preview window
"""

__version__ = "0.1.0"
