"""Materials module: diffuse scattering used by the path tracer."""

from .lambertian import scatter_lambertian

__all__ = [
    "scatter_lambertian",
]
