"""Materials module.

Components:
    table: Device-side material table (emission, reflectance, scatter type)
    diffuse: Direction drawn uniformly from the unit sphere
    specular: Mirror reflection about the sphere normal

A material's reflectance multiplies whatever radiance arrives along the
scattered direction; there is no BRDF or pdf weighting.
"""

from .specular import scatter_specular

__all__ = [
    "scatter_specular",
]
