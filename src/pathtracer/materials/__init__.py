"""Materials module for light-scattering models.

Components:
    diffuse: Rough surface that scatters around the normal
    metal: Specular reflection with a small fixed fuzz
    dielectric: Glass with deterministic refraction and total internal
        reflection fallback

Each scatter function consumes the incoming direction and the hit normal and
returns the scattered direction together with the attenuation applied to the
continuation. Functions that draw random numbers take and return the task's
generator state.

All scatter computations are Taichi functions for kernel execution.
"""

from .dielectric import refraction_ratio, scatter_dielectric, will_reflect
from .diffuse import DIFFUSE_ATTENUATION, scatter_diffuse
from .metal import METAL_FUZZ, scatter_metal

__all__ = [
    # Diffuse
    "DIFFUSE_ATTENUATION",
    "scatter_diffuse",
    # Metal
    "METAL_FUZZ",
    "scatter_metal",
    # Dielectric
    "refraction_ratio",
    "scatter_dielectric",
    "will_reflect",
]
