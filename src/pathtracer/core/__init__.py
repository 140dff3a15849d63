"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-task random number generation
    settings: Image and sampling parameters
    integrator: Light transport, framebuffer and the parallel render loop

The integrator follows each camera ray through the scene, dispatching on the
struck sphere's material, until the ray escapes to the sky or the bounce
budget runs out. Pixels are rendered in parallel by a single Taichi kernel.
"""

from .ray import (
    Ray,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    vec3,
)
from .sampler import hash_u32, rand_f32, rand_vec3, seed_rng
from .settings import MAX_SEED, RenderSettings

# Note: integrator is NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "reflect",
    "refract",
    "hash_u32",
    "seed_rng",
    "rand_f32",
    "rand_vec3",
    "RenderSettings",
    "MAX_SEED",
]
