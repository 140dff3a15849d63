"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
a small fixed fuzz. The reflection formula is:

    R = I - 2(I . N)N

where I is the unit incident direction and N is the surface normal. The
reflected direction is then perturbed by

    METAL_FUZZ * (xi1, xi2, xi3),    xi_k ~ U(0, 1)

The fuzz is a module constant. It does not depend on the sphere's
reflectivity, which is stored with the scene but not read during transport.

Metals never absorb: the continuation is tinted by the sphere color.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, state = scatter_metal(
    >>> #     albedo, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect
from pathtracer.core.sampler import rand_vec3

# Type alias for 3D vectors
vec3 = tm.vec3

# Scale of the random perturbation added to the mirror direction.
METAL_FUZZ = 0.05


@ti.func
def scatter_metal(
    albedo: vec3,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        incident_direction: The incoming ray direction. Normalized here
            before reflecting.
        normal: The outward unit surface normal.
        state: The task's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, new_state) where the
        attenuation equals the albedo.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)

    fuzz, s = rand_vec3(state)
    scattered_direction = reflected + METAL_FUZZ * fuzz

    return scattered_direction, albedo, s
