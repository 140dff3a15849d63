"""Diffuse material implementation.

A diffuse hit scatters the ray toward

    normal + (xi1, xi2, xi3),    xi_k ~ U(0, 1) independently

and attenuates the continuation by a fixed fraction of the albedo:

    attenuation = DIFFUSE_ATTENUATION * albedo

The offset is drawn from the unit cube [0, 1)^3, not from the unit sphere.
This biases the scattered directions toward the normal and toward the
positive axes; the distribution is kept as is so renders stay comparable
with existing reference images.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, state = scatter_diffuse(albedo, normal, state)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import rand_vec3

# Type alias for 3D vectors
vec3 = tm.vec3

# Fraction of the albedo carried into the next bounce.
DIFFUSE_ATTENUATION = 0.5


@ti.func
def scatter_diffuse(albedo: vec3, normal: vec3, state: ti.u32):
    """Compute the scattered ray direction for a diffuse surface.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The outward unit surface normal.
        state: The task's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, new_state). The
        direction is not normalized.
    """
    offset, s = rand_vec3(state)
    scattered_direction = normal + offset
    attenuation = DIFFUSE_ATTENUATION * albedo
    return scattered_direction, attenuation, s
