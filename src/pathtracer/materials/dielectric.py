"""Dielectric (glass) material implementation.

Glass refracts deterministically. Reflection is only used as the fallback
when refraction is impossible (total internal reflection); there is no
Fresnel-weighted random choice between the two.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when sin(theta_t) > 1

The sphere normal always points outward, so the side the ray arrives from is
recovered here: a ray with direction . normal > 0 is leaving the sphere. In
that case the ratio of indices is ior (glass to air) and the normal is
flipped to face the incoming ray before refracting; otherwise the ratio is
1 / ior (air to glass).

Glass is colorless and non-absorbing: attenuation is always (1, 1, 1).

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, refracted = scatter_dielectric(
    >>> #     ior, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import reflect, refract

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.f32:
    """Return n_incident / n_transmitted for a ray meeting a glass sphere.

    Args:
        ior: Index of refraction of the glass.
        incident_direction: The incoming ray direction.
        normal: The outward surface normal.

    Returns:
        ior when the ray is exiting the glass, 1 / ior when entering.
    """
    ratio = 1.0 / ior
    if tm.dot(incident_direction, normal) > 0.0:
        ratio = ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered ray direction for a glass surface.

    Args:
        ior: Index of refraction of the material (>= 1).
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.

    Returns:
        A tuple of (scattered_direction, attenuation, refracted) where:
        - scattered_direction: The refracted direction, or the mirror
          direction on total internal reflection.
        - attenuation: Always white.
        - refracted: 1 if the ray refracted, 0 if it was totally
          internally reflected.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = tm.normalize(incident_direction)

    ratio = refraction_ratio(ior, unit_direction, normal)

    # Normal on the side the ray arrives from
    facing_normal = normal
    if tm.dot(unit_direction, normal) > 0.0:
        facing_normal = -normal

    scattered_direction, refracted = refract(unit_direction, facing_normal, ratio)
    if refracted == 0:
        scattered_direction = reflect(unit_direction, normal)

    return scattered_direction, attenuation, refracted


@ti.func
def will_reflect(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The outward unit surface normal.

    Returns:
        1 if total internal reflection will occur, 0 otherwise.
    """
    _, _, refracted = scatter_dielectric(ior, incident_direction, normal)
    return 1 - refracted
