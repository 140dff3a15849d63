"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass and the vector helpers used
by intersection and material code. All operations are Taichi functions so they
can be inlined into render kernels.

Ray directions are not required to be normalized. Code that depends on a unit
direction (reflection, refraction, the sky gradient) normalizes explicitly.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Need not be unit
            length; intersection divides by direction . direction.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 (v . n) n. The normal should be unit length; its sign
    does not matter.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Refract a unit incident vector through a surface.

    Uses the perpendicular/parallel decomposition of Snell's law:

        cos_theta = min(-uv . n, 1)
        r_perp = eta * (uv + cos_theta * n)
        k = 1 - |r_perp|^2
        r_parallel = -sqrt(k) * n

    A negative k means total internal reflection; no refracted direction
    exists and the caller is expected to reflect instead.

    Args:
        incident: The incoming direction (unit length).
        normal: The unit surface normal on the side the ray arrives from.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple of (direction, ok) where:
        - direction: The refracted direction, or a zero vector when ok == 0.
        - ok: 1 if refraction is possible, 0 on total internal reflection.
    """
    cos_theta = tm.min(-tm.dot(incident, normal), 1.0)
    r_perp = eta * (incident + cos_theta * normal)
    k = 1.0 - tm.dot(r_perp, r_perp)

    direction = vec3(0.0, 0.0, 0.0)
    ok = 0
    if k >= 0.0:
        direction = r_perp - ti.sqrt(k) * normal
        ok = 1
    return direction, ok
