"""Scene-level sphere storage and nearest-hit queries.

The scene stores spheres in Taichi fields using a structure-of-arrays layout.
Each sphere carries its shading attributes (albedo color, refractive index and
material kind) next to its geometry, so the integrator can shade a hit from
the sphere index alone.

The fields are written from Python while building a scene and are read-only
while a render kernel runs; every pixel task reads them concurrently without
locking.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, vec3(0.1, 0.2, 0.5), material=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The parameter value along the ray of the closest intersection.
        point: The 3D point where the ray intersected the surface.
        normal: The outward unit surface normal at the intersection point.
        sphere_id: Index of the struck sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    sphere_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_refractive_indices = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_materials = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres from the scene.

    Resets the sphere count to zero. The field data is overwritten when new
    spheres are added.
    """
    num_spheres[None] = 0


def add_sphere(
    center: vec3,
    radius: float,
    color: vec3,
    material: int,
    refractive_index: float = 1.0,
) -> int:
    """Add a sphere to the scene.

    No validation is done here; SceneManager.add_sphere validates its
    arguments before calling this.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        color: The albedo color of the sphere.
        material: The material kind as an integer (see MaterialKind).
        refractive_index: Index of refraction, used by glass spheres.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_colors[idx] = color
    sphere_refractive_indices[idx] = refractive_index
    sphere_materials[idx] = material
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, sphere_id: ti.i32) -> SceneHitRecord:
    """Attach the sphere index to a primitive hit record."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        sphere_id=sphere_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        sphere_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest sphere hit by a ray.

    Scans every sphere in order, shrinking the upper bound to the closest t
    found so far, so a later sphere only replaces the current hit when it is
    strictly closer. The result does not depend on sphere order.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, i)

    return result


@ti.func
def get_sphere_color(sphere_id: ti.i32) -> vec3:
    """Get the albedo color of a sphere by index."""
    return sphere_colors[sphere_id]


@ti.func
def get_sphere_material(sphere_id: ti.i32) -> ti.i32:
    """Get the material kind of a sphere by index."""
    return sphere_materials[sphere_id]


@ti.func
def get_sphere_refractive_index(sphere_id: ti.i32) -> ti.f32:
    """Get the index of refraction of a sphere by index."""
    return sphere_refractive_indices[sphere_id]
