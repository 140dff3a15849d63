"""Light transport integrator and parallel render loop.

This module maps camera rays to radiance and fills the framebuffer.

Light transport follows the recursive definition

    radiance(ray, depth) = 0                                   if depth <= 0
                         = attenuation * radiance(scattered, depth - 1)
                                                               on a hit
                         = background(ray.direction)           on a miss

evaluated as a bounded loop that carries the product of attenuations seen so
far. The loop performs at most `depth` scene queries and returns black when
the budget is exhausted, exactly like the recursion. There is no Russian
roulette. The sky gradient is the only light source.

The render loop is a single Taichi kernel whose outermost loop runs over all
pixels in parallel. Each pixel task seeds its own generator from the render
seed and its pixel index, so results do not depend on thread count or
scheduling order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import get_framebuffer_numpy, render_image
    >>> from pathtracer.scene.defaults import create_default_scene
    >>> from pathtracer.camera.viewport import setup_camera
    >>>
    >>> scene, camera, settings = create_default_scene()
    >>> setup_camera(camera)
    >>> render_image(settings)
    >>> image = get_framebuffer_numpy()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.viewport import get_ray_jittered
from pathtracer.core.sampler import seed_rng
from pathtracer.core.settings import RenderSettings
from pathtracer.materials.dielectric import scatter_dielectric
from pathtracer.materials.diffuse import scatter_diffuse
from pathtracer.materials.metal import scatter_metal
from pathtracer.scene.intersection import (
    get_sphere_color,
    get_sphere_material,
    get_sphere_refractive_index,
    intersect_scene,
)
from pathtracer.scene.manager import MaterialKind

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for ray intersection; t_min suppresses self-intersection of
# rays spawned on a surface
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient endpoints (bottom and top)
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Material kinds as plain ints for comparison inside kernels
_DIFFUSE = int(MaterialKind.DIFFUSE)
_METAL = int(MaterialKind.METAL)
_GLASS = int(MaterialKind.GLASS)

# =============================================================================
# Render Target (Framebuffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear radiance per pixel, indexed (i, j) with j = 0 at the bottom
_framebuffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the framebuffer for an image size.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (2 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (2 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are outside the supported range.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the framebuffer to zero."""
    _framebuffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky radiance for a ray that escapes the scene.

    A vertical gradient from white at the bottom to light blue at the top:
    t = 0.5 * (unit(direction).y + 1), result = (1 - t) * white + t * blue.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def scatter_material(
    material: ti.i32,
    color: vec3,
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Dispatch to the scatter function of a material kind.

    Args:
        material: The material kind (see MaterialKind).
        color: The struck sphere's albedo color.
        refractive_index: The struck sphere's index of refraction.
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.
        state: The task's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state).
        did_scatter is 0 only for an unknown material kind, which absorbs.
    """
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if material == _DIFFUSE:
        scattered_direction, attenuation, s = scatter_diffuse(color, normal, s)
        did_scatter = 1

    elif material == _METAL:
        scattered_direction, attenuation, s = scatter_metal(
            color, incident_direction, normal, s
        )
        did_scatter = 1

    elif material == _GLASS:
        scattered_direction, attenuation, _ = scatter_dielectric(
            refractive_index, incident_direction, normal
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter, s


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def radiance(ray_origin: vec3, ray_direction: vec3, depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        ray_origin: The ray origin.
        ray_direction: The ray direction (any length).
        depth: Remaining bounce budget. Zero or less gives black.
        state: The task's generator state.

    Returns:
        A tuple of (color, new_state).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray_origin
    direction = ray_direction
    s = state

    # Taichi doesn't support break in ti.func loops
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, s = scatter_material(
                    get_sphere_material(rec.sphere_id),
                    get_sphere_color(rec.sphere_id),
                    get_sphere_refractive_index(rec.sphere_id),
                    direction,
                    rec.normal,
                    s,
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    # A path still active here exhausted its depth and contributes black
    return color, s


@ti.func
def render_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Average samples_per_pixel jittered radiance estimates for a pixel.

    The pixel's generator is seeded from (seed, linear pixel index).
    """
    s = seed_rng(seed, pixel_j * width + pixel_i)
    total = vec3(0.0, 0.0, 0.0)

    for _ in range(samples_per_pixel):
        ray, s = get_ray_jittered(pixel_i, pixel_j, width, height, s)
        color, s = radiance(ray.origin, ray.direction, max_depth, s)
        total += color

    return total / ti.cast(samples_per_pixel, ti.f32)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame(
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    """Render every pixel of the active region in parallel.

    Each (i, j) iteration is an independent task writing only its own cell.
    """
    for i, j in ti.ndrange(width, height):
        _framebuffer[i, j] = render_pixel(
            i, j, width, height, samples_per_pixel, max_depth, seed
        )


@ti.kernel
def _render_single_sample(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
) -> vec3:
    """Render one jittered sample for a specific pixel."""
    s = seed_rng(seed, pixel_j * width + pixel_i)
    ray, s = get_ray_jittered(pixel_i, pixel_j, width, height, s)
    color, s = radiance(ray.origin, ray.direction, max_depth, s)
    return color


@ti.kernel
def _trace_ray(origin: vec3, direction: vec3, depth: ti.i32, seed: ti.i32) -> vec3:
    """Evaluate one radiance estimate for an explicit ray."""
    s = seed_rng(seed, 0)
    color, s = radiance(origin, direction, depth, s)
    return color


@ti.kernel
def _background_color(direction: vec3) -> vec3:
    """Evaluate the sky gradient for a direction."""
    return background(direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(settings: RenderSettings) -> None:
    """Render a complete image into the framebuffer.

    Sets up the render target for the settings' dimensions, renders every
    pixel with settings.samples_per_pixel samples and waits for the kernel
    to finish. The scene and camera must already be set up.

    Args:
        settings: Image and sampling parameters.

    Raises:
        ValueError: If the settings are invalid.
    """
    settings.validate()
    width, height = settings.image_width, settings.image_height
    setup_render_target(width, height)

    _render_frame(
        width,
        height,
        settings.samples_per_pixel,
        settings.max_depth,
        settings.seed,
    )
    ti.sync()


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = 25,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Render a single jittered sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Bounce budget.
        seed: Render seed.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_sample(pixel_i, pixel_j, width, height, max_depth, seed)

    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Evaluate one radiance estimate along a ray through the current scene.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        depth: Bounce budget. Zero or less gives black.
        seed: Seed of the generator used for scattering.

    Returns:
        Tuple of (R, G, B) linear radiance.
    """
    color = _trace_ray(vec3(*origin), vec3(*direction), depth, seed)
    return (float(color[0]), float(color[1]), float(color[2]))


def background_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate the sky gradient for a direction."""
    color = _background_color(vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))


def get_framebuffer_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the active region of the framebuffer in linear radiance,
    unclamped, with shape (height, width, 3) and the top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _framebuffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi uses bottom-left origin, images use top-left
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
