"""Viewport camera for primary ray generation.

The camera is described by four vectors: an origin, the horizontal and
vertical extents of a virtual image plane, and that plane's lower-left
corner. A point (u, v) in [0, 1]^2 on the plane is

    lower_left + u * horizontal + v * vertical

and the primary ray runs from the origin to that point. Ray directions are
left unnormalized.

Two constructors are provided:
- ViewportCamera.from_aspect_ratio: an axis-aligned camera at the origin
  looking down -z with the image plane at unit distance.
- ViewportCamera.look_at: a camera positioned with lookfrom/lookat/vup and a
  vertical field of view, using an orthonormal (u, v, w) basis.

Anti-aliasing comes only from jittering the sample position inside each
pixel; there is no fixed sub-pixel grid.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.viewport import ViewportCamera, setup_camera
    >>> camera = ViewportCamera.from_aspect_ratio(16.0 / 9.0)
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, make_ray, vec3
from pathtracer.core.sampler import rand_f32

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ViewportCamera:
    """Configuration for a viewport camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        horizontal: Full width of the image plane as a vector.
        vertical: Full height of the image plane as a vector.
        lower_left_corner: Lower-left corner of the image plane.
    """

    origin: tuple[float, float, float]
    horizontal: tuple[float, float, float]
    vertical: tuple[float, float, float]
    lower_left_corner: tuple[float, float, float]

    @classmethod
    def from_aspect_ratio(
        cls,
        aspect_ratio: float,
        viewport_width: float = 4.0,
        focal_length: float = 1.0,
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "ViewportCamera":
        """Create an axis-aligned camera looking down -z.

        Args:
            aspect_ratio: Width divided by height of the output image.
            viewport_width: Width of the image plane in world units.
            focal_length: Distance from the origin to the image plane.
            origin: Camera position.

        Returns:
            A camera whose plane height is viewport_width / aspect_ratio.

        Raises:
            ValueError: If any argument is not positive.
        """
        if aspect_ratio <= 0.0 or viewport_width <= 0.0 or focal_length <= 0.0:
            raise ValueError(
                "aspect_ratio, viewport_width and focal_length must be positive"
            )
        return cls.from_vectors(
            origin=origin,
            horizontal=(viewport_width, 0.0, 0.0),
            vertical=(0.0, viewport_width / aspect_ratio, 0.0),
            focal_length=focal_length,
        )

    @classmethod
    def from_vectors(
        cls,
        origin: tuple[float, float, float],
        horizontal: tuple[float, float, float],
        vertical: tuple[float, float, float],
        focal_length: float = 1.0,
    ) -> "ViewportCamera":
        """Create a camera from explicit extents, with the plane along -z.

        The lower-left corner is origin - horizontal/2 - vertical/2 -
        (0, 0, focal_length).
        """
        o = np.array(origin, dtype=np.float64)
        h = np.array(horizontal, dtype=np.float64)
        v = np.array(vertical, dtype=np.float64)
        lower_left = o - h / 2.0 - v / 2.0 - np.array([0.0, 0.0, focal_length])
        return cls(
            origin=tuple(float(c) for c in o),
            horizontal=tuple(float(c) for c in h),
            vertical=tuple(float(c) for c in v),
            lower_left_corner=tuple(float(c) for c in lower_left),
        )

    @classmethod
    def look_at(
        cls,
        lookfrom: tuple[float, float, float],
        lookat: tuple[float, float, float],
        vup: tuple[float, float, float],
        vfov: float,
        aspect_ratio: float,
    ) -> "ViewportCamera":
        """Create a camera from a position, a target and a field of view.

        The camera builds an orthonormal basis (u, v, w) from the view
        parameters:
        - w: points from lookat toward lookfrom (opposite view direction)
        - u: points right in the image plane
        - v: points up in the image plane

        Args:
            lookfrom: Camera position in world space.
            lookat: Point the camera is looking at.
            vup: Up direction vector for camera orientation.
            vfov: Vertical field of view in degrees.
            aspect_ratio: Width divided by height of the output image.

        Returns:
            A camera with its image plane at unit distance along -w.

        Raises:
            ValueError: If lookfrom equals lookat or vup is parallel to the
                view direction.
        """
        theta = math.radians(vfov)
        h = math.tan(theta / 2.0)

        # Viewport dimensions at unit distance
        viewport_height = 2.0 * h
        viewport_width = aspect_ratio * viewport_height

        origin = np.array(lookfrom, dtype=np.float64)
        target = np.array(lookat, dtype=np.float64)
        up = np.array(vup, dtype=np.float64)

        w = origin - target
        w_norm = np.linalg.norm(w)
        if w_norm == 0.0:
            raise ValueError("lookfrom and lookat must differ")
        w = w / w_norm

        u = np.cross(up, w)
        u_norm = np.linalg.norm(u)
        if u_norm == 0.0:
            raise ValueError("vup must not be parallel to the view direction")
        u = u / u_norm

        v = np.cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = origin - horizontal / 2.0 - vertical / 2.0 - w

        return cls(
            origin=tuple(float(c) for c in origin),
            horizontal=tuple(float(c) for c in horizontal),
            vertical=tuple(float(c) for c in vertical),
            lower_left_corner=tuple(float(c) for c in lower_left),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: ViewportCamera) -> None:
    """Copy the camera vectors into the Taichi fields read by render kernels.

    Must be called from Python (not from within a Taichi kernel) before
    rendering.

    Args:
        camera: Camera configuration.
    """
    _camera_origin[None] = list(camera.origin)
    _viewport_horizontal[None] = list(camera.horizontal)
    _viewport_vertical[None] = list(camera.vertical)
    _lower_left_corner[None] = list(camera.lower_left_corner)


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    - u = 0: left edge of image, u = 1: right edge
    - v = 0: bottom edge of image, v = 1: top edge

    Args:
        u: Horizontal coordinate in [0, 1].
        v: Vertical coordinate in [0, 1].

    Returns:
        A Ray from the camera origin toward the image-plane point. The
        direction is not normalized.
    """
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    return make_ray(origin, point_on_viewport - origin)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    state: ti.u32,
):
    """Generate a jittered primary ray for one sample of a pixel.

    The pixel coordinates are offset by independent U(0, 1) draws and mapped
    with u = (i + xi) / (width - 1), v = (j + zeta) / (height - 1).

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels (>= 2).
        height: Image height in pixels (>= 2).
        state: The pixel task's generator state.

    Returns:
        A tuple of (ray, new_state).
    """
    jitter_u, s = rand_f32(state)
    jitter_v, s = rand_f32(s)

    u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width - 1, ti.f32)
    v = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height - 1, ti.f32)

    return get_ray(u, v), s


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, horizontal, vertical, lower_left.
    """
    origin_vec = _camera_origin[None]
    h_vec = _viewport_horizontal[None]
    vert_vec = _viewport_vertical[None]
    ll_vec = _lower_left_corner[None]

    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "horizontal": (float(h_vec[0]), float(h_vec[1]), float(h_vec[2])),
        "vertical": (float(vert_vec[0]), float(vert_vec[1]), float(vert_vec[2])),
        "lower_left": (float(ll_vec[0]), float(ll_vec[1]), float(ll_vec[2])),
    }
