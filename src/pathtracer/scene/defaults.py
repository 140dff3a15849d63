"""Default four-sphere scene.

The scene consists of:
- A large diffuse yellow-green sphere acting as the ground
- A diffuse blue sphere in the center
- A glass sphere (IOR 1.5) on the left
- A gold metal sphere on the right

lit only by the sky gradient, and viewed by an axis-aligned camera at the
origin looking down -z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.defaults import create_default_scene
    >>> from pathtracer.camera.viewport import setup_camera
    >>>
    >>> scene, camera, settings = create_default_scene()
    >>> setup_camera(camera)
"""

from pathtracer.camera.viewport import ViewportCamera
from pathtracer.core.settings import RenderSettings
from pathtracer.scene.manager import SceneManager

DEFAULT_IMAGE_WIDTH = 400
DEFAULT_ASPECT_RATIO = 16.0 / 9.0
DEFAULT_SAMPLES_PER_PIXEL = 50
DEFAULT_MAX_DEPTH = 25

# Width of the image plane; its height follows from the aspect ratio
DEFAULT_VIEWPORT_WIDTH = 4.0


def default_render_settings() -> RenderSettings:
    """Render settings of the default scene."""
    return RenderSettings(
        image_width=DEFAULT_IMAGE_WIDTH,
        aspect_ratio=DEFAULT_ASPECT_RATIO,
        samples_per_pixel=DEFAULT_SAMPLES_PER_PIXEL,
        max_depth=DEFAULT_MAX_DEPTH,
    )


def default_camera(aspect_ratio: float = DEFAULT_ASPECT_RATIO) -> ViewportCamera:
    """Axis-aligned camera at the origin with a 4-unit-wide image plane."""
    return ViewportCamera.from_aspect_ratio(
        aspect_ratio, viewport_width=DEFAULT_VIEWPORT_WIDTH
    )


def populate_default_spheres(scene: SceneManager) -> None:
    """Add the four default spheres to a scene."""
    # Ground
    scene.add_diffuse_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))
    scene.add_diffuse_sphere((0.0, 0.0, -1.0), 0.5, (0.1, 0.2, 0.5))
    scene.add_glass_sphere(
        (-1.0, 0.0, -1.0), 0.5, (0.8, 0.8, 0.8), refractive_index=1.5
    )
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), reflectivity=0.8)


def create_default_scene() -> tuple[SceneManager, ViewportCamera, RenderSettings]:
    """Create the default scene with its camera and render settings.

    Returns:
        A tuple of (scene, camera, settings). The camera still has to be
        passed to setup_camera() before rendering.
    """
    scene = SceneManager()
    populate_default_spheres(scene)
    settings = default_render_settings()
    camera = default_camera(settings.aspect_ratio)
    return scene, camera, settings
