"""JSON scene file loading.

A scene file is a JSON object with three optional sections:

    {
        "render": {"image_width": 400, "aspect_ratio": 1.7778,
                   "samples_per_pixel": 50, "max_depth": 25, "seed": 0},
        "camera": {"origin": [0, 0, 0], "horizontal": [4, 0, 0],
                   "vertical": [0, 2.25, 0], "focal_length": 1.0},
        "spheres": [
            {"center": [0, 0, -1], "radius": 0.5, "color": [0.1, 0.2, 0.5],
             "material": "diffuse"},
            {"center": [-1, 0, -1], "radius": 0.5, "material": "glass",
             "refractive_index": 1.5}
        ]
    }

The camera may instead be given as a look-at camera:

    "camera": {"lookfrom": [...], "lookat": [...], "vup": [0, 1, 0], "vfov": 90}

Missing sections fall back to the default scene. "render" keys default to
the default render settings and the camera defaults to the axis-aligned
camera for the render aspect ratio.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pathtracer.camera.viewport import ViewportCamera
from pathtracer.core.settings import RenderSettings
from pathtracer.scene.defaults import (
    default_camera,
    default_render_settings,
    populate_default_spheres,
)
from pathtracer.scene.manager import InvalidPrimitiveError, SceneManager

_RENDER_KEYS = ("image_width", "aspect_ratio", "samples_per_pixel", "max_depth", "seed")


class SceneFileError(ValueError):
    """Raised when a scene file cannot be parsed into a scene."""


def _render_settings_from_dict(data: dict[str, Any]) -> RenderSettings:
    unknown = set(data) - set(_RENDER_KEYS)
    if unknown:
        raise SceneFileError(f"Unknown render settings: {sorted(unknown)}")
    defaults = default_render_settings()
    try:
        return RenderSettings(
            image_width=int(data.get("image_width", defaults.image_width)),
            aspect_ratio=float(data.get("aspect_ratio", defaults.aspect_ratio)),
            samples_per_pixel=int(data.get("samples_per_pixel", defaults.samples_per_pixel)),
            max_depth=int(data.get("max_depth", defaults.max_depth)),
            seed=int(data.get("seed", defaults.seed)),
        )
    except (TypeError, ValueError) as e:
        raise SceneFileError(f"Invalid render settings: {e}") from e


def _camera_from_dict(data: dict[str, Any], aspect_ratio: float) -> ViewportCamera:
    try:
        if "lookfrom" in data:
            return ViewportCamera.look_at(
                lookfrom=tuple(data["lookfrom"]),
                lookat=tuple(data.get("lookat", (0.0, 0.0, -1.0))),
                vup=tuple(data.get("vup", (0.0, 1.0, 0.0))),
                vfov=float(data.get("vfov", 90.0)),
                aspect_ratio=aspect_ratio,
            )
        if "horizontal" in data or "vertical" in data:
            return ViewportCamera.from_vectors(
                origin=tuple(data.get("origin", (0.0, 0.0, 0.0))),
                horizontal=tuple(data["horizontal"]),
                vertical=tuple(data["vertical"]),
                focal_length=float(data.get("focal_length", 1.0)),
            )
        return ViewportCamera.from_aspect_ratio(
            aspect_ratio,
            viewport_width=float(data.get("viewport_width", 4.0)),
            focal_length=float(data.get("focal_length", 1.0)),
            origin=tuple(data.get("origin", (0.0, 0.0, 0.0))),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise SceneFileError(f"Invalid camera: {e}") from e


def scene_from_dict(
    data: dict[str, Any],
) -> tuple[SceneManager, ViewportCamera, RenderSettings]:
    """Build a scene, camera and render settings from a parsed scene file.

    Args:
        data: The decoded JSON object.

    Returns:
        A tuple of (scene, camera, settings).

    Raises:
        SceneFileError: If a section is malformed or a sphere is invalid.
    """
    if not isinstance(data, dict):
        raise SceneFileError("Scene file must contain a JSON object")

    render_data = data.get("render", {})
    camera_data = data.get("camera")
    if not isinstance(render_data, dict):
        raise SceneFileError("'render' must be an object")
    if camera_data is not None and not isinstance(camera_data, dict):
        raise SceneFileError("'camera' must be an object")

    settings = _render_settings_from_dict(render_data)
    if camera_data is None:
        camera = default_camera(settings.aspect_ratio)
    else:
        camera = _camera_from_dict(camera_data, settings.aspect_ratio)

    scene = SceneManager()
    if "spheres" in data:
        if not isinstance(data["spheres"], list):
            raise SceneFileError("'spheres' must be a list")
        try:
            scene.from_dict({"spheres": data["spheres"]})
        except InvalidPrimitiveError as e:
            raise SceneFileError(f"Invalid sphere: {e}") from e
    else:
        populate_default_spheres(scene)

    return scene, camera, settings


def load_scene_file(
    path: str | Path,
) -> tuple[SceneManager, ViewportCamera, RenderSettings]:
    """Load a JSON scene file.

    Args:
        path: Path to the scene file.

    Returns:
        A tuple of (scene, camera, settings).

    Raises:
        OSError: If the file cannot be read.
        SceneFileError: If the file is not valid JSON or describes an
            invalid scene.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SceneFileError(f"{path}: not valid JSON: {e}") from e
    return scene_from_dict(data)
