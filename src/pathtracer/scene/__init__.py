"""Scene module for sphere storage, validation and scene descriptions.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: Host-side scene builder with validation and serialization
    defaults: The default four-sphere scene
    loader: JSON scene file loading

Sphere data is stored in structure-of-arrays Taichi fields. The fields are
written only while the scene is built and are read-only during rendering.
"""

from .defaults import create_default_scene
from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .loader import SceneFileError, load_scene_file, scene_from_dict
from .manager import (
    InvalidPrimitiveError,
    MaterialKind,
    SceneManager,
    SphereInfo,
    parse_material,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialKind",
    "SphereInfo",
    "InvalidPrimitiveError",
    "parse_material",
    # Scene descriptions
    "create_default_scene",
    "load_scene_file",
    "scene_from_dict",
    "SceneFileError",
]
