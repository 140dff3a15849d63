"""Scene manager for building and validating sphere scenes.

The SceneManager is the host-side view of the scene. It validates every
sphere before it reaches the Taichi fields, keeps a Python-side record of
what was added (including attributes the render kernel never reads, such as
reflectivity) and converts scenes to and from plain dictionaries for JSON
scene files.

Invalid spheres are rejected here, at construction time, rather than
producing division by zero or NaN deep inside the render kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import MaterialKind, SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, -1), 0.5, (0.1, 0.2, 0.5))
    >>> scene.add_sphere((-1, 0, -1), 0.5, (0.8, 0.8, 0.8),
    ...                  material=MaterialKind.GLASS, refractive_index=1.5)
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi.math as tm

from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialKind(IntEnum):
    """The closed set of light-interaction models a sphere can have.

    Used for material dispatch in the integrator.
    """

    DIFFUSE = 0
    METAL = 1
    GLASS = 2


class InvalidPrimitiveError(ValueError):
    """Raised when a sphere's parameters cannot be rendered."""


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage fields.
        center: The center of the sphere.
        radius: The radius of the sphere.
        color: The albedo color of the sphere.
        material: The material kind.
        reflectivity: Stored per sphere; not used by the metal model.
        refractive_index: Index of refraction (used by glass).
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    color: tuple[float, float, float]
    material: MaterialKind
    reflectivity: float
    refractive_index: float


def parse_material(material: "MaterialKind | int | str") -> MaterialKind:
    """Convert a material name, integer or MaterialKind into a MaterialKind.

    Args:
        material: A MaterialKind, its integer value, or its case-insensitive
            name ("diffuse", "metal", "glass").

    Returns:
        The matching MaterialKind.

    Raises:
        InvalidPrimitiveError: If the value names no material kind.
    """
    if isinstance(material, str):
        try:
            return MaterialKind[material.strip().upper()]
        except KeyError:
            raise InvalidPrimitiveError(f"Unknown material kind: {material!r}") from None
    try:
        return MaterialKind(material)
    except ValueError:
        raise InvalidPrimitiveError(f"Unknown material kind: {material!r}") from None


def _as_vector(name: str, value: Any) -> tuple[float, float, float]:
    """Convert a 3-sequence to a tuple of finite floats."""
    try:
        x, y, z = (float(c) for c in value)
    except (TypeError, ValueError):
        raise InvalidPrimitiveError(
            f"{name} must be a sequence of three numbers, got {value!r}"
        ) from None
    for component in (x, y, z):
        if not math.isfinite(component):
            raise InvalidPrimitiveError(f"{name} has a non-finite component: {value!r}")
    return (x, y, z)


def _as_scalar(name: str, value: Any) -> float:
    """Convert a value to a finite float."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvalidPrimitiveError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(result):
        raise InvalidPrimitiveError(f"{name} must be finite, got {value!r}")
    return result


class SceneManager:
    """Scene builder coordinating validation and Taichi field storage.

    Creating a SceneManager clears the scene fields; there is one active
    scene per process.

    Attributes:
        spheres: List of SphereInfo for all spheres in the scene, in the
            order they were added.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_diffuse_sphere((0, -100.5, -1), 100, (0.8, 0.8, 0.0))
        >>> scene.add_metal_sphere((1, 0, -1), 0.5, (0.8, 0.6, 0.2), reflectivity=0.8)
        >>> scene.add_glass_sphere((-1, 0, -1), 0.5, refractive_index=1.5)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.spheres: list[SphereInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear the Taichi fields and local tracking."""
        clear_scene()
        self.spheres.clear()

    def clear(self) -> None:
        """Remove every sphere from the scene."""
        self._clear_all()

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
        material: "MaterialKind | int | str" = MaterialKind.DIFFUSE,
        reflectivity: float = 0.0,
        refractive_index: float = 1.0,
    ) -> int:
        """Validate and add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Must be positive.
            color: The albedo color as (R, G, B), each component in [0, 1].
            material: The material kind (enum, integer or name).
            reflectivity: Stored with the sphere; not used for shading.
            refractive_index: Index of refraction. Must be >= 1.

        Returns:
            The index of the added sphere.

        Raises:
            InvalidPrimitiveError: If any parameter is out of range.
            RuntimeError: If the maximum number of spheres is exceeded.
        """
        center_t = _as_vector("center", center)
        color_t = _as_vector("color", color)
        radius_f = _as_scalar("radius", radius)
        reflectivity_f = _as_scalar("reflectivity", reflectivity)
        ior = _as_scalar("refractive_index", refractive_index)
        kind = parse_material(material)

        if radius_f <= 0.0:
            raise InvalidPrimitiveError(f"Sphere radius must be positive, got {radius_f}")
        if ior < 1.0:
            raise InvalidPrimitiveError(
                f"Index of refraction = {ior} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )
        for i, component in enumerate(color_t):
            if component < 0.0 or component > 1.0:
                raise InvalidPrimitiveError(
                    f"Color component {i} = {component} is outside [0, 1]. "
                    "This would violate energy conservation."
                )

        sphere_index = add_sphere(
            vec3(*center_t),
            radius_f,
            vec3(*color_t),
            int(kind),
            ior,
        )

        info = SphereInfo(
            sphere_index=sphere_index,
            center=center_t,
            radius=radius_f,
            color=color_t,
            material=kind,
            reflectivity=reflectivity_f,
            refractive_index=ior,
        )
        self.spheres.append(info)

        return sphere_index

    def add_diffuse_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
    ) -> int:
        """Add a diffuse sphere."""
        return self.add_sphere(center, radius, color, MaterialKind.DIFFUSE)

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float],
        reflectivity: float = 0.0,
    ) -> int:
        """Add a metal sphere.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            color: The reflective tint as (R, G, B).
            reflectivity: Stored with the sphere; the fuzz of the metal model
                is fixed and does not depend on it.

        Returns:
            The index of the added sphere.
        """
        return self.add_sphere(
            center, radius, color, MaterialKind.METAL, reflectivity=reflectivity
        )

    def add_glass_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        refractive_index: float = 1.5,
    ) -> int:
        """Add a glass sphere.

        Glass does not tint light, so color is only stored.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            color: Stored color (unused by the glass model).
            refractive_index: Index of refraction. Default is 1.5 (glass).

        Returns:
            The index of the added sphere.
        """
        return self.add_sphere(
            center,
            radius,
            color,
            MaterialKind.GLASS,
            refractive_index=refractive_index,
        )

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_sphere_info(self, sphere_index: int) -> SphereInfo | None:
        """Get information about a sphere by index.

        Returns:
            SphereInfo for the sphere, or None if the index is out of range.
        """
        if 0 <= sphere_index < len(self.spheres):
            return self.spheres[sphere_index]
        return None

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary with a "spheres" list.
        """
        spheres = []
        for sphere in self.spheres:
            spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "color": list(sphere.color),
                    "material": sphere.material.name.lower(),
                    "reflectivity": sphere.reflectivity,
                    "refractive_index": sphere.refractive_index,
                }
            )
        return {"spheres": spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Clears the current scene first. Missing optional keys take the
        defaults of add_sphere().

        Args:
            data: Dictionary with a "spheres" list. Each entry needs
                "center" and "radius"; "color" defaults to mid gray.

        Raises:
            InvalidPrimitiveError: If an entry is missing required keys or
                holds invalid values.
        """
        self.clear()

        for i, sphere_config in enumerate(data.get("spheres", [])):
            if not isinstance(sphere_config, dict):
                raise InvalidPrimitiveError(f"Sphere {i} must be an object")
            for key in ("center", "radius"):
                if key not in sphere_config:
                    raise InvalidPrimitiveError(f"Sphere {i} is missing '{key}'")
            self.add_sphere(
                center=sphere_config["center"],
                radius=sphere_config["radius"],
                color=sphere_config.get("color", [0.5, 0.5, 0.5]),
                material=sphere_config.get("material", "diffuse"),
                reflectivity=sphere_config.get("reflectivity", 0.0),
                refractive_index=sphere_config.get("refractive_index", 1.0),
            )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES
