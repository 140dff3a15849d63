"""Render settings shared by the render loop, scene files and the CLI."""

from dataclasses import dataclass

# Largest seed accepted by the kernels (seeds are i32 kernel arguments)
MAX_SEED = 2**31 - 1


@dataclass
class RenderSettings:
    """Image and sampling parameters for one render.

    Attributes:
        image_width: Image width in pixels.
        aspect_ratio: Width divided by height; the height is derived.
        samples_per_pixel: Number of radiance estimates averaged per pixel.
        max_depth: Maximum number of scene queries along one path.
        seed: Render seed. Identical seeds and scenes give identical images.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 50
    max_depth: int = 25
    seed: int = 0

    def __post_init__(self) -> None:
        self.validate()

    @property
    def image_height(self) -> int:
        """Image height in pixels, int(image_width / aspect_ratio)."""
        return int(self.image_width / self.aspect_ratio)

    def validate(self) -> None:
        """Check that the settings describe a renderable image.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width < 2 or self.image_height < 2:
            raise ValueError(
                f"Image must be at least 2x2 pixels, got "
                f"{self.image_width}x{self.image_height}"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not 0 <= self.seed <= MAX_SEED:
            raise ValueError(f"seed must be in [0, {MAX_SEED}], got {self.seed}")
