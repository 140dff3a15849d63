"""Image export utilities for rendered images.

This module converts the linear framebuffer into 8-bit colour and writes it
to disk.

Supported formats:
    - PPM (ASCII "P3", written directly)
    - Anything else Pillow can write, chosen by file extension (PNG, BMP, ...)

Encoding applies a gamma-2 curve (square root), clamps each channel to
[0, 0.999] and scales by 255.999, so every channel lands in [0, 255].

Example:
    >>> from pathtracer.core.integrator import get_framebuffer_numpy, render_image
    >>> from pathtracer.output.export import save_image
    >>>
    >>> render_image(settings)
    >>> save_image(get_framebuffer_numpy(), "images/output.ppm")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Upper clamp applied before scaling; keeps 255.999 * c below 256
MAX_CHANNEL = 0.999
CHANNEL_SCALE = 255.999


class ImageWriteError(OSError):
    """Raised when a rendered image cannot be written to disk."""


def encode_framebuffer(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-corrected 8-bit colour.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.

    Returns:
        Array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array is not shaped (H, W, 3).
    """
    image = np.asarray(image, dtype=np.float64)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    # Negative radiance cannot be produced by the integrator; clip before sqrt
    gamma_corrected = np.sqrt(np.clip(image, 0.0, None))
    clamped = np.clip(gamma_corrected, 0.0, MAX_CHANNEL)
    return (CHANNEL_SCALE * clamped).astype(np.uint8)


def _format_ppm(pixels: npt.NDArray[np.uint8]) -> str:
    height, width, _ = pixels.shape
    lines = [f"P3\n{width} {height}\n255"]
    lines.extend(" ".join(str(int(c)) for c in pixel) for pixel in pixels.reshape(-1, 3))
    return "\n".join(lines) + "\n"


def save_image(image: npt.NDArray[np.floating], filepath: str | Path) -> Path:
    """Encode a linear image and write it to a file.

    Files ending in .ppm are written as ASCII P3 with one "r g b" triple per
    line, rows top to bottom. Other extensions are handed to Pillow.
    Missing parent directories are created.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output file path.

    Returns:
        The path the image was written to.

    Raises:
        ImageWriteError: If the file cannot be written.
    """
    path = Path(filepath)
    pixels = encode_framebuffer(image)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() == ".ppm":
            path.write_text(_format_ppm(pixels), encoding="ascii")
        else:
            PILImage.fromarray(np.ascontiguousarray(pixels)).save(path)
    except (OSError, ValueError) as e:
        # Pillow raises ValueError for unknown extensions
        raise ImageWriteError(f"Could not write image to {path}: {e}") from e

    return path
