"""Output module for encoding and saving rendered images.

Components:
    export: Gamma encoding and PPM/Pillow image writers
"""

from .export import ImageWriteError, encode_framebuffer, save_image

__all__ = [
    "encode_framebuffer",
    "save_image",
    "ImageWriteError",
]
