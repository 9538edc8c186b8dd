"""
Common types and utilities shared across all scan modules.

Geometry value types with distinct pixel and normalized coordinate spaces,
image decoding/encoding, and raster helpers.
"""

from docscan.common.image_io import encode_image, image_to_pdf, load_image
from docscan.common.types import (
    CropBounds,
    ImageBuffer,
    ImageSize,
    NormalizedCropBounds,
    NormalizedPoint,
    PixelPoint,
)

__all__ = [
    "CropBounds",
    "ImageBuffer",
    "ImageSize",
    "NormalizedCropBounds",
    "NormalizedPoint",
    "PixelPoint",
    "encode_image",
    "image_to_pdf",
    "load_image",
]
