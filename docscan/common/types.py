"""
Common type definitions for the document scan core.

Pydantic-based value types for images, points and quadrilaterals.

Two coordinate spaces exist and are kept apart by type:
- PixelPoint / CropBounds: pixels relative to the original, unrotated
  source image.
- NormalizedPoint / NormalizedCropBounds: fractions of image width and
  height in [0, 1], independent of resolution.

Passing a point of one space where the other is expected fails validation.
Conversion only happens through CropBounds.to_normalized() and
NormalizedCropBounds.to_pixels().
"""

import math
from typing import List, Tuple

import numpy as np
from pydantic import BaseModel, Field, field_validator

_FROZEN = {"frozen": True}


class ImageBuffer(BaseModel):
    """
    Type-safe wrapper for decoded image arrays.

    Attributes:
        data: Image data. Shape (H, W) for grayscale or (H, W, C) with
            C in (1, 3, 4). Dtype uint8.

    Example:
        >>> buf = ImageBuffer(data=np.zeros((480, 640, 3), dtype=np.uint8))
        >>> buf.width, buf.height
        (640, 480)
    """

    data: np.ndarray = Field(..., description="Image data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if len(v.shape) not in (2, 3):
            raise ValueError(
                f"Expected 2D (grayscale) or 3D (color) image, got shape {v.shape}"
            )

        if len(v.shape) == 3 and v.shape[2] not in (1, 3, 4):
            raise ValueError(
                f"Expected 1, 3, or 4 channels for color image, got {v.shape[2]}"
            )

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        return v

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        if len(self.data.shape) == 2:
            return 1
        return int(self.data.shape[2])

    @property
    def size(self) -> "ImageSize":
        return ImageSize(width=self.width, height=self.height)

    def __repr__(self) -> str:
        return f"ImageBuffer(shape={self.data.shape}, dtype={self.data.dtype})"


class ImageSize(BaseModel):
    """Axis-aligned image dimensions in pixels."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    model_config = _FROZEN

    @classmethod
    def of(cls, image: np.ndarray) -> "ImageSize":
        """Size of a decoded image array."""
        return cls(width=int(image.shape[1]), height=int(image.shape[0]))


class PixelPoint(BaseModel):
    """
    Point in pixel space of the original source image.

    Coordinates are floats; sub-pixel precision matters for the homography.
    """

    x: float
    y: float

    model_config = _FROZEN

    @field_validator("x", "y")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Pixel coordinate must be finite, got {v}")
        return v

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "PixelPoint") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class NormalizedPoint(BaseModel):
    """Point as a fraction of image width (x) and height (y)."""

    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)

    model_config = _FROZEN

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


def _shoelace(points: List[Tuple[float, float]]) -> float:
    total = 0.0
    for i, (x1, y1) in enumerate(points):
        x2, y2 = points[(i + 1) % len(points)]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2.0


class CropBounds(BaseModel):
    """
    Quadrilateral delimiting the document, in pixel space.

    Corners are named; traversal order for geometry is
    top_left -> top_right -> bottom_right -> bottom_left.

    Example:
        >>> bounds = CropBounds.full_frame(ImageSize(width=640, height=480))
        >>> bounds.bottom_right
        PixelPoint(x=640.0, y=480.0)
    """

    top_left: PixelPoint
    top_right: PixelPoint
    bottom_left: PixelPoint
    bottom_right: PixelPoint

    model_config = _FROZEN

    @classmethod
    def full_frame(cls, size: ImageSize) -> "CropBounds":
        """Rectangle covering the whole image (pixel edges, not centers)."""
        w, h = float(size.width), float(size.height)
        return cls(
            top_left=PixelPoint(x=0.0, y=0.0),
            top_right=PixelPoint(x=w, y=0.0),
            bottom_left=PixelPoint(x=0.0, y=h),
            bottom_right=PixelPoint(x=w, y=h),
        )

    @classmethod
    def from_numpy(cls, pts: np.ndarray) -> "CropBounds":
        """
        Build from an ordered (4, 2) array [TL, TR, BR, BL].

        Raises:
            ValueError: If the array shape is not (4, 2).
        """
        pts = np.asarray(pts, dtype=np.float64)
        if pts.shape != (4, 2):
            raise ValueError(f"Expected array of shape (4, 2), got {pts.shape}")
        tl, tr, br, bl = (PixelPoint(x=float(p[0]), y=float(p[1])) for p in pts)
        return cls(top_left=tl, top_right=tr, bottom_right=br, bottom_left=bl)

    @property
    def points(self) -> List[PixelPoint]:
        """Corners in traversal order [TL, TR, BR, BL]."""
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]

    def to_numpy(self, dtype: type = np.float32) -> np.ndarray:
        """Corners as a (4, 2) array in traversal order [TL, TR, BR, BL]."""
        return np.array([p.to_tuple() for p in self.points], dtype=dtype)

    @property
    def area(self) -> float:
        """Polygon area (shoelace formula) in square pixels."""
        return _shoelace([p.to_tuple() for p in self.points])

    def is_full_frame(self, size: ImageSize, tolerance: float = 0.5) -> bool:
        """True if the corners coincide with the image corners."""
        expected = CropBounds.full_frame(size)
        return all(
            p.distance_to(q) <= tolerance for p, q in zip(self.points, expected.points)
        )

    def to_normalized(self, size: ImageSize) -> "NormalizedCropBounds":
        """
        Convert to normalized coordinates for the given image size.

        Raises:
            pydantic.ValidationError: If a corner lies outside the image.
        """

        def norm(p: PixelPoint) -> NormalizedPoint:
            return NormalizedPoint(x=p.x / size.width, y=p.y / size.height)

        return NormalizedCropBounds(
            top_left=norm(self.top_left),
            top_right=norm(self.top_right),
            bottom_left=norm(self.bottom_left),
            bottom_right=norm(self.bottom_right),
        )


class NormalizedCropBounds(BaseModel):
    """Quadrilateral in normalized [0, 1] image-relative coordinates."""

    top_left: NormalizedPoint
    top_right: NormalizedPoint
    bottom_left: NormalizedPoint
    bottom_right: NormalizedPoint

    model_config = _FROZEN

    @classmethod
    def inset(cls, margin: float) -> "NormalizedCropBounds":
        """Centered rectangle inset by `margin` on every side."""
        if not 0.0 <= margin < 0.5:
            raise ValueError(f"Inset margin must be in [0, 0.5), got {margin}")
        lo, hi = margin, 1.0 - margin
        return cls(
            top_left=NormalizedPoint(x=lo, y=lo),
            top_right=NormalizedPoint(x=hi, y=lo),
            bottom_left=NormalizedPoint(x=lo, y=hi),
            bottom_right=NormalizedPoint(x=hi, y=hi),
        )

    @property
    def points(self) -> List[NormalizedPoint]:
        """Corners in traversal order [TL, TR, BR, BL]."""
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]

    @property
    def area(self) -> float:
        """Area as a fraction of the image area."""
        return _shoelace([p.to_tuple() for p in self.points])

    def to_pixels(self, size: ImageSize) -> CropBounds:
        """Convert to pixel coordinates for the given image size."""

        def denorm(p: NormalizedPoint) -> PixelPoint:
            return PixelPoint(x=p.x * size.width, y=p.y * size.height)

        return CropBounds(
            top_left=denorm(self.top_left),
            top_right=denorm(self.top_right),
            bottom_left=denorm(self.bottom_left),
            bottom_right=denorm(self.bottom_right),
        )
