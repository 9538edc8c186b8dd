"""
Manual crop session.

A toolkit-independent state machine for editing the four document corners
by hand. Corners live in normalized [0, 1] coordinates so the same session
works at any display scale; pixel coordinates appear only on entry (from a
detector result) and on commit.

    IDLE --begin_drag--> EDITING --end_drag--> IDLE
    IDLE/EDITING --commit--> COMMITTED
    IDLE/EDITING --cancel--> CANCELLED
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from docscan.common.types import (
    CropBounds,
    ImageSize,
    NormalizedCropBounds,
    NormalizedPoint,
    PixelPoint,
)
from docscan.exceptions import DegenerateGeometry, InvalidSessionState
from docscan.manual_crop.types import CORNER_ORDER, Corner, SessionState
from docscan.rectification.geometry import is_convex_quadrilateral

logger = logging.getLogger(__name__)

DEFAULT_INSET = 0.10
CLAMP_MIN = 0.05
CLAMP_MAX = 0.95

PointLike = Union[NormalizedPoint, Sequence[float]]


class ManualCropSession:
    """
    Interactive editing of a document quadrilateral.

    Args:
        image_size: Size of the original image the bounds refer to.
        initial_bounds: Pixel-space bounds to start from, typically from
            detect_crop_bounds(). None starts from the default inset
            rectangle.
        inset: Margin of the default rectangle on each side.
        clamp_min: Lowest normalized coordinate a corner may take.
        clamp_max: Highest normalized coordinate a corner may take.

    Example:
        >>> session = ManualCropSession(ImageSize(width=1200, height=1600))
        >>> session.begin_drag(Corner.TOP_LEFT)
        >>> session.update_drag((0.2, 0.15))
        >>> session.end_drag()
        >>> bounds = session.commit()
    """

    def __init__(
        self,
        image_size: ImageSize,
        initial_bounds: Optional[CropBounds] = None,
        inset: float = DEFAULT_INSET,
        clamp_min: float = CLAMP_MIN,
        clamp_max: float = CLAMP_MAX,
    ):
        if not 0.0 <= clamp_min < clamp_max <= 1.0:
            raise ValueError(
                f"Clamp range must satisfy 0 <= min < max <= 1, got [{clamp_min}, {clamp_max}]"
            )

        self.image_size = image_size
        self.clamp_min = clamp_min
        self.clamp_max = clamp_max
        self._default = NormalizedCropBounds.inset(inset)

        self._state = SessionState.IDLE
        self._active: Optional[Corner] = None

        if initial_bounds is None:
            self._corners = self._from_normalized(self._default)
        else:
            self._corners = {
                corner: self._clamp_pixel(point)
                for corner, point in zip(CORNER_ORDER, initial_bounds.points)
            }
        logger.debug(f"Manual crop session opened for {image_size.width}x{image_size.height}")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_corner(self) -> Optional[Corner]:
        return self._active

    @property
    def is_finished(self) -> bool:
        return self._state in (SessionState.COMMITTED, SessionState.CANCELLED)

    @property
    def bounds(self) -> NormalizedCropBounds:
        """Current corners in normalized coordinates."""
        return NormalizedCropBounds(**{c.value: p for c, p in self._corners.items()})

    def corner(self, corner: Corner) -> NormalizedPoint:
        return self._corners[Corner(corner)]

    # -- drag lifecycle -------------------------------------------------

    def begin_drag(self, corner: Corner) -> None:
        """
        Start dragging a corner handle.

        Raises:
            InvalidSessionState: If a drag is already in progress or the
                session is finished.
        """
        self._require_open("begin_drag")
        if self._state is SessionState.EDITING:
            raise InvalidSessionState(
                f"Cannot begin dragging {Corner(corner).value}: "
                f"{self._active.value} is already being dragged"
            )
        self._active = Corner(corner)
        self._state = SessionState.EDITING

    def update_drag(self, point: PointLike) -> NormalizedPoint:
        """
        Move the active corner to `point`, clamped into the allowed range.

        Args:
            point: NormalizedPoint or (x, y) pair in normalized units.
                Values outside [0, 1] (pointer beyond the image) are
                accepted and clamped.

        Returns:
            The position actually stored.

        Raises:
            InvalidSessionState: If no drag is in progress.
        """
        self._require_open("update_drag")
        if self._state is not SessionState.EDITING:
            raise InvalidSessionState("update_drag called without an active drag")

        x, y = point.to_tuple() if isinstance(point, NormalizedPoint) else point
        clamped = self._clamp(float(x), float(y))
        self._corners[self._active] = clamped
        return clamped

    def end_drag(self) -> None:
        """Release the active corner."""
        self._require_open("end_drag")
        if self._state is not SessionState.EDITING:
            raise InvalidSessionState("end_drag called without an active drag")
        self._active = None
        self._state = SessionState.IDLE

    def reset(self) -> None:
        """Restore the default inset rectangle and drop any active drag."""
        self._require_open("reset")
        self._corners = self._from_normalized(self._default)
        self._active = None
        self._state = SessionState.IDLE
        logger.debug("Manual crop reset to default rectangle")

    # -- exit -----------------------------------------------------------

    def commit(self) -> CropBounds:
        """
        Finish the session and emit the bounds in pixel space.

        An in-progress drag is ended first.

        Raises:
            DegenerateGeometry: If the corners are crossed so they no longer
                form a convex quadrilateral. The session stays open so the
                corners can be fixed.
            InvalidSessionState: If the session is already finished.
        """
        self._require_open("commit")

        pts = np.array([self._corners[c].to_tuple() for c in CORNER_ORDER])
        if not is_convex_quadrilateral(pts):
            raise DegenerateGeometry(
                "Corners cross each other; drag them back into a convex shape"
            )

        bounds = self.bounds.to_pixels(self.image_size)
        self._active = None
        self._state = SessionState.COMMITTED
        logger.info(f"Manual crop committed: {[p.to_tuple() for p in bounds.points]}")
        return bounds

    def cancel(self) -> None:
        """Finish the session without emitting anything."""
        self._require_open("cancel")
        self._active = None
        self._state = SessionState.CANCELLED
        logger.info("Manual crop cancelled")

    # -- helpers for UI toolkits ----------------------------------------

    def to_display(self, width: float, height: float) -> List[Tuple[float, float]]:
        """Corners scaled to a display of the given size, in order TL, TR, BR, BL."""
        return [
            (self._corners[c].x * width, self._corners[c].y * height) for c in CORNER_ORDER
        ]

    def nearest_corner(self, point: PointLike, max_distance: float = 0.1) -> Optional[Corner]:
        """
        Corner handle closest to a pointer position, if within `max_distance`.

        Distances are measured in normalized units.
        """
        x, y = point.to_tuple() if isinstance(point, NormalizedPoint) else point
        distances = {
            c: float(np.hypot(p.x - x, p.y - y)) for c, p in self._corners.items()
        }
        best = min(CORNER_ORDER, key=lambda c: distances[c])
        return best if distances[best] <= max_distance else None

    # -- internals ------------------------------------------------------

    def _require_open(self, operation: str) -> None:
        if self.is_finished:
            raise InvalidSessionState(
                f"Cannot {operation}: session is {self._state.value}"
            )

    def _clamp(self, x: float, y: float) -> NormalizedPoint:
        if not (np.isfinite(x) and np.isfinite(y)):
            raise ValueError(f"Corner position must be finite, got ({x}, {y})")
        return NormalizedPoint(
            x=min(max(x, self.clamp_min), self.clamp_max),
            y=min(max(y, self.clamp_min), self.clamp_max),
        )

    def _clamp_pixel(self, point: PixelPoint) -> NormalizedPoint:
        return self._clamp(point.x / self.image_size.width, point.y / self.image_size.height)

    def _from_normalized(self, bounds: NormalizedCropBounds) -> Dict[Corner, NormalizedPoint]:
        return {c: self._clamp(*p.to_tuple()) for c, p in zip(CORNER_ORDER, bounds.points)}
