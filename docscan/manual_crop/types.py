"""
Data types for the Manual Crop module.
"""

from enum import Enum


class Corner(str, Enum):
    """Draggable corner handles."""

    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_RIGHT = "bottom_right"
    BOTTOM_LEFT = "bottom_left"


# Traversal order used for drawing and geometry
CORNER_ORDER = (Corner.TOP_LEFT, Corner.TOP_RIGHT, Corner.BOTTOM_RIGHT, Corner.BOTTOM_LEFT)


class SessionState(Enum):
    """Lifecycle of a manual crop session."""

    IDLE = "idle"  # Handles shown, no drag in progress
    EDITING = "editing"  # Exactly one corner is being dragged
    COMMITTED = "committed"  # Terminal: bounds were emitted
    CANCELLED = "cancelled"  # Terminal: nothing was emitted
