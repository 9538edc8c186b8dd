"""
Manual Crop Session.

Lets a person override or refine the document corners when automatic
detection is not trusted.
"""

from docscan.manual_crop.session import (
    CLAMP_MAX,
    CLAMP_MIN,
    DEFAULT_INSET,
    ManualCropSession,
)
from docscan.manual_crop.types import CORNER_ORDER, Corner, SessionState

__all__ = [
    "CLAMP_MAX",
    "CLAMP_MIN",
    "CORNER_ORDER",
    "Corner",
    "DEFAULT_INSET",
    "ManualCropSession",
    "SessionState",
]
