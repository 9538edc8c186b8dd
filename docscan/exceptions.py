"""
Exception hierarchy for the document scan core.

Every failure raised out of the core derives from ScanError. Low detection
confidence is never an exception: it is reported on the ScanResult.
"""

from typing import Optional


class ScanError(Exception):
    """
    Base exception for all scan core errors.

    Attributes:
        message: Human-readable error description.
        error_code: Short code for programmatic handling.
    """

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class InvalidImage(ScanError, ValueError):
    """Input image is undecodable, empty or has an unsupported layout."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, error_code="INVALID_IMAGE")
        self.source = source


class DegenerateGeometry(ScanError, ValueError):
    """
    Quadrilateral cannot be rectified.

    Raised for near-zero area, collapsed edges, non-convex or
    self-intersecting corner layouts and non-finite transforms.
    The caller should ask for a new crop.
    """

    def __init__(self, message: str):
        super().__init__(message, error_code="DEGENERATE_GEOMETRY")


class StageFailed(ScanError):
    """
    Internal numerical or library fault inside a pipeline stage.

    Attributes:
        stage: Name of the stage that failed.
    """

    stage = "unknown"
    code = "STAGE_FAILED"

    def __init__(self, message: str):
        super().__init__(f"{self.stage}: {message}", error_code=self.code)


class ShadowRemovalFailed(StageFailed):
    stage = "shadow_removal"
    code = "SHADOW_REMOVAL_FAILED"


class ContrastEnhancementFailed(StageFailed):
    stage = "contrast_enhancement"
    code = "CONTRAST_ENHANCEMENT_FAILED"


class SharpenFailed(StageFailed):
    stage = "sharpen"
    code = "SHARPEN_FAILED"


class FilterFailed(StageFailed):
    stage = "filter"
    code = "FILTER_FAILED"


class RectificationFailed(StageFailed):
    stage = "rectification"
    code = "RECTIFICATION_FAILED"


class ResizeFailed(StageFailed):
    stage = "resize"
    code = "RESIZE_FAILED"


class EncodingFailed(StageFailed):
    stage = "encoding"
    code = "ENCODING_FAILED"


class InvalidSessionState(ScanError):
    """Manual crop session operation not allowed in the current state."""

    def __init__(self, message: str):
        super().__init__(message, error_code="INVALID_SESSION_STATE")
