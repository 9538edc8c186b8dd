"""
Ordered enhancement pipeline.

Stages run in a fixed order: shadow removal, contrast, sharpening and the
filter mode. Tonal stages can be switched off individually; the filter
always runs (COLOR is a copy).
"""

import logging
from typing import Callable, Optional, Type

import cv2
import numpy as np

from docscan.common.imaging import ensure_bgr
from docscan.enhancement.operations import (
    apply_filter,
    enhance_contrast,
    remove_shadows,
    sharpen,
)
from docscan.enhancement.types import EnhancementConfig, FilterMode
from docscan.exceptions import (
    ContrastEnhancementFailed,
    FilterFailed,
    InvalidImage,
    ShadowRemovalFailed,
    SharpenFailed,
    StageFailed,
)

logger = logging.getLogger(__name__)

_STAGE_ERRORS = (cv2.error, ValueError, ArithmeticError)


class EnhancementPipeline:
    """
    Runs the enhancement stages on a rectified image.

    The input array is never modified, so the same original can be
    re-enhanced with any other combination of toggles.

    Example:
        >>> pipeline = EnhancementPipeline(filter_mode=FilterMode.BLACKWHITE, sharpen=False)
        >>> scan = pipeline.run(rectified)
    """

    def __init__(
        self,
        filter_mode: FilterMode = FilterMode.COLOR,
        remove_shadows: bool = True,
        enhance_contrast: bool = True,
        sharpen: bool = True,
        config: Optional[EnhancementConfig] = None,
    ):
        self.filter_mode = FilterMode(filter_mode)
        self.remove_shadows = remove_shadows
        self.enhance_contrast = enhance_contrast
        self.sharpen = sharpen
        self.config = config if config is not None else EnhancementConfig()

    def run(self, image: np.ndarray) -> np.ndarray:
        """
        Apply the enabled stages in order.

        Args:
            image: Rectified image (BGR, BGRA or grayscale uint8).

        Returns:
            New BGR uint8 image of the same size.

        Raises:
            InvalidImage: If the image is None or empty.
            StageFailed: Subclass naming the stage that failed.
        """
        if image is None or image.size == 0:
            raise InvalidImage("Invalid input image: image is None or empty")

        result = ensure_bgr(image)

        if self.remove_shadows:
            result = self._run_stage(
                "Shadow removal", ShadowRemovalFailed, remove_shadows, result
            )
        if self.enhance_contrast:
            result = self._run_stage(
                "Contrast enhancement", ContrastEnhancementFailed, enhance_contrast, result
            )
        if self.sharpen:
            result = self._run_stage("Sharpening", SharpenFailed, sharpen, result)

        # COLOR copies, so the result never aliases the input
        return self._run_stage(
            f"Filter ({self.filter_mode.value})",
            FilterFailed,
            lambda img, cfg: apply_filter(img, self.filter_mode, cfg),
            result,
        )

    def _run_stage(
        self,
        name: str,
        error: Type[StageFailed],
        stage: Callable[[np.ndarray, EnhancementConfig], np.ndarray],
        image: np.ndarray,
    ) -> np.ndarray:
        logger.debug(f"Enhancement stage: {name}")
        try:
            output = stage(image, self.config)
        except _STAGE_ERRORS as e:
            logger.error(f"{name} failed: {e}")
            raise error(str(e)) from e

        if output is None or output.shape[:2] != image.shape[:2]:
            raise error("stage produced an image of the wrong size")
        return output
