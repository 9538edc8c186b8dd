"""
Scan orchestrator.

Composes the complete pipeline:
1. Image decoding
2. Crop bounds selection (explicit bounds, detection or full frame)
3. Perspective rectification
4. Enhancement (shadows, contrast, sharpening, filter)
5. Output resize and encoding

Low detection confidence is an outcome, not an error: the scan still
completes with the best-guess quadrilateral and auto_crop_applied=False.
Every other failure is raised to the caller; no partial result is
returned.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from docscan.common.image_io import ImageSource, encode_image, load_image
from docscan.common.imaging import resize_to_max_width
from docscan.common.types import CropBounds, ImageSize
from docscan.detection.quad_detector import QuadrilateralDetector
from docscan.detection.types import DetectionResult
from docscan.enhancement.pipeline import EnhancementPipeline
from docscan.exceptions import ResizeFailed
from docscan.pipeline.config_loader import load_config
from docscan.pipeline.types import ScanConfiguration, ScannerSettings, ScanResult
from docscan.rectification.rectifier import rectify

logger = logging.getLogger(__name__)

MANUAL_CONFIDENCE = 1.0


class DocumentScanner:
    """
    Turns a photographed document into an upright, enhanced scan.

    The scanner holds only its settings; each call is independent and
    can run concurrently with other calls on the same instance.

    Example:
        >>> scanner = DocumentScanner()
        >>> result = scanner.scan("receipt.jpg", ScanConfiguration(max_width=1200))
        >>> if result.needs_manual_crop():
        ...     bounds = scanner.detect_crop_bounds("receipt.jpg")
    """

    def __init__(
        self,
        settings: Optional[ScannerSettings] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the scanner.

        Args:
            settings: Pre-loaded settings object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if settings is not None:
            self.settings = settings
            logger.info("Using provided scanner settings")
        else:
            self.settings = load_config(config_path) if config_path else load_config()
            logger.info("Loaded scanner settings from file")

        self.detector = QuadrilateralDetector(self.settings.detector)

    def scan(
        self, source: ImageSource, config: Optional[ScanConfiguration] = None
    ) -> ScanResult:
        """
        Run the full pipeline on one image.

        Args:
            source: Decoded array, PIL image, encoded bytes, data URL or path.
            config: Per-scan options. Defaults to ScanConfiguration().

        Returns:
            ScanResult with the original, the processed image and its
            encoded bytes, the bounds used and the confidence.

        Raises:
            InvalidImage: If the source cannot be decoded.
            DegenerateGeometry: If the quadrilateral cannot be rectified.
            StageFailed: Subclass naming the stage that failed.
        """
        if config is None:
            config = ScanConfiguration()

        logger.info("=" * 60)
        logger.info("Starting Scan Pipeline")
        logger.info("=" * 60)

        # Stage 1: Decoding
        logger.info("[Stage 1/5] Image Decoding")
        original = load_image(source)
        logger.info(f"Input image size: {original.shape[1]}x{original.shape[0]}")

        # Stage 2: Crop bounds
        logger.info("[Stage 2/5] Crop Bounds Selection")
        bounds, confidence, auto_crop_applied = self._select_bounds(original, config)

        # Stage 3: Rectification
        logger.info("[Stage 3/5] Perspective Rectification")
        rectified = rectify(original, bounds, config=self.settings.rectifier)

        # Stage 4: Enhancement
        logger.info("[Stage 4/5] Enhancement")
        pipeline = EnhancementPipeline(
            filter_mode=config.filter_mode,
            remove_shadows=config.remove_shadows,
            enhance_contrast=config.enhance_contrast,
            sharpen=config.sharpen,
            config=self.settings.enhancement,
        )
        processed = pipeline.run(rectified)

        # Stage 5: Resize + encode
        logger.info("[Stage 5/5] Output")
        processed = self._resize(processed, config.max_width)
        encoded = encode_image(
            processed, config.output_format, self.settings.output.jpeg_quality
        )

        logger.info("=" * 60)
        logger.info(
            f"Scan COMPLETE: {processed.shape[1]}x{processed.shape[0]}, "
            f"confidence={confidence:.3f}, auto_crop_applied={auto_crop_applied}"
        )
        logger.info("=" * 60)

        return ScanResult(
            original_image=original,
            processed_image=processed,
            auto_crop_applied=auto_crop_applied,
            confidence=confidence,
            crop_bounds=bounds,
            filter_mode=config.filter_mode,
            encoded_image=encoded,
            image_format=config.output_format,
        )

    def detect(self, source: ImageSource) -> DetectionResult:
        """Run detection only and return the full result."""
        return self.detector.detect(load_image(source))

    def detect_crop_bounds(self, source: ImageSource) -> CropBounds:
        """
        Best-guess document quadrilateral, for seeding a manual crop session.

        Read-only preview: no enhancement is performed. Returns the full
        frame when nothing is detected.
        """
        return self.detect(source).bounds

    def reprocess(
        self, result: ScanResult, config: Optional[ScanConfiguration] = None
    ) -> ScanResult:
        """
        Re-run the pipeline from a previous result's original image.

        When `config` carries no crop bounds the previous result's bounds
        are reused, so changing the filter never repeats detection; the
        previous confidence and auto-crop outcome are carried over.
        Explicit bounds in `config` are treated as a new crop.
        """
        if config is None:
            config = ScanConfiguration()

        if config.crop_bounds is not None:
            return self.scan(result.original_image, config)

        logger.info("Reprocessing with previous crop bounds")
        reused = config.model_copy(update={"crop_bounds": result.crop_bounds})
        rescanned = self.scan(result.original_image, reused)
        return dataclasses.replace(
            rescanned,
            confidence=result.confidence,
            auto_crop_applied=result.auto_crop_applied,
        )

    def _select_bounds(
        self, image: np.ndarray, config: ScanConfiguration
    ) -> Tuple[CropBounds, float, bool]:
        """Decide the quadrilateral, its confidence and auto_crop_applied."""
        if config.crop_bounds is not None:
            logger.info("Using supplied crop bounds, detection skipped")
            return config.crop_bounds, MANUAL_CONFIDENCE, config.auto_crop

        if not config.auto_crop:
            logger.info("Auto-crop disabled, using full frame")
            return CropBounds.full_frame(ImageSize.of(image)), 0.0, False

        detection = self.detector.detect(image)
        threshold = self.settings.acceptance.min_confidence
        if detection.confidence >= threshold:
            logger.info(
                f"Detection accepted: confidence {detection.confidence:.3f} >= {threshold}"
            )
            return detection.bounds, detection.confidence, True

        logger.warning(
            f"Detection confidence {detection.confidence:.3f} < {threshold}, "
            "using best guess without auto-crop (manual crop advised)"
        )
        return detection.bounds, detection.confidence, False

    @staticmethod
    def _resize(image: np.ndarray, max_width: Optional[int]) -> np.ndarray:
        if max_width is None:
            return image
        try:
            return resize_to_max_width(image, max_width)
        except cv2.error as e:
            logger.error(f"Resize failed: {e}")
            raise ResizeFailed(str(e)) from e


def scan_document(
    source: ImageSource,
    config: Optional[ScanConfiguration] = None,
    settings: Optional[ScannerSettings] = None,
) -> ScanResult:
    """
    Convenience function for one-shot scanning.

    Args:
        source: Image to scan (array, PIL image, bytes, data URL or path).
        config: Per-scan options. Uses defaults if None.
        settings: Optional scanner settings. Loads config.yaml if None.

    Returns:
        ScanResult object.

    Example:
        >>> result = scan_document("receipt.jpg", ScanConfiguration(filter_mode="blackwhite"))
        >>> open("scan.jpg", "wb").write(result.encoded_image)
    """
    return DocumentScanner(settings=settings).scan(source, config)


def detect_crop_bounds(
    source: ImageSource, settings: Optional[ScannerSettings] = None
) -> CropBounds:
    """Convenience function returning the detected (or full-frame) bounds."""
    return DocumentScanner(settings=settings).detect_crop_bounds(source)


def reprocess(
    result: ScanResult,
    config: Optional[ScanConfiguration] = None,
    settings: Optional[ScannerSettings] = None,
) -> ScanResult:
    """Convenience function re-running a scan with new options."""
    return DocumentScanner(settings=settings).reprocess(result, config)
