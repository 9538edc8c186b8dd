"""
Configuration loader for the document scanner.

Loads and validates ScannerSettings from a config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from docscan.detection.types import DetectorConfig
from docscan.enhancement.types import EnhancementConfig
from docscan.pipeline.types import (
    AcceptanceConfig,
    OutputConfig,
    ScannerSettings,
)
from docscan.rectification.types import INTERPOLATION_FLAGS, RectifierConfig

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ScannerSettings:
    """
    Load scanner settings from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated ScannerSettings object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> settings = load_config()
        >>> print(settings.acceptance.min_confidence)
        0.35
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading scanner config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        if not isinstance(raw_config, dict):
            raise ValueError("Top level of the config must be a mapping")
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded scanner configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> ScannerSettings:
    """Parse raw dictionary into structured config objects."""
    det = raw["detector"]
    weights = det["weights"]
    enh = raw["enhancement"]
    shadow = enh["shadow"]
    contrast = enh["contrast"]

    return ScannerSettings(
        acceptance=AcceptanceConfig(
            min_confidence=float(raw["acceptance"]["min_confidence"]),
        ),
        detector=DetectorConfig(
            working_max_dimension=int(det["working_max_dimension"]),
            blur_kernel=int(det["blur_kernel"]),
            canny_low=int(det["canny_low"]),
            canny_high=int(det["canny_high"]),
            dilate_iterations=int(det["dilate_iterations"]),
            close_kernel=int(det["close_kernel"]),
            min_area_ratio=float(det["min_area_ratio"]),
            max_contours=int(det["max_contours"]),
            approx_epsilons=[float(e) for e in det["approx_epsilons"]],
            min_fit=float(det["min_fit"]),
            fallback_confidence=float(det["fallback_confidence"]),
            full_area_ratio=float(det["full_area_ratio"]),
            max_angle_deviation=float(det["max_angle_deviation"]),
            contrast_norm=float(det["contrast_norm"]),
            border_margin_ratio=float(det["border_margin_ratio"]),
            border_penalty=float(det["border_penalty"]),
            weight_fit=float(weights["fit"]),
            weight_angle=float(weights["angle"]),
            weight_area=float(weights["area"]),
            weight_contrast=float(weights["contrast"]),
        ),
        rectifier=RectifierConfig(
            min_area_px=float(raw["rectifier"]["min_area_px"]),
            min_edge_px=float(raw["rectifier"]["min_edge_px"]),
            interpolation=str(raw["rectifier"]["interpolation"]),
        ),
        enhancement=EnhancementConfig(
            shadow_kernel_fraction=float(shadow["kernel_fraction"]),
            shadow_min_kernel=int(shadow["min_kernel"]),
            shadow_text_kernel=int(shadow["text_kernel"]),
            shadow_max_gain=float(shadow["max_gain"]),
            shadow_min_background=float(shadow["min_background"]),
            shadow_target_percentile=float(shadow["target_percentile"]),
            contrast_low_percentile=float(contrast["low_percentile"]),
            contrast_high_percentile=float(contrast["high_percentile"]),
            contrast_blend=float(contrast["blend"]),
            contrast_min_range=float(contrast["min_range"]),
            sharpen_sigma=float(enh["sharpen"]["sigma"]),
            sharpen_amount=float(enh["sharpen"]["amount"]),
            bw_block_size=int(enh["blackwhite"]["block_size"]),
            bw_offset=float(enh["blackwhite"]["offset"]),
        ),
        output=OutputConfig(
            jpeg_quality=int(raw["output"]["jpeg_quality"]),
        ),
    )


def _validate_config(config: ScannerSettings) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    # Acceptance gate
    if not 0.0 <= config.acceptance.min_confidence <= 1.0:
        raise ValueError("min_confidence must be in [0, 1]")

    # Detector
    det = config.detector
    if det.working_max_dimension < 64:
        raise ValueError("working_max_dimension must be at least 64")

    for name in ("blur_kernel", "close_kernel"):
        value = getattr(det, name)
        if value < 1 or value % 2 == 0:
            raise ValueError(f"{name} must be a positive odd number, got {value}")

    if not 0 <= det.canny_low < det.canny_high:
        raise ValueError(
            f"canny_low ({det.canny_low}) must be less than canny_high ({det.canny_high})"
        )

    if not 0.0 < det.min_area_ratio < det.full_area_ratio <= 1.0:
        raise ValueError("Area ratios must satisfy 0 < min_area_ratio < full_area_ratio <= 1")

    if det.max_contours < 1:
        raise ValueError("max_contours must be at least 1")

    if not det.approx_epsilons or any(e <= 0 for e in det.approx_epsilons):
        raise ValueError("approx_epsilons must be a non-empty list of positive values")

    if not 0.0 < det.min_fit <= 1.0:
        raise ValueError(f"min_fit must be in (0, 1], got {det.min_fit}")

    if not 0.0 <= det.fallback_confidence < config.acceptance.min_confidence:
        raise ValueError("fallback_confidence must be below the acceptance threshold")

    if not 0.0 <= det.border_penalty <= 1.0:
        raise ValueError("border_penalty must be in [0, 1]")

    weights = [det.weight_fit, det.weight_angle, det.weight_area, det.weight_contrast]
    if any(w < 0 for w in weights) or sum(weights) <= 0:
        raise ValueError("Score weights must be non-negative with a positive sum")

    if det.max_angle_deviation <= 0 or det.contrast_norm <= 0:
        raise ValueError("max_angle_deviation and contrast_norm must be positive")

    # Rectifier
    if config.rectifier.min_area_px <= 0 or config.rectifier.min_edge_px <= 0:
        raise ValueError("Rectifier minimum area and edge must be positive")

    if config.rectifier.interpolation not in INTERPOLATION_FLAGS:
        raise ValueError(
            f"Invalid interpolation: {config.rectifier.interpolation}. "
            f"Must be one of {list(INTERPOLATION_FLAGS)}"
        )

    # Enhancement
    enh = config.enhancement
    if enh.shadow_min_kernel < 3 or enh.shadow_text_kernel < 1:
        raise ValueError("Shadow kernels must be positive (min_kernel at least 3)")

    if enh.shadow_max_gain < 1.0:
        raise ValueError("shadow max_gain must be at least 1.0")

    if not 0.0 <= enh.contrast_low_percentile < enh.contrast_high_percentile <= 100.0:
        raise ValueError("Contrast percentiles must satisfy 0 <= low < high <= 100")

    if not 0.0 <= enh.contrast_blend <= 1.0:
        raise ValueError("contrast blend must be in [0, 1]")

    if enh.sharpen_sigma <= 0 or enh.sharpen_amount < 0:
        raise ValueError("sharpen sigma must be positive and amount non-negative")

    if enh.bw_block_size < 3 or enh.bw_block_size % 2 == 0:
        raise ValueError(
            f"blackwhite block_size must be an odd number >= 3, got {enh.bw_block_size}"
        )

    # Output
    if not 1 <= config.output.jpeg_quality <= 100:
        raise ValueError("jpeg_quality must be in [1, 100]")

    logger.debug("Configuration validation passed")
