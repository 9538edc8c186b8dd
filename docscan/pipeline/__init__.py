"""
Scan Orchestrator.

Composes detection, rectification and enhancement into a single call.
"""

from docscan.pipeline.config_loader import DEFAULT_CONFIG_PATH, load_config
from docscan.pipeline.processor import (
    DocumentScanner,
    detect_crop_bounds,
    reprocess,
    scan_document,
)
from docscan.pipeline.types import (
    AcceptanceConfig,
    OutputConfig,
    ScanConfiguration,
    ScannerSettings,
    ScanResult,
)

__all__ = [
    "AcceptanceConfig",
    "DEFAULT_CONFIG_PATH",
    "DocumentScanner",
    "OutputConfig",
    "ScanConfiguration",
    "ScanResult",
    "ScannerSettings",
    "detect_crop_bounds",
    "load_config",
    "reprocess",
    "scan_document",
]
