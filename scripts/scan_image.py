"""
Scan a single image from the command line.

Usage:
    # Auto-detect, enhance and write a JPEG next to the input
    python scripts/scan_image.py --input photo.jpg

    # Black & white, capped at 1200px wide, also render a PDF
    python scripts/scan_image.py --input photo.jpg --filter blackwhite \
        --max-width 1200 --output scan.png --pdf scan.pdf

    # Only print the detected corners
    python scripts/scan_image.py --input photo.jpg --detect-only
"""

import argparse
import logging
import sys
from pathlib import Path

from docscan import (
    DocumentScanner,
    FilterMode,
    ScanConfiguration,
    ScanError,
    image_to_pdf,
)
from docscan.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run one image through the document scan pipeline",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--input", type=Path, required=True, help="Input image path")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output image path (.jpg or .png); defaults to <input>_scan.jpg",
    )
    parser.add_argument(
        "--filter",
        choices=[m.value for m in FilterMode],
        default=FilterMode.COLOR.value,
        help="Final filter mode",
    )
    parser.add_argument("--max-width", type=int, default=None, help="Maximum output width")
    parser.add_argument("--no-contrast", action="store_true", help="Skip contrast stage")
    parser.add_argument("--no-sharpen", action="store_true", help="Skip sharpening")
    parser.add_argument("--no-shadows", action="store_true", help="Skip shadow removal")
    parser.add_argument("--no-auto-crop", action="store_true", help="Skip detection")
    parser.add_argument("--pdf", type=Path, default=None, help="Also write an A4 PDF")
    parser.add_argument("--config", type=Path, default=None, help="Scanner config.yaml")
    parser.add_argument(
        "--detect-only", action="store_true", help="Print detected corners and exit"
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    setup_logging(args.log_level)

    scanner = DocumentScanner(config_path=args.config)

    try:
        if args.detect_only:
            detection = scanner.detect(args.input)
            print(f"confidence: {detection.confidence:.3f} (fallback: {detection.is_fallback})")
            for name, point in zip(("TL", "TR", "BR", "BL"), detection.bounds.points):
                print(f"{name}: ({point.x:.1f}, {point.y:.1f})")
            return 0

        output = args.output or args.input.with_name(f"{args.input.stem}_scan.jpg")
        config = ScanConfiguration(
            filter_mode=args.filter,
            enhance_contrast=not args.no_contrast,
            sharpen=not args.no_sharpen,
            remove_shadows=not args.no_shadows,
            auto_crop=not args.no_auto_crop,
            max_width=args.max_width,
            output_format="png" if output.suffix.lower() == ".png" else "jpeg",
        )
        result = scanner.scan(args.input, config)
    except ScanError as e:
        logger.error(f"Scan failed: {e}")
        return 1

    output.write_bytes(result.encoded_image)
    logger.info(f"Wrote {output}")

    if args.pdf is not None:
        args.pdf.write_bytes(image_to_pdf(result.processed_image))
        logger.info(f"Wrote {args.pdf}")

    if result.needs_manual_crop():
        logger.warning(
            f"Low detection confidence ({result.confidence:.2f}); "
            "consider cropping manually"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
