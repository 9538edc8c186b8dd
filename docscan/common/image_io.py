"""
Image decoding and encoding at the library boundary.

Callers hand the core either a decoded raster or an encoded source; the
core decodes it into a 3-channel BGR uint8 array (the OpenCV convention
used by every stage) and encodes the final scan back to bytes.
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image
from pydantic import ValidationError

from docscan.common.imaging import ensure_bgr
from docscan.common.types import ImageBuffer
from docscan.exceptions import EncodingFailed, InvalidImage

logger = logging.getLogger(__name__)

ImageSource = Union[np.ndarray, Image.Image, bytes, bytearray, memoryview, str, Path]

# A4 in PDF points (1/72 inch)
A4_WIDTH_PT = 595.28
A4_HEIGHT_PT = 841.89
PAGE_MARGIN_PT = 36.0

_ENCODE_EXTENSIONS = {"jpeg": ".jpg", "png": ".png"}


def load_image(source: ImageSource) -> np.ndarray:
    """
    Decode any supported image source into a BGR uint8 array.

    Args:
        source: One of
            - numpy array (BGR, BGRA or grayscale, uint8)
            - PIL.Image.Image
            - encoded bytes (PNG, JPEG, ...)
            - a ``data:image/...;base64,`` URL
            - a filesystem path (str or Path)

    Returns:
        A new (H, W, 3) uint8 array; the caller's array is never aliased.

    Raises:
        InvalidImage: If the source cannot be decoded or is empty.
    """
    if isinstance(source, np.ndarray):
        return _from_array(source)

    if isinstance(source, Image.Image):
        try:
            rgb = np.asarray(source.convert("RGB"))
        except (OSError, ValueError) as e:
            raise InvalidImage(f"Could not read PIL image: {e}") from e
        return _from_array(cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))

    if isinstance(source, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(source), origin="<bytes>")

    if isinstance(source, str) and source.startswith("data:"):
        return _decode_bytes(_parse_data_url(source), origin="<data url>")

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise InvalidImage(f"Image file not found: {path}", source=str(path))
        return _decode_bytes(path.read_bytes(), origin=str(path))

    raise InvalidImage(f"Unsupported image source type: {type(source).__name__}")


def _from_array(array: np.ndarray) -> np.ndarray:
    try:
        buffer = ImageBuffer(data=array)
    except ValidationError as e:
        raise InvalidImage(f"Invalid image array: {e.errors()[0]['msg']}") from e

    bgr = ensure_bgr(buffer.data)
    if bgr is array:
        bgr = array.copy()
    return bgr


def _parse_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep or ";base64" not in header:
        raise InvalidImage("Only base64-encoded data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImage(f"Malformed base64 payload in data URL: {e}") from e


def _decode_bytes(data: bytes, origin: str) -> np.ndarray:
    if not data:
        raise InvalidImage("Image data is empty", source=origin)

    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        raise InvalidImage(
            f"Invalid image format or corrupted data: {origin}", source=origin
        )

    logger.debug(f"Decoded {origin} to {image.shape[1]}x{image.shape[0]}")
    return image


def encode_image(image: np.ndarray, fmt: str = "jpeg", quality: int = 95) -> bytes:
    """
    Encode a BGR image to PNG (lossless) or JPEG bytes.

    Raises:
        ValueError: If the format is not supported.
        EncodingFailed: If OpenCV cannot encode the image.
    """
    ext = _ENCODE_EXTENSIONS.get(fmt)
    if ext is None:
        raise ValueError(
            f"Unsupported output format: {fmt}. "
            f"Must be one of {list(_ENCODE_EXTENSIONS)}"
        )

    params = [cv2.IMWRITE_JPEG_QUALITY, int(quality)] if fmt == "jpeg" else []
    try:
        ok, encoded = cv2.imencode(ext, image, params)
    except cv2.error as e:
        raise EncodingFailed(str(e)) from e
    if not ok:
        raise EncodingFailed(f"cv2.imencode returned failure for {fmt}")
    return encoded.tobytes()


def image_to_pdf(image: np.ndarray, dpi: int = 150) -> bytes:
    """
    Render a scan centered on a single A4 page and return PDF bytes.

    The image is scaled to fit inside 0.5 inch margins on a white page.

    Args:
        image: BGR uint8 image (typically ScanResult.processed_image).
        dpi: Raster resolution of the rendered page.

    Returns:
        Bytes of a one-page PDF document.
    """
    scale = dpi / 72.0
    page_w = int(round(A4_WIDTH_PT * scale))
    page_h = int(round(A4_HEIGHT_PT * scale))
    box_w = (A4_WIDTH_PT - 2 * PAGE_MARGIN_PT) * scale
    box_h = (A4_HEIGHT_PT - 2 * PAGE_MARGIN_PT) * scale

    rgb = cv2.cvtColor(ensure_bgr(image), cv2.COLOR_BGR2RGB)
    picture = Image.fromarray(rgb)

    fit = min(box_w / picture.width, box_h / picture.height)
    new_size = (max(1, int(picture.width * fit)), max(1, int(picture.height * fit)))
    picture = picture.resize(new_size, Image.LANCZOS)

    page = Image.new("RGB", (page_w, page_h), "white")
    page.paste(picture, ((page_w - new_size[0]) // 2, (page_h - new_size[1]) // 2))

    out = io.BytesIO()
    page.save(out, format="PDF", resolution=float(dpi))
    logger.info(f"Rendered {new_size[0]}x{new_size[1]} scan onto A4 page at {dpi} dpi")
    return out.getvalue()
