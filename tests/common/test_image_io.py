"""
Unit tests for image decoding and encoding.
"""

import base64

import cv2
import numpy as np
import pytest
from PIL import Image

from docscan.common.image_io import encode_image, image_to_pdf, load_image
from docscan.exceptions import InvalidImage


@pytest.fixture
def color_image():
    image = np.zeros((40, 60, 3), dtype=np.uint8)
    image[:, :20] = (255, 0, 0)  # blue in BGR
    image[:, 20:40] = (0, 255, 0)
    image[:, 40:] = (0, 0, 255)
    return image


class TestLoadImage:
    def test_array_is_copied(self, color_image):
        loaded = load_image(color_image)
        np.testing.assert_array_equal(loaded, color_image)
        assert loaded is not color_image

        loaded[0, 0] = (1, 2, 3)
        assert tuple(color_image[0, 0]) == (255, 0, 0)

    def test_grayscale_becomes_bgr(self):
        gray = np.full((10, 12), 77, dtype=np.uint8)
        loaded = load_image(gray)
        assert loaded.shape == (10, 12, 3)
        assert (loaded == 77).all()

    def test_bgra_drops_alpha(self):
        bgra = np.zeros((8, 8, 4), dtype=np.uint8)
        bgra[..., 2] = 200
        loaded = load_image(bgra)
        assert loaded.shape == (8, 8, 3)
        assert (loaded[..., 2] == 200).all()

    def test_pil_image_converted_to_bgr(self):
        pil = Image.new("RGB", (5, 4), (255, 0, 0))
        loaded = load_image(pil)
        assert loaded.shape == (4, 5, 3)
        assert tuple(loaded[0, 0]) == (0, 0, 255)

    def test_encoded_bytes(self, color_image):
        ok, png = cv2.imencode(".png", color_image)
        assert ok
        np.testing.assert_array_equal(load_image(png.tobytes()), color_image)

    def test_data_url(self, color_image):
        _, png = cv2.imencode(".png", color_image)
        url = "data:image/png;base64," + base64.b64encode(png.tobytes()).decode("ascii")
        np.testing.assert_array_equal(load_image(url), color_image)

    def test_path(self, tmp_path, color_image):
        path = tmp_path / "page.png"
        cv2.imwrite(str(path), color_image)
        np.testing.assert_array_equal(load_image(path), color_image)
        np.testing.assert_array_equal(load_image(str(path)), color_image)

    def test_missing_path(self, tmp_path):
        with pytest.raises(InvalidImage, match="not found"):
            load_image(tmp_path / "missing.jpg")

    def test_corrupted_bytes(self):
        with pytest.raises(InvalidImage, match="corrupted"):
            load_image(b"definitely not an image")

    def test_empty_bytes(self):
        with pytest.raises(InvalidImage, match="empty"):
            load_image(b"")

    def test_non_base64_data_url(self):
        with pytest.raises(InvalidImage, match="base64"):
            load_image("data:image/png,rawdata")

    def test_float_array_rejected(self):
        with pytest.raises(InvalidImage, match="uint8"):
            load_image(np.zeros((10, 10, 3), dtype=np.float64))

    def test_empty_array_rejected(self):
        with pytest.raises(InvalidImage):
            load_image(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_unsupported_type(self):
        with pytest.raises(InvalidImage, match="Unsupported image source type"):
            load_image(42)

    def test_invalid_image_is_value_error(self):
        with pytest.raises(ValueError):
            load_image(b"xx")


class TestEncodeImage:
    def test_png_is_lossless(self, color_image):
        data = encode_image(color_image, "png")
        assert data.startswith(b"\x89PNG")
        decoded = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
        np.testing.assert_array_equal(decoded, color_image)

    def test_jpeg_header(self, color_image):
        data = encode_image(color_image, "jpeg", quality=95)
        assert data[:2] == b"\xff\xd8"

    def test_higher_quality_is_larger(self):
        rng = np.random.default_rng(0)
        noisy = rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8)
        assert len(encode_image(noisy, "jpeg", 95)) > len(encode_image(noisy, "jpeg", 30))

    def test_unknown_format(self, color_image):
        with pytest.raises(ValueError, match="Unsupported output format"):
            encode_image(color_image, "gif")


class TestImageToPdf:
    def test_renders_single_page_pdf(self, color_image):
        pdf = image_to_pdf(color_image, dpi=72)
        assert pdf.startswith(b"%PDF")
        assert b"/Count 1" in pdf

    def test_grayscale_input(self):
        gray = np.full((100, 50), 200, dtype=np.uint8)
        assert image_to_pdf(gray, dpi=72).startswith(b"%PDF")
