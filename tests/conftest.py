"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules. Test images are synthetic, drawn with OpenCV.
"""

import cv2
import numpy as np
import pytest

from docscan.common.types import CropBounds, ImageSize
from docscan.pipeline.types import ScannerSettings

BACKGROUND_GRAY = 128


def rotated_rectangle(center, width, height, angle_deg):
    """Corners [TL, TR, BR, BL] of a width x height rectangle rotated about center."""
    half = np.array(
        [
            [-width / 2, -height / 2],
            [width / 2, -height / 2],
            [width / 2, height / 2],
            [-width / 2, height / 2],
        ]
    )
    theta = np.deg2rad(angle_deg)
    rotation = np.array(
        [[np.cos(theta), -np.sin(theta)], [np.sin(theta), np.cos(theta)]]
    )
    return half @ rotation.T + np.asarray(center, dtype=np.float64)


def draw_document(image_size, doc_size, angle_deg, background=BACKGROUND_GRAY):
    """White document polygon on a uniform gray background."""
    width, height = image_size
    image = np.full((height, width, 3), background, dtype=np.uint8)
    corners = rotated_rectangle((width / 2, height / 2), doc_size[0], doc_size[1], angle_deg)
    cv2.fillPoly(image, [np.round(corners).astype(np.int32)], (255, 255, 255))
    return image, corners


@pytest.fixture
def document_image():
    """
    1200x1600 gray image holding an 800x1100 white document rotated 8 degrees.

    Returns:
        (image, corners) with corners ordered [TL, TR, BR, BL] in pixels.
    """
    return draw_document((1200, 1600), (800, 1100), 8.0)


@pytest.fixture
def small_document_image():
    """640x480 image with a 400x300 document rotated 5 degrees (no downscaling)."""
    return draw_document((640, 480), (400, 300), 5.0)


@pytest.fixture
def blank_image():
    """Uniform gray image without any document."""
    return np.full((600, 800, 3), BACKGROUND_GRAY, dtype=np.uint8)


@pytest.fixture
def text_page():
    """
    White 300x400 page with thin dark text-like bars (rows 40-44, 70-74, ...).
    """
    page = np.full((400, 300, 3), 245, dtype=np.uint8)
    for row in range(40, 360, 30):
        cv2.rectangle(page, (30, row), (270, row + 4), (30, 30, 30), -1)
    return page


@pytest.fixture
def settings():
    """Default scanner settings without reading config.yaml."""
    return ScannerSettings()


@pytest.fixture
def inner_bounds():
    """Axis-aligned bounds well inside an 800x600 image."""
    return CropBounds.from_numpy([[100, 80], [700, 80], [700, 520], [100, 520]])


@pytest.fixture
def image_size_800x600():
    return ImageSize(width=800, height=600)
