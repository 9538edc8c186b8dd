"""
Unit tests for the individual enhancement stages.
"""

import cv2
import numpy as np
import pytest

from docscan.enhancement.operations import (
    apply_filter,
    contrast_lut,
    enhance_contrast,
    estimate_background,
    remove_shadows,
    sharpen,
)
from docscan.enhancement.types import EnhancementConfig, FilterMode


@pytest.fixture
def config():
    return EnhancementConfig()


@pytest.fixture
def shadowed_page():
    """Page whose left half lies in a shadow (brightness 150 vs 240)."""
    page = np.full((300, 400, 3), 240, dtype=np.uint8)
    page[:, :200] = 150
    for row in range(30, 280, 25):
        cv2.line(page, (20, row), (380, row), (20, 20, 20), 2)
    return page


class TestRemoveShadows:
    def test_shadow_lifted(self, shadowed_page, config):
        out = remove_shadows(shadowed_page, config)

        # Paper far from the shadow edge, between text lines
        shadow_before = float(shadowed_page[40:50, 20:150].mean())
        shadow_after = float(out[40:50, 20:150].mean())
        lit_after = float(out[40:50, 260:380].mean())

        assert shadow_after > shadow_before + 40
        assert abs(lit_after - 240) <= 3

    def test_gain_is_capped(self, shadowed_page, config):
        out = remove_shadows(shadowed_page, config)
        assert out[40:50, 20:150].max() <= int(150 * config.shadow_max_gain) + 1

    def test_bright_page_not_blown_out(self, config):
        page = np.full((200, 200, 3), 230, dtype=np.uint8)
        np.testing.assert_array_equal(remove_shadows(page, config), page)

    def test_highlights_at_shadow_edge_not_clipped(self, config):
        page = np.full((300, 400, 3), 250, dtype=np.uint8)
        page[:, :200] = 170

        out = remove_shadows(page, config)

        assert (out == 255).sum() == 0
        # Bright side, including the columns next to the shadow, is unchanged
        np.testing.assert_array_equal(out[:, 200:], page[:, 200:])
        assert out[:, :150].min() > 200

    def test_dark_image_untouched(self, config):
        dark = np.full((100, 100, 3), 10, dtype=np.uint8)
        np.testing.assert_array_equal(remove_shadows(dark, config), dark)

    def test_background_ignores_text(self, text_page, config):
        gray = cv2.cvtColor(text_page, cv2.COLOR_BGR2GRAY)
        background = estimate_background(gray, config)
        assert background.dtype == np.float32
        assert background[100:300, 100:200].min() > 200

    def test_input_not_modified(self, shadowed_page, config):
        before = shadowed_page.copy()
        remove_shadows(shadowed_page, config)
        np.testing.assert_array_equal(shadowed_page, before)


class TestEnhanceContrast:
    def test_stretches_narrow_histogram(self, config):
        ramp = np.tile(np.linspace(100, 150, 256).astype(np.uint8), (50, 1))
        image = cv2.cvtColor(ramp, cv2.COLOR_GRAY2BGR)

        out = enhance_contrast(image, config)
        assert int(out.max()) - int(out.min()) > 50 + 60

    def test_midtones_not_crushed(self, config):
        lut = contrast_lut(np.arange(256, dtype=np.uint8).reshape(16, 16), config)
        # Blending keeps part of the original ramp, so mid-grey stays mid-grey
        assert 100 < int(lut[128]) < 160
        assert np.all(np.diff(lut.astype(int)) >= 0)

    def test_blank_page_unchanged(self, config):
        blank = np.full((50, 50, 3), 200, dtype=np.uint8)
        np.testing.assert_array_equal(enhance_contrast(blank, config), blank)

    def test_no_blend_is_full_stretch(self):
        config = EnhancementConfig(contrast_blend=1.0, contrast_low_percentile=0.0,
                                   contrast_high_percentile=100.0)
        ramp = np.tile(np.arange(100, 151, dtype=np.uint8), (10, 1))
        out = enhance_contrast(cv2.cvtColor(ramp, cv2.COLOR_GRAY2BGR), config)
        assert out.min() == 0
        assert out.max() == 255


class TestSharpen:
    def test_uniform_unchanged(self, config):
        flat = np.full((40, 40, 3), 128, dtype=np.uint8)
        np.testing.assert_array_equal(sharpen(flat, config), flat)

    def test_edge_overshoot(self, config):
        step = np.full((40, 40, 3), 100, dtype=np.uint8)
        step[:, 20:] = 150
        out = sharpen(step, config)

        assert out[:, 20:].max() > 150
        assert out[:, :20].min() < 100

    def test_zero_amount_is_identity(self):
        step = np.full((40, 40, 3), 100, dtype=np.uint8)
        step[:, 20:] = 150
        out = sharpen(step, EnhancementConfig(sharpen_amount=0.0))
        np.testing.assert_array_equal(out, step)


class TestApplyFilter:
    def test_color_is_copy(self, text_page, config):
        out = apply_filter(text_page, FilterMode.COLOR, config)
        np.testing.assert_array_equal(out, text_page)
        assert out is not text_page

    def test_grayscale_three_equal_channels(self, config):
        image = np.zeros((10, 10, 3), dtype=np.uint8)
        image[..., 2] = 255  # red
        out = apply_filter(image, FilterMode.GRAYSCALE, config)

        assert out.shape == (10, 10, 3)
        np.testing.assert_array_equal(out[..., 0], out[..., 1])
        np.testing.assert_array_equal(out[..., 1], out[..., 2])
        assert abs(int(out[0, 0, 0]) - round(0.299 * 255)) <= 1

    def test_blackwhite_is_two_tone(self, text_page, config):
        out = apply_filter(text_page, FilterMode.BLACKWHITE, config)
        assert set(np.unique(out).tolist()) <= {0, 255}
        assert out[42, 150, 0] == 0  # text bar
        assert out[60, 150, 0] == 255  # paper

    def test_blackwhite_deterministic(self, text_page, config):
        first = apply_filter(text_page, FilterMode.BLACKWHITE, config)
        second = apply_filter(text_page, FilterMode.BLACKWHITE, config)
        np.testing.assert_array_equal(first, second)

    def test_accepts_string_mode(self, text_page, config):
        out = apply_filter(text_page, "grayscale", config)
        assert out.shape == text_page.shape

    def test_unknown_mode(self, text_page, config):
        with pytest.raises(ValueError):
            apply_filter(text_page, "sepia", config)
