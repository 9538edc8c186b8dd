"""
Unit tests for the scanner configuration loader.
"""

from pathlib import Path

import pytest
import yaml

from docscan.pipeline.config_loader import DEFAULT_CONFIG_PATH, load_config
from docscan.pipeline.types import ScannerSettings


@pytest.fixture
def raw_config():
    with open(DEFAULT_CONFIG_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _write(tmp_path: Path, raw: dict) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_default_config_loads(self):
        settings = load_config()
        assert settings.acceptance.min_confidence == pytest.approx(0.35)
        assert settings.detector.min_area_ratio == pytest.approx(0.15)
        assert settings.output.jpeg_quality == 95

    def test_default_file_matches_dataclass_defaults(self):
        """config.yaml and the code defaults describe the same scanner."""
        assert load_config() == ScannerSettings()

    def test_custom_path(self, tmp_path, raw_config):
        raw_config["acceptance"]["min_confidence"] = 0.5
        settings = load_config(_write(tmp_path, raw_config))
        assert settings.acceptance.min_confidence == pytest.approx(0.5)

    def test_string_path(self, tmp_path, raw_config):
        settings = load_config(str(_write(tmp_path, raw_config)))
        assert settings.rectifier.interpolation == "linear"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "missing.yaml")

    def test_missing_section(self, tmp_path, raw_config):
        del raw_config["enhancement"]
        with pytest.raises(ValueError, match="Invalid configuration file"):
            load_config(_write(tmp_path, raw_config))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidation:
    @pytest.mark.parametrize(
        "section, key, value, message",
        [
            (("acceptance",), "min_confidence", 1.5, "min_confidence"),
            (("detector",), "blur_kernel", 4, "blur_kernel"),
            (("detector",), "canny_low", 200, "canny_low"),
            (("detector",), "min_area_ratio", 0.8, "Area ratios"),
            (("detector",), "fallback_confidence", 0.4, "fallback_confidence"),
            (("detector",), "approx_epsilons", [], "approx_epsilons"),
            (("detector",), "min_fit", 1.5, "min_fit"),
            (("rectifier",), "interpolation", "nearest", "Invalid interpolation"),
            (("enhancement", "shadow"), "max_gain", 0.5, "max_gain"),
            (("enhancement", "contrast"), "low_percentile", 99.5, "percentiles"),
            (("enhancement", "blackwhite"), "block_size", 30, "block_size"),
            (("output",), "jpeg_quality", 0, "jpeg_quality"),
        ],
    )
    def test_invalid_values(self, tmp_path, raw_config, section, key, value, message):
        target = raw_config
        for name in section:
            target = target[name]
        target[key] = value

        with pytest.raises(ValueError, match=message):
            load_config(_write(tmp_path, raw_config))

    def test_negative_weight(self, tmp_path, raw_config):
        raw_config["detector"]["weights"]["fit"] = -1.0
        with pytest.raises(ValueError, match="weights"):
            load_config(_write(tmp_path, raw_config))
