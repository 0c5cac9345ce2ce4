"""
===============================================================================
PANOVIEW - Configuration Test Suite
===============================================================================
Tests for loading and validating the YAML viewport configuration.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
import yaml

from panoview.config import DEFAULT_CONFIG_PATH, ViewportConfig, load_config
from panoview.preprocessing.area_set import AreaSet


@pytest.fixture
def config_file(tmp_path):
    """Write a small viewport configuration and return its path."""
    path = tmp_path / "viewport.yaml"
    path.write_text(yaml.safe_dump({
        "viewport": {
            "nb_h_pixels": 8,
            "nb_v_pixels": 4,
            "h_fov_deg": 90.0,
            "v_fov_deg": 60.0,
        }
    }))
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, config_file):
        config = load_config(config_file)
        assert config.nb_h_pixels == 8
        assert config.nb_v_pixels == 4
        assert config.h_fov == pytest.approx(np.pi / 2)
        assert config.v_fov == pytest.approx(np.pi / 3)

    def test_load_from_string_path(self, config_file):
        assert load_config(str(config_file)) == load_config(config_file)

    def test_default_file(self):
        config = load_config()
        assert DEFAULT_CONFIG_PATH.exists()
        assert config.nb_h_pixels > 0
        assert 0.0 < config.h_fov <= np.pi

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ViewportConfig()

    def test_partial_section_keeps_defaults(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text("viewport:\n  nb_v_pixels: 8\n")
        config = load_config(path)
        assert config.nb_v_pixels == 8
        assert config.nb_h_pixels == ViewportConfig().nb_h_pixels

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "typo.yaml"
        path.write_text("viewport:\n  nb_h_pixel: 8\n")
        with pytest.raises(ValueError, match="nb_h_pixel"):
            load_config(path)

    def test_area_set_from_loaded_config(self, config_file):
        area_set = AreaSet.from_config(load_config(config_file))
        assert len(area_set) == 24


class TestValidation:
    """Tests for ViewportConfig value checks."""

    @pytest.mark.parametrize("field,value", [
        ("nb_h_pixels", 0),
        ("nb_h_pixels", -4),
        ("nb_v_pixels", 2.5),
        ("nb_v_pixels", True),
        ("h_fov_deg", 0.0),
        ("h_fov_deg", 200.0),
        ("v_fov_deg", -10.0),
        ("v_fov_deg", "wide"),
    ])
    def test_rejects(self, field, value):
        with pytest.raises(ValueError):
            ViewportConfig(**{field: value})

    def test_accepts_straight_angle(self):
        assert ViewportConfig(h_fov_deg=180).h_fov == pytest.approx(np.pi)

    def test_flat_mapping(self):
        """A mapping without the viewport section is read as the section itself."""
        config = ViewportConfig.from_dict({"nb_h_pixels": 12})
        assert config.nb_h_pixels == 12
