"""
===============================================================================
PANOVIEW - Viewport Configuration
===============================================================================
Session parameters read from a YAML file:

    viewport:
      nb_h_pixels: 32       # cells on the equator ring
      nb_v_pixels: 16       # latitude rings
      h_fov_deg: 110.0      # horizontal field of view
      v_fov_deg: 90.0       # vertical field of view

The default file lives at config/viewport_config.yaml in the project root.
===============================================================================
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml

from panoview.core.constants import DEG2RAD


logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / 'config' / 'viewport_config.yaml'


@dataclass
class ViewportConfig:
    """
    Resolution of the sphere partition and field of view of the display.

    Attributes:
        nb_h_pixels: Number of cells on the equator ring.
        nb_v_pixels: Number of latitude rings.
        h_fov_deg: Horizontal field of view [deg].
        v_fov_deg: Vertical field of view [deg].
    """
    nb_h_pixels: int = 32
    nb_v_pixels: int = 16
    h_fov_deg: float = 110.0
    v_fov_deg: float = 90.0

    def __post_init__(self) -> None:
        for name in ("nb_h_pixels", "nb_v_pixels"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        for name in ("h_fov_deg", "v_fov_deg"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not 0.0 < value <= 180.0:
                raise ValueError(f"{name} must be in (0, 180] degrees, got {value}")

    @property
    def h_fov(self) -> float:
        """Horizontal field of view [rad]."""
        return self.h_fov_deg * DEG2RAD

    @property
    def v_fov(self) -> float:
        """Vertical field of view [rad]."""
        return self.v_fov_deg * DEG2RAD

    @classmethod
    def from_dict(cls, data: dict) -> 'ViewportConfig':
        """
        Build a configuration from the ``viewport`` section of a config dict.

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.
        """
        section = (data.get('viewport', data) if data else None) or {}
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown viewport configuration keys: {sorted(unknown)}")
        return cls(**section)


def load_config(config_path: Optional[Union[str, Path]] = None) -> ViewportConfig:
    """
    Load the viewport configuration from a YAML file.

    Args:
        config_path: Path to YAML config. Defaults to config/viewport_config.yaml

    Returns:
        Parsed ViewportConfig

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a value is invalid.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    logger.info("Loading configuration from: %s", config_path)
    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    config = ViewportConfig.from_dict(data or {})
    logger.info("Viewport: %dx%d cells, FoV %.1fx%.1f deg",
                config.nb_h_pixels, config.nb_v_pixels,
                config.h_fov_deg, config.v_fov_deg)
    return config
