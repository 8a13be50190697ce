"""
Settings Module for the tile cover solver

Provides persistent storage for run preferences using JSON.
Settings are stored in config.json in the working directory unless
another path is given.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

# Settings file location (working directory)
SETTINGS_FILE = Path("config.json")

# Default settings
DEFAULT_SETTINGS: Dict[str, Any] = {
    "tile_size": 2,
    "strategy_name": "weighted",
    "strategy_params": {},
    "start_rule": "topleft",
    "custom_start_tile": None,
    "max_angle_diff": None,  # None = unbounded
    "auto_select": False,
    "auto_select_angle": False,
    "angle_group_threshold": 45.0,
}

PathLike = Union[str, Path]


def load_settings(path: Optional[PathLike] = None) -> Dict[str, Any]:
    """
    Load settings from a JSON file.

    Args:
        path: Settings file (default: config.json)

    Returns:
        Settings dictionary. Returns defaults if file missing or invalid.
    """
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    if not settings_file.exists():
        logger.debug(f"Settings file {settings_file} not found, using defaults")
        return _defaults()

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise ValueError(f"expected a JSON object, got {type(settings).__name__}")

        # Merge with defaults to handle missing keys
        result = _defaults()
        result.update(settings)
        logger.debug(f"Settings loaded: {result}")
        return result

    except (ValueError, OSError) as e:
        logger.warning(f"Failed to load settings: {e}, using defaults")
        return _defaults()


def save_settings(settings: Dict[str, Any], path: Optional[PathLike] = None) -> None:
    """
    Save settings to a JSON file.

    Args:
        settings: Settings dictionary to save
        path: Settings file (default: config.json)
    """
    settings_file = Path(path) if path is not None else SETTINGS_FILE
    try:
        with open(settings_file, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.debug(f"Settings saved: {settings}")
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")


def _defaults() -> Dict[str, Any]:
    result = DEFAULT_SETTINGS.copy()
    result["strategy_params"] = {}
    return result
