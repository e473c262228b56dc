"""
Configuration loading.

Settings come from a YAML file merged over DEFAULT_CONFIG. The file is the
explicit path if given, else $POLARALIGN_CONFIG, else config.yaml in the
working directory.
"""

import copy
import logging
import os

import yaml

from .sky import GeoLocation

logger = logging.getLogger(__name__)

CONFIG_ENV = "POLARALIGN_CONFIG"
DEFAULT_CONFIG_NAME = "config.yaml"
DEFAULT_CONFIG = {
    "observer": {"latitude": 50.1822, "longitude": 19.7925, "elevation": 400},
    "polar_align": {"max_pixel_search_range": 2.0},
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merges two dictionaries."""
    for key, value in override.items():
        if isinstance(value, dict) and key in base and isinstance(base[key], dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def find_config(path=None):
    if path:
        return path
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return env_path
    if os.path.exists(DEFAULT_CONFIG_NAME):
        return DEFAULT_CONFIG_NAME
    return None


def load_config(path=None) -> dict:
    """Loads configuration from a YAML file or returns defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = find_config(path)
    if config_path is None:
        return config
    try:
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Error loading config %s: %s", config_path, e)
        return config
    if not isinstance(loaded, dict):
        logger.warning("Ignoring config %s: not a mapping", config_path)
        return config
    return deep_merge(config, loaded)


def location_from_config(config: dict) -> GeoLocation:
    obs_cfg = config.get("observer", DEFAULT_CONFIG["observer"])
    return GeoLocation(
        latitude=float(obs_cfg["latitude"]),
        longitude=float(obs_cfg["longitude"]),
        elevation=float(obs_cfg.get("elevation", 0.0)),
    )
