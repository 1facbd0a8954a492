"""Configuration: YAML config file merged over built-in defaults."""

import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "quiz": {
        "minimum_score_percentage": 70,
        "default_time_limit": 30,
        "tick_interval": 1.0,
        "seed": None,
    },
    "api": {
        "base_url": "http://localhost:5000",
        "timeout": 15,
        "token": None,
    },
    "session": {
        "db_path": "quiz_sessions.db",
        "max_age_seconds": 86400,
    },
    "user": {
        "id": None,
        "username": None,
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str] = None) -> dict:
    """Load a YAML config; a missing or empty file yields the defaults."""
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path)
    if not config_path.exists():
        logger.info(f"No config at {config_path}; using defaults.")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path) as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return _merge(DEFAULT_CONFIG, loaded)
