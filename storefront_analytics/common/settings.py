"""
Settings Module
===============

Configuration loading and logging setup shared by the API, the CLI
runner and the analytics components.

Usage:
    from storefront_analytics.common import load_settings, setup_logging

    settings = load_settings("config/settings.yaml")
    setup_logging(settings['logging']['level'])
"""

import copy
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

CONFIG_ENV_VAR = "STOREFRONT_ANALYTICS_CONFIG"
DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | <cyan>{message}</cyan>"
)

DEFAULT_SETTINGS: Dict[str, Any] = {
    'logging': {
        'level': 'INFO',
        'format': LOG_FORMAT,
    },
    'data': {
        'date_formats': ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"],
        'min_data_points': 2,
        'delivered_status': 'delivered',
    },
    'forecast': {
        'horizon': 7,
        'period': 'daily',
        'pattern_window': 14,
        'decimals': 0,
        'fill_missing_periods': True,
    },
    'api': {
        'cors_origins': ["http://localhost:3000", "http://localhost:5173"],
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def resolve_config_path(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path first, then the environment variable, then the default."""
    if config_path:
        return Path(config_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load settings from YAML, layered over the built-in defaults.

    Args:
        config_path: Path to a YAML configuration file

    Returns:
        Settings dictionary with every section present

    Raises:
        ValueError: If the file does not contain a mapping
    """
    path = resolve_config_path(config_path)

    if not path.exists():
        logger.debug(f"No configuration file at {path}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    logger.info(f"Loaded configuration from {path}")
    return _deep_merge(DEFAULT_SETTINGS, loaded)


def cors_origins(settings: Dict[str, Any]) -> list:
    """Allowed CORS origins; the CORS_ORIGINS variable wins over the file."""
    env_value = os.getenv("CORS_ORIGINS")
    if env_value:
        return [origin.strip() for origin in env_value.split(",") if origin.strip()]
    return list(settings.get('api', {}).get('cors_origins', []))


def setup_logging(log_level: str = "INFO", fmt: str = LOG_FORMAT) -> None:
    """Configure logging."""
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=fmt)
