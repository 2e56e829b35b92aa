"""
Tournament settings.

Settings live in a YAML file merged over DEFAULT_SETTINGS. The file path
comes from the caller or the PROGRESSION_CONFIG environment variable.
"""
import copy
import logging
import os
from typing import Dict, Optional

import yaml

from .errors import ConfigurationError
from .formats import SUPPORTED_BRACKET_SIZES

CONFIG_ENV_VAR = 'PROGRESSION_CONFIG'

DEFAULT_SETTINGS = {
    'min_group_size': 3,
    'max_group_size': 6,
    'balance_by_seeds': True,
    'group_points_per_win': 2,
    'group_points_per_loss': 0,
    'elimination_points_per_win': 3,
    'elimination_points_per_loss': 0,
    'bracket_size': None,  # None picks the largest bracket the groups can fill
    'third_place': True,
    'lock_timeout_seconds': 10,
    'log_level': 'INFO',
}

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def get_default_settings() -> Dict:
    return copy.deepcopy(DEFAULT_SETTINGS)


def load_settings(path: Optional[str] = None) -> Dict:
    """Load settings from YAML over the defaults; a missing file means defaults."""
    settings = get_default_settings()
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path or not os.path.exists(path):
        return settings

    with open(path, 'r', encoding='utf-8') as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}")

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path} must contain a mapping of settings")

    settings.update(loaded)
    validate_settings(settings)
    return settings


def validate_settings(settings: Dict) -> None:
    for key in ('min_group_size', 'max_group_size'):
        value = settings.get(key)
        if not isinstance(value, int) or value < 2:
            raise ConfigurationError(f"{key} must be an integer of at least 2, got {value!r}")
    if settings['min_group_size'] > settings['max_group_size']:
        raise ConfigurationError("min_group_size cannot be larger than max_group_size")

    for key in ('group_points_per_win', 'group_points_per_loss',
                'elimination_points_per_win', 'elimination_points_per_loss'):
        if not isinstance(settings.get(key), int):
            raise ConfigurationError(f"{key} must be an integer, got {settings.get(key)!r}")

    bracket_size = settings.get('bracket_size')
    if bracket_size is not None and bracket_size not in SUPPORTED_BRACKET_SIZES:
        raise ConfigurationError(
            f"bracket_size must be one of {', '.join(map(str, SUPPORTED_BRACKET_SIZES))}, got {bracket_size!r}"
        )

    if logging.getLevelName(str(settings.get('log_level', '')).upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL):
        raise ConfigurationError(f"Unknown log_level: {settings.get('log_level')!r}")


def configure_logging(level='INFO'):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
