"""Read-only institution settings (institution name, coordinators, ...) loaded from YAML.

These values feed the external certificate renderer. The engine itself never
branches on them.
"""
import logging
from functools import lru_cache
from pathlib import Path

import yaml

from estagiopro.config import get_settings

logger = logging.getLogger(__name__)


def load_institution_settings(path: Path) -> dict[str, str]:
    """Load a flat key-value mapping from a YAML file.

    A missing file yields an empty mapping. Nested values are rejected so the
    contract stays a simple key-value one.
    """
    if not path.exists():
        logger.warning(f"Institution settings file not found: {path}")
        return {}

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Institution settings must be a mapping: {path}")

    settings = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ValueError(f"Institution setting {key!r} must be a scalar value")
        settings[str(key)] = "" if value is None else str(value)

    logger.info(f"Loaded {len(settings)} institution settings from {path}")
    return settings


@lru_cache
def get_institution_settings() -> dict[str, str]:
    """Cached settings from the configured file."""
    return load_institution_settings(get_settings().institution_config_path)


def get_institution_setting(key: str, default: str | None = None) -> str | None:
    return get_institution_settings().get(key, default)
