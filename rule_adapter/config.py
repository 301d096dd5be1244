"""Configuration loader for rule storage."""

import re
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError

DEFAULT_TABLE = "casbin_rule"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def load_config(config_path: str) -> dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file is missing, is not valid YAML, is not a
            mapping, or has no database section
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"Configuration must be a dictionary, got {type(config)}")

    if not isinstance(config.get("database"), dict):
        raise ConfigError("Config missing database section")

    return config


def table_name(config: dict[str, Any]) -> str:
    """Rule table name from the database section; must be a bare identifier"""
    name = config["database"].get("table", DEFAULT_TABLE)
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ConfigError(f"Invalid table name: {name!r}")
    return name
