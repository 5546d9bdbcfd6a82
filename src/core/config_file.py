"""YAML configuration file loading.

This module reads optional YAML config files for the relay service.
It validates the top-level shape; field values are parsed by ``core.config``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

import yaml

from core.errors import ConfigurationError


def load_config_file(config_path: str | Path, allowed_keys: tuple[str, ...]) -> dict[str, object]:
    """Load and shape-check a YAML config file.

    Args:
        config_path: File path to the YAML config.
        allowed_keys: Field names accepted at the top level.

    Returns:
        Mapping of config field name to raw YAML value.

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed,
            or contains unknown keys.
    """
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.is_file():
        raise ConfigurationError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise ConfigurationError(
            f"Failed to read config file at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise ConfigurationError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    mapping = _expect_mapping(payload, config_file)
    _validate_keys(mapping, allowed_keys, config_file)
    return dict(mapping)


def _expect_mapping(value: object, config_file: Path) -> Mapping[str, object]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"Invalid config file {config_file}: expected a mapping at top level, "
            f"got {type(value).__name__}."
        )
    for key in value:
        if not isinstance(key, str):
            raise ConfigurationError(
                f"Invalid config file {config_file}: expected string keys, "
                f"got {type(key).__name__}."
            )
    return cast(Mapping[str, object], value)


def _validate_keys(
    mapping: Mapping[str, object],
    allowed_keys: tuple[str, ...],
    config_file: Path,
) -> None:
    unknown_keys = sorted(set(mapping) - set(allowed_keys))
    if unknown_keys:
        raise ConfigurationError(
            f"Config file {config_file} contains unknown fields: {', '.join(unknown_keys)}."
        )
