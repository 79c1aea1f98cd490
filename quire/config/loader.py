"""Configuration loading from YAML files and the environment.

Precedence (lowest to highest): defaults, YAML file, ``QUIRE_`` environment
variables, keyword overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from quire.config.config import QuireConfig
from quire.config.defaults import get_default_config
from quire.config.env import load_from_env


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration dictionary.
    override : dict[str, Any]
        Values taking precedence over ``base``.

    Returns
    -------
    dict[str, Any]
        Merged configuration dictionary.

    Examples
    --------
    >>> merge_configs({"backend": {"bucket": "a", "table": "t"}}, {"backend": {"bucket": "b"}})
    {'backend': {'bucket': 'b', 'table': 't'}}
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_file(path: Path | str) -> dict[str, Any]:
    """Load a YAML mapping from disk.

    Parameters
    ----------
    path : Path | str
        Path to YAML file.

    Returns
    -------
    dict[str, Any]
        Parsed content; empty files yield an empty dict.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist.
    yaml.YAMLError
        If the YAML is malformed or is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise yaml.YAMLError(f"Expected a mapping at the top of {path}")
    return content


def _nest_overrides(overrides: dict[str, Any]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in overrides.items():
        *sections, field = key.split("__")
        target = nested
        for section in sections:
            target = target.setdefault(section, {})
        target[field] = value
    return nested


def load_config(
    config_path: Path | str | None = None,
    use_env: bool = True,
    **overrides: Any,
) -> QuireConfig:
    """Load configuration from defaults, YAML, environment and overrides.

    Parameters
    ----------
    config_path : Path | str | None
        YAML config file. If None, only defaults and overrides apply.
    use_env : bool
        Whether to apply ``QUIRE_`` environment variables.
    **overrides : Any
        Direct overrides using ``section__field`` keys.

    Returns
    -------
    QuireConfig
        Loaded and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config_path is given but doesn't exist.
    yaml.YAMLError
        If the YAML file is malformed.
    ValidationError
        If the configuration is invalid.

    Examples
    --------
    >>> config = load_config(use_env=False, throttle__window_seconds=1.5)
    >>> config.throttle.window_seconds
    1.5
    """
    merged: dict[str, Any] = get_default_config().model_dump()

    if config_path is not None:
        merged = merge_configs(merged, load_yaml_file(config_path))

    if use_env:
        merged = merge_configs(merged, load_from_env())

    if overrides:
        merged = merge_configs(merged, _nest_overrides(overrides))

    return QuireConfig(**merged)
