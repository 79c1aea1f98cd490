"""Environment variable overrides for configuration.

Variables named ``QUIRE_<SECTION>__<FIELD>`` override the matching config
field, e.g. ``QUIRE_BACKEND__URL`` or ``QUIRE_THROTTLE__WINDOW_SECONDS``.
Values are passed to pydantic as typed scalars where they look like one.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

ENV_PREFIX = "QUIRE_"

_TRUE = frozenset({"true", "yes", "on"})
_FALSE = frozenset({"false", "no", "off"})


def parse_env_value(value: str) -> bool | int | float | str:
    """Convert a raw environment string to a scalar.

    Parameters
    ----------
    value : str
        Raw environment variable value.

    Returns
    -------
    bool | int | float | str
        Parsed value; strings that are not booleans or numbers are returned
        unchanged.

    Examples
    --------
    >>> parse_env_value("on")
    True
    >>> parse_env_value("0.5")
    0.5
    >>> parse_env_value("https://xyz.supabase.co")
    'https://xyz.supabase.co'
    """
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value


def env_to_nested_dict(
    env_vars: Mapping[str, str], prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    """Fold prefixed variables into a nested override dictionary.

    Parameters
    ----------
    env_vars : Mapping[str, str]
        Environment variables.
    prefix : str
        Prefix selecting the variables to use.

    Returns
    -------
    dict[str, Any]
        Nested overrides keyed by lower-case field names.

    Examples
    --------
    >>> env_to_nested_dict({"QUIRE_LOGGING__LEVEL": "DEBUG", "HOME": "/root"})
    {'logging': {'level': 'DEBUG'}}
    """
    overrides: dict[str, Any] = {}
    for name, raw in env_vars.items():
        if not name.startswith(prefix) or len(name) == len(prefix):
            continue
        *sections, field = name[len(prefix) :].lower().split("__")
        target = overrides
        for section in sections:
            target = target.setdefault(section, {})
        target[field] = parse_env_value(raw)
    return overrides


def load_from_env(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Read configuration overrides from the process environment.

    Parameters
    ----------
    prefix : str
        Environment variable prefix.

    Returns
    -------
    dict[str, Any]
        Nested overrides.
    """
    return env_to_nested_dict(os.environ, prefix)
