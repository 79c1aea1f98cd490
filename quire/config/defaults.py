"""Default configuration for the quire package."""

from __future__ import annotations

from quire.config.config import QuireConfig

DEFAULT_CONFIG = QuireConfig()
"""Default configuration instance.

Uses the in-process backend, a filesystem identity store under ``.quire`` and
a three second throttle window.
"""


def get_default_config() -> QuireConfig:
    """Get a copy of the default configuration.

    Returns
    -------
    QuireConfig
        A deep copy of the default configuration.

    Examples
    --------
    >>> config = get_default_config()
    >>> config.backend.backend
    'memory'
    >>> config is DEFAULT_CONFIG
    False
    """
    return DEFAULT_CONFIG.model_copy(deep=True)
