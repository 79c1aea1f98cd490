"""Configuration system for the quire package.

Examples
--------
>>> from quire.config import QuireConfig, load_config
>>> config = load_config(use_env=False, backend__bucket="pilot")
>>> config.backend.bucket
'pilot'
"""

from __future__ import annotations

from quire.config.backend import BackendConfig
from quire.config.config import QuireConfig
from quire.config.defaults import DEFAULT_CONFIG, get_default_config
from quire.config.env import env_to_nested_dict, load_from_env, parse_env_value
from quire.config.identity import IdentityConfig
from quire.config.loader import load_config, load_yaml_file, merge_configs
from quire.config.logging import LoggingConfig, configure_logging
from quire.config.serialization import config_to_dict, save_yaml, to_yaml
from quire.config.session import AllocationConfig, ThrottleConfig

__all__ = [
    # Main config
    "QuireConfig",
    # Config sections
    "BackendConfig",
    "IdentityConfig",
    "ThrottleConfig",
    "AllocationConfig",
    "LoggingConfig",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    # Loading
    "load_config",
    "load_yaml_file",
    "merge_configs",
    # Environment
    "load_from_env",
    "env_to_nested_dict",
    "parse_env_value",
    # Logging
    "configure_logging",
    # Serialization
    "config_to_dict",
    "to_yaml",
    "save_yaml",
]
