"""Configuration serialization to YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from quire.config.config import QuireConfig


def config_to_dict(config: QuireConfig, include_defaults: bool = False) -> dict[str, Any]:
    """Convert a configuration to a plain dictionary.

    Parameters
    ----------
    config : QuireConfig
        Configuration to convert.
    include_defaults : bool
        Whether to keep fields that still hold their default value.

    Returns
    -------
    dict[str, Any]
        JSON-compatible dictionary (paths become strings).

    Examples
    --------
    >>> from quire.config import BackendConfig
    >>> config_to_dict(QuireConfig(backend=BackendConfig(bucket="pilot")))
    {'backend': {'bucket': 'pilot'}}
    """
    return config.model_dump(mode="json", exclude_defaults=not include_defaults)


def to_yaml(config: QuireConfig, include_defaults: bool = False) -> str:
    """Serialize configuration to a YAML string.

    Parameters
    ----------
    config : QuireConfig
        Configuration to serialize.
    include_defaults : bool
        Whether to include fields with default values.

    Returns
    -------
    str
        YAML text.
    """
    return yaml.dump(
        config_to_dict(config, include_defaults=include_defaults),
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        indent=2,
    )


def save_yaml(
    config: QuireConfig, path: Path | str, include_defaults: bool = False
) -> None:
    """Write configuration to a YAML file, creating parent directories.

    Parameters
    ----------
    config : QuireConfig
        Configuration to save.
    path : Path | str
        Destination file.
    include_defaults : bool
        Whether to include fields with default values.

    Raises
    ------
    OSError
        If the file cannot be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(to_yaml(config, include_defaults=include_defaults))
    except OSError as e:
        raise OSError(f"Failed to write YAML file {path}: {e}") from e
