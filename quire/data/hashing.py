"""Content addressing for study configurations.

A configuration is serialized to compact JSON, the same text ``JSON.stringify``
produces for the document, and hashed with SHA-256. The hex digest names the
stored config blob and identifies the configuration version.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from quire.data.models import ConfigVersion


def serialize_config(config: Mapping[str, Any] | BaseModel) -> str:
    """Serialize a study configuration to compact JSON.

    Key order is preserved as given; configurations that differ only in key
    order are different versions.

    Parameters
    ----------
    config : Mapping[str, Any] | BaseModel
        Configuration document. Pydantic models are dumped by alias in JSON
        mode first.

    Returns
    -------
    str
        Compact JSON text.

    Examples
    --------
    >>> serialize_config({"version": 1, "title": "Pilot"})
    '{"version":1,"title":"Pilot"}'
    """
    if isinstance(config, BaseModel):
        document: Any = config.model_dump(mode="json", by_alias=True)
    else:
        document = config
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def hash_text(serialized: str) -> str:
    """Return the SHA-256 hex digest of serialized text.

    Parameters
    ----------
    serialized : str
        Serialized configuration.

    Returns
    -------
    str
        Lower-case hex digest.

    Examples
    --------
    >>> hash_text("{}")
    '44136fa355b3678a1146ad16f7e8649e94fb4fc21fe77e8310c060f61caaff8a'
    """
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def hash_config(config: Mapping[str, Any] | BaseModel) -> ConfigVersion:
    """Compute the version identifier of a study configuration.

    Parameters
    ----------
    config : Mapping[str, Any] | BaseModel
        Configuration document.

    Returns
    -------
    ConfigVersion
        Content-derived version.

    Examples
    --------
    >>> hash_config({"version": 1}) == hash_config({"version": 1})
    True
    >>> hash_config({"version": 1}) == hash_config({"version": 2})
    False
    """
    return ConfigVersion(hash=hash_text(serialize_config(config)))
