"""Local identity store configuration models for the quire package."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class IdentityConfig(BaseModel):
    """Configuration for the device-local participant identity store.

    Parameters
    ----------
    backend : str
        Store implementation ("filesystem" or "memory").
    directory : Path
        Directory for the filesystem store.
    namespace : str
        Name of the local store instance.

    Examples
    --------
    >>> config = IdentityConfig()
    >>> config.namespace
    'currentParticipantId'
    """

    backend: Literal["filesystem", "memory"] = Field(
        default="filesystem", description="Identity store backend"
    )
    directory: Path = Field(
        default=Path(".quire"), description="Filesystem store directory"
    )
    namespace: str = Field(
        default="currentParticipantId", description="Local store instance name"
    )
