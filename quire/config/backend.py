"""Backend configuration models for the quire package."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class BackendConfig(BaseModel):
    """Configuration for the remote backend binding.

    Parameters
    ----------
    backend : str
        Binding to use ("memory" or "supabase").
    url : str | None
        Supabase project URL.
    anon_key : str | None
        Supabase public anon key.
    bucket : str
        Storage bucket holding study blobs.
    table : str
        Registry table holding one row per study.
    timeout : float
        Per-request timeout in seconds.

    Examples
    --------
    >>> config = BackendConfig()
    >>> config.backend
    'memory'
    >>> config.bucket
    'revisit'
    """

    backend: Literal["memory", "supabase"] = Field(
        default="memory", description="Backend binding"
    )
    url: str | None = Field(default=None, description="Supabase project URL")
    anon_key: str | None = Field(default=None, description="Supabase anon key")
    bucket: str = Field(default="revisit", description="Storage bucket")
    table: str = Field(default="revisit", description="Study registry table")
    timeout: float = Field(default=10.0, gt=0, description="Request timeout")
