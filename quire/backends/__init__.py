"""Backend bindings for the object store, study registry and auth provider.

Examples
--------
>>> from quire.backends import create_backend
>>> from quire.config import BackendConfig
>>> backend = create_backend(BackendConfig(backend="memory"))
>>> backend.name
'memory'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from quire.backends.base import AuthProvider, Backend, ObjectStore, StudyRegistry
from quire.backends.memory import (
    MemoryAuthProvider,
    MemoryObjectStore,
    MemoryStudyRegistry,
    create_memory_backend,
)
from quire.backends.supabase import (
    SupabaseAuthProvider,
    SupabaseClient,
    SupabaseObjectStore,
    SupabaseStudyRegistry,
    create_supabase_backend,
)

if TYPE_CHECKING:
    from quire.config.backend import BackendConfig


def create_backend(config: BackendConfig) -> Backend:
    """Build the backend binding selected by configuration.

    Parameters
    ----------
    config : BackendConfig
        Backend configuration.

    Returns
    -------
    Backend
        Configured backend.

    Raises
    ------
    ValueError
        If the binding name is unknown or Supabase credentials are missing.
    """
    if config.backend == "memory":
        return create_memory_backend()
    if config.backend == "supabase":
        if not config.url or not config.anon_key:
            raise ValueError("Supabase backend requires url and anon_key")
        return create_supabase_backend(
            config.url,
            config.anon_key,
            bucket=config.bucket,
            table=config.table,
            timeout=config.timeout,
        )
    raise ValueError(f"Unknown backend: {config.backend}")


__all__ = [
    "ObjectStore",
    "StudyRegistry",
    "AuthProvider",
    "Backend",
    "MemoryObjectStore",
    "MemoryStudyRegistry",
    "MemoryAuthProvider",
    "create_memory_backend",
    "SupabaseClient",
    "SupabaseObjectStore",
    "SupabaseStudyRegistry",
    "SupabaseAuthProvider",
    "create_supabase_backend",
    "create_backend",
]
