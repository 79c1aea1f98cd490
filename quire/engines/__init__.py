"""Storage engines.

``create_engine`` builds the engine selected by configuration once, at
process start; the rest of the application only sees ``StorageEngine``.

Examples
--------
>>> from quire.config import QuireConfig, IdentityConfig
>>> engine = create_engine(QuireConfig(identity=IdentityConfig(backend="memory")))
>>> engine.engine
'memory'
"""

from __future__ import annotations

from quire.backends import create_backend
from quire.config.config import QuireConfig
from quire.engines.base import (
    ParticipantSession,
    StorageEngine,
    StudyConfig,
    StudyContext,
)
from quire.engines.object_store import ObjectStoreStorageEngine
from quire.identity import create_identity_store
from quire.sequences import SequenceAllocator


def create_engine(config: QuireConfig) -> StorageEngine:
    """Build a storage engine from configuration.

    Parameters
    ----------
    config : QuireConfig
        Package configuration.

    Returns
    -------
    StorageEngine
        Engine bound to the configured backend and identity store.
    """
    return ObjectStoreStorageEngine(
        backend=create_backend(config.backend),
        identity_store=create_identity_store(config.identity),
        allocator=SequenceAllocator(config.allocation.policy),
        throttle_window=config.throttle.window_seconds,
        max_update_attempts=config.allocation.max_update_attempts,
    )


__all__ = [
    "StorageEngine",
    "StudyConfig",
    "StudyContext",
    "ParticipantSession",
    "ObjectStoreStorageEngine",
    "create_engine",
]
