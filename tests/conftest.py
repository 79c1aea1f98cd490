"""Root pytest configuration for quire tests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from quire.backends import Backend, MemoryStudyRegistry, create_memory_backend
from quire.engines import ObjectStoreStorageEngine
from quire.identity import InMemoryIdentityStore

# throttle window used by engine fixtures, in seconds
WINDOW = 0.05


class ConflictingRegistry(MemoryStudyRegistry):
    """Memory registry whose first conditional updates report a conflict.

    Parameters
    ----------
    conflicts : int
        Number of conditional updates to reject before behaving normally.
    """

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.rejected = 0

    async def update(
        self,
        study_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        if expected is not None and self.rejected < self.conflicts:
            self.rejected += 1
            # another writer bumped the revision in the meantime
            row = self.rows[study_id]
            row["revision"] = int(row.get("revision") or 0) + 1
            return False
        return await super().update(study_id, data, expected)


@pytest.fixture
def backend() -> Backend:
    """Fresh in-process backend."""
    return create_memory_backend()


@pytest.fixture
def identity_store() -> InMemoryIdentityStore:
    """Fresh in-memory identity store."""
    return InMemoryIdentityStore()


@pytest.fixture
def engine(
    backend: Backend, identity_store: InMemoryIdentityStore
) -> ObjectStoreStorageEngine:
    """Engine over the memory backend with a short throttle window."""
    return ObjectStoreStorageEngine(backend, identity_store, throttle_window=WINDOW)


@pytest.fixture
def study_config() -> dict[str, Any]:
    """Minimal study configuration."""
    return {"version": 1, "studyMetadata": {"title": "Pilot"}}


@pytest.fixture
def sequence_pool() -> list[list[str]]:
    """Two-row sequence pool."""
    return [["t1", "t2"], ["t3", "t4"]]


@pytest.fixture
def throttle_window() -> float:
    """Throttle window of the ``engine`` fixture."""
    return WINDOW


@pytest.fixture
def conflicting_engine(
    identity_store: InMemoryIdentityStore,
) -> Any:
    """Factory for engines whose registry rejects the first conditional updates.

    Returns
    -------
    Callable[[int, int], tuple[ObjectStoreStorageEngine, ConflictingRegistry]]
        Builds an engine given the number of conflicts and update attempts.
    """

    def build(
        conflicts: int, attempts: int = 5
    ) -> tuple[ObjectStoreStorageEngine, ConflictingRegistry]:
        memory = create_memory_backend()
        registry = ConflictingRegistry(conflicts)
        backend = Backend(
            name="memory",
            objects=memory.objects,
            registry=registry,
            auth=memory.auth,
        )
        engine = ObjectStoreStorageEngine(
            backend,
            identity_store,
            throttle_window=WINDOW,
            max_update_attempts=attempts,
        )
        return engine, registry

    return build
