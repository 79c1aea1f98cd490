"""In-process backend binding.

Keeps blobs and study rows in dictionaries. Used for tests and for running a
study locally without a remote deployment. Every mutating call is recorded so
tests can assert on write volume.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from quire.backends.base import AuthProvider, Backend, ObjectStore, StudyRegistry
from quire.errors import (
    AuthenticationError,
    DuplicateStudyError,
    ObjectNotFoundError,
    UploadError,
)


class MemoryObjectStore(ObjectStore):
    """Dictionary-backed object store.

    Attributes
    ----------
    objects : dict[str, bytes]
        Stored payloads by path.
    cache_flags : dict[str, bool]
        Cache setting each path was last uploaded with.
    uploads : list[str]
        Paths of every upload, in order.
    removals : list[str]
        Paths of every removal, in order.

    Examples
    --------
    >>> import asyncio
    >>> store = MemoryObjectStore()
    >>> asyncio.run(store.upload("s1/_sequenceArray", b"[]"))
    >>> asyncio.run(store.download("s1/_sequenceArray"))
    b'[]'
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.cache_flags: dict[str, bool] = {}
        self.uploads: list[str] = []
        self.removals: list[str] = []

    async def upload(
        self, path: str, data: bytes, cache: bool = False, upsert: bool = True
    ) -> None:
        """Store bytes at path."""
        if not upsert and path in self.objects:
            raise UploadError(path, "object already exists")
        self.objects[path] = bytes(data)
        self.cache_flags[path] = cache
        self.uploads.append(path)

    async def download(self, path: str) -> bytes:
        """Return the bytes at path."""
        try:
            return self.objects[path]
        except KeyError:
            raise ObjectNotFoundError(path) from None

    async def remove(self, paths: list[str]) -> None:
        """Delete the given paths."""
        for path in paths:
            self.objects.pop(path, None)
            self.cache_flags.pop(path, None)
            self.removals.append(path)

    def uploads_to(self, path: str) -> int:
        """Count uploads made to one path."""
        return sum(1 for uploaded in self.uploads if uploaded == path)


class MemoryStudyRegistry(StudyRegistry):
    """Dictionary-backed study registry with conditional updates.

    Attributes
    ----------
    rows : dict[str, dict[str, Any]]
        Study documents by study id.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}

    async def insert(self, study_id: str, data: Mapping[str, Any]) -> None:
        """Create the row for a study."""
        if study_id in self.rows:
            raise DuplicateStudyError(study_id)
        self.rows[study_id] = copy.deepcopy(dict(data))

    async def select(self, study_id: str) -> dict[str, Any] | None:
        """Return a copy of the study document."""
        row = self.rows.get(study_id)
        return copy.deepcopy(row) if row is not None else None

    async def update(
        self,
        study_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        """Replace the study document if the row matches ``expected``."""
        row = self.rows.get(study_id)
        if row is None:
            return False
        if expected is not None and any(
            row.get(key) != value for key, value in expected.items()
        ):
            return False
        self.rows[study_id] = copy.deepcopy(dict(data))
        return True


class MemoryAuthProvider(AuthProvider):
    """Auth provider that always grants a session unless told to fail.

    Parameters
    ----------
    fail : bool
        Whether sign-in should raise.
    """

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sign_ins = 0

    async def sign_in_anonymously(self) -> None:
        """Count the sign-in or raise if configured to fail."""
        if self.fail:
            raise AuthenticationError("Anonymous sign-in rejected")
        self.sign_ins += 1


def create_memory_backend() -> Backend:
    """Build a fresh in-process backend."""
    return Backend(
        name="memory",
        objects=MemoryObjectStore(),
        registry=MemoryStudyRegistry(),
        auth=MemoryAuthProvider(),
    )
