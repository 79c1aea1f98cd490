"""Abstract boundaries of the remote backend.

A deployment talks to three collaborators: an object store for JSON blobs, a
registry table with one row per study, and an auth endpoint that must grant
an anonymous session before anything else is attempted. Engines depend only
on these interfaces; concrete bindings are chosen at process start.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class ObjectStore(ABC):
    """Namespaced blob storage keyed by ``{studyId}/{prefix}_{type}`` paths."""

    @abstractmethod
    async def upload(
        self, path: str, data: bytes, cache: bool = False, upsert: bool = True
    ) -> None:
        """Store bytes at path.

        Parameters
        ----------
        path : str
            Object path.
        data : bytes
            Payload (UTF-8 JSON).
        cache : bool
            Whether clients may cache the object.
        upsert : bool
            Whether to replace an existing object.

        Raises
        ------
        UploadError
            If the store rejects the upload.
        """

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Fetch the bytes stored at path.

        Raises
        ------
        ObjectNotFoundError
            If nothing is stored at path.
        DownloadError
            If the download fails for another reason.
        """

    @abstractmethod
    async def remove(self, paths: list[str]) -> None:
        """Delete objects. Missing paths are not an error.

        Raises
        ------
        UploadError
            If the store rejects the delete.
        """


class StudyRegistry(ABC):
    """Table holding one JSON document per study."""

    @abstractmethod
    async def insert(self, study_id: str, data: Mapping[str, Any]) -> None:
        """Create the row for a study.

        Raises
        ------
        DuplicateStudyError
            If a row for the study already exists.
        StudyRegistryError
            If the insert fails for another reason.
        """

    @abstractmethod
    async def select(self, study_id: str) -> dict[str, Any] | None:
        """Return the study document, or None when no row exists.

        Raises
        ------
        StudyRegistryError
            If the read fails.
        """

    @abstractmethod
    async def update(
        self,
        study_id: str,
        data: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> bool:
        """Replace the study document.

        Parameters
        ----------
        study_id : str
            Study identifier.
        data : Mapping[str, Any]
            New document.
        expected : Mapping[str, Any] | None
            When given, the update applies only if every listed top-level key
            of the stored document currently has the given value.

        Returns
        -------
        bool
            True if a row was updated.

        Raises
        ------
        StudyRegistryError
            If the update fails.
        """


class AuthProvider(ABC):
    """Grants the anonymous session required by the other collaborators."""

    @abstractmethod
    async def sign_in_anonymously(self) -> None:
        """Open an anonymous session.

        Raises
        ------
        AuthenticationError
            If sign-in fails.
        """


@dataclass(frozen=True)
class Backend:
    """Bundle of collaborators used by an engine.

    Attributes
    ----------
    name : str
        Binding name (``memory`` or ``supabase``).
    objects : ObjectStore
        Blob storage.
    registry : StudyRegistry
        Study table.
    auth : AuthProvider
        Anonymous auth.
    """

    name: str
    objects: ObjectStore
    registry: StudyRegistry
    auth: AuthProvider
