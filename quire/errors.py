"""Exception hierarchy for quire.

Precondition errors (StudyNotInitializedError, ParticipantNotInitializedError)
abort the calling workflow. Backend errors wrap the failure reported by the
object store, the study registry or the auth provider.
"""

from __future__ import annotations


class QuireError(Exception):
    """Base class for all quire errors."""


class StudyNotInitializedError(QuireError):
    """Raised when an operation runs before the study record exists."""

    def __init__(self, study_id: str) -> None:
        self.study_id = study_id
        super().__init__(f"Study database not initialized: {study_id!r}")


class ParticipantNotInitializedError(QuireError):
    """Raised when an operation needs a participant that was never resolved."""

    def __init__(self, message: str = "Participant not initialized") -> None:
        super().__init__(message)


class ConfigRetrievalError(QuireError):
    """Raised when the study record cannot be read from the registry."""


class UploadError(QuireError):
    """Raised when the object store rejects an upload or delete."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to upload {path}: {reason}")


class DownloadError(QuireError):
    """Raised when an object cannot be downloaded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to download {path}: {reason}")


class ObjectNotFoundError(DownloadError):
    """Raised when the requested object does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "object not found")


class SequencePoolMissingError(QuireError):
    """Raised when no sequence pool has been published for a study."""


class EmptyPoolError(SequencePoolMissingError):
    """Raised when a sequence pool is missing or has no rows to allocate."""


class StudyRegistryError(QuireError):
    """Raised when the study registry rejects a write."""


class DuplicateStudyError(StudyRegistryError):
    """Raised by registries when a study record already exists."""

    def __init__(self, study_id: str) -> None:
        self.study_id = study_id
        super().__init__(f"Study record already exists: {study_id!r}")


class AuthenticationError(QuireError):
    """Raised when the anonymous sign-in against the backend fails."""


class IdentityStoreError(QuireError):
    """Raised when the local identity store cannot be read or written."""
