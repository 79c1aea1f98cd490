"""Device-local storage for the current participant identity.

Browsers keep the participant id in a named local key-value instance so that
reloads reattach to the same participant. This module provides the same
contract for Python hosts with filesystem and in-memory backends. Unlike a
cache, failures here are raised: losing the identity silently would create a
duplicate participant.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from quire.errors import IdentityStoreError

if TYPE_CHECKING:
    from quire.config.identity import IdentityConfig

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "currentParticipantId"


class LocalIdentityStore(ABC):
    """Abstract base class for local identity stores.

    Parameters
    ----------
    namespace : str
        Name of the local store instance.
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None.

        Parameters
        ----------
        key : str
            Lookup key (a study id).

        Returns
        -------
        str | None
            Stored value if present.

        Raises
        ------
        IdentityStoreError
            If the store cannot be read.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key.

        Parameters
        ----------
        key : str
            Lookup key.
        value : str
            Value to store.

        Raises
        ------
        IdentityStoreError
            If the store cannot be written.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored.

        Parameters
        ----------
        key : str
            Key to remove.
        """


class FilesystemIdentityStore(LocalIdentityStore):
    """Identity store persisted as one JSON file per namespace.

    Attributes
    ----------
    directory : Path
        Directory holding the namespace files.

    Examples
    --------
    >>> from pathlib import Path
    >>> store = FilesystemIdentityStore(Path(".quire"))  # doctest: +SKIP
    >>> store.set("study-1", "p-123")  # doctest: +SKIP
    >>> store.get("study-1")  # doctest: +SKIP
    'p-123'
    """

    def __init__(self, directory: Path, namespace: str = DEFAULT_NAMESPACE) -> None:
        super().__init__(namespace)
        self.directory = directory

    @property
    def path(self) -> Path:
        """Path of the namespace file."""
        return self.directory / f"{self.namespace}.json"

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                content = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise IdentityStoreError(
                f"Failed to read identity store {self.path}: {e}"
            ) from e
        if not isinstance(content, dict):
            raise IdentityStoreError(
                f"Identity store {self.path} does not hold a JSON object"
            )
        return {str(k): str(v) for k, v in content.items()}

    def _write(self, content: dict[str, str]) -> None:
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{self.namespace}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp_name)
            raise IdentityStoreError(
                f"Failed to write identity store {self.path}: {e}"
            ) from e

    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None."""
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing the namespace file atomically."""
        content = self._read()
        content[key] = value
        self._write(content)
        logger.debug(f"Stored {self.namespace}[{key}] in {self.path}")

    def delete(self, key: str) -> None:
        """Remove key from the namespace file."""
        content = self._read()
        if key not in content:
            return
        del content[key]
        self._write(content)
        logger.debug(f"Removed {self.namespace}[{key}] from {self.path}")


class InMemoryIdentityStore(LocalIdentityStore):
    """Dictionary-backed identity store.

    No persistence across program runs. Useful for tests and previews.

    Examples
    --------
    >>> store = InMemoryIdentityStore()
    >>> store.set("study-1", "p-123")
    >>> store.get("study-1")
    'p-123'
    >>> store.delete("study-1")
    >>> store.get("study-1") is None
    True
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        super().__init__(namespace)
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None."""
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        self._items[key] = value

    def delete(self, key: str) -> None:
        """Remove key if present."""
        self._items.pop(key, None)


def create_identity_store(config: IdentityConfig) -> LocalIdentityStore:
    """Build the identity store selected by configuration.

    Parameters
    ----------
    config : IdentityConfig
        Identity store configuration.

    Returns
    -------
    LocalIdentityStore
        Configured store.

    Raises
    ------
    ValueError
        If the backend name is unknown.
    """
    if config.backend == "filesystem":
        return FilesystemIdentityStore(config.directory, namespace=config.namespace)
    if config.backend == "memory":
        return InMemoryIdentityStore(namespace=config.namespace)
    raise ValueError(f"Unknown identity backend: {config.backend}")
