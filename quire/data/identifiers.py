"""UUIDv7 generation for participant identities."""

from __future__ import annotations

from uuid import UUID

import uuid_utils


def generate_uuid() -> UUID:
    """Generate a time-ordered UUIDv7.

    Returns
    -------
    UUID
        A newly generated UUIDv7 with embedded timestamp.

    Examples
    --------
    >>> uuid1 = generate_uuid()
    >>> uuid2 = generate_uuid()
    >>> uuid1 < uuid2
    True
    """
    # Convert uuid_utils.UUID to standard Python UUID for Pydantic compatibility
    return UUID(str(uuid_utils.uuid7()))


def generate_participant_id() -> str:
    """Generate a fresh participant identifier.

    Returns
    -------
    str
        Canonical string form of a UUIDv7.

    Examples
    --------
    >>> len(generate_participant_id())
    36
    """
    return str(generate_uuid())
