"""Data models, identifiers and content hashing for quire.

Examples
--------
>>> from quire.data import ParticipantData, hash_config
>>> hash_config({"version": 1}).hash  # doctest: +SKIP
'4f8b...'
"""

from __future__ import annotations

from quire.data.base import JsonValue, QuireBaseModel
from quire.data.hashing import hash_config, hash_text, serialize_config
from quire.data.identifiers import generate_participant_id, generate_uuid
from quire.data.models import (
    ConfigVersion,
    ParticipantData,
    Sequence,
    SequenceAllocation,
    StorageObjectType,
    StudyModes,
    StudyRecord,
    is_participant_data,
)

__all__ = [
    # Base
    "QuireBaseModel",
    "JsonValue",
    # Hashing
    "serialize_config",
    "hash_text",
    "hash_config",
    # Identifiers
    "generate_uuid",
    "generate_participant_id",
    # Models
    "ConfigVersion",
    "StudyModes",
    "StudyRecord",
    "Sequence",
    "SequenceAllocation",
    "ParticipantData",
    "StorageObjectType",
    "is_participant_data",
]
