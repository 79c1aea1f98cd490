"""Stored document models for studies and participants.

This module defines the documents quire writes to the study registry and the
object store: the config version pointer, the per-study record with its
feature flags and allocation bookkeeping, and the participant document.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field, ValidationError

from quire.data.base import JsonValue, QuireBaseModel

# An ordered list of task identifiers
type Sequence = list[str]

StorageObjectType = Literal["config", "participantData", "sequenceArray"]

ModeName = Literal[
    "dataCollectionEnabled",
    "studyNavigatorEnabled",
    "analyticsInterfacePubliclyAccessible",
]


def _empty_answers() -> dict[str, JsonValue]:
    """Return empty answers dict."""
    return {}


def _empty_tags() -> list[str]:
    """Return empty tag list."""
    return []


class ConfigVersion(QuireBaseModel):
    """Content-derived version of a study configuration.

    Attributes
    ----------
    hash : str
        SHA-256 hex digest of the serialized configuration.

    Examples
    --------
    >>> ConfigVersion(hash="abc").blob_prefix
    'configs/abc'
    """

    model_config = ConfigDict(frozen=True)

    hash: str = Field(..., min_length=1, description="SHA-256 hex digest")

    @property
    def blob_prefix(self) -> str:
        """Object-store prefix under which this config is stored."""
        return f"configs/{self.hash}"


class StudyModes(QuireBaseModel):
    """Per-study feature flags.

    Attributes
    ----------
    data_collection_enabled : bool
        Whether participant data is written to the object store. When False
        participants run in preview mode.
    study_navigator_enabled : bool
        Whether the navigation UI is shown.
    analytics_interface_publicly_accessible : bool
        Whether the analytics interface is public.

    Examples
    --------
    >>> StudyModes().to_document()["dataCollectionEnabled"]
    True
    """

    data_collection_enabled: bool = True
    study_navigator_enabled: bool = True
    analytics_interface_publicly_accessible: bool = True


class StudyRecord(QuireBaseModel):
    """JSON document held by the single registry row of a study.

    Keys this model does not know about are kept and written back unchanged.

    Attributes
    ----------
    config_hash : str | None
        Hash of the current configuration.
    metadata : StudyModes | None
        Feature flags; None until the first reader seeds them.
    sequence_assignments : list[int]
        Number of participants assigned to each slot of the current pool.
    revision : int
        Counter bumped by every write, used to guard conditional updates.
    """

    model_config = ConfigDict(extra="allow")

    config_hash: str | None = None
    metadata: StudyModes | None = None
    sequence_assignments: list[int] = Field(default_factory=list)
    revision: int = Field(default=0, ge=0)

    @classmethod
    def from_document(cls, document: dict[str, Any] | None) -> StudyRecord:
        """Parse a registry document, treating None as an empty record."""
        return cls.model_validate(document or {})

    def to_document(self) -> dict[str, Any]:
        """Dump the record, omitting unset optional pointers."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SequenceAllocation(QuireBaseModel):
    """A sequence chosen from a pool for one participant.

    Attributes
    ----------
    sequence : Sequence
        Assigned task ordering.
    index : int
        1-based position of the assigned row within the pool.
    """

    model_config = ConfigDict(frozen=True)

    sequence: Sequence
    index: int = Field(..., ge=1)


class ParticipantData(QuireBaseModel):
    """Progress document of one participant.

    Keys written by other clients are kept, so a reattached document is
    written back with everything it was stored with.

    Attributes
    ----------
    participant_id : str
        Persistent participant identifier.
    participant_config_hash : str
        Hash of the configuration the participant started under.
    sequence : Sequence
        Assigned task ordering.
    participant_index : int
        1-based pool position of the assigned sequence.
    answers : dict[str, JsonValue]
        Recorded answers keyed by task identifier.
    search_params : dict[str, str]
        URL query parameters the participant arrived with.
    metadata : dict[str, JsonValue]
        Client metadata (user agent, resolution, language, ip).
    completed : bool
        Whether the participant finished the study.
    rejected : bool
        Whether the participant was rejected.
    participant_tags : list[str]
        Free-form tags.

    Examples
    --------
    >>> data = ParticipantData(
    ...     participant_id="p1",
    ...     participant_config_hash="abc",
    ...     sequence=["t1", "t2"],
    ...     participant_index=1,
    ... )
    >>> data.to_document()["participantIndex"]
    1
    """

    model_config = ConfigDict(extra="allow")

    participant_id: str = Field(..., min_length=1)
    participant_config_hash: str
    sequence: Sequence
    participant_index: int = Field(..., ge=1)
    answers: dict[str, JsonValue] = Field(default_factory=_empty_answers)
    search_params: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, JsonValue] = Field(default_factory=dict)
    completed: bool = False
    rejected: bool = False
    participant_tags: list[str] = Field(default_factory=_empty_tags)


def is_participant_data(document: object) -> bool:
    """Check whether a downloaded document is a well-formed participant record.

    Parameters
    ----------
    document : object
        Parsed JSON document.

    Returns
    -------
    bool
        True if the document validates as ParticipantData.

    Examples
    --------
    >>> is_participant_data({})
    False
    >>> is_participant_data(None)
    False
    """
    if not isinstance(document, dict):
        return False
    try:
        ParticipantData.model_validate(document)
    except ValidationError:
        return False
    return True
