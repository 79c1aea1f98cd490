"""Storage engine contract and explicit session context.

``StorageEngine`` names the operations every backend implementation offers.
Engines keep no per-study state: callers hold a ``StudyContext`` for the
study they initialized and a ``ParticipantSession`` for each participant, and
pass them back into every operation. One process can therefore serve several
studies and participants at once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from quire.data.base import JsonValue
from quire.data.models import ModeName, ParticipantData, Sequence, StudyModes

if TYPE_CHECKING:
    from quire.throttle import ThrottledWriter

type StudyConfig = Mapping[str, Any] | BaseModel


@dataclass(frozen=True)
class StudyContext:
    """Handle on one initialized study.

    Attributes
    ----------
    study_id : str
        Study identifier; also the registry key and the object-store folder.
    """

    study_id: str

    def object_path(self, prefix: str, object_type: str) -> str:
        """Return the object-store path of a study object.

        Examples
        --------
        >>> StudyContext("S1").object_path("participants/p1", "participantData")
        'S1/participants/p1_participantData'
        >>> StudyContext("S1").object_path("", "sequenceArray")
        'S1/_sequenceArray'
        """
        return f"{self.study_id}/{prefix}_{object_type}"


class ParticipantSession:
    """State of one participant's session within a study.

    Parameters
    ----------
    study : StudyContext
        Study the participant belongs to.
    participant_data : ParticipantData
        Current in-memory participant document.
    data_collection_enabled : bool
        Whether flushes write to the object store.

    Attributes
    ----------
    writer : ThrottledWriter | None
        Throttled flusher attached by the engine that opened the session.
    """

    def __init__(
        self,
        study: StudyContext,
        participant_data: ParticipantData,
        data_collection_enabled: bool = True,
    ) -> None:
        self.study = study
        self.participant_data = participant_data
        self.data_collection_enabled = data_collection_enabled
        self.writer: ThrottledWriter | None = None

    @property
    def participant_id(self) -> str:
        """Identifier of the session's participant."""
        return self.participant_data.participant_id

    async def flush(self) -> bool:
        """Write the latest participant document now.

        Returns
        -------
        bool
            True if the write succeeded or nothing needed writing.
        """
        if self.writer is None:
            return True
        return await self.writer.flush_now()

    async def close(self) -> None:
        """Flush any pending update."""
        if self.writer is not None:
            await self.writer.close()

    def __repr__(self) -> str:
        return (
            f"ParticipantSession(study_id={self.study.study_id!r}, "
            f"participant_id={self.participant_id!r})"
        )


class StorageEngine(ABC):
    """Operations offered by every storage engine.

    Attributes
    ----------
    engine : str
        Name of the backend binding.
    connected : bool
        Whether ``connect`` succeeded.
    """

    def __init__(self, engine: str) -> None:
        self.engine = engine
        self.connected = False

    @abstractmethod
    async def connect(self) -> None:
        """Sign in to the backend and mark the engine connected."""

    @abstractmethod
    async def initialize_study_db(
        self, study_id: str, config: StudyConfig
    ) -> StudyContext:
        """Register the study, store its config and purge superseded state."""

    @abstractmethod
    async def initialize_participant_session(
        self,
        study: StudyContext,
        search_params: Mapping[str, str],
        config: StudyConfig,
        metadata: Mapping[str, JsonValue],
        url_participant_id: str | None = None,
    ) -> ParticipantSession:
        """Reattach to or create the current participant's record."""

    @abstractmethod
    async def get_current_participant_id(
        self, study: StudyContext, url_participant_id: str | None = None
    ) -> str:
        """Resolve the participant identity for this device."""

    @abstractmethod
    async def clear_current_participant_id(self, study: StudyContext) -> None:
        """Forget the locally cached participant identity."""

    @abstractmethod
    async def save_answers(
        self, session: ParticipantSession, answers: Mapping[str, JsonValue]
    ) -> None:
        """Replace the session's answers and schedule a throttled flush."""

    @abstractmethod
    async def flush(self, session: ParticipantSession) -> bool:
        """Write the session's participant document immediately."""

    @abstractmethod
    async def get_current_config_hash(self, study: StudyContext) -> str | None:
        """Return the hash of the study's current configuration."""

    @abstractmethod
    async def get_all_configs_from_hash(
        self, study: StudyContext, hashes: list[str]
    ) -> dict[str, Any]:
        """Return stored configurations keyed by hash."""

    @abstractmethod
    async def set_sequence_array(
        self, study: StudyContext, pool: list[Sequence]
    ) -> None:
        """Publish the study's sequence pool."""

    @abstractmethod
    async def get_sequence_array(self, study: StudyContext) -> list[Sequence] | None:
        """Return the published sequence pool, if any."""

    @abstractmethod
    async def get_participant_data(
        self, study: StudyContext, participant_id: str
    ) -> ParticipantData | None:
        """Load one stored participant document."""

    @abstractmethod
    async def get_modes(self, study_id: str) -> StudyModes:
        """Return the study's feature flags, seeding defaults when absent."""

    @abstractmethod
    async def set_mode(self, study_id: str, mode: ModeName, value: bool) -> StudyModes:
        """Set one feature flag."""

    @abstractmethod
    async def verify_study_database(self, study_id: str) -> bool:
        """Return whether the study's registry record exists."""
