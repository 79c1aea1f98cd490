"""Storage engine built on an object store and a study registry.

The backend offers no transactions, so every invariant is kept by ordering
reads before writes:

* config blobs are content addressed (``configs/{hash}``) and never change;
* the study record is only written through conditional updates guarded by
  its ``revision`` counter, retried on conflict;
* a participant record is created once and later loads return it unchanged;
* answer writes go through a ``ThrottledWriter``.

Blob writes (participant documents, the sequence pool) are last write wins.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from pydantic import BaseModel

from quire.backends.base import Backend
from quire.data.base import JsonValue
from quire.data.hashing import hash_config, serialize_config
from quire.data.identifiers import generate_participant_id
from quire.data.models import (
    ModeName,
    ParticipantData,
    Sequence,
    SequenceAllocation,
    StorageObjectType,
    StudyModes,
    StudyRecord,
    is_participant_data,
)
from quire.engines.base import (
    ParticipantSession,
    StorageEngine,
    StudyConfig,
    StudyContext,
)
from quire.errors import (
    ConfigRetrievalError,
    DownloadError,
    DuplicateStudyError,
    EmptyPoolError,
    ParticipantNotInitializedError,
    StudyNotInitializedError,
    StudyRegistryError,
    UploadError,
)
from quire.identity import LocalIdentityStore
from quire.sequences import SequenceAllocator, normalize_counts
from quire.throttle import DEFAULT_WINDOW_SECONDS, ThrottledWriter

logger = logging.getLogger(__name__)


def _participant_prefix(participant_id: str) -> str:
    return f"participants/{participant_id}"


class ObjectStoreStorageEngine(StorageEngine):
    """Storage engine for object-store backends.

    Parameters
    ----------
    backend : Backend
        Object store, study registry and auth provider.
    identity_store : LocalIdentityStore
        Device-local participant identity store.
    allocator : SequenceAllocator | None
        Sequence allocator; least-assigned when None.
    throttle_window : float
        Seconds between the first answer save of a burst and its write.
    max_update_attempts : int
        Conditional registry updates to try before giving up.

    Examples
    --------
    >>> import asyncio
    >>> from quire.backends import create_memory_backend
    >>> from quire.identity import InMemoryIdentityStore
    >>> engine = ObjectStoreStorageEngine(
    ...     create_memory_backend(), InMemoryIdentityStore()
    ... )
    >>> study = asyncio.run(engine.initialize_study_db("S1", {"version": 1}))
    >>> study.study_id
    'S1'
    """

    def __init__(
        self,
        backend: Backend,
        identity_store: LocalIdentityStore,
        allocator: SequenceAllocator | None = None,
        throttle_window: float = DEFAULT_WINDOW_SECONDS,
        max_update_attempts: int = 5,
    ) -> None:
        super().__init__(backend.name)
        if max_update_attempts < 1:
            raise ValueError("max_update_attempts must be at least 1")
        self.backend = backend
        self.identity_store = identity_store
        self.allocator = allocator or SequenceAllocator()
        self.throttle_window = throttle_window
        self.max_update_attempts = max_update_attempts

    async def connect(self) -> None:
        """Open the anonymous session every store operation runs under.

        Raises
        ------
        ConnectionError
            If the backend is missing a collaborator.
        AuthenticationError
            If the anonymous sign-in fails.
        """
        if self.backend.objects is None or self.backend.registry is None:
            raise ConnectionError(f"Failed to connect to {self.engine}")
        await self.backend.auth.sign_in_anonymously()
        self.connected = True
        logger.debug(f"Connected to {self.engine} backend")

    # Study setup

    async def initialize_study_db(
        self, study_id: str, config: StudyConfig
    ) -> StudyContext:
        """Register the study, store its config and purge superseded state.

        Parameters
        ----------
        study_id : str
            Study identifier.
        config : StudyConfig
            Study configuration document.

        Returns
        -------
        StudyContext
            Handle used by the other operations.

        Raises
        ------
        AuthenticationError
            If the anonymous sign-in fails.
        StudyRegistryError
            If the study record cannot be created or updated.
        ConfigRetrievalError
            If the study record cannot be read.
        UploadError
            If the config blob cannot be stored.
        """
        await self.backend.auth.sign_in_anonymously()

        try:
            await self.backend.registry.insert(study_id, {})
            logger.info(f"Created study record for {study_id!r}")
        except DuplicateStudyError:
            logger.debug(f"Study record for {study_id!r} already exists")

        study = StudyContext(study_id)
        version = hash_config(config)
        await self._push_to_storage(
            study, version.blob_prefix, "config", config, cache=True
        )

        for _ in range(self.max_update_attempts):
            document = await self._read_study_document(study_id)
            record = StudyRecord.from_document(document)
            current_hash = record.config_hash
            if current_hash == version.hash:
                return study

            if current_hash is not None:
                logger.info(
                    f"Config of study {study_id!r} changed from {current_hash[:12]} "
                    f"to {version.hash[:12]}; clearing sequence pool and identity"
                )
                await self._purge_superseded_config(study)
                record.sequence_assignments = []

            record.config_hash = version.hash
            if await self._write_study_record(study_id, document, record):
                return study
            logger.debug(f"Study record of {study_id!r} changed concurrently; retrying")

        raise StudyRegistryError(
            f"Could not store config hash for study {study_id!r} after "
            f"{self.max_update_attempts} attempts"
        )

    async def _purge_superseded_config(self, study: StudyContext) -> None:
        try:
            await self._delete_from_storage(study, "", "sequenceArray")
        except UploadError:
            # no pool was published under the previous config
            logger.debug(f"No sequence pool to delete for {study.study_id!r}")
        await self.clear_current_participant_id(study)

    # Participant identity

    async def get_current_participant_id(
        self, study: StudyContext, url_participant_id: str | None = None
    ) -> str:
        """Resolve the participant identity for this device.

        A URL-supplied id wins and is cached; otherwise the cached id is
        reused; otherwise a new id is generated and cached.

        Parameters
        ----------
        study : StudyContext
            Study the participant belongs to.
        url_participant_id : str | None
            Identifier passed in the study URL.

        Returns
        -------
        str
            Participant identifier.

        Raises
        ------
        StudyNotInitializedError
            If a new id is needed but the study record does not exist.
        IdentityStoreError
            If the local store cannot be read or written.
        """
        key = study.study_id
        cached = self.identity_store.get(key)

        if url_participant_id:
            self.identity_store.set(key, url_participant_id)
            return url_participant_id
        if cached:
            return cached

        await self._require_study(study)
        participant_id = generate_participant_id()
        self.identity_store.set(key, participant_id)
        logger.debug(f"Generated participant {participant_id} for {key!r}")
        return participant_id

    async def clear_current_participant_id(self, study: StudyContext) -> None:
        """Forget the locally cached participant identity of a study."""
        self.identity_store.delete(study.study_id)

    # Participant sessions

    async def initialize_participant_session(
        self,
        study: StudyContext,
        search_params: Mapping[str, str],
        config: StudyConfig,
        metadata: Mapping[str, JsonValue],
        url_participant_id: str | None = None,
    ) -> ParticipantSession:
        """Reattach to or create the current participant's record.

        Parameters
        ----------
        study : StudyContext
            Initialized study.
        search_params : Mapping[str, str]
            URL query parameters.
        config : StudyConfig
            Configuration the participant runs under.
        metadata : Mapping[str, JsonValue]
            Client metadata.
        url_participant_id : str | None
            Identifier passed in the study URL.

        Returns
        -------
        ParticipantSession
            Session wrapping the stored or newly created participant document.

        Raises
        ------
        StudyNotInitializedError
            If the study record does not exist.
        ParticipantNotInitializedError
            If no participant identity could be resolved.
        EmptyPoolError
            If no sequence pool has been published.
        """
        await self._require_study(study)

        participant_id = await self.get_current_participant_id(
            study, url_participant_id
        )
        if not participant_id:
            raise ParticipantNotInitializedError()

        stored = await self._get_from_storage(
            study, _participant_prefix(participant_id), "participantData"
        )
        if is_participant_data(stored):
            logger.debug(f"Reattached participant {participant_id}")
            return self._open_session(study, ParticipantData.model_validate(stored))

        modes = await self.get_modes(study.study_id)
        version = hash_config(config)
        if modes.data_collection_enabled:
            allocation = await self._reserve_sequence(study)
        else:
            allocation = await self._preview_sequence(study)

        participant_data = ParticipantData(
            participant_id=participant_id,
            participant_config_hash=version.hash,
            sequence=allocation.sequence,
            participant_index=allocation.index,
            answers={},
            search_params=dict(search_params),
            metadata=dict(metadata),
            completed=False,
            rejected=False,
            participant_tags=[],
        )

        if modes.data_collection_enabled:
            await self._push_to_storage(
                study,
                _participant_prefix(participant_id),
                "participantData",
                participant_data,
            )
            logger.info(
                f"Created participant {participant_id} in {study.study_id!r} "
                f"with sequence {allocation.index}"
            )
        else:
            logger.info(f"Participant {participant_id} running in preview mode")

        return self._open_session(
            study, participant_data, data_collection_enabled=modes.data_collection_enabled
        )

    def _open_session(
        self,
        study: StudyContext,
        participant_data: ParticipantData,
        data_collection_enabled: bool = True,
    ) -> ParticipantSession:
        session = ParticipantSession(study, participant_data, data_collection_enabled)
        session.writer = ThrottledWriter(
            partial(self._flush_answers, session),
            window=self.throttle_window,
            name=f"participant {participant_data.participant_id}",
        )
        return session

    async def save_answers(
        self, session: ParticipantSession | None, answers: Mapping[str, JsonValue]
    ) -> None:
        """Replace the session's answers and schedule a throttled write.

        The in-memory document changes immediately; the write happens when
        the throttle window closes. Never waits on the network.

        Parameters
        ----------
        session : ParticipantSession | None
            Session opened by ``initialize_participant_session``.
        answers : Mapping[str, JsonValue]
            Complete answer mapping.

        Raises
        ------
        ParticipantNotInitializedError
            If no participant session is available.
        """
        if session is None or session.participant_data is None:
            raise ParticipantNotInitializedError()
        if session.writer is None:
            raise ParticipantNotInitializedError(
                "Participant session was not opened by a storage engine"
            )

        session.participant_data = session.participant_data.model_copy(
            update={"answers": dict(answers)}
        )
        session.writer.schedule()

    async def flush(self, session: ParticipantSession) -> bool:
        """Write the session's participant document immediately."""
        return await session.flush()

    async def _flush_answers(self, session: ParticipantSession) -> None:
        if not session.data_collection_enabled:
            logger.debug(f"Preview session {session.participant_id}; skipping write")
            return
        modes = await self._stored_modes(session.study)
        if not modes.data_collection_enabled:
            # stays off for the rest of the session
            session.data_collection_enabled = False
            logger.info(
                f"Data collection disabled for {session.study.study_id!r}; "
                f"no longer writing participant {session.participant_id}"
            )
            return
        await self._push_to_storage(
            session.study,
            _participant_prefix(session.participant_id),
            "participantData",
            session.participant_data,
        )

    async def get_participant_data(
        self, study: StudyContext, participant_id: str
    ) -> ParticipantData | None:
        """Load one stored participant document.

        Returns
        -------
        ParticipantData | None
            The document, or None if missing or malformed.
        """
        await self._require_study(study)
        stored = await self._get_from_storage(
            study, _participant_prefix(participant_id), "participantData"
        )
        if not is_participant_data(stored):
            return None
        return ParticipantData.model_validate(stored)

    # Configuration versions

    async def get_current_config_hash(self, study: StudyContext) -> str | None:
        """Return the hash of the study's current configuration.

        Raises
        ------
        ConfigRetrievalError
            If the study record cannot be read or does not exist.
        """
        document = await self._read_study_document(study.study_id)
        return StudyRecord.from_document(document).config_hash

    async def get_all_configs_from_hash(
        self, study: StudyContext, hashes: list[str]
    ) -> dict[str, Any]:
        """Return stored configurations keyed by hash, skipping missing ones."""
        await self._require_study(study)
        configs: dict[str, Any] = {}
        for config_hash in hashes:
            stored = await self._get_from_storage(
                study, f"configs/{config_hash}", "config"
            )
            if isinstance(stored, dict):
                configs[config_hash] = stored
            else:
                logger.warning(f"Config {config_hash} not found in {study.study_id!r}")
        return configs

    # Sequence pool

    async def set_sequence_array(
        self, study: StudyContext, pool: list[Sequence]
    ) -> None:
        """Publish the sequence pool and reset its assignment counters.

        Raises
        ------
        StudyNotInitializedError
            If the study record does not exist.
        UploadError
            If the pool cannot be stored.
        """
        await self._require_study(study)
        await self._push_to_storage(study, "", "sequenceArray", pool)

        def reset(record: StudyRecord) -> bool:
            record.sequence_assignments = [0] * len(pool)
            return True

        await self._update_study_record(study.study_id, reset)
        logger.info(f"Published {len(pool)} sequences for {study.study_id!r}")

    async def get_sequence_array(self, study: StudyContext) -> list[Sequence] | None:
        """Return the published sequence pool, or None if there is none."""
        await self._require_study(study)
        stored = await self._get_from_storage(study, "", "sequenceArray")
        if not isinstance(stored, list):
            return None
        if not all(isinstance(row, list) for row in stored):
            logger.warning(f"Ignoring malformed sequence pool of {study.study_id!r}")
            return None
        return [[str(task) for task in row] for row in stored]

    async def _reserve_sequence(self, study: StudyContext) -> SequenceAllocation:
        """Allocate a sequence and count it against its slot atomically."""
        pool = await self.get_sequence_array(study)
        if not pool:
            raise EmptyPoolError(f"No sequence pool published for {study.study_id!r}")

        for _ in range(self.max_update_attempts):
            document = await self._read_study_document(study.study_id)
            record = StudyRecord.from_document(document)
            counts = normalize_counts(record.sequence_assignments, len(pool))
            allocation = self.allocator.allocate(pool, counts)
            counts[allocation.index - 1] += 1
            record.sequence_assignments = counts
            if await self._write_study_record(study.study_id, document, record):
                return allocation
            logger.debug(f"Slot reservation in {study.study_id!r} conflicted; retrying")

        raise StudyRegistryError(
            f"Could not reserve a sequence in study {study.study_id!r} after "
            f"{self.max_update_attempts} attempts"
        )

    async def _preview_sequence(self, study: StudyContext) -> SequenceAllocation:
        """Allocate a sequence without counting it."""
        pool = await self.get_sequence_array(study)
        document = await self._read_study_document(study.study_id)
        counts = StudyRecord.from_document(document).sequence_assignments
        return self.allocator.allocate(pool, counts)

    # Feature flags

    async def get_modes(self, study_id: str) -> StudyModes:
        """Return the study's feature flags, seeding defaults when absent.

        Raises
        ------
        StudyNotInitializedError
            If the study record does not exist.
        ConfigRetrievalError
            If the study record cannot be read.
        """
        await self._require_study(StudyContext(study_id))
        document = await self._read_study_document(study_id)
        record = StudyRecord.from_document(document)
        if record.metadata is not None:
            return record.metadata

        def seed(record: StudyRecord) -> bool:
            if record.metadata is not None:
                return False
            record.metadata = StudyModes()
            return True

        record = await self._update_study_record(study_id, seed)
        logger.info(f"Seeded default modes for {study_id!r}")
        return record.metadata or StudyModes()

    async def set_mode(self, study_id: str, mode: ModeName, value: bool) -> StudyModes:
        """Set one feature flag, seeding the others with defaults."""
        await self._require_study(StudyContext(study_id))

        def apply(record: StudyRecord) -> bool:
            document = (record.metadata or StudyModes()).to_document()
            document[mode] = value
            record.metadata = StudyModes.model_validate(document)
            return True

        record = await self._update_study_record(study_id, apply)
        logger.info(f"Set {mode}={value} for {study_id!r}")
        return record.metadata or StudyModes()

    # Study record

    async def verify_study_database(self, study_id: str) -> bool:
        """Return whether the study's registry record exists.

        A read-before-write check, not a lock.
        """
        try:
            return await self.backend.registry.select(study_id) is not None
        except StudyRegistryError as e:
            logger.warning(f"Could not verify study {study_id!r}: {e}")
            return False

    async def _require_study(self, study: StudyContext) -> None:
        if not await self.verify_study_database(study.study_id):
            raise StudyNotInitializedError(study.study_id)

    async def _stored_modes(self, study: StudyContext) -> StudyModes:
        """Read the current flags without seeding them."""
        document = await self.backend.registry.select(study.study_id)
        if document is None:
            raise StudyNotInitializedError(study.study_id)
        return StudyRecord.from_document(document).metadata or StudyModes()

    async def _read_study_document(self, study_id: str) -> dict[str, Any]:
        try:
            document = await self.backend.registry.select(study_id)
        except StudyRegistryError as e:
            raise ConfigRetrievalError(
                f"Failed to read study record of {study_id!r}: {e}"
            ) from e
        if document is None:
            raise ConfigRetrievalError(f"No study record for {study_id!r}")
        return document

    async def _write_study_record(
        self, study_id: str, document: Mapping[str, Any], record: StudyRecord
    ) -> bool:
        """Write ``record`` if the stored revision still matches ``document``."""
        observed = document.get("revision")
        record.revision = int(observed or 0) + 1
        return await self.backend.registry.update(
            study_id, record.to_document(), expected={"revision": observed}
        )

    async def _update_study_record(
        self, study_id: str, mutate: Callable[[StudyRecord], bool]
    ) -> StudyRecord:
        """Apply ``mutate`` to the study record with conflict retries.

        ``mutate`` edits the record in place and returns whether it changed
        anything; unchanged records are not written.
        """
        for _ in range(self.max_update_attempts):
            document = await self._read_study_document(study_id)
            record = StudyRecord.from_document(document)
            if not mutate(record):
                return record
            if await self._write_study_record(study_id, document, record):
                return record
            logger.debug(f"Study record of {study_id!r} changed concurrently; retrying")

        raise StudyRegistryError(
            f"Could not update study record of {study_id!r} after "
            f"{self.max_update_attempts} attempts"
        )

    # Object store

    async def _push_to_storage(
        self,
        study: StudyContext,
        prefix: str,
        object_type: StorageObjectType,
        payload: Any,
        cache: bool = False,
    ) -> None:
        if object_type == "config":
            data = serialize_config(payload).encode("utf-8")
        elif isinstance(payload, BaseModel):
            data = payload.model_dump_json(by_alias=True).encode("utf-8")
        else:
            data = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        path = study.object_path(prefix, object_type)
        try:
            await self.backend.objects.upload(path, data, cache=cache, upsert=True)
        except UploadError:
            logger.error(f"Error uploading {path}")
            raise

    async def _get_from_storage(
        self, study: StudyContext, prefix: str, object_type: StorageObjectType
    ) -> Any | None:
        path = study.object_path(prefix, object_type)
        try:
            data = await self.backend.objects.download(path)
        except DownloadError as e:
            logger.debug(f"Treating {path} as missing: {e}")
            return None
        try:
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning(f"Stored object {path} is not valid JSON")
            return None

    async def _delete_from_storage(
        self, study: StudyContext, prefix: str, object_type: StorageObjectType
    ) -> None:
        path = study.object_path(prefix, object_type)
        await self.backend.objects.remove([path])
