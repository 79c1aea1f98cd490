"""End-to-end study lifecycle against the memory backend."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from quire.backends import Backend
from quire.data.hashing import hash_config
from quire.engines import ObjectStoreStorageEngine
from quire.errors import EmptyPoolError
from quire.identity import InMemoryIdentityStore


def test_study_lifecycle(
    engine: ObjectStoreStorageEngine,
    backend: Backend,
    identity_store: InMemoryIdentityStore,
    study_config: dict[str, Any],
    sequence_pool: list[list[str]],
    throttle_window: float,
) -> None:
    """Test two participants, a reload and a config change in one study."""
    changed = {**study_config, "version": 2}

    async def run() -> None:
        study = await engine.initialize_study_db("S1", study_config)
        await engine.set_sequence_array(study, sequence_pool)

        alice = await engine.initialize_participant_session(
            study, {}, study_config, {}, url_participant_id="alice"
        )
        assert alice.participant_data.sequence == ["t1", "t2"]
        await engine.save_answers(alice, {"t1": "yes"})
        await engine.save_answers(alice, {"t1": "yes", "t2": "no"})
        await asyncio.sleep(throttle_window * 4)

        bob = await engine.initialize_participant_session(
            study, {}, study_config, {}, url_participant_id="bob"
        )
        assert bob.participant_data.sequence == ["t3", "t4"]

        # alice reloads her tab
        resumed = await engine.initialize_participant_session(
            study, {}, study_config, {}, url_participant_id="alice"
        )
        assert resumed.participant_data.answers == {"t1": "yes", "t2": "no"}
        assert resumed.participant_data.participant_index == 1

        await engine.initialize_study_db("S1", changed)
        assert await engine.get_current_config_hash(study) == (
            hash_config(changed).hash
        )
        assert identity_store.get("S1") is None
        fresh = await engine.get_current_participant_id(study)
        assert fresh not in ("alice", "bob")
        with pytest.raises(EmptyPoolError):
            await engine.initialize_participant_session(study, {}, changed, {})

        await engine.set_sequence_array(study, sequence_pool)
        carol = await engine.initialize_participant_session(study, {}, changed, {})
        assert carol.participant_data.participant_index == 1
        assert carol.participant_id == fresh
        assert carol.participant_data.participant_config_hash == (
            hash_config(changed).hash
        )

        configs = await engine.get_all_configs_from_hash(
            study,
            [
                alice.participant_data.participant_config_hash,
                carol.participant_data.participant_config_hash,
            ],
        )
        assert len(configs) == 2

    asyncio.run(run())

    stored = json.loads(backend.objects.objects["S1/participants/alice_participantData"])
    assert stored["answers"] == {"t1": "yes", "t2": "no"}
    assert backend.registry.rows["S1"]["sequenceAssignments"] == [1, 0]
