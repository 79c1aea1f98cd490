"""Shared fixtures for data model tests."""

from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def participant_document() -> dict[str, Any]:
    """Stored participant document as a browser client writes it."""
    return {
        "participantId": "p-1",
        "participantConfigHash": "abc123",
        "sequence": ["t1", "t2"],
        "participantIndex": 1,
        "answers": {"t1": {"answer": "a"}},
        "searchParams": {"PROLIFIC_PID": "xyz"},
        "metadata": {"language": "en-US"},
        "completed": False,
        "rejected": False,
        "participantTags": [],
    }
