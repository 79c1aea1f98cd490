"""Test fixtures for CLI tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from pytest_mock import MockerFixture

from quire.backends import create_memory_backend
from quire.engines import ObjectStoreStorageEngine
from quire.identity import InMemoryIdentityStore


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI test runner.

    Returns
    -------
    CliRunner
        Click test runner.
    """
    return CliRunner()


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep CLI runs off the filesystem identity store and console logging."""
    monkeypatch.setenv("QUIRE_IDENTITY__BACKEND", "memory")
    monkeypatch.setenv("QUIRE_LOGGING__CONSOLE", "false")
    logger = logging.getLogger("quire")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


@pytest.fixture
def shared_engine(mocker: MockerFixture) -> ObjectStoreStorageEngine:
    """Engine reused by every CLI invocation within one test.

    Each command normally builds its own engine; sharing one memory backend
    lets a test run several commands against the same study.
    """
    engine = ObjectStoreStorageEngine(create_memory_backend(), InMemoryIdentityStore())
    mocker.patch("quire.cli.main.create_engine", return_value=engine)
    return engine


@pytest.fixture
def study_file(tmp_path: Path) -> Path:
    """Study configuration written as JSON."""
    path = tmp_path / "study.json"
    path.write_text(json.dumps({"version": 1, "studyMetadata": {"title": "Pilot"}}))
    return path


@pytest.fixture
def pool_file(tmp_path: Path) -> Path:
    """Sequence pool written as YAML."""
    path = tmp_path / "pool.yaml"
    path.write_text("- [t1, t2]\n- [t3, t4]\n")
    return path


@pytest.fixture
def study_document() -> dict[str, Any]:
    """Content of ``study_file``."""
    return {"version": 1, "studyMetadata": {"title": "Pilot"}}
