"""Pytest fixtures for config module tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture
def sample_yaml_file(tmp_path: Path) -> Path:
    """Create a sample YAML config file for testing.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory path provided by pytest.

    Returns
    -------
    Path
        Path to the created YAML config file.
    """
    config_file = tmp_path / "quire.yaml"
    config_file.write_text(
        """
backend:
  backend: supabase
  url: https://example.supabase.co
  anon_key: public-anon-key
  bucket: pilot
throttle:
  window_seconds: 1.5
logging:
  level: DEBUG
"""
    )
    return config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove QUIRE_ variables inherited from the outer environment."""
    for name in list(os.environ):
        if name.startswith("QUIRE_"):
            monkeypatch.delenv(name)
    return monkeypatch
