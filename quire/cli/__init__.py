"""Command line interface for study administration."""

from __future__ import annotations

from quire.cli.main import cli

__all__ = ["cli"]
