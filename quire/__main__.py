"""CLI entry point for quire package.

Allows running via: python -m quire
"""

from __future__ import annotations

from quire.cli.main import cli

if __name__ == "__main__":
    cli()
