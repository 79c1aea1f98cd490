"""Persistence layer for deployed survey and experiment studies.

This package tracks study configuration versions by content hash, binds
each participant to a task sequence exactly once, and persists partial
progress through a throttled writer on top of a remote object store.
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Aaron Steven White"
__email__ = "aaron.white@rochester.edu"
