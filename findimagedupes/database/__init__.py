"""
SQLite fingerprint database for findimagedupes.

Provides persistent caching of perceptual fingerprints to enable:
- Incremental re-scans (only fingerprint new/changed files)
- Check-new mode (compare new files against everything seen before)

Entries are keyed by absolute path; a stored fingerprint is only used
while the file's modification time matches the stored one.

Public API:
- FingerprintStore: Main store class
- StoreError: Raised on database failures
- PruneStats: Statistics of a prune run
"""

from __future__ import annotations

from .connection import StoreError
from .core import FingerprintStore
from .utils import PruneStats


__all__ = [
    'FingerprintStore',
    'StoreError',
    'PruneStats',
]
