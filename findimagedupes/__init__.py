"""
findimagedupes
==============
Find visually similar or duplicate images.

Features:
- 64-bit perceptual fingerprints (pHash)
- Configurable Hamming distance threshold
- Concurrent fingerprinting with a bounded worker pool
- SQLite fingerprint database for fast re-scans and check-new mode
- Print groups to stdout or open them in any image viewer
- Clean shutdown on interrupt
"""

__version__ = "1.0.0"

from .models import Job, Result, StoreEntry, DuplicateGroup
from .config import DEFAULT_THRESHOLD, DEFAULT_JOBS, MAX_THRESHOLD
from .cancellation import CancellationToken, OperationCancelled
from .database import FingerprintStore, StoreError, PruneStats
from .scanner import (
    FingerprintError,
    FingerprintOracle,
    hamming_distance,
    walk_tree,
    run_pipeline,
    find_duplicate_groups,
)

__all__ = [
    "Job",
    "Result",
    "StoreEntry",
    "DuplicateGroup",
    "DEFAULT_THRESHOLD",
    "DEFAULT_JOBS",
    "MAX_THRESHOLD",
    "CancellationToken",
    "OperationCancelled",
    "FingerprintStore",
    "StoreError",
    "PruneStats",
    "FingerprintError",
    "FingerprintOracle",
    "hamming_distance",
    "walk_tree",
    "run_pipeline",
    "find_duplicate_groups",
]
