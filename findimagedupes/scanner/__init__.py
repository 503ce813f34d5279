"""
Scanner package for findimagedupes.

Provides the concurrent fingerprinting pipeline and the clustering of
fingerprints into duplicate groups.

Public API:
- walk_tree: Dispatch a Job per regular file under a root
- FingerprintOracle: Per-worker MIME classification and pHash computation
- hamming_distance: Bit distance between two fingerprints
- WorkerPool / PipelineStats: Fingerprinting threads and their counters
- Aggregator: Single consumer of worker results
- run_pipeline: Walk, fingerprint and aggregate in one call
- find_duplicate_groups: Cluster fingerprints and collect groups
- has_heif_support: Check if HEIC/HEIF support is available (logged under -v)
"""

from __future__ import annotations

from .file_discovery import walk_tree
from .hashing import (
    FingerprintError,
    FingerprintOracle,
    calculate_perceptual_hash,
    hamming_distance,
    is_image_type,
)
from .aggregator import Aggregator
from .parallel import WorkerPool, PipelineStats
from .pipeline import run_pipeline
from .deduplication import (
    cluster_fingerprints,
    reconcile_with_store,
    collect_duplicate_groups,
    find_duplicate_groups,
)

from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    # File discovery
    'walk_tree',
    # Fingerprinting
    'FingerprintError',
    'FingerprintOracle',
    'calculate_perceptual_hash',
    'hamming_distance',
    'is_image_type',
    # Pipeline
    'Aggregator',
    'WorkerPool',
    'PipelineStats',
    'run_pipeline',
    # Clustering
    'cluster_fingerprints',
    'reconcile_with_store',
    'collect_duplicate_groups',
    'find_duplicate_groups',
    # Feature detection
    'has_heif_support',
]
