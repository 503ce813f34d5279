"""
Deduplication module for the scanner package.

Merges fingerprints that lie within a Hamming distance threshold and turns
the resulting mapping into an ordered list of duplicate groups.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ..models import DuplicateGroup, StoreEntry
from .hashing import hamming_distance

DistanceFn = Callable[[int, int], int]


def _extend_unique(paths: list[str], extra: Iterable[str]) -> None:
    for path in extra:
        if path not in paths:
            paths.append(path)


def cluster_fingerprints(
    groups: dict[int, list[str]],
    threshold: int,
    distance: DistanceFn = hamming_distance,
) -> dict[int, list[str]]:
    """
    Merge groups whose fingerprints are within threshold, in place.

    Fingerprints are visited in ascending order; for every pair i < j that
    both still exist, group j is absorbed into group i when
    distance(i, j) <= threshold. This is a single greedy pass: once a
    fingerprint has been absorbed it is no longer a merge target, so
    closeness is not transitive.

    Args:
        groups: Mapping of fingerprint -> paths, mutated in place
        threshold: Maximum distance for merging; 0 disables merging
        distance: Distance function between two fingerprints

    Returns:
        The same mapping, for chaining

    Examples:
        >>> g = {0b000: ['a'], 0b111: ['b'], 0b111111: ['c']}
        >>> sorted(cluster_fingerprints(g, 3))
        [0, 63]
    """
    if threshold <= 0 or len(groups) < 2:
        return groups

    hashes = sorted(groups)
    for i, h1 in enumerate(hashes):
        if h1 not in groups:
            continue
        for h2 in hashes[i + 1:]:
            if h2 not in groups:
                continue
            if distance(h1, h2) <= threshold:
                _extend_unique(groups[h1], groups.pop(h2))

    return groups


def reconcile_with_store(
    groups: dict[int, list[str]],
    entries: Iterable[StoreEntry],
    threshold: int,
    distance: DistanceFn = hamming_distance,
) -> dict[int, list[str]]:
    """
    Add stored files that resemble the freshly fingerprinted ones, in place.

    A stored entry joins the group with the identical fingerprint if there
    is one; otherwise the first group (ascending fingerprint order) within
    threshold. Entries close to no group are ignored.

    Args:
        groups: Clustered mapping of fingerprint -> paths
        entries: Every entry of the fingerprint store
        threshold: Maximum distance for a match
        distance: Distance function between two fingerprints

    Returns:
        The same mapping, for chaining
    """
    hashes = sorted(groups)
    for entry in entries:
        paths = groups.get(entry.fingerprint)
        if paths is None:
            for h in hashes:
                if distance(entry.fingerprint, h) <= threshold:
                    paths = groups[h]
                    break
        if paths is not None and entry.path not in paths:
            paths.append(entry.path)
    return groups


def collect_duplicate_groups(groups: dict[int, list[str]]) -> list[DuplicateGroup]:
    """
    Build the ordered list of duplicate groups.

    Groups with fewer than two paths are dropped; paths are sorted within a
    group and groups are ordered by fingerprint, so the output does not
    depend on the order results arrived in.
    """
    return [
        DuplicateGroup(fingerprint=h, paths=sorted(groups[h]))
        for h in sorted(groups)
        if len(groups[h]) >= 2
    ]


def find_duplicate_groups(
    groups: dict[int, list[str]],
    threshold: int = 0,
    store_entries: Optional[Iterable[StoreEntry]] = None,
    distance: DistanceFn = hamming_distance,
    logger: Optional[logging.Logger] = None,
) -> list[DuplicateGroup]:
    """
    Cluster, optionally reconcile with the store, and collect the groups.

    Args:
        groups: Mapping of fingerprint -> paths produced by the aggregator
        threshold: Maximum Hamming distance for similarity (0-63)
        store_entries: Stored entries to match against (check-new mode)
        distance: Distance function between two fingerprints
        logger: Optional logger for status messages

    Returns:
        List of DuplicateGroup objects ordered by fingerprint
    """
    distinct = len(groups)
    cluster_fingerprints(groups, threshold, distance)
    if logger:
        logger.info(
            f"Clustered {distinct:,} distinct fingerprints into {len(groups):,} "
            f"(threshold={threshold})"
        )

    if store_entries is not None:
        reconcile_with_store(groups, store_entries, threshold, distance)

    return collect_duplicate_groups(groups)


__all__ = [
    'cluster_fingerprints',
    'reconcile_with_store',
    'collect_duplicate_groups',
    'find_duplicate_groups',
]
