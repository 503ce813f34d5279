"""
Unit tests for fingerprint clustering and group collection.
"""

from findimagedupes.models import DuplicateGroup, StoreEntry
from findimagedupes.scanner import (
    cluster_fingerprints,
    collect_duplicate_groups,
    find_duplicate_groups,
    hamming_distance,
    reconcile_with_store,
)


def table_distance(table):
    """Distance function backed by a symmetric lookup table."""
    def distance(a, b):
        return table[frozenset((a, b))]
    return distance


class TestClusterFingerprints:
    """Test the greedy threshold clustering."""

    def test_threshold_zero_keeps_groups(self):
        groups = {5: ['a', 'b'], 9: ['c']}
        cluster_fingerprints(groups, 0)
        assert groups == {5: ['a', 'b'], 9: ['c']}

    def test_merges_close_fingerprints(self):
        groups = {0b0000: ['a'], 0b0001: ['b'], 0b1111_0000: ['c']}
        cluster_fingerprints(groups, 1)
        assert groups == {0b0000: ['a', 'b'], 0b1111_0000: ['c']}

    def test_absorbed_fingerprint_is_not_a_target(self):
        """Test closeness does not chain through an absorbed fingerprint."""
        groups = {0: ['a'], 3: ['b'], 6: ['c']}
        distance = table_distance({
            frozenset((0, 3)): 3,
            frozenset((0, 6)): 6,
            frozenset((3, 6)): 3,
        })

        cluster_fingerprints(groups, 3, distance)

        assert groups == {0: ['a', 'b'], 6: ['c']}

    def test_real_hamming_non_transitive(self):
        # 0 -> 7 is 3 bits, 7 -> 63 is 3 bits, 0 -> 63 is 6 bits
        groups = {0: ['a'], 7: ['b'], 63: ['c']}
        cluster_fingerprints(groups, 3)
        assert groups == {0: ['a', 'b'], 63: ['c']}

    def test_paths_not_duplicated(self):
        groups = {1: ['a', 'b'], 3: ['b', 'c']}
        cluster_fingerprints(groups, 1)
        assert groups == {1: ['a', 'b', 'c']}


class TestReconcileWithStore:
    """Test matching stored fingerprints against fresh ones."""

    def test_exact_match_joins_group(self):
        groups = {10: ['/new/a.jpg']}
        entries = [StoreEntry('/old/a.jpg', 10)]
        reconcile_with_store(groups, entries, 0)
        assert groups == {10: ['/new/a.jpg', '/old/a.jpg']}

    def test_near_match_joins_first_close_group(self):
        groups = {0b0000: ['x'], 0b0011: ['y']}
        entries = [StoreEntry('/old/z.jpg', 0b0001)]
        reconcile_with_store(groups, entries, 1)
        assert groups == {0b0000: ['x', '/old/z.jpg'], 0b0011: ['y']}

    def test_distant_entry_ignored(self):
        groups = {0: ['x']}
        reconcile_with_store(groups, [StoreEntry('/old/far.jpg', 0xFF)], 3)
        assert groups == {0: ['x']}

    def test_same_path_not_added_twice(self):
        groups = {10: ['/photos/a.jpg']}
        reconcile_with_store(groups, [StoreEntry('/photos/a.jpg', 10)], 0)
        assert groups == {10: ['/photos/a.jpg']}


class TestCollectDuplicateGroups:
    """Test conversion to the ordered output groups."""

    def test_drops_singletons(self):
        assert collect_duplicate_groups({1: ['a'], 2: ['b', 'c']}) == [
            DuplicateGroup(2, ['b', 'c'])
        ]

    def test_ordering(self):
        groups = {9: ['z', 'y'], 3: ['q', 'p']}
        result = collect_duplicate_groups(groups)
        assert [g.fingerprint for g in result] == [3, 9]
        assert [g.paths for g in result] == [['p', 'q'], ['y', 'z']]


class TestFindDuplicateGroups:
    """Test the full clustering step."""

    def test_identical_fingerprints(self):
        groups = {5: ['a', 'b'], 9: ['c']}
        result = find_duplicate_groups(groups, threshold=0)
        assert [g.paths for g in result] == [['a', 'b']]

    def test_threshold(self):
        groups = {5: ['a', 'b'], 9: ['c']}
        assert hamming_distance(5, 9) == 2
        result = find_duplicate_groups(groups, threshold=2)
        assert [g.paths for g in result] == [['a', 'b', 'c']]

    def test_store_entries_complete_singleton(self):
        """Test a single new file forms a group with a stored look-alike."""
        groups = {42: ['new.jpg']}
        entries = [StoreEntry('/archive/old.jpg', 42), StoreEntry('/archive/x.jpg', 7)]
        result = find_duplicate_groups(groups, store_entries=entries)
        assert [g.paths for g in result] == [['/archive/old.jpg', 'new.jpg']]

    def test_empty(self):
        assert find_duplicate_groups({}) == []
