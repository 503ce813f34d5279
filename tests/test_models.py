"""
Unit tests for data models.
"""

import dataclasses

import pytest

from findimagedupes.models import DuplicateGroup, Job, Result, StoreEntry


class TestJob:
    """Test Job dataclass."""

    def test_frozen(self):
        job = Job(path="a.jpg", mod_time=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            job.path = "b.jpg"

    def test_hashable(self):
        assert len({Job("a.jpg", 1), Job("a.jpg", 1)}) == 1


class TestResult:

    def test_fields(self):
        result = Result(fingerprint=0xFF, path="a.jpg")
        assert result.fingerprint == 0xFF
        assert result.path == "a.jpg"


class TestStoreEntry:

    def test_default_mtime(self):
        assert StoreEntry("/a.jpg", 1).last_modified == 0


class TestDuplicateGroup:
    """Test DuplicateGroup dataclass."""

    def test_default_paths_not_shared(self):
        g1, g2 = DuplicateGroup(1), DuplicateGroup(2)
        g1.paths.append("a")
        assert g2.paths == []
