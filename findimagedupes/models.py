"""
Data models for findimagedupes.

Contains dataclasses for the units of pipeline work, stored fingerprints,
and emitted duplicate groups.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Job:
    """
    One candidate file handed from the walker to the worker pool.

    Attributes:
        path: Path as discovered by the walker (used for display)
        mod_time: Modification time in nanoseconds since the epoch
    """
    path: str
    mod_time: int


@dataclass(frozen=True)
class Result:
    """A resolved fingerprint for one file."""
    fingerprint: int
    path: str


@dataclass(frozen=True)
class StoreEntry:
    """
    A row of the fingerprint store.

    Attributes:
        path: Absolute path (primary key)
        fingerprint: Unsigned 64-bit perceptual hash
        last_modified: Modification time in nanoseconds when fingerprinted
    """
    path: str
    fingerprint: int
    last_modified: int = 0


@dataclass
class DuplicateGroup:
    """
    A group of visually similar images.

    Attributes:
        fingerprint: Representative fingerprint of the group
        paths: Member paths, sorted lexically
    """
    fingerprint: int
    paths: list = field(default_factory=list)
