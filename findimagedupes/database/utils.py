"""
Shared utilities for database operations.

Provides:
- PruneStats: Summary of a prune run
- Conversions between unsigned fingerprints and SQLite's signed INTEGER
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ..models import StoreEntry


_UINT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63


@dataclass
class PruneStats:
    """Statistics about a prune run."""
    checked: int = 0
    deleted: int = 0
    updated: int = 0
    errors: int = 0

    @property
    def changed(self) -> int:
        return self.deleted + self.updated


def to_signed(fingerprint: int) -> int:
    """
    Map an unsigned 64-bit fingerprint onto SQLite's signed INTEGER range.

    Examples:
        >>> to_signed(1)
        1
        >>> to_signed(0xFFFFFFFFFFFFFFFF)
        -1
    """
    fingerprint &= _UINT64_MASK
    return fingerprint - (1 << 64) if fingerprint & _INT64_SIGN else fingerprint


def to_unsigned(value: int) -> int:
    """Inverse of to_signed."""
    return value & _UINT64_MASK


def row_to_entry(row: sqlite3.Row) -> StoreEntry:
    """
    Convert database row to StoreEntry object.

    Rows written by older tools may carry a NULL modification time;
    those read back as 0 so that prune refreshes them.
    """
    return StoreEntry(
        path=row['path'],
        fingerprint=to_unsigned(row['fingerprint'] or 0),
        last_modified=row['lastModified'] or 0,
    )


__all__ = [
    'PruneStats',
    'to_signed',
    'to_unsigned',
    'row_to_entry',
]
