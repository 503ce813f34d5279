"""
FingerprintStore facade class for coordinating database operations.

Provides a unified interface to all store operations using the facade pattern.
"""

from __future__ import annotations

import sqlite3
from typing import Callable, Optional

from ..cancellation import CancellationToken
from ..models import StoreEntry
from .connection import ConnectionManager, StoreError
from .schema import initialize_schema, SCHEMA_VERSION
from .operations import FingerprintOperations
from .maintenance import MaintenanceOperations
from .utils import PruneStats


class FingerprintStore:
    """
    SQLite-backed mapping from (absolute path, mtime) to fingerprint.

    Thread-safe: every lookup and upsert is serialized through one lock.
    Uses facade pattern to delegate to specialized components.

    Usage:
        with FingerprintStore(db_path) as store:
            fp = store.lookup(abspath, mtime_ns)
            if fp is None:
                fp = oracle.compute_fingerprint(path)
                store.upsert(abspath, mtime_ns, fp)
    """

    SCHEMA_VERSION = SCHEMA_VERSION

    def __init__(self, db_path: str):
        """
        Open (creating if needed) the fingerprint store.

        Args:
            db_path: Path to SQLite database file

        Raises:
            StoreError: if the database cannot be opened or initialized
        """
        self.db_path = db_path

        self._conn_mgr = ConnectionManager(self.db_path)
        self._operations = FingerprintOperations(self._conn_mgr)
        self._maintenance = MaintenanceOperations(self._conn_mgr)

        try:
            with self._conn_mgr.connection() as conn:
                initialize_schema(conn)
        except sqlite3.Error as e:
            self._conn_mgr.close()
            raise StoreError(f"cannot initialize fingerprint database {db_path}: {e}") from e

    def __enter__(self) -> 'FingerprintStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Delegate to FingerprintOperations
    def lookup(self, path: str, last_modified: int,
               token: Optional[CancellationToken] = None) -> Optional[int]:
        """Get the fingerprint stored for path if its mtime is unchanged."""
        return self._operations.lookup(path, last_modified, token)

    def upsert(self, path: str, last_modified: int, fingerprint: int,
               token: Optional[CancellationToken] = None) -> None:
        """Insert or replace the fingerprint stored for path."""
        self._operations.upsert(path, last_modified, fingerprint, token)

    def entries(self, token: Optional[CancellationToken] = None) -> list[StoreEntry]:
        """Return every stored entry."""
        return self._operations.entries(token)

    # Delegate to MaintenanceOperations
    def prune(self, fingerprint_fn: Callable[[str], int],
              token: Optional[CancellationToken] = None) -> PruneStats:
        """Drop entries of missing files and refresh entries of modified ones."""
        return self._maintenance.prune(fingerprint_fn, token)

    def get_stats(self) -> dict:
        """Get store statistics."""
        return self._maintenance.get_stats()

    @property
    def closed(self) -> bool:
        return self._conn_mgr.closed

    def close(self) -> None:
        """Close the underlying database connection."""
        self._conn_mgr.close()


__all__ = ['FingerprintStore']
