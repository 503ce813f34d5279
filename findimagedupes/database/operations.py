"""
Core lookup and upsert operations for the fingerprint store.

Provides FingerprintOperations, used concurrently by every worker.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from ..cancellation import CancellationToken
from ..models import StoreEntry
from .connection import ConnectionManager, StoreError
from .utils import to_signed, to_unsigned, row_to_entry


logger = logging.getLogger(__name__)


class FingerprintOperations:
    """
    Handles point lookups, upserts and full scans of the fingerprints table.

    Every call is serialized by the connection manager; a cancelled token
    makes a waiting call raise OperationCancelled instead of touching the
    database.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Initialize fingerprint operations.

        Args:
            connection_manager: ConnectionManager instance for database access
        """
        self.conn_mgr = connection_manager

    def lookup(
        self,
        path: str,
        last_modified: int,
        token: Optional[CancellationToken] = None,
    ) -> Optional[int]:
        """
        Get the stored fingerprint of a file if it has not changed.

        Args:
            path: Absolute path of the file
            last_modified: Current modification time in nanoseconds
            token: Optional cancellation token

        Returns:
            Fingerprint if stored with the same modification time, None otherwise

        Raises:
            StoreError: on database failure
            OperationCancelled: if cancelled while waiting for the store
        """
        try:
            with self.conn_mgr.connection(token) as conn:
                row = conn.execute(
                    "SELECT fingerprint FROM fingerprints WHERE path = ? AND lastModified = ?",
                    (path, last_modified),
                ).fetchone()
        except (sqlite3.Error, UnicodeError) as e:
            raise StoreError(f"lookup of {path} failed: {e}") from e

        if row is None:
            return None
        return to_unsigned(row['fingerprint'])

    def upsert(
        self,
        path: str,
        last_modified: int,
        fingerprint: int,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """
        Insert or replace the fingerprint of a file.

        Args:
            path: Absolute path of the file (primary key)
            last_modified: Modification time in nanoseconds
            fingerprint: Unsigned 64-bit fingerprint
            token: Optional cancellation token

        Raises:
            StoreError: on database failure
            OperationCancelled: if cancelled while waiting for the store
        """
        try:
            with self.conn_mgr.connection(token) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO fingerprints (path, fingerprint, lastModified) "
                    "VALUES (?, ?, ?)",
                    (path, to_signed(fingerprint), last_modified),
                )
        except (sqlite3.Error, UnicodeError) as e:
            raise StoreError(f"upsert of {path} failed: {e}") from e

    def entries(self, token: Optional[CancellationToken] = None) -> list[StoreEntry]:
        """
        Read every stored fingerprint.

        Returns:
            List of StoreEntry ordered by path

        Raises:
            StoreError: on database failure
        """
        try:
            with self.conn_mgr.connection(token) as conn:
                rows = conn.execute(
                    "SELECT path, fingerprint, lastModified FROM fingerprints ORDER BY path"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"cannot read fingerprints: {e}") from e

        return [row_to_entry(row) for row in rows]


__all__ = ['FingerprintOperations']
