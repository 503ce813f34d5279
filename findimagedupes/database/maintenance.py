"""
Maintenance operations for the fingerprint store.

Provides prune (drop entries of deleted files, refresh entries of modified
files) and statistics.
"""

from __future__ import annotations

import os
import sqlite3
import logging
from typing import Callable, Optional

from ..cancellation import CancellationToken
from .connection import ConnectionManager, StoreError
from .utils import PruneStats, row_to_entry, to_signed


logger = logging.getLogger(__name__)


class MaintenanceOperations:
    """
    Handles maintenance operations for the fingerprint store.

    Provides pruning and statistics reporting.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Initialize maintenance operations.

        Args:
            connection_manager: ConnectionManager instance for database access
        """
        self.conn_mgr = connection_manager

    def prune(
        self,
        fingerprint_fn: Callable[[str], int],
        token: Optional[CancellationToken] = None,
    ) -> PruneStats:
        """
        Reconcile stored entries with the filesystem.

        Entries of files that no longer exist are deleted. Entries whose
        file modification time changed are refreshed with a fingerprint
        from fingerprint_fn; if that fails the old entry is kept. All
        deletions and updates are applied in one transaction.

        Args:
            fingerprint_fn: Computes the fingerprint of a path; may raise
            token: Optional cancellation token checked per entry

        Returns:
            PruneStats describing what changed

        Raises:
            StoreError: if the store cannot be read or the transaction fails
                (nothing is committed in that case)
            OperationCancelled: if cancelled before the commit (nothing is
                committed)
        """
        stats = PruneStats()

        try:
            with self.conn_mgr.connection(token) as conn:
                rows = conn.execute(
                    "SELECT path, fingerprint, lastModified FROM fingerprints"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"cannot read fingerprints for pruning: {e}") from e

        to_delete: list[tuple[str]] = []
        to_update: list[tuple[int, int, str]] = []

        for row in rows:
            if token is not None:
                token.raise_if_cancelled()

            entry = row_to_entry(row)
            stats.checked += 1

            try:
                st = os.stat(entry.path)
            except FileNotFoundError:
                to_delete.append((entry.path,))
                continue
            except OSError as e:
                logger.error(f"{entry.path}: {e}")
                stats.errors += 1
                continue

            if st.st_mtime_ns == entry.last_modified:
                continue

            try:
                fingerprint = fingerprint_fn(entry.path)
            except Exception as e:
                logger.debug(f"Cannot refresh fingerprint of {entry.path}: {e}")
                continue
            if not fingerprint:
                continue

            to_update.append((to_signed(fingerprint), st.st_mtime_ns, entry.path))

        if not to_delete and not to_update:
            return stats

        try:
            with self.conn_mgr.connection(token) as conn:
                conn.executemany("DELETE FROM fingerprints WHERE path = ?", to_delete)
                conn.executemany(
                    "UPDATE fingerprints SET fingerprint = ?, lastModified = ? WHERE path = ?",
                    to_update,
                )
                if token is not None:
                    token.raise_if_cancelled()
        except sqlite3.Error as e:
            raise StoreError(f"prune failed, no changes were applied: {e}") from e

        stats.deleted = len(to_delete)
        stats.updated = len(to_update)
        logger.info(
            f"Pruned fingerprint database: {stats.deleted:,} removed, "
            f"{stats.updated:,} refreshed"
        )
        return stats

    def get_stats(self) -> dict:
        """
        Get store statistics.

        Returns:
            Dictionary with store statistics:
                - total_entries: Number of stored fingerprints
                - db_size_bytes: Database size in bytes
                - db_size_mb: Database size in MB
                - db_path: Path to database file
        """
        try:
            with self.conn_mgr.connection() as conn:
                total = conn.execute("SELECT COUNT(*) as cnt FROM fingerprints").fetchone()['cnt']
        except sqlite3.Error as e:
            logger.warning(f"Failed to get fingerprint database stats: {e}")
            total = 0

        db_size = os.path.getsize(self.conn_mgr.db_path) if os.path.exists(self.conn_mgr.db_path) else 0

        return {
            'total_entries': total,
            'db_size_bytes': db_size,
            'db_size_mb': round(db_size / (1024 * 1024), 2),
            'db_path': self.conn_mgr.db_path,
        }


__all__ = ['MaintenanceOperations']
