"""
Database connection management with thread safety.

Provides ConnectionManager, which owns the single SQLite connection of a
fingerprint store and serializes every statement through one lock.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from ..cancellation import CancellationToken, acquire_interruptible


class StoreError(Exception):
    """Raised when the fingerprint store cannot be opened, read or written."""


class ConnectionManager:
    """
    Manages the SQLite connection of a fingerprint store.

    Provides context manager for transactions with:
    - One lock serializing reads and writes (the connection is shared by
      all worker threads)
    - WAL mode for better read/write concurrency with other processes
    - Transaction management (BEGIN/COMMIT/ROLLBACK)
    - Lock acquisition that gives up when the run is cancelled
    """

    def __init__(self, db_path: str):
        """
        Open the database.

        Args:
            db_path: Path to SQLite database file

        Raises:
            StoreError: if the database file cannot be opened
        """
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        try:
            self._ensure_directory()
            self._conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            # Enable WAL mode for better read/write concurrency
            self._conn.execute("PRAGMA journal_mode=WAL")
        except (OSError, sqlite3.Error) as e:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            raise StoreError(f"cannot open fingerprint database {db_path}: {e}") from e

    def _ensure_directory(self):
        """Ensure the directory for the database file exists."""
        db_path = Path(self.db_path).resolve()
        db_dir = db_path.parent

        if db_dir and db_dir != db_path:
            db_dir.mkdir(parents=True, exist_ok=True)

    @property
    def closed(self) -> bool:
        return self._conn is None

    @contextmanager
    def connection(
        self,
        token: Optional[CancellationToken] = None,
    ) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for one serialized transaction.

        Args:
            token: Optional cancellation token checked while waiting for
                the lock

        Yields:
            sqlite3.Connection inside an open transaction

        Raises:
            OperationCancelled: if cancelled while waiting for the lock
            StoreError: if the store has been closed

        Example:
            with conn_mgr.connection(token) as conn:
                conn.execute("INSERT ...")
        """
        acquire_interruptible(self._lock, token)
        try:
            if self._conn is None:
                raise StoreError(f"fingerprint database {self.db_path} is closed")
            conn = self._conn
            conn.execute("BEGIN")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            self._lock.release()

    def close(self) -> None:
        """Close the connection; further transactions raise StoreError."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                except sqlite3.Error as e:
                    raise StoreError(f"cannot close fingerprint database: {e}") from e
                finally:
                    self._conn = None


__all__ = ['ConnectionManager', 'StoreError']
