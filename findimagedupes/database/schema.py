"""
Database schema initialization and migrations.

Provides schema versioning and table creation for the fingerprint database.
"""

from __future__ import annotations

import sqlite3


# Schema version - increment when changing table structure
SCHEMA_VERSION = 1


def initialize_schema(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema with versioning support.

    Creates tables if they don't exist. Drops and recreates the
    fingerprints table if the schema version has changed.

    Args:
        conn: Active database connection

    Tables created:
        - meta: Schema version tracking
        - fingerprints: One perceptual hash per absolute path
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)

    result = conn.execute(
        "SELECT value FROM meta WHERE key = 'schema_version'"
    ).fetchone()

    current_version = int(result['value']) if result else 0

    if 0 < current_version < SCHEMA_VERSION:
        conn.execute("DROP TABLE IF EXISTS fingerprints")

    # Fingerprints are unsigned 64-bit values stored as signed INTEGERs,
    # lastModified is nanoseconds since the epoch
    conn.execute("""
        CREATE TABLE IF NOT EXISTS fingerprints (
            path TEXT PRIMARY KEY,
            fingerprint INTEGER NOT NULL,
            lastModified INTEGER NOT NULL
        )
    """)

    conn.execute("""
        INSERT OR REPLACE INTO meta (key, value)
        VALUES ('schema_version', ?)
    """, (str(SCHEMA_VERSION),))


__all__ = ['SCHEMA_VERSION', 'initialize_schema']
