"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from ragcore.db.migrations import MIGRATIONS, current_version, run_migrations
from ragcore.errors import StoreError

CURRENT_VERSION = MIGRATIONS[-1][0]


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the corpus schema via the migration runner (idempotent).

    Raises:
        StoreError: If the database was written by a newer schema version.
    """
    run_migrations(conn)
    version = current_version(conn)
    if version > CURRENT_VERSION:
        raise StoreError(
            f"Database schema version {version} is newer than supported "
            f"version {CURRENT_VERSION}; upgrade ragcore."
        )
