"""
SQLite store lifecycle management.

The store works on an in-memory SQLite database. When a snapshot path
is configured the snapshot is loaded on open, and written back with the
SQLite backup API after every successful mutating transaction.

One writer at a time: ``transaction()`` holds a lock for the whole
BEGIN ... COMMIT/ROLLBACK span.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from credvault.core.exceptions import StoreError
from credvault.core.logging import get_logger

logger = get_logger(__name__)

CREDENTIAL_TABLE = "ulp_entries"

WEBSITE_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS websites (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT UNIQUE NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS technologies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT UNIQUE NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS website_technologies (
        website_id INTEGER NOT NULL REFERENCES websites(id) ON DELETE CASCADE,
        technology_id INTEGER NOT NULL REFERENCES technologies(id),
        PRIMARY KEY (website_id, technology_id)
    )
    """,
)

CREDENTIAL_SCHEMA = (
    f"""
    CREATE TABLE IF NOT EXISTS {CREDENTIAL_TABLE} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        url TEXT NOT NULL,
        username TEXT NOT NULL,
        password TEXT NOT NULL,
        notes TEXT DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_ulp_url ON {CREDENTIAL_TABLE}(url)",
    f"CREATE INDEX IF NOT EXISTS idx_ulp_username ON {CREDENTIAL_TABLE}(username)",
    f"CREATE INDEX IF NOT EXISTS idx_ulp_created_at ON {CREDENTIAL_TABLE}(created_at)",
)

UNIQUE_CREDENTIAL_INDEX = (
    f"CREATE UNIQUE INDEX IF NOT EXISTS idx_ulp_unique "
    f"ON {CREDENTIAL_TABLE}(url, username, password)"
)


class SQLiteStore:
    """
    Owned handle on the relational store.

    Create one per application (or per test) and pass it to the
    repositories; nothing here is module-global.
    """

    def __init__(
        self, snapshot_path: str | Path | None = None, unique_entries: bool = False
    ) -> None:
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self.unique_entries = unique_entries
        self._lock = threading.RLock()
        self.conn = sqlite3.connect(
            ":memory:", check_same_thread=False, isolation_level=None
        )
        self.conn.row_factory = sqlite3.Row
        self._load_snapshot()
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.init_schema()

    def _load_snapshot(self) -> None:
        if self.snapshot_path is None or not self.snapshot_path.exists():
            return
        source = sqlite3.connect(self.snapshot_path)
        try:
            source.backup(self.conn)
        finally:
            source.close()
        logger.info("Loaded store snapshot from %s", self.snapshot_path)

    def init_schema(self) -> None:
        """Create every table and index that does not exist yet."""
        with self._lock:
            for statement in WEBSITE_SCHEMA + self.credential_schema():
                self.conn.execute(statement)

    def credential_schema(self) -> tuple[str, ...]:
        if self.unique_entries:
            return CREDENTIAL_SCHEMA + (UNIQUE_CREDENTIAL_INDEX,)
        return CREDENTIAL_SCHEMA

    def save_snapshot(self) -> None:
        """
        Write the whole database to the snapshot file.

        A failed write is logged and left for the next successful
        transaction to retry; the committed in-memory state stays valid.
        """
        if self.snapshot_path is None:
            return
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            target = sqlite3.connect(self.snapshot_path)
            try:
                self.conn.backup(target)
            finally:
                target.close()
        except (OSError, sqlite3.Error) as exc:
            logger.error("Failed to write store snapshot to %s: %s", self.snapshot_path, exc)
            return
        logger.debug("Store snapshot written to %s", self.snapshot_path)

    @contextmanager
    def transaction(self, operation: str) -> Iterator[sqlite3.Cursor]:
        """
        Run the enclosed statements as one all-or-nothing transaction.

        Commits and snapshots on success. On any error the transaction is
        rolled back and the error is raised as StoreError.
        """
        with self._lock:
            cursor = None
            began = False
            try:
                cursor = self.conn.cursor()
                cursor.execute("BEGIN IMMEDIATE")
                began = True
                yield cursor
                cursor.execute("COMMIT")
            except Exception as exc:
                if began and self.conn.in_transaction:
                    cursor.execute("ROLLBACK")
                logger.error("Transaction '%s' rolled back: %s", operation, exc)
                if isinstance(exc, StoreError):
                    raise
                raise StoreError(operation, str(exc)) from exc
            finally:
                if cursor is not None:
                    cursor.close()
            self.save_snapshot()

    def query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a read-only statement and return all rows."""
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                logger.error("Query failed: %s", exc)
                raise StoreError("query", str(exc)) from exc

    def export_snapshot(self, destination: str | Path) -> Path:
        """Copy the current database into a standalone SQLite file."""
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            target = sqlite3.connect(destination)
            try:
                self.conn.backup(target)
            finally:
                target.close()
        return destination

    def close(self) -> None:
        with self._lock:
            self.conn.close()
        logger.info("Store closed")
