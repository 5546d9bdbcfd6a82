"""Sqlite-backed metadata catalog.

This module persists one metadata row per ingestion event and exposes
the read-only listing used by the catalog query surface. Content bytes
are never stored here.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sqlite3
import threading

from core.constants import CATALOG_TABLE_NAME
from core.errors import PersistenceUnavailable
from core.types import CatalogRecord, IngestedFile


class CatalogStore:
    """Insert-only catalog of ingested file statistics."""

    def __init__(self, db_path: Path) -> None:
        """Open or create the catalog database.

        Args:
            db_path: Sqlite database file; ``:memory:`` is accepted for tests.

        Raises:
            PersistenceUnavailable: If the database cannot be opened or initialized.
        """
        self._db_path = db_path
        self._lock = threading.Lock()
        try:
            if str(db_path) != ":memory:":
                db_path.expanduser().parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            _init_schema(self._conn)
        except (sqlite3.Error, OSError) as error:
            raise PersistenceUnavailable(
                f"Failed to open catalog database at {db_path}: {error}. "
                "Check the catalog path and its permissions."
            ) from error

    def insert(self, record: IngestedFile) -> CatalogRecord:
        """Insert a new metadata row; never merges by name.

        Args:
            record: Ingested file whose metadata is persisted.

        Returns:
            Persisted row with its generated identifier.

        Raises:
            PersistenceUnavailable: If the write is rejected.
        """
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(
                    f"INSERT INTO {CATALOG_TABLE_NAME} (name, timestamp, size) VALUES (?, ?, ?)",
                    (record.name, record.timestamp.isoformat(), record.size),
                )
        except sqlite3.Error as error:
            raise PersistenceUnavailable(
                f"Failed to insert catalog record for {record.name} into {self._db_path}: "
                f"{error}. Check catalog storage availability."
            ) from error
        record_id = cursor.lastrowid
        if record_id is None:
            raise PersistenceUnavailable(
                f"Catalog at {self._db_path} did not return an identifier for {record.name}."
            )
        return CatalogRecord(
            id=int(record_id), name=record.name, timestamp=record.timestamp, size=record.size
        )

    def list_records(self) -> list[CatalogRecord]:
        """Return every catalog row ordered by identifier.

        Raises:
            PersistenceUnavailable: If the catalog cannot be read.
        """
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT id, name, timestamp, size FROM {CATALOG_TABLE_NAME} ORDER BY id"
                ).fetchall()
        except sqlite3.Error as error:
            raise PersistenceUnavailable(
                f"Failed to read catalog records from {self._db_path}: {error}."
            ) from error
        return [_record_from_row(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def _init_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {CATALOG_TABLE_NAME} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            size INTEGER NOT NULL
        );
        """
    )
    conn.execute(
        f"CREATE INDEX IF NOT EXISTS idx_{CATALOG_TABLE_NAME}_name ON {CATALOG_TABLE_NAME}(name);"
    )
    conn.commit()


def _record_from_row(row: sqlite3.Row) -> CatalogRecord:
    return CatalogRecord(
        id=int(row["id"]),
        name=str(row["name"]),
        timestamp=datetime.fromisoformat(str(row["timestamp"])),
        size=int(row["size"]),
    )
