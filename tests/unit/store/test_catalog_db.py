"""Unit tests for the metadata catalog and catalog sink."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from core.errors import PersistenceUnavailable
from core.types import IngestedFile
from store.catalog_db import CatalogStore
from store.catalog_sink import CatalogSink

_READ_TIME = datetime(2024, 3, 2, 8, 30, tzinfo=timezone.utc)


def _record(name: str, content: bytes) -> IngestedFile:
    return IngestedFile.from_content(name, content, _READ_TIME)


def test_insert_assigns_identifier_and_keeps_metadata(tmp_path: Path) -> None:
    """Insert should return the generated id with unchanged metadata."""
    catalog = CatalogStore(tmp_path / "catalog.db")

    persisted = catalog.insert(_record("report.txt", b"hello world"))

    assert persisted.id >= 1
    assert (persisted.name, persisted.size, persisted.timestamp) == ("report.txt", 11, _READ_TIME)


def test_same_name_produces_distinct_rows(tmp_path: Path) -> None:
    """Catalog inserts are never merged by name."""
    sink = CatalogSink(CatalogStore(tmp_path / "catalog.db"))

    first_id = sink.insert(_record("dup.txt", b"one"))
    second_id = sink.insert(_record("dup.txt", b"three"))

    assert first_id != second_id


def test_list_records_returns_rows_in_id_order(tmp_path: Path) -> None:
    """Listing should expose id, name, timestamp, and size."""
    db_path = tmp_path / "catalog.db"
    catalog = CatalogStore(db_path)
    catalog.insert(_record("a.txt", b"a"))
    catalog.insert(_record("b.txt", b"bb"))
    catalog.close()

    records = CatalogStore(db_path).list_records()

    assert [record.to_payload()["name"] for record in records] == ["a.txt", "b.txt"]
    assert records[1].to_payload() == {
        "id": records[1].id,
        "name": "b.txt",
        "timestamp": _READ_TIME.isoformat(),
        "size": 2,
    }


def test_sink_store_returns_identifier_text(tmp_path: Path) -> None:
    """Sink results carry the catalog identifier."""
    sink = CatalogSink(CatalogStore(tmp_path / "catalog.db"))

    result = sink.store(_record("report.txt", b"hello world"))

    assert result.isdigit()


def test_insert_after_close_raises_persistence_unavailable(tmp_path: Path) -> None:
    """Writes against an unavailable database raise PersistenceUnavailable."""
    catalog = CatalogStore(tmp_path / "catalog.db")
    catalog.close()

    with pytest.raises(PersistenceUnavailable):
        catalog.insert(_record("late.txt", b"x"))


def test_open_fails_for_directory_path(tmp_path: Path) -> None:
    """An unusable database path fails at startup."""
    with pytest.raises(PersistenceUnavailable):
        CatalogStore(tmp_path)
