"""Catalog sink.

This module records one metadata row per ingested file.
Repeated names produce separate rows with distinct identifiers.
"""

from __future__ import annotations

from core.constants import CATALOG_SINK_NAME
from core.types import IngestedFile
from store.catalog_db import CatalogStore


class CatalogSink:
    """Sink persisting ``name``, ``timestamp`` and ``size`` to the catalog."""

    def __init__(self, catalog: CatalogStore, name: str = CATALOG_SINK_NAME) -> None:
        self.name = name
        self._catalog = catalog

    def insert(self, record: IngestedFile) -> int:
        """Persist record metadata and return the generated identifier.

        Raises:
            PersistenceUnavailable: If the catalog cannot accept the write.
        """
        return self._catalog.insert(record).id

    def store(self, record: IngestedFile) -> str:
        return str(self.insert(record))
