"""Public SDK surface for filerelay.

This module provides a stable import path for embedding the relay.
It re-exports the pipeline builders, sinks, and typed models.
"""

from __future__ import annotations

from core.config import RelayConfig, load_relay_config
from core.errors import (
    ConfigurationError,
    DeleteFailure,
    PersistenceUnavailable,
    ReadFailure,
    RelayError,
    StorageUnavailable,
)
from core.logging_config import configure_logging
from core.types import CatalogRecord, CycleReport, DispatchReport, IngestedFile, IngestionOutcome
from dispatch.broadcast import BroadcastDispatcher, Sink
from ingest.directory_poller import DirectoryPoller
from ingest.pipeline import IngestPipeline, build_pipeline, build_sinks
from ingest.transformer import IngestionTransformer
from store.catalog_db import CatalogStore
from store.catalog_sink import CatalogSink
from store.local_object_store import LocalObjectStoreClient
from store.object_store_sink import ObjectStoreSink

__all__ = [
    "BroadcastDispatcher",
    "CatalogRecord",
    "CatalogSink",
    "CatalogStore",
    "ConfigurationError",
    "CycleReport",
    "DeleteFailure",
    "DirectoryPoller",
    "DispatchReport",
    "IngestPipeline",
    "IngestedFile",
    "IngestionOutcome",
    "IngestionTransformer",
    "LocalObjectStoreClient",
    "ObjectStoreSink",
    "PersistenceUnavailable",
    "ReadFailure",
    "RelayConfig",
    "RelayError",
    "Sink",
    "StorageUnavailable",
    "build_pipeline",
    "build_sinks",
    "configure_logging",
    "load_relay_config",
]
