"""Polling ingest pipeline.

This module wires the directory poller, ingestion transformer, and
broadcast dispatcher into a fixed-delay polling loop. Per-file and
per-sink failures are contained; only configuration errors are fatal.
"""

from __future__ import annotations

from pathlib import Path
import threading
from types import TracebackType
from typing import Callable

from core.config import RelayConfig
from core.constants import OBJECT_STORE_LOCAL
from core.errors import ReadFailure
from core.logging_config import get_logger
from core.types import CycleReport, IngestionOutcome
from dispatch.broadcast import BroadcastDispatcher, Sink
from ingest.directory_poller import DirectoryPoller
from ingest.transformer import IngestionTransformer
from store.catalog_db import CatalogStore
from store.catalog_sink import CatalogSink
from store.local_object_store import LocalObjectStoreClient
from store.object_store_sink import ObjectStoreSink
from store.s3_client import create_s3_client

_LOGGER = get_logger(__name__)

# Statuses whose file should be offered again on the next scan.
_RETRY_STATUSES = ("read_failed", "dispatch_failed")


class IngestPipeline:
    """Polling loop driving read, dispatch, and cleanup per detected file."""

    def __init__(
        self,
        poller: DirectoryPoller,
        transformer: IngestionTransformer,
        dispatcher: BroadcastDispatcher,
        poll_interval_seconds: float,
        catalog: CatalogStore | None = None,
    ) -> None:
        self._poller = poller
        self._transformer = transformer
        self._dispatcher = dispatcher
        self._poll_interval_seconds = poll_interval_seconds
        self._catalog = catalog
        self._cycle_number = 0

    @property
    def poller(self) -> DirectoryPoller:
        return self._poller

    def run_cycle(self) -> CycleReport:
        """Scan once and process each newly detected file to completion.

        Returns:
            Summary of this cycle's per-file outcomes.
        """
        self._cycle_number += 1
        try:
            detected = self._poller.scan()
        except ReadFailure as error:
            _LOGGER.error(
                "poll_failed", pipeline="poll", cycle=self._cycle_number, error=str(error)
            )
            return CycleReport(cycle_number=self._cycle_number, detected_count=0, outcomes=())
        self._transformer.prune_read_attempts(self._poller.listed)
        outcomes = tuple(self._process_file(path) for path in detected)
        report = CycleReport(
            cycle_number=self._cycle_number, detected_count=len(detected), outcomes=outcomes
        )
        if detected:
            _LOGGER.info(
                "cycle_completed",
                cycle=report.cycle_number,
                detected=report.detected_count,
                ingested=report.count("ingested"),
                read_failed=report.count("read_failed"),
                delete_failed=report.count("delete_failed"),
            )
        return report

    def run(
        self,
        stop_event: threading.Event | None = None,
        max_cycles: int | None = None,
        on_cycle: Callable[[CycleReport], None] | None = None,
    ) -> int:
        """Run cycles with a fixed delay until stopped.

        Args:
            stop_event: Event that ends the loop between cycles.
            max_cycles: Optional bound on the number of cycles.
            on_cycle: Optional callback receiving each cycle report.

        Returns:
            Number of cycles executed.
        """
        stop_event = stop_event or threading.Event()
        _LOGGER.info(
            "pipeline_started",
            directory=str(self._poller.directory),
            sinks=list(self._dispatcher.sink_names),
            poll_interval_seconds=self._poll_interval_seconds,
        )
        cycles = 0
        while not stop_event.is_set():
            if max_cycles is not None and cycles >= max_cycles:
                break
            report = self.run_cycle()
            cycles += 1
            if on_cycle is not None:
                on_cycle(report)
            if max_cycles is not None and cycles >= max_cycles:
                break
            stop_event.wait(self._poll_interval_seconds)
        _LOGGER.info("pipeline_stopped", cycles=cycles)
        return cycles

    def close(self) -> None:
        """Release dispatcher workers and the catalog connection."""
        self._dispatcher.close()
        if self._catalog is not None:
            self._catalog.close()

    def __enter__(self) -> "IngestPipeline":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _process_file(self, path: Path) -> IngestionOutcome:
        try:
            outcome = self._transformer.process(path)
        except Exception as error:
            _LOGGER.exception("file_processing_crashed", pipeline="transform", file_name=path.name)
            self._poller.release(path)
            return IngestionOutcome(file_name=path.name, status="dispatch_failed", error=str(error))
        if outcome.status == "ingested":
            self._poller.acknowledge(path)
        elif outcome.status in _RETRY_STATUSES:
            self._poller.release(path)
        elif outcome.status == "delete_failed" and outcome.report is None:
            # deleted-before-dispatch policy: nothing reached the sinks yet
            self._poller.release(path)
        return outcome


def build_sinks(config: RelayConfig, catalog: CatalogStore) -> list[Sink]:
    """Build the object store and catalog sinks from config.

    Args:
        config: Runtime configuration.
        catalog: Opened catalog store.

    Returns:
        Sinks in registration order.
    """
    if config.object_store_backend == OBJECT_STORE_LOCAL:
        client = LocalObjectStoreClient(config.local_store_root)
    else:
        client = create_s3_client(config)
    return [
        ObjectStoreSink(client, bucket=config.bucket, key_prefix=config.key_prefix),
        CatalogSink(catalog),
    ]


def build_pipeline(
    config: RelayConfig,
    sinks: list[Sink] | None = None,
    catalog: CatalogStore | None = None,
) -> IngestPipeline:
    """Assemble a pipeline from config.

    Args:
        config: Runtime configuration.
        sinks: Optional sink override; defaults to object store plus catalog.
        catalog: Optional catalog override used by the default sinks.

    Returns:
        Ready-to-run pipeline.

    Raises:
        ConfigurationError: If the inbound directory is unusable.
        PersistenceUnavailable: If the catalog cannot be opened.
    """
    poller = DirectoryPoller(
        config.inbound_dir,
        config.file_pattern,
        require_stable_size=config.require_stable_size,
        auto_create=config.auto_create_inbound_dir,
    )
    if sinks is None:
        catalog = catalog or CatalogStore(config.catalog_path)
        sinks = build_sinks(config, catalog)
    dispatcher = BroadcastDispatcher(sinks, parallel=config.parallel_sinks)
    transformer = IngestionTransformer(
        dispatcher,
        max_read_attempts=config.max_read_attempts,
        delete_policy=config.delete_policy,
    )
    return IngestPipeline(
        poller,
        transformer,
        dispatcher,
        poll_interval_seconds=config.poll_interval_seconds,
        catalog=catalog,
    )
