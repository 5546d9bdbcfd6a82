"""Broadcast delivery of ingested files.

This module fans one ``IngestedFile`` out to every registered sink.
Each sink is attempted independently: a failure at one sink is logged
and reported but never blocks, retries, or rolls back another sink.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from types import TracebackType
from typing import Protocol, Sequence

from core.errors import ConfigurationError, RelayError
from core.logging_config import get_logger
from core.types import DispatchReport, IngestedFile, SinkOutcome

_LOGGER = get_logger(__name__)


class Sink(Protocol):
    """Consumer capability: accept one record, return a result or raise."""

    name: str

    def store(self, record: IngestedFile) -> str | None:
        """Deliver one record and return an identifying result."""


class BroadcastDispatcher:
    """Explicit fan-out over an ordered set of sinks."""

    def __init__(self, sinks: Sequence[Sink], parallel: bool = True) -> None:
        """Initialize dispatcher.

        Args:
            sinks: Sinks in registration order.
            parallel: Run sink deliveries concurrently.

        Raises:
            ConfigurationError: If no sinks are given or names repeat.
        """
        if not sinks:
            raise ConfigurationError("Broadcast dispatcher requires at least one sink.")
        names = [sink.name for sink in sinks]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Duplicate sink names registered: {', '.join(duplicates)}. "
                "Give each sink a unique name."
            )
        self._sinks = tuple(sinks)
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False
        if parallel and len(self._sinks) > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=len(self._sinks), thread_name_prefix="filerelay-sink"
            )

    @property
    def sink_names(self) -> tuple[str, ...]:
        return tuple(sink.name for sink in self._sinks)

    def dispatch(self, record: IngestedFile) -> DispatchReport:
        """Deliver a record to every sink and collect per-sink outcomes.

        Args:
            record: Immutable record shared read-only by all sinks.

        Returns:
            Report with one outcome per sink, in registration order.

        Raises:
            RelayError: If the dispatcher was closed.
        """
        if self._closed:
            raise RelayError(
                f"Dispatcher for sinks {list(self.sink_names)} is closed. "
                "Build a new dispatcher to deliver more records."
            )
        if self._executor is None:
            outcomes = [_deliver(sink, record) for sink in self._sinks]
        else:
            futures = [self._executor.submit(_deliver, sink, record) for sink in self._sinks]
            outcomes = [future.result() for future in futures]
        report = DispatchReport(file_name=record.name, outcomes=tuple(outcomes))
        _LOGGER.info(
            "file_dispatched",
            pipeline="dispatch",
            file_name=record.name,
            sinks=list(self.sink_names),
            failed_sinks=list(report.failed_sinks),
        )
        return report

    def close(self) -> None:
        """Release the worker pool; later dispatch calls raise."""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "BroadcastDispatcher":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


def _deliver(sink: Sink, record: IngestedFile) -> SinkOutcome:
    """Run one sink and convert its failure into an outcome.

    Args:
        sink: Target sink.
        record: Record to deliver.

    Returns:
        Success or failure outcome for this sink only.
    """
    log = _LOGGER.bind(pipeline=sink.name, file_name=record.name)
    try:
        result = sink.store(record)
    except RelayError as error:
        log.error("sink_delivery_failed", error=str(error), error_type=type(error).__name__)
        return SinkOutcome(
            sink_name=sink.name,
            succeeded=False,
            error=str(error),
            error_type=type(error).__name__,
        )
    except Exception as error:
        log.exception("sink_delivery_crashed", error_type=type(error).__name__)
        return SinkOutcome(
            sink_name=sink.name,
            succeeded=False,
            error=str(error),
            error_type=type(error).__name__,
        )
    log.info("sink_delivered", result=result)
    return SinkOutcome(sink_name=sink.name, succeeded=True, result=result)
