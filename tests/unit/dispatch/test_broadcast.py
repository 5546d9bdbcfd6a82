"""Unit tests for broadcast dispatch."""

from __future__ import annotations

from datetime import datetime, timezone
import threading

import pytest

from core.errors import (
    ConfigurationError,
    PersistenceUnavailable,
    RelayError,
    StorageUnavailable,
)
from core.types import IngestedFile
from dispatch.broadcast import BroadcastDispatcher


class _RecordingSink:
    def __init__(self, name: str, error: Exception | None = None) -> None:
        self.name = name
        self.error = error
        self.received: list[IngestedFile] = []

    def store(self, record: IngestedFile) -> str:
        self.received.append(record)
        if self.error is not None:
            raise self.error
        return f"{self.name}:{record.name}"


class _BarrierSink:
    """Sink that only returns once every sibling sink has started."""

    def __init__(self, name: str, barrier: threading.Barrier) -> None:
        self.name = name
        self._barrier = barrier

    def store(self, record: IngestedFile) -> str:
        self._barrier.wait(timeout=5)
        return record.name


def _sample_record() -> IngestedFile:
    return IngestedFile.from_content(
        "report.txt", b"hello world", datetime(2024, 1, 1, tzinfo=timezone.utc)
    )


@pytest.mark.parametrize("parallel", [True, False])
def test_dispatch_delivers_same_record_to_every_sink(parallel: bool) -> None:
    """Every sink should observe the same record value."""
    first, second = _RecordingSink("first"), _RecordingSink("second")
    record = _sample_record()

    with BroadcastDispatcher([first, second], parallel=parallel) as dispatcher:
        report = dispatcher.dispatch(record)

    assert report.succeeded
    assert first.received == [record] and second.received == [record]
    assert [outcome.result for outcome in report.outcomes] == [
        "first:report.txt",
        "second:report.txt",
    ]


@pytest.mark.parametrize("parallel", [True, False])
def test_dispatch_isolates_sink_failure(parallel: bool) -> None:
    """A failing sink must not prevent delivery to its sibling."""
    failing = _RecordingSink("catalog", PersistenceUnavailable("db down"))
    healthy = _RecordingSink("object_store")

    with BroadcastDispatcher([failing, healthy], parallel=parallel) as dispatcher:
        report = dispatcher.dispatch(_sample_record())

    assert report.failed_sinks == ("catalog",)
    assert len(healthy.received) == 1
    failed_outcome = report.outcome_for("catalog")
    assert failed_outcome is not None
    assert failed_outcome.error_type == "PersistenceUnavailable"


def test_dispatch_contains_unexpected_sink_exception() -> None:
    """Untyped sink crashes are reported, not raised."""
    crashing = _RecordingSink("crashing", RuntimeError("boom"))
    storage = _RecordingSink("storage", StorageUnavailable("unreachable"))

    with BroadcastDispatcher([crashing, storage]) as dispatcher:
        report = dispatcher.dispatch(_sample_record())

    assert report.failed_sinks == ("crashing", "storage")
    assert report.succeeded is False


def test_parallel_dispatch_runs_sinks_concurrently() -> None:
    """Parallel delivery must not serialize sinks behind one another."""
    barrier = threading.Barrier(2)
    sinks = [_BarrierSink("left", barrier), _BarrierSink("right", barrier)]

    with BroadcastDispatcher(sinks, parallel=True) as dispatcher:
        report = dispatcher.dispatch(_sample_record())

    assert report.succeeded


def test_duplicate_sink_names_are_rejected() -> None:
    """Sink names identify outcomes and must be unique."""
    with pytest.raises(ConfigurationError):
        BroadcastDispatcher([_RecordingSink("same"), _RecordingSink("same")])


def test_empty_sink_list_is_rejected() -> None:
    """A dispatcher without sinks is a configuration error."""
    with pytest.raises(ConfigurationError):
        BroadcastDispatcher([])


@pytest.mark.parametrize("parallel", [True, False])
def test_dispatch_after_close_raises(parallel: bool) -> None:
    """A closed dispatcher refuses further records."""
    sink = _RecordingSink("first")
    dispatcher = BroadcastDispatcher([sink, _RecordingSink("second")], parallel=parallel)
    dispatcher.close()

    with pytest.raises(RelayError):
        dispatcher.dispatch(_sample_record())
    assert sink.received == []
