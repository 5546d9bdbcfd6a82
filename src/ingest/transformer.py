"""Ingestion transform stage.

This module turns one detected file into an immutable ``IngestedFile``,
hands it to the broadcast dispatcher, and removes the source afterwards.
A file that cannot be read never produces a record and is left in place.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Collection

from core.constants import DEFAULT_MAX_READ_ATTEMPTS, DELETE_AFTER_DISPATCH, DELETE_AFTER_READ
from core.errors import DeleteFailure, ReadFailure
from core.logging_config import get_logger
from core.types import DispatchReport, IngestedFile, IngestionOutcome
from dispatch.broadcast import BroadcastDispatcher

_LOGGER = get_logger(__name__)


def read_ingested_file(path: Path, clock: Callable[[], datetime]) -> IngestedFile:
    """Read a whole file into an in-flight record.

    Args:
        path: Source file path.
        clock: Returns the read timestamp.

    Returns:
        Record with size equal to the number of bytes read.

    Raises:
        ReadFailure: If the file vanished or cannot be read.
    """
    try:
        content = path.read_bytes()
    except OSError as error:
        raise ReadFailure(
            f"Failed to read source file {path}: {error}. "
            "The file stays in place and is retried on the next poll."
        ) from error
    return IngestedFile.from_content(name=path.name, content=content, timestamp=clock())


def delete_source_file(path: Path) -> None:
    """Remove an ingested source file.

    Raises:
        DeleteFailure: If the file cannot be removed.
    """
    try:
        path.unlink()
    except OSError as error:
        raise DeleteFailure(
            f"Failed to delete ingested source file {path}: {error}. "
            "Remove it manually; it will not be reprocessed while it stays in place."
        ) from error


class IngestionTransformer:
    """Read, hand off, and clean up one file at a time."""

    def __init__(
        self,
        dispatcher: BroadcastDispatcher,
        max_read_attempts: int = DEFAULT_MAX_READ_ATTEMPTS,
        delete_policy: str = DELETE_AFTER_DISPATCH,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._max_read_attempts = max_read_attempts
        self._delete_policy = delete_policy
        self._clock = clock or _utc_now
        self._read_attempts: dict[Path, int] = {}

    def process(self, path: Path) -> IngestionOutcome:
        """Ingest one detected file.

        Args:
            path: Detected source file.

        Returns:
            Outcome describing how far the file progressed.
        """
        log = _LOGGER.bind(pipeline="transform", file_name=path.name)
        try:
            record = read_ingested_file(path, self._clock)
        except ReadFailure as error:
            return self._record_read_failure(path, error)
        self._read_attempts.pop(path, None)
        log.info("file_read", size=record.size, timestamp=record.timestamp.isoformat())
        if self._delete_policy == DELETE_AFTER_READ:
            return self._delete_then_dispatch(path, record)
        return self._dispatch_then_delete(path, record)

    def read_attempts(self, path: Path) -> int:
        """Return consecutive failed reads recorded for a path."""
        return self._read_attempts.get(path, 0)

    def prune_read_attempts(self, present: Collection[Path]) -> None:
        """Drop failure counts for paths no longer in the directory.

        A file arriving later under the same name then starts from zero.
        """
        for path in [path for path in self._read_attempts if path not in present]:
            del self._read_attempts[path]

    def _dispatch_then_delete(self, path: Path, record: IngestedFile) -> IngestionOutcome:
        report = self._handoff(record)
        if report is None:
            return IngestionOutcome(
                file_name=record.name,
                status="dispatch_failed",
                error="dispatcher raised before all sinks were attempted",
            )
        try:
            delete_source_file(path)
        except DeleteFailure as error:
            _log_delete_failure(path, error)
            return IngestionOutcome(
                file_name=record.name, status="delete_failed", report=report, error=str(error)
            )
        return IngestionOutcome(file_name=record.name, status="ingested", report=report)

    def _delete_then_dispatch(self, path: Path, record: IngestedFile) -> IngestionOutcome:
        try:
            delete_source_file(path)
        except DeleteFailure as error:
            _log_delete_failure(path, error)
            return IngestionOutcome(file_name=record.name, status="delete_failed", error=str(error))
        report = self._handoff(record)
        if report is None:
            return IngestionOutcome(
                file_name=record.name,
                status="dispatch_failed",
                error="dispatcher raised after the source was deleted",
            )
        return IngestionOutcome(file_name=record.name, status="ingested", report=report)

    def _handoff(self, record: IngestedFile) -> DispatchReport | None:
        try:
            return self._dispatcher.dispatch(record)
        except Exception:
            _LOGGER.exception("dispatch_unrecoverable", pipeline="transform", file_name=record.name)
            return None

    def _record_read_failure(self, path: Path, error: ReadFailure) -> IngestionOutcome:
        attempts = self._read_attempts.get(path, 0) + 1
        if attempts >= self._max_read_attempts:
            self._read_attempts.pop(path, None)
            _LOGGER.error(
                "read_failure_exhausted",
                pipeline="transform",
                file_name=path.name,
                path=str(path),
                attempts=attempts,
                error=str(error),
            )
            return IngestionOutcome(file_name=path.name, status="read_exhausted", error=str(error))
        self._read_attempts[path] = attempts
        _LOGGER.warning(
            "read_failed",
            pipeline="transform",
            file_name=path.name,
            attempts=attempts,
            max_attempts=self._max_read_attempts,
            error=str(error),
        )
        return IngestionOutcome(file_name=path.name, status="read_failed", error=str(error))


def _log_delete_failure(path: Path, error: DeleteFailure) -> None:
    _LOGGER.error(
        "source_delete_failed",
        pipeline="transform",
        file_name=path.name,
        path=str(path),
        error=str(error),
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
