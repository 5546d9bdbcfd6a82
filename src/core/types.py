"""Shared typed models.

This module defines immutable data models passed between the poller,
transformer, dispatcher, and sinks to keep stage interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

IngestionStatus = Literal[
    "ingested",
    "read_failed",
    "read_exhausted",
    "dispatch_failed",
    "delete_failed",
]


@dataclass(frozen=True)
class IngestedFile:
    """One file read from the watched directory.

    Attributes:
        id: Catalog identifier; absent until the catalog persists the file.
        name: Base file name, used as object key and catalog name.
        timestamp: UTC wall-clock time the content was read.
        size: Byte length of content at read time.
        content: Raw file bytes; never written to the catalog.
    """

    id: int | None
    name: str
    timestamp: datetime
    size: int
    content: bytes = field(repr=False)

    @classmethod
    def from_content(cls, name: str, content: bytes, timestamp: datetime) -> "IngestedFile":
        """Build an in-flight record whose size is the observed content length."""
        return cls(id=None, name=name, timestamp=timestamp, size=len(content), content=content)


@dataclass(frozen=True)
class CatalogRecord:
    """Persisted metadata row for one ingestion event.

    Attributes:
        id: Identifier generated by the catalog on insert.
        name: Original file name.
        timestamp: Read time of the ingested content.
        size: Byte length of the ingested content.
    """

    id: int
    name: str
    timestamp: datetime
    size: int

    def to_payload(self) -> dict[str, object]:
        """Render the record as a JSON-ready mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "timestamp": self.timestamp.isoformat(),
            "size": self.size,
        }


@dataclass(frozen=True)
class SinkOutcome:
    """Result of delivering one record to one sink."""

    sink_name: str
    succeeded: bool
    result: str | None = None
    error: str | None = None
    error_type: str | None = None


@dataclass(frozen=True)
class DispatchReport:
    """Per-sink outcomes for one broadcast, in sink registration order."""

    file_name: str
    outcomes: tuple[SinkOutcome, ...]

    @property
    def succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.outcomes)

    @property
    def failed_sinks(self) -> tuple[str, ...]:
        return tuple(outcome.sink_name for outcome in self.outcomes if not outcome.succeeded)

    def outcome_for(self, sink_name: str) -> SinkOutcome | None:
        for outcome in self.outcomes:
            if outcome.sink_name == sink_name:
                return outcome
        return None


@dataclass(frozen=True)
class IngestionOutcome:
    """Result of processing one detected file.

    Attributes:
        file_name: Base name of the detected file.
        status: Terminal state of this processing attempt.
        report: Dispatch report when the record reached the dispatcher.
        error: Failure message for non-ingested statuses.
    """

    file_name: str
    status: IngestionStatus
    report: DispatchReport | None = None
    error: str | None = None


@dataclass(frozen=True)
class CycleReport:
    """Summary of one polling cycle."""

    cycle_number: int
    detected_count: int
    outcomes: tuple[IngestionOutcome, ...]

    def count(self, status: IngestionStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def to_payload(self) -> dict[str, object]:
        """Render a JSON-ready cycle summary."""
        return {
            "cycle": self.cycle_number,
            "detected": self.detected_count,
            "files": [
                {
                    "name": outcome.file_name,
                    "status": outcome.status,
                    "failed_sinks": list(outcome.report.failed_sinks) if outcome.report else [],
                    "error": outcome.error,
                }
                for outcome in self.outcomes
            ],
        }
