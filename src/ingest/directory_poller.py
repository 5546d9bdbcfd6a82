"""Watched-directory polling.

This module lists one inbound directory and reports files that are
ready for ingestion. It never modifies or deletes the files it reports.
"""

from __future__ import annotations

from dataclasses import dataclass
import fnmatch
import os
from pathlib import Path

from core.errors import ConfigurationError, ReadFailure
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class _Observation:
    """Size and modification time seen for one entry in one scan."""

    size: int
    mtime_ns: int


class DirectoryPoller:
    """Accept-once scanner for a single inbound directory.

    A file is reported once it is stable: unchanged between two consecutive
    scans, or on first sight when ``require_stable_size`` is off. Reported
    files stay suppressed until they are released, acknowledged, or vanish.
    """

    def __init__(
        self,
        directory: Path,
        pattern: str,
        require_stable_size: bool = True,
        auto_create: bool = False,
    ) -> None:
        """Initialize and validate the watched directory.

        Args:
            directory: Directory to scan.
            pattern: Glob pattern matched against entry names.
            require_stable_size: Wait for an unchanged size before reporting.
            auto_create: Create the directory when it does not exist.

        Raises:
            ConfigurationError: If the directory is missing, not a directory,
                or not readable.
        """
        self._directory = directory.expanduser().resolve()
        self._pattern = pattern
        self._require_stable_size = require_stable_size
        self._pending: dict[Path, _Observation] = {}
        self._emitted: set[Path] = set()
        self._listed: frozenset[Path] = frozenset()
        _validate_directory(self._directory, auto_create)
        self._log = _LOGGER.bind(pipeline="poll", directory=str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def listed(self) -> frozenset[Path]:
        """Matching files seen by the most recent scan, ready or not."""
        return self._listed

    def scan(self) -> list[Path]:
        """List the directory and return files newly ready for ingestion.

        Returns:
            Newly stable matching files, sorted by name.

        Raises:
            ReadFailure: If the directory cannot be listed.
        """
        current = self._list_matching()
        self._listed = frozenset(current)
        self._forget_missing(current)
        ready: list[Path] = []
        for path, observation in sorted(current.items()):
            if path in self._emitted:
                continue
            if self._require_stable_size and self._pending.get(path) != observation:
                self._pending[path] = observation
                continue
            self._pending.pop(path, None)
            self._emitted.add(path)
            ready.append(path)
        if ready:
            self._log.debug("files_detected", count=len(ready))
        return ready

    def release(self, path: Path) -> None:
        """Re-offer a reported file on a later scan, e.g. after a read failure."""
        self._emitted.discard(path)
        self._pending.pop(path, None)

    def acknowledge(self, path: Path) -> None:
        """Forget a reported file whose source was removed after ingestion.

        A later file arriving under the same name is then treated as new.
        """
        self.release(path)

    def is_suppressed(self, path: Path) -> bool:
        """Return whether a file was reported and is still held back."""
        return path in self._emitted

    def _list_matching(self) -> dict[Path, _Observation]:
        try:
            entries = list(os.scandir(self._directory))
        except OSError as error:
            raise ReadFailure(
                f"Failed to list inbound directory {self._directory}: {error}. "
                "Check that the directory still exists and is readable."
            ) from error
        current: dict[Path, _Observation] = {}
        for entry in entries:
            if not fnmatch.fnmatch(entry.name, self._pattern):
                continue
            try:
                if not entry.is_file():
                    continue
                stat_result = entry.stat()
            except OSError:
                # vanished between listing and stat
                continue
            current[Path(entry.path)] = _Observation(
                size=stat_result.st_size, mtime_ns=stat_result.st_mtime_ns
            )
        return current

    def _forget_missing(self, current: dict[Path, _Observation]) -> None:
        self._emitted.intersection_update(current)
        for path in list(self._pending):
            if path not in current:
                del self._pending[path]


def _validate_directory(directory: Path, auto_create: bool) -> None:
    """Fail fast when the watched directory cannot be used.

    Args:
        directory: Resolved directory path.
        auto_create: Create the directory when missing.

    Raises:
        ConfigurationError: If the directory is unusable.
    """
    if not directory.exists():
        if not auto_create:
            raise ConfigurationError(
                f"Inbound directory {directory} does not exist. "
                "Create it or enable auto_create_inbound_dir."
            )
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise ConfigurationError(
                f"Failed to create inbound directory {directory}: {error}. "
                "Check permissions on the parent directory."
            ) from error
    if not directory.is_dir():
        raise ConfigurationError(
            f"Inbound path {directory} is not a directory. Point inbound_dir at a directory."
        )
    if not os.access(directory, os.R_OK | os.X_OK):
        raise ConfigurationError(
            f"Inbound directory {directory} is not readable. Grant read and list permissions."
        )
