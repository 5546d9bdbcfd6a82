"""Unit tests for the directory poller."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import ConfigurationError, ReadFailure
from ingest.directory_poller import DirectoryPoller


def test_scan_emits_matching_files_on_first_sight(tmp_path: Path) -> None:
    """Without stability checks, matching files are reported immediately."""
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "skip.csv").write_text("c", encoding="utf-8")
    (tmp_path / "nested.txt").mkdir()
    poller = DirectoryPoller(tmp_path, "*.txt", require_stable_size=False)

    detected = poller.scan()

    assert [path.name for path in detected] == ["a.txt", "b.txt"]


def test_scan_waits_for_stable_size(tmp_path: Path) -> None:
    """A growing file is reported only once two scans agree on its size."""
    target = tmp_path / "growing.txt"
    target.write_text("part", encoding="utf-8")
    poller = DirectoryPoller(tmp_path, "*.txt", require_stable_size=True)

    first_scan = poller.scan()
    target.write_text("partial content", encoding="utf-8")
    second_scan = poller.scan()
    third_scan = poller.scan()

    assert first_scan == [] and second_scan == []
    assert [path.name for path in third_scan] == ["growing.txt"]


def test_scan_reports_each_file_once(tmp_path: Path) -> None:
    """Reported files are held back on later scans."""
    (tmp_path / "once.txt").write_text("x", encoding="utf-8")
    poller = DirectoryPoller(tmp_path, "*.txt", require_stable_size=False)

    first_scan = poller.scan()
    second_scan = poller.scan()

    assert len(first_scan) == 1 and second_scan == []
    assert poller.is_suppressed(first_scan[0])


def test_release_reoffers_file(tmp_path: Path) -> None:
    """Released files are reported again on the next scan."""
    (tmp_path / "retry.txt").write_text("x", encoding="utf-8")
    poller = DirectoryPoller(tmp_path, "*.txt", require_stable_size=False)
    (detected,) = poller.scan()

    poller.release(detected)

    assert poller.scan() == [detected]


def test_vanished_file_with_same_name_is_new(tmp_path: Path) -> None:
    """A file that disappears and reappears is reported again."""
    target = tmp_path / "same.txt"
    target.write_text("first", encoding="utf-8")
    poller = DirectoryPoller(tmp_path, "*.txt", require_stable_size=False)
    poller.scan()
    target.unlink()
    poller.scan()
    target.write_text("second", encoding="utf-8")

    assert poller.scan() == [target.resolve()]


def test_missing_directory_is_configuration_error(tmp_path: Path) -> None:
    """A missing directory fails at construction unless auto-created."""
    with pytest.raises(ConfigurationError):
        DirectoryPoller(tmp_path / "missing", "*.txt", auto_create=False)


def test_auto_create_makes_missing_directory(tmp_path: Path) -> None:
    """Auto-create should create the watched directory."""
    poller = DirectoryPoller(tmp_path / "created", "*.txt", auto_create=True)

    assert poller.directory.is_dir()


def test_file_path_is_configuration_error(tmp_path: Path) -> None:
    """Pointing the poller at a regular file is rejected."""
    regular_file = tmp_path / "file.txt"
    regular_file.write_text("x", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        DirectoryPoller(regular_file, "*.txt", auto_create=True)


def test_scan_raises_read_failure_when_directory_removed(tmp_path: Path) -> None:
    """Losing the directory after startup is a per-cycle read failure."""
    watched = tmp_path / "watched"
    poller = DirectoryPoller(watched, "*.txt", auto_create=True)
    watched.rmdir()

    with pytest.raises(ReadFailure):
        poller.scan()
