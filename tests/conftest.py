"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from core.config import RelayConfig


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


class RecordingS3Client:
    """In-memory stand-in for the boto3 ``put_object`` surface."""

    def __init__(self, fail_with: str | None = None) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls = 0
        self.fail_with = fail_with

    def put_object(self, Bucket: str, Key: str, Body: bytes, **_: Any) -> dict[str, Any]:
        self.put_calls += 1
        if self.fail_with is not None:
            raise ClientError(
                {"Error": {"Code": self.fail_with, "Message": "rejected"}}, "PutObject"
            )
        self.objects[(Bucket, Key)] = bytes(Body)
        return {"ETag": '"etag"'}


@pytest.fixture
def s3_client() -> RecordingS3Client:
    """Fake S3 client that keeps uploaded objects in memory."""
    return RecordingS3Client()


@pytest.fixture
def failing_s3_client() -> RecordingS3Client:
    """Fake S3 client that rejects every upload."""
    return RecordingS3Client(fail_with="AccessDenied")


@pytest.fixture
def relay_config(tmp_path: Path) -> RelayConfig:
    """Config pointing every path at the test temp directory."""
    return RelayConfig(
        inbound_dir=tmp_path / "inbound",
        require_stable_size=False,
        poll_interval_seconds=0.01,
        object_store_backend="local",
        local_store_root=tmp_path / "objects",
        catalog_path=tmp_path / "catalog.db",
    )
