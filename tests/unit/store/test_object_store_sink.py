"""Unit tests for the object store sink and its backends."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from core.config import RelayConfig
from core.errors import StorageUnavailable
from core.types import IngestedFile
from store.local_object_store import LocalObjectStoreClient
from store.object_store_sink import ObjectStoreSink
from store.s3_client import build_session_kwargs


def _record(name: str, content: bytes) -> IngestedFile:
    return IngestedFile.from_content(name, content, datetime.now(timezone.utc))


def test_store_uploads_content_under_file_name(s3_client) -> None:
    """Content should be stored under key == file name."""
    sink = ObjectStoreSink(s3_client, "file-to-s3-demo")

    key = sink.store(_record("report.txt", b"hello world"))

    assert key == "report.txt"
    assert s3_client.objects == {("file-to-s3-demo", "report.txt"): b"hello world"}


def test_store_twice_overwrites_single_object(s3_client) -> None:
    """Re-uploading the same name should leave one object."""
    sink = ObjectStoreSink(s3_client, "file-to-s3-demo")

    sink.store(_record("report.txt", b"first"))
    sink.store(_record("report.txt", b"second"))

    assert s3_client.objects == {("file-to-s3-demo", "report.txt"): b"second"}


def test_store_applies_key_prefix(s3_client) -> None:
    """Configured prefixes are prepended to object keys."""
    sink = ObjectStoreSink(s3_client, "file-to-s3-demo", key_prefix="inbound/")

    key = sink.store(_record("a.txt", b"a"))

    assert key == "inbound/a.txt"


def test_store_raises_storage_unavailable_on_rejection(failing_s3_client) -> None:
    """Client rejections surface as StorageUnavailable."""
    sink = ObjectStoreSink(failing_s3_client, "file-to-s3-demo")

    with pytest.raises(StorageUnavailable):
        sink.store(_record("report.txt", b"hello world"))

    assert failing_s3_client.put_calls == 1


def test_local_backend_overwrites_and_lists(tmp_path: Path) -> None:
    """The local backend should mirror S3 overwrite semantics."""
    client = LocalObjectStoreClient(tmp_path / "objects")
    sink = ObjectStoreSink(client, "file-to-s3-demo")

    sink.store(_record("report.txt", b"first"))
    sink.store(_record("report.txt", b"hello world"))

    assert client.list_keys("file-to-s3-demo") == ["report.txt"]
    assert client.get_object("file-to-s3-demo", "report.txt") == b"hello world"


def test_local_backend_rejects_escaping_keys(tmp_path: Path) -> None:
    """Keys must stay inside the bucket directory."""
    sink = ObjectStoreSink(LocalObjectStoreClient(tmp_path), "bucket")

    with pytest.raises(StorageUnavailable):
        sink.store(_record("../outside.txt", b"x"))


def test_session_kwargs_include_static_credentials() -> None:
    """Static credentials and region are forwarded to boto3."""
    config = RelayConfig(s3_access_key_id="key", s3_secret_access_key="secret")

    kwargs = build_session_kwargs(config)

    assert kwargs == {
        "region_name": "us-east-1",
        "aws_access_key_id": "key",
        "aws_secret_access_key": "secret",
    }


def test_session_kwargs_defer_to_default_chain() -> None:
    """Without credentials only the region is set."""
    config = RelayConfig(s3_access_key_id=None, s3_secret_access_key=None)

    assert build_session_kwargs(config) == {"region_name": "us-east-1"}
