"""Filesystem-backed object store.

This module mimics the ``put_object`` surface of an S3 client on a local
directory tree, for offline runs and tests without an S3 endpoint.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile
from typing import Any


class LocalObjectStoreClient:
    """Stores objects as ``<root>/<bucket>/<key>`` files."""

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def put_object(self, Bucket: str, Key: str, Body: bytes, **_: Any) -> dict[str, Any]:
        """Write an object, replacing any existing object under the same key.

        Raises:
            OSError: If the object cannot be written.
        """
        object_path = self._object_path(Bucket, Key)
        object_path.parent.mkdir(parents=True, exist_ok=True)
        file_descriptor, temp_name = tempfile.mkstemp(dir=object_path.parent, prefix=".upload-")
        try:
            with os.fdopen(file_descriptor, "wb") as handle:
                handle.write(Body)
            os.replace(temp_name, object_path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return {"ETag": f'"{len(Body)}"'}

    def get_object(self, Bucket: str, Key: str) -> bytes:
        """Return stored object bytes."""
        return self._object_path(Bucket, Key).read_bytes()

    def list_keys(self, Bucket: str) -> list[str]:
        """Return sorted object keys stored in a bucket."""
        bucket_dir = self._root / Bucket
        if not bucket_dir.is_dir():
            return []
        return sorted(
            path.relative_to(bucket_dir).as_posix()
            for path in bucket_dir.rglob("*")
            if path.is_file() and not path.name.startswith(".upload-")
        )

    def _object_path(self, bucket: str, key: str) -> Path:
        bucket_dir = (self._root / bucket).resolve()
        object_path = (bucket_dir / key).resolve()
        if bucket_dir not in object_path.parents:
            raise OSError(f"Object key '{key}' escapes bucket directory {bucket_dir}.")
        return object_path
