"""Object store sink.

This module uploads ingested file content under the file's name.
Re-uploading the same name overwrites the stored object.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.constants import OBJECT_STORE_SINK_NAME
from core.errors import StorageUnavailable
from core.types import IngestedFile


class ObjectStoreSink:
    """Sink writing ``content`` to ``bucket/key_prefix + name``."""

    def __init__(
        self,
        client: Any,
        bucket: str,
        key_prefix: str = "",
        name: str = OBJECT_STORE_SINK_NAME,
    ) -> None:
        """Initialize sink.

        Args:
            client: Object with an S3-style ``put_object`` method.
            bucket: Destination bucket.
            key_prefix: Prefix prepended to every object key.
            name: Sink name used in reports and logs.
        """
        self.name = name
        self._client = client
        self._bucket = bucket
        self._key_prefix = key_prefix

    def object_key(self, record: IngestedFile) -> str:
        if not self._key_prefix:
            return record.name
        return f"{self._key_prefix.rstrip('/')}/{record.name}"

    def store(self, record: IngestedFile) -> str:
        """Upload record content.

        Args:
            record: Record to upload.

        Returns:
            Object key written.

        Raises:
            StorageUnavailable: If the store is unreachable or rejects the write.
        """
        object_key = self.object_key(record)
        try:
            self._client.put_object(Bucket=self._bucket, Key=object_key, Body=record.content)
        except (BotoCoreError, ClientError, OSError) as error:
            raise StorageUnavailable(
                f"Failed to upload {record.name} to {self._bucket}/{object_key}: {error}. "
                "Check object store endpoint, credentials, and bucket."
            ) from error
        return object_key
