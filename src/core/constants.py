"""Core constants used across filerelay modules.

This module centralizes defaults and fixed names.
Keeping values here avoids magic literals in pipeline logic.
"""

from __future__ import annotations

from pathlib import Path

ENV_PREFIX = "RELAY_"
DEFAULT_INBOUND_DIR = Path("loading-folder")
DEFAULT_FILE_PATTERN = "*.txt"
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_READ_ATTEMPTS = 3
DEFAULT_S3_ENDPOINT = "http://127.0.0.1:4566"
DEFAULT_S3_REGION = "us-east-1"
DEFAULT_S3_ACCESS_KEY_ID = "xxx"
DEFAULT_S3_SECRET_ACCESS_KEY = "xxx"
DEFAULT_BUCKET = "file-to-s3-demo"
DEFAULT_LOCAL_STORE_ROOT = Path(".filerelay") / "objects"
DEFAULT_CATALOG_PATH = Path(".filerelay") / "catalog.db"
DEFAULT_LOG_LEVEL = "INFO"
CATALOG_TABLE_NAME = "file_statistics"
DELETE_AFTER_DISPATCH = "after_dispatch"
DELETE_AFTER_READ = "after_read"
SUPPORTED_DELETE_POLICIES = (DELETE_AFTER_DISPATCH, DELETE_AFTER_READ)
OBJECT_STORE_S3 = "s3"
OBJECT_STORE_LOCAL = "local"
SUPPORTED_OBJECT_STORE_BACKENDS = (OBJECT_STORE_S3, OBJECT_STORE_LOCAL)
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
OBJECT_STORE_SINK_NAME = "object_store"
CATALOG_SINK_NAME = "catalog"
