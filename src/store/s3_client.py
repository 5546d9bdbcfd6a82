"""S3 client construction.

This module encapsulates boto3 session and client creation for the
object store sink, including endpoint overrides for local S3 stacks.
"""

from __future__ import annotations

from typing import Any

import boto3

from core.config import RelayConfig


def create_s3_client(config: RelayConfig) -> Any:
    """Create a boto3 S3 client for content uploads.

    Args:
        config: Runtime config with region, credentials, and endpoint.

    Returns:
        Boto3 S3 client.
    """
    session = boto3.session.Session(**build_session_kwargs(config))
    client_kwargs: dict[str, str] = {}
    if config.s3_endpoint:
        client_kwargs["endpoint_url"] = config.s3_endpoint
    return session.client("s3", **client_kwargs)


def build_session_kwargs(config: RelayConfig) -> dict[str, str]:
    """Build boto3 Session kwargs from config.

    Args:
        config: Runtime config.

    Returns:
        Session keyword arguments; credentials are omitted when unset so
        boto3 falls back to its default provider chain.
    """
    kwargs = {"region_name": config.s3_region}
    if config.s3_access_key_id and config.s3_secret_access_key:
        kwargs["aws_access_key_id"] = config.s3_access_key_id
        kwargs["aws_secret_access_key"] = config.s3_secret_access_key
    return kwargs
