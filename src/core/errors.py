"""Filerelay exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base exception for all filerelay failures."""


class ConfigurationError(RelayError):
    """Raised for invalid runtime configuration; fatal at startup."""


class ReadFailure(RelayError):
    """Raised when a source file or the watched directory cannot be read."""


class DeleteFailure(RelayError):
    """Raised when an ingested source file cannot be removed."""


class StorageUnavailable(RelayError):
    """Raised when the object store is unreachable or rejects a write."""


class PersistenceUnavailable(RelayError):
    """Raised when the metadata catalog cannot accept a write."""
