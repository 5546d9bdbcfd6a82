"""Object store and metadata catalog sinks.

This module uploads file content and persists per-ingestion metadata.
It also exposes the catalog listing used by the query surface.
"""
