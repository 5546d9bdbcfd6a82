"""Directory ingestion pipeline.

This module detects inbound files, reads each one into an immutable
record, and drives the fixed-delay polling loop.
"""
