"""Broadcast dispatch layer.

This module delivers each ingested file to all registered sinks.
Sink failures are isolated from one another.
"""
