"""Filerelay CLI entry points.
This module exposes commands for the polling loop and catalog listing.
It maps argparse commands onto pipeline and catalog calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
import signal
import sys
import threading
from types import FrameType
from typing import Any, Sequence

from core.config import RelayConfig, load_relay_config
from core.constants import SUPPORTED_LOG_LEVELS
from core.errors import ConfigurationError, PersistenceUnavailable
from core.logging_config import configure_logging, get_logger
from core.types import CycleReport
from ingest.pipeline import build_pipeline
from store.catalog_db import CatalogStore

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="filerelay",
        description="Relay inbound files to an object store and a metadata catalog",
    )
    parser.add_argument("--config", help="YAML config file; RELAY_* env vars override it")
    parser.add_argument("--inbound-dir", help="Override the watched directory")
    parser.add_argument("--pattern", help="Override the file name glob, e.g. '*.txt'")
    parser.add_argument(
        "--poll-interval",
        type=float,
        help="Override the delay between polling cycles in seconds",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=SUPPORTED_LOG_LEVELS,
        help="Override the structured log level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_watch_command(subparsers)
    _add_ingest_once_command(subparsers)
    _add_records_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the filerelay CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args)
    except ConfigurationError as error:
        print(f"filerelay: configuration error: {error}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)
    try:
        if args.command == "watch":
            return _run_watch_command(config, args)
        if args.command == "ingest-once":
            return _run_ingest_once_command(config)
        if args.command == "records":
            return _run_records_command(config)
    except (ConfigurationError, PersistenceUnavailable) as error:
        print(f"filerelay: startup failed: {error}", file=sys.stderr)
        return 2
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(args: argparse.Namespace) -> RelayConfig:
    """Load config and apply CLI overrides.

    Args:
        args: Parsed CLI args.

    Returns:
        Validated config.

    Raises:
        ConfigurationError: If any source holds invalid values.
    """
    config = load_relay_config(args.config)
    if args.inbound_dir:
        config = replace(config, inbound_dir=Path(args.inbound_dir).expanduser())
    if args.pattern:
        config = replace(config, file_pattern=args.pattern)
    if args.poll_interval is not None:
        config = replace(config, poll_interval_seconds=args.poll_interval)
    if args.log_level:
        config = replace(config, log_level=args.log_level)
    config.validate()
    return config


def _run_watch_command(config: RelayConfig, args: argparse.Namespace) -> int:
    """Handle watch command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    stop_event = threading.Event()

    def _signal_handler(signum: int, frame: FrameType | None) -> None:
        _LOGGER.info("shutdown_requested", signal=signum)
        stop_event.set()

    previous_handlers: dict[int, Any] = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous_handlers[signum] = signal.signal(signum, _signal_handler)
    try:
        with build_pipeline(config) as pipeline:
            pipeline.run(stop_event=stop_event, max_cycles=args.max_cycles)
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
    return 0


def _run_ingest_once_command(config: RelayConfig) -> int:
    """Handle ingest-once command.

    Args:
        config: Runtime config.

    Returns:
        Exit code; 1 when any detected file was not fully ingested.
    """
    # a single scan has no earlier observation to compare sizes against
    config = replace(config, require_stable_size=False)
    with build_pipeline(config) as pipeline:
        report = pipeline.run_cycle()
    print(json.dumps(report.to_payload(), sort_keys=True))
    return 0 if _cycle_fully_ingested(report) else 1


def _run_records_command(config: RelayConfig) -> int:
    """Handle records command.

    Args:
        config: Runtime config.

    Returns:
        Exit code.
    """
    catalog = CatalogStore(config.catalog_path)
    try:
        records = catalog.list_records()
    finally:
        catalog.close()
    print(json.dumps([record.to_payload() for record in records], indent=2))
    return 0


def _cycle_fully_ingested(report: CycleReport) -> bool:
    return all(
        outcome.status == "ingested" and outcome.report is not None and outcome.report.succeeded
        for outcome in report.outcomes
    )


def _positive_int(raw_value: str) -> int:
    try:
        value = int(raw_value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw_value!r}") from error
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _add_watch_command(subparsers: Any) -> None:
    """Register watch subcommand."""
    watch_parser = subparsers.add_parser("watch", help="Poll the inbound directory until stopped")
    watch_parser.add_argument(
        "--max-cycles",
        type=_positive_int,
        default=None,
        help="Stop after this many polling cycles",
    )


def _add_ingest_once_command(subparsers: Any) -> None:
    """Register ingest-once subcommand."""
    subparsers.add_parser("ingest-once", help="Run a single polling cycle and print a summary")


def _add_records_command(subparsers: Any) -> None:
    """Register records subcommand."""
    subparsers.add_parser("records", help="List catalog records as JSON")
