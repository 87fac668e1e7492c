"""Command-line runner for the event feed.

Prints the events of one relay as pretty JSON, newest first. Without
``--limit`` the feed subscribes; with it, a single bounded fetch runs.
``--follow`` keeps resubmitting and prints only events not shown yet, with a
Prometheus metrics server when enabled in the configuration.

Usage::

    python -m relaywatch RELAY [filter options]

Examples::

    python -m relaywatch relay.damus.io --kind 1 --limit 20
    python -m relaywatch wss://nos.lol --tags t:bitcoin --since-24h
    python -m relaywatch relay.damus.io --kind 1 --follow --interval 30
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import yaml
from pydantic import ValidationError

from relaywatch.core import ConfigurationError, load_yaml, start_metrics_server
from relaywatch.core.logger import Logger, StructuredFormatter
from relaywatch.models import FeedMode, RawFilterInput, RelayAddress
from relaywatch.services import FeedConfig, FeedController


if TYPE_CHECKING:
    from collections.abc import Sequence

    from relaywatch.models import FeedEvent


DEFAULT_INTERVAL = 30.0

logger = Logger("cli")


# =============================================================================
# Arguments
# =============================================================================


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the feed runner."""
    parser = argparse.ArgumentParser(
        prog="python -m relaywatch",
        description="Watch the events of a Nostr relay",
    )

    parser.add_argument("relay", help="Relay host or ws:// / wss:// URL")

    filters = parser.add_argument_group("filters")
    filters.add_argument("--kind", default="", help="Event kind")
    filters.add_argument("--limit", default="", help="Bounded fetch of at most N events")
    filters.add_argument("--author", default="", help="Author npub or hex public key")
    filters.add_argument("--since", default="", help="Unix timestamp lower bound")
    filters.add_argument("--until", default="", help="Unix timestamp upper bound")
    filters.add_argument("--tags", default="", help="Tag filters, e.g. t:bitcoin,p:abc123")
    filters.add_argument(
        "--since-24h", action="store_true", help="Only events of the last 24 hours"
    )
    filters.add_argument("--until-now", action="store_true", help="Only events up to now")

    parser.add_argument("--config", type=Path, help="Feed config path (YAML)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Keep resubmitting and print new events until interrupted",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL,
        help=f"Seconds between resubmissions with --follow (default: {DEFAULT_INTERVAL:g})",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Send all log records to stderr through the structured formatter."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level))


def build_input(args: argparse.Namespace, now: int | None = None) -> RawFilterInput:
    """Build the filter form input from parsed arguments."""
    raw = RawFilterInput(
        address=args.relay,
        kind=args.kind,
        limit=args.limit,
        author=args.author,
        since=args.since,
        until=args.until,
        tags=args.tags,
    )
    now = int(time.time()) if now is None else now
    if args.since_24h:
        raw = raw.with_since_last_day(now)
    if args.until_now:
        raw = raw.with_until_now(now)
    return raw


def load_config(path: Path | None) -> FeedConfig:
    """Load the feed configuration, or the defaults when *path* is ``None``.

    Raises:
        ConfigurationError: If the file is missing or its contents are not a valid config.
    """
    if path is None:
        return FeedConfig()
    try:
        return FeedConfig(**load_yaml(str(path)))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config {path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {path}: {e}") from e


# =============================================================================
# Runners
# =============================================================================


def print_events(events: Sequence[FeedEvent], out: TextIO) -> None:
    for event in events:
        print(event.to_json(), file=out)


async def run_once(feed: FeedController, raw: RawFilterInput, out: TextIO) -> int:
    """Run one activation and print its events.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    await feed.update(raw)
    if raw.has_limit():
        await feed.submit()
    state = await feed.wait()

    if state.mode is FeedMode.FAILED:
        print(state.error, file=sys.stderr)
        return 1

    print_events(state.events, out)
    return 0


async def run_follow(
    feed: FeedController, raw: RawFilterInput, interval: float, out: TextIO
) -> int:
    """Resubmit every *interval* seconds and print events not shown yet.

    Runs until SIGINT or SIGTERM.
    """
    shutdown = asyncio.Event()

    def handle_signal(sig: int, _frame: object) -> None:
        logger.info("shutdown_signal", signal=signal.Signals(sig).name)
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    metrics_config = feed.config.metrics
    metrics_server = await start_metrics_server(metrics_config)
    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    seen: set[str] = set()
    try:
        await feed.update(raw)
        if raw.has_limit():
            await feed.submit()

        while True:
            state = await feed.wait()
            if state.mode is FeedMode.FAILED:
                print(state.error, file=sys.stderr)
            else:
                fresh = [event for event in state.events if event.id not in seen]
                seen.update(event.id for event in fresh)
                print_events(fresh, out)

            try:
                await asyncio.wait_for(shutdown.wait(), timeout=interval)
            except TimeoutError:
                await feed.submit()
            else:
                return 0
    finally:
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")


async def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point: parse args, build the controller and run it."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    address = RelayAddress(args.relay)
    if not address.acceptable:
        print(f"Invalid relay address: {args.relay!r}", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error("config_failed", error=str(e))
        print(e, file=sys.stderr)
        return 1

    raw = build_input(args)
    try:
        async with FeedController(config) as feed:
            if args.follow:
                return await run_follow(feed, raw, args.interval, sys.stdout)
            return await run_once(feed, raw, sys.stdout)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    cli()
