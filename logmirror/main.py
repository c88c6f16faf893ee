#!/usr/bin/env python3
"""
Main entry point for logmirror.

Usage:
    # Serve the HTTP API with periodic sync
    python -m logmirror.main serve --config mirror.yaml

    # Periodic sync without HTTP
    python -m logmirror.main watch --interval 30

    # One sync cycle
    python -m logmirror.main sync

    # Newest lines from the reversed file
    python -m logmirror.main tail --page-size 20
"""

import argparse
import json
import signal
import sys
import threading
from typing import List, Optional, Tuple

from logmirror.errors import MirrorError
from logmirror.remote.base import RemoteStore
from logmirror.remote.factory import create_store
from logmirror.scheduler import PeriodicSync
from logmirror.sync.orchestrator import SyncOrchestrator
from logmirror.utils.config import Config, get_config
from logmirror.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def positive_float(value: str) -> float:
    """argparse type for a strictly positive number of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'not a number: {value!r}')
    if not number > 0:
        raise argparse.ArgumentTypeError(f'must be positive, got {value}')
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='logmirror - incremental mirror of a remote append-only log'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML configuration file merged over the defaults'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: from config, INFO)'
    )

    parser.add_argument(
        '--log-format',
        type=str,
        default=None,
        choices=['json', 'console'],
        help='Log output format (default: from config, json)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Serve the HTTP API and sync periodically')
    serve.add_argument('--host', type=str, default=None, help='Host to bind to')
    serve.add_argument('--port', type=int, default=None, help='Port to listen on')
    serve.add_argument(
        '--interval',
        type=positive_float,
        default=None,
        help='Seconds between sync cycles (default: from config, 60)'
    )

    watch = subparsers.add_parser('watch', help='Sync periodically without serving HTTP')
    watch.add_argument(
        '--interval',
        type=positive_float,
        default=None,
        help='Seconds between sync cycles (default: from config, 60)'
    )

    subparsers.add_parser('sync', help='Run one sync cycle and print the result')

    tail = subparsers.add_parser('tail', help='Print newest lines from the reversed file')
    tail.add_argument('--page', type=int, default=1, help='Page number (default: 1)')
    tail.add_argument('--page-size', type=int, default=None, help='Lines per page')

    return parser.parse_args(argv)


def build_orchestrator(config: Config) -> Tuple[SyncOrchestrator, RemoteStore]:
    """
    Wire the remote store and orchestrator from configuration.

    Args:
        config: Application configuration

    Returns:
        Tuple of (orchestrator, store)
    """
    store, ref = create_store(config)
    orchestrator = SyncOrchestrator(
        store=store,
        ref=ref,
        local_log_file=config.get("mirror.local_log_file"),
        reversed_log_file=config.get("mirror.reversed_log_file"),
        fsync=bool(config.get("mirror.fsync", False)),
    )
    return orchestrator, store


def cmd_sync(orchestrator: SyncOrchestrator) -> int:
    try:
        result = orchestrator.run_cycle()
    except MirrorError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict()))
    return 0


def cmd_tail(orchestrator: SyncOrchestrator, page: int, page_size: int) -> int:
    try:
        result = orchestrator.read_page(page, page_size)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    for line in result.lines:
        print(line)
    return 0


def cmd_watch(orchestrator: SyncOrchestrator, interval: float) -> int:
    scheduler = PeriodicSync(orchestrator, interval_seconds=interval)
    stop_requested = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal, shutting down", signal=signum)
        stop_requested.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, handle_signal)

    scheduler.start()
    try:
        while not stop_requested.wait(1.0):
            pass
    finally:
        scheduler.stop()

    return 0


def cmd_serve(
    orchestrator: SyncOrchestrator,
    config: Config,
    host: str,
    port: int,
    interval: float,
) -> int:
    import uvicorn

    from logmirror.api.app import create_app

    app = create_app(
        orchestrator,
        scheduler=PeriodicSync(orchestrator, interval_seconds=interval),
        default_page_size=int(config.get("server.default_page_size", 100)),
        max_page_size=int(config.get("server.max_page_size", 1000)),
    )

    logger.info("Starting HTTP server", host=host, port=port)
    # uvicorn installs its own SIGINT/SIGTERM handlers and runs the lifespan
    # shutdown, which stops the scheduler.
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = get_config(args.config)
        config.validate()
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        configure_logging(
            log_level=args.log_level or config.get("logging.level", "INFO"),
            log_format=args.log_format or config.get("logging.format", "json"),
            log_output="stderr",
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    try:
        orchestrator, store = build_orchestrator(config)
    except (ValueError, MirrorError) as e:
        logger.error("Invalid remote configuration", error=str(e))
        return 2

    try:
        if args.command == 'sync':
            return cmd_sync(orchestrator)

        if args.command == 'tail':
            page_size = args.page_size
            if page_size is None:
                page_size = int(config.get("server.default_page_size", 100))
            return cmd_tail(orchestrator, args.page, page_size)

        interval = args.interval
        if interval is None:
            interval = float(config.get("sync.interval_seconds", 60.0))

        if args.command == 'watch':
            return cmd_watch(orchestrator, interval)

        return cmd_serve(
            orchestrator,
            config,
            host=args.host or config.get("server.host", "0.0.0.0"),
            port=args.port or int(config.get("server.port", 3000)),
            interval=interval,
        )
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
