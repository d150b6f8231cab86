#!/usr/bin/env python3
"""
Command-line interface for the notification store.

Usage:
    python cli.py [command] [options]

Commands:
    serve       Start the API server
    seed        Reset the database file to the sample notifications
    stats       Print statistics for the database file
    send        Push a notification to a running server
    latest      Show the latest notification on a running server
    watch       Poll the latest notification and raise local alerts
    test        Run the test suite

Examples:
    python cli.py serve --reload
    python cli.py send "Meeting" "Sync" --type scheduled --time 2025-01-11T20:00:00Z
    python cli.py watch --interval 2
"""

import argparse
import json
import logging
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from notification_store.config import Settings


def _store(settings: Settings, db_path: Optional[str]):
    from notification_store.data_store import NotificationStore

    path = Path(db_path) if db_path else settings.db_path
    return NotificationStore(db_path=path, seed=settings.seed)


def run_server(settings: Settings, host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def run_seed(settings: Settings, db_path: Optional[str]) -> None:
    store = _store(settings, db_path)
    count = store.reset()
    print(f"Database {store.db_path} reset to {count} notifications")


def run_stats(settings: Settings, db_path: Optional[str]) -> None:
    from notification_store.stats import compute_stats

    store = _store(settings, db_path)
    print(json.dumps(compute_stats(store.list()).to_json(), indent=2))


def run_send(base_url: str, title: str, body: str, notification_type: str, time: Optional[str]) -> None:
    from notification_client.json_service import NotificationClient, NotificationClientError

    when = datetime.fromisoformat(time.replace("Z", "+00:00")) if time else None
    with NotificationClient(base_url) as client:
        try:
            record = client.send_notification(title, body, notification_type, when)
        except NotificationClientError as e:
            print(f"Send failed: {e}")
            sys.exit(1)
    print(json.dumps(record.to_json(), indent=2))


def run_latest(base_url: str) -> None:
    from notification_client.json_service import NotificationClient, NotificationClientError

    with NotificationClient(base_url) as client:
        try:
            record = client.get_latest_notification()
        except NotificationClientError as e:
            print(f"Request failed: {e}")
            sys.exit(1)
    if record is None:
        print("No notifications found")
        return
    print(json.dumps(record.to_json(), indent=2))


def run_watch(base_url: str, interval: float, iterations: Optional[int]) -> None:
    from notification_client.delivery import LatestNotificationWatcher
    from notification_client.json_service import NotificationClient

    with NotificationClient(base_url) as client:
        if not client.test_connection():
            print(f"Cannot reach {base_url}")
            sys.exit(1)
        watcher = LatestNotificationWatcher(client)
        try:
            raised = watcher.run(interval=interval, iterations=iterations)
        except KeyboardInterrupt:
            raised = len(watcher.alerts.alerts)
    print(f"Raised {raised} alerts")


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = [sys.executable, "-m", "pytest"] + args
    sys.exit(subprocess.run(cmd).returncode)


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(
        description="Notification Store CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve --reload
  %(prog)s seed
  %(prog)s stats --db data/db.json
  %(prog)s send "Hello" "World"
  %(prog)s latest
  %(prog)s watch --interval 2 --iterations 10
  %(prog)s test -v
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=settings.host, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    # Database commands
    for name, help_text in (
        ("seed", "Reset the database file to the sample notifications"),
        ("stats", "Print statistics for the database file"),
    ):
        db_parser = subparsers.add_parser(name, help=help_text)
        db_parser.add_argument("--db", default=None, help="Database file (default: NOTIFY_DB_PATH)")

    # Client commands
    send_parser = subparsers.add_parser("send", help="Push a notification to a running server")
    send_parser.add_argument("title", help="Notification title")
    send_parser.add_argument("body", help="Notification body")
    send_parser.add_argument("--type", choices=["local", "scheduled"], default="local")
    send_parser.add_argument("--time", default=None, help="ISO-8601 time for scheduled notifications")
    send_parser.add_argument("--url", default=settings.base_url, help="Server URL")

    latest_parser = subparsers.add_parser("latest", help="Show the latest notification")
    latest_parser.add_argument("--url", default=settings.base_url, help="Server URL")

    watch_parser = subparsers.add_parser("watch", help="Poll and raise local alerts")
    watch_parser.add_argument("--url", default=settings.base_url, help="Server URL")
    watch_parser.add_argument("--interval", type=float, default=5.0, help="Seconds between polls")
    watch_parser.add_argument("--iterations", type=int, default=None, help="Stop after N polls")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "serve":
        run_server(settings, args.host, args.port, args.reload)
    elif args.command == "seed":
        run_seed(settings, args.db)
    elif args.command == "stats":
        run_stats(settings, args.db)
    elif args.command == "send":
        run_send(args.url, args.title, args.body, args.type, args.time)
    elif args.command == "latest":
        run_latest(args.url)
    elif args.command == "watch":
        run_watch(args.url, args.interval, args.iterations)
    elif args.command == "test":
        run_tests(args.pytest_args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
