"""
Command line entry point.

Usage:
    crud-server --driver sqlite3 --conn data/users.db --port 5050
    python -m crud --driver postgres --conn postgres://app:secret@db/users

Flags override the matching environment variables (DRIVER, CONN, HOST,
PORT, MOUNT_PREFIX, LOG_LEVEL, JSON_LOGS).
"""

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from crud.core.config import get_settings
from crud.core.exceptions import ConfigurationError
from crud.core.logging_config import get_logger, setup_logging
from crud.main import Server
from crud.repositories import SUPPORTED_DRIVERS


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crud-server",
        description="Serve the user CRUD application",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # In-memory storage on the default port
    crud-server

    # SQLite file database
    crud-server --driver sqlite3 --conn ./users.db

    # PostgreSQL on a custom port
    crud-server --driver postgres --conn "host=localhost user=app dbname=users" --port 4000
""",
    )
    parser.add_argument(
        "--driver",
        help=f"storage driver: {', '.join(SUPPORTED_DRIVERS)} (default: memory)",
    )
    parser.add_argument(
        "--conn",
        help="connection string (not needed for memory)",
    )
    parser.add_argument("--host", help="bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="bind port (default: 5050)")
    parser.add_argument(
        "--prefix",
        dest="mount_prefix",
        help="path prefix for the user views (default: /view)",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument(
        "--plain-logs",
        dest="json_logs",
        action="store_const",
        const=False,
        help="log in plain text instead of JSON",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings(**vars(args))
    except ValidationError as exc:
        print(f"invalid configuration:\n{exc}", file=sys.stderr)
        return 2

    setup_logging(level=settings.log_level, json_format=settings.json_logs)

    try:
        server = Server(settings)
    except ConfigurationError as exc:
        logger.critical(f"Cannot create repository: {exc}", extra={"driver": settings.driver})
        return 1

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
