"""Database management subcommands."""

from __future__ import annotations

import logging
import sys

log = logging.getLogger(__name__)


def run_db(config, args) -> None:
    """Handle db subcommands."""
    if args.db_command == "status":
        _db_status(config)
    else:
        print("usage: certnag -c CONFIG db status", file=sys.stderr)  # noqa: T201
        sys.exit(1)


def _db_status(config) -> None:
    """Check database connectivity and schema status."""
    from certnag.db import REQUIRED_TABLES, init_database, missing_tables

    try:
        db = init_database(config.settings.database)
        reachable = db.health_check()
        missing = missing_tables(db) if reachable else list(REQUIRED_TABLES)
    except Exception as exc:
        print(f"Database: UNREACHABLE ({exc})")  # noqa: T201
        sys.exit(1)

    if not reachable:
        print("Database: UNREACHABLE")  # noqa: T201
        sys.exit(1)

    print("Database: OK")  # noqa: T201
    if missing:
        print(f"Schema:   missing tables {', '.join(missing)}")  # noqa: T201
        sys.exit(1)
    print(f"Schema:   OK ({len(REQUIRED_TABLES)} tables)")  # noqa: T201
