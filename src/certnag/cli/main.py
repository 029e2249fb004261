"""certnag command-line entry point.

Usage::

    certnag -c /etc/certnag/config.yaml
    certnag -c config.yaml run --message-limit 100
    certnag -c config.yaml --now 2024-05-01T00:00:00Z run
    certnag -c config.yaml --validate-only
    certnag -c config.yaml db status
    python -m certnag -c config.yaml
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from certnag import __version__

    return __version__


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        msg = f"invalid integer: {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if number < 0:
        msg = f"must be >= 0 (got {number})"
        raise argparse.ArgumentTypeError(msg)
    return number


def _timestamp(value: str) -> datetime:
    try:
        # fromisoformat only accepts a trailing "Z" from 3.11 on; be explicit.
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        msg = f"invalid ISO-8601 timestamp: {value!r}"
        raise argparse.ArgumentTypeError(msg) from None


def _default_message_limit() -> int | None:
    raw = os.environ.get("EMAIL_LIMIT")
    if not raw:
        return None
    try:
        return _non_negative_int(raw)
    except argparse.ArgumentTypeError:
        log.warning("Ignoring invalid EMAIL_LIMIT value %r", raw)
        return None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="certnag",
        description="certnag: certificate expiration warning mailer",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "--message-limit",
        type=_non_negative_int,
        default=_default_message_limit(),
        metavar="N",
        help="Maximum messages to send this run, 0 for no limit "
        "(default: $EMAIL_LIMIT, else mailer.message_limit).",
    )
    parser.add_argument(
        "--now",
        type=_timestamp,
        default=None,
        metavar="TIMESTAMP",
        help="Run as if the current time were TIMESTAMP (ISO-8601, UTC if naive).",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # run
    subparsers.add_parser("run", help="Send expiration warnings (default)")

    # db
    db_parser = subparsers.add_parser("db", help="Database management")
    db_sub = db_parser.add_subparsers(dest="db_command")
    db_sub.add_parser("status", help="Check database connectivity and schema")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"certnag: error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs the mailer."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    try:
        from certnag.config import CertnagConfig, ConfigValidationError

        config = CertnagConfig(
            config_file=str(config_path),
            schema_file="bundled",
        )
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from certnag.logging import configure_logging

    configure_logging(config.settings.logging)
    log.info("certnag %s starting", _get_version())

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    # -- dispatch subcommand ---
    if args.command == "db":
        from certnag.cli.commands.db import run_db

        run_db(config, args)
    else:
        # No subcommand = run
        from certnag.cli.commands.run import run_mailer

        run_mailer(config, args)


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    lines = [
        f"Configuration OK: {config._config_path}",  # noqa: SLF001
        f"  warning_days:            {list(s.mailer.warning_days)}",
        f"  message_limit:           {s.mailer.message_limit or 'unlimited'}",
        f"  no_recipient_policy:     {s.mailer.no_recipient_policy.value}",
        f"  dispatch_failure_policy: {s.mailer.dispatch_failure_policy.value}",
        f"  smtp:                    {s.smtp.host}:{s.smtp.port} (tls={s.smtp.use_tls})",
        f"  database:                {s.database.user}@{s.database.host}:"
        f"{s.database.port}/{s.database.database}",
    ]
    print("\n".join(lines))  # noqa: T201
