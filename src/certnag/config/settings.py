"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from certnag.config import get_config

    mailer = get_config().settings.mailer
    print(mailer.warning_days)     # typed, IDE-autocompleted
"""

from __future__ import annotations

from dataclasses import dataclass

from certnag.core.types import DispatchFailurePolicy, NoRecipientPolicy

# ---------------------------------------------------------------------------
# Mailer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MailerSettings:
    """Expiration-mailer behaviour (thresholds, templates, policies)."""

    warning_days: tuple[int, ...]
    templates_path: str | None
    message_limit: int
    no_recipient_policy: NoRecipientPolicy
    dispatch_failure_policy: DispatchFailurePolicy


def _build_mailer(data: dict | None) -> MailerSettings:
    d = data or {}
    return MailerSettings(
        warning_days=tuple(d.get("warning_days", [1, 3, 7, 14])),
        templates_path=d.get("templates_path"),
        message_limit=d.get("message_limit", 0),
        no_recipient_policy=NoRecipientPolicy(
            d.get("no_recipient_policy", NoRecipientPolicy.ADVANCE.value),
        ),
        dispatch_failure_policy=DispatchFailurePolicy(
            d.get("dispatch_failure_policy", DispatchFailurePolicy.FAIL_FAST.value),
        ),
    )


# ---------------------------------------------------------------------------
# SMTP
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SmtpSettings:
    """SMTP outbound email delivery settings."""

    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    from_address: str
    timeout_seconds: int


def _build_smtp(data: dict | None) -> SmtpSettings:
    d = data or {}
    return SmtpSettings(
        host=d.get("host", ""),
        port=d.get("port", 587),
        username=d.get("username", ""),
        password=d.get("password", ""),
        use_tls=d.get("use_tls", True),
        from_address=d.get("from_address", ""),
        timeout_seconds=d.get("timeout_seconds", 30),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "json"),
    )


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """PostgreSQL connection and pool settings."""

    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str
    min_connections: int
    max_connections: int
    connection_timeout: float
    auto_setup: bool


def _build_database(data: dict | None) -> DatabaseSettings:
    d = data or {}
    return DatabaseSettings(
        host=d.get("host", "localhost"),
        port=d.get("port", 5432),
        database=d["database"],
        user=d["user"],
        password=d.get("password", ""),
        sslmode=d.get("sslmode", "prefer"),
        min_connections=d.get("min_connections", 1),
        max_connections=d.get("max_connections", 2),
        connection_timeout=d.get("connection_timeout", 30.0),
        auto_setup=d.get("auto_setup", False),
    )


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricsSettings:
    textfile_path: str | None


def _build_metrics(data: dict | None) -> MetricsSettings:
    d = data or {}
    return MetricsSettings(
        textfile_path=d.get("textfile_path"),
    )


# ---------------------------------------------------------------------------
# Root settings aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CertnagSettings:
    mailer: MailerSettings
    smtp: SmtpSettings
    logging: LoggingSettings
    database: DatabaseSettings
    metrics: MetricsSettings


def build_settings(data: dict) -> CertnagSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`CertnagConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return CertnagSettings(
        mailer=_build_mailer(data.get("mailer")),
        smtp=_build_smtp(data.get("smtp")),
        logging=_build_logging(data.get("logging")),
        database=_build_database(data.get("database")),
        metrics=_build_metrics(data.get("metrics")),
    )
