"""Database initialisation from certnag configuration.

Usage::

    from certnag.config import get_config
    from certnag.db.init import init_database

    init_database(get_config().settings.database)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pypgkit import Database, DatabaseConfig

if TYPE_CHECKING:
    from certnag.config.settings import DatabaseSettings

_SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Tables the mailer reads and writes; all are created by schema.sql.
REQUIRED_TABLES = ("registrations", "certificates", "certificate_nag_state")

log = logging.getLogger(__name__)


def _settings_to_config(settings: DatabaseSettings) -> DatabaseConfig:
    """Map certnag DatabaseSettings to PyPGKit DatabaseConfig."""
    return DatabaseConfig(
        host=settings.host,
        port=settings.port,
        database=settings.database,
        user=settings.user,
        password=settings.password,
        sslmode=settings.sslmode,
        min_connections=settings.min_connections,
        max_connections=settings.max_connections,
        connection_timeout=settings.connection_timeout,
    )


def missing_tables(db: Database) -> list[str]:
    """Return the names from :data:`REQUIRED_TABLES` that do not exist."""
    return [table for table in REQUIRED_TABLES if not db.table_exists(table)]


def init_database(settings: DatabaseSettings) -> Database:
    """Initialise the :class:`Database` singleton from config settings.

    If the singleton is already initialised, returns the existing instance.
    With ``auto_setup`` the bundled ``schema.sql`` is applied; without it
    the certnag tables are only checked, and a warning is logged for any
    that are missing (the run itself will then fail its window queries).

    Parameters
    ----------
    settings:
        The ``database`` section from :class:`CertnagSettings`.

    Returns
    -------
    Database
        The ready-to-use database instance.

    """
    if Database.is_initialized():
        log.debug("Database already initialised, returning existing instance")
        return Database.get_instance()

    config = _settings_to_config(settings)

    log.info(
        "Initialising database connection: %s@%s:%s/%s",
        settings.user,
        settings.host,
        settings.port,
        settings.database,
    )

    if settings.auto_setup:
        log.info(
            "Applying certnag schema %s (tables: %s)",
            _SCHEMA_PATH.name,
            ", ".join(REQUIRED_TABLES),
        )

    db = Database.init(
        config=config,
        schema_path=_SCHEMA_PATH if settings.auto_setup else None,
        auto_setup=settings.auto_setup,
        interactive=False,
    )

    if not settings.auto_setup:
        missing = missing_tables(db)
        if missing:
            log.warning(
                "certnag tables missing and auto_setup is off: %s",
                ", ".join(missing),
            )

    log.info("Database initialised successfully")
    return db
