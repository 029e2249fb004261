"""The ``run`` subcommand: one expiration-mailer pass."""

from __future__ import annotations

import dataclasses
import logging
import sys

log = logging.getLogger(__name__)


def _build_clock(args):
    from certnag.core.clock import FakeClock, SystemClock

    if args.now is not None:
        log.warning("Clock pinned to %s by --now", args.now.isoformat())
        return FakeClock(args.now)
    return SystemClock()


def run_mailer(config, args) -> None:
    """Wire the mailer from *config* and run it once.

    Exits 0 when the pass completed (a reached message limit included),
    1 on database initialisation failure or a fatal run error.
    """
    settings = config.settings
    mailer_settings = settings.mailer
    if args.message_limit is not None:
        mailer_settings = dataclasses.replace(mailer_settings, message_limit=args.message_limit)

    try:
        from certnag.db import init_database

        db = init_database(settings.database)
    except Exception as exc:
        if args.debug:
            raise
        log.error("Database initialisation failed: %s", exc)  # noqa: TRY400
        sys.exit(1)

    from certnag.metrics import MetricsCollector
    from certnag.notifications import SmtpTransport, TemplateRenderer
    from certnag.repositories import CertificateRepository, RegistrationRepository
    from certnag.services import (
        ExpirationMailerRun,
        NagStateStore,
        NotificationDispatcher,
        WindowScanner,
    )

    metrics = MetricsCollector()
    mailer = ExpirationMailerRun(
        scanner=WindowScanner(
            CertificateRepository(db),
            mailer_settings.warning_days,
            metrics=metrics,
        ),
        dispatcher=NotificationDispatcher(
            TemplateRenderer(mailer_settings.templates_path),
            SmtpTransport(settings.smtp),
            metrics=metrics,
        ),
        nag_store=NagStateStore(db, metrics=metrics),
        registrations=RegistrationRepository(db),
        settings=mailer_settings,
        clock=_build_clock(args),
        metrics=metrics,
    )

    result = mailer.run()

    if settings.metrics.textfile_path:
        try:
            metrics.write_textfile(settings.metrics.textfile_path)
        except OSError as exc:
            log.warning("Could not write metrics textfile: %s", exc)

    if not result.completed:
        sys.exit(1)
