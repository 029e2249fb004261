"""One expiration-mailer pass.

For each threshold window (most urgent first) the run loads the
candidate certificates, sends each owner a warning, then commits the
certificate's new nag count.  Dispatch always completes before the
commit, so a crash in between can only cause a duplicate email on the
next run, never a lost one.

Usage::

    run = ExpirationMailerRun(scanner, dispatcher, nag_store, registrations, settings)
    result = run.run()
    if not result.completed:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from certnag.core.clock import Clock, SystemClock
from certnag.core.types import DispatchFailurePolicy, NoRecipientPolicy
from certnag.errors import (
    DispatchError,
    MailerError,
    MissingRegistrationError,
    StateCommitError,
    TransientQueryError,
)

if TYPE_CHECKING:
    from datetime import datetime

    from certnag.config.settings import MailerSettings
    from certnag.metrics.collector import MetricsCollector
    from certnag.models.certificate import Certificate
    from certnag.repositories.registration import RegistrationRepository
    from certnag.services.dispatcher import NotificationDispatcher
    from certnag.services.nag_state import NagStateStore
    from certnag.services.scanner import ExpiryWindow, WindowScanner

log = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Counters and outcomes of one pass."""

    started_at: datetime
    finished_at: datetime | None = None
    windows_scanned: int = 0
    windows_skipped: list[int] = field(default_factory=list)
    certificates_considered: int = 0
    messages_sent: int = 0
    recipients_notified: int = 0
    nag_commits: int = 0
    no_recipient_serials: list[str] = field(default_factory=list)
    dispatch_failures: list[DispatchError] = field(default_factory=list)
    commit_failures: list[StateCommitError] = field(default_factory=list)
    limit_reached: bool = False
    fatal_error: MailerError | None = None

    @property
    def completed(self) -> bool:
        """True unless the run was halted by a fatal error."""
        return self.fatal_error is None


class ExpirationMailerRun:
    """Orchestrates a single pass over all threshold windows."""

    def __init__(
        self,
        scanner: WindowScanner,
        dispatcher: NotificationDispatcher,
        nag_store: NagStateStore,
        registrations: RegistrationRepository,
        settings: MailerSettings,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._scanner = scanner
        self._dispatcher = dispatcher
        self._nag_store = nag_store
        self._registrations = registrations
        self._settings = settings
        self._clock = clock or SystemClock()
        self._metrics = metrics

    def run(self) -> RunResult:
        """Process every window once and return what happened.

        Fatal errors stop the pass and are returned in
        :attr:`RunResult.fatal_error` with their window and serial
        attribution; they are not raised.
        """
        now = self._clock.now()
        result = RunResult(started_at=now)
        log.info(
            "Expiration mailer starting (thresholds=%s, message_limit=%s)",
            list(self._scanner.thresholds),
            self._settings.message_limit or "none",
        )

        current: ExpiryWindow | None = None
        outcome = "completed"
        try:
            for window in self._scanner.windows(now):
                current = window
                if not self._process_window(window, now, result):
                    break
        except MailerError as exc:
            if exc.window_index is None and current is not None:
                exc.window_index = current.index
            result.fatal_error = exc
            outcome = "halted"
            log.error(  # noqa: TRY400
                "Expiration mailer halted: %s",
                exc.describe(),
                extra={"window": exc.window_index, "serial": exc.serial},
            )
        except Exception:
            outcome = "crashed"
            log.exception(
                "Expiration mailer crashed",
                extra={"window": current.index if current else None},
            )
            raise
        finally:
            result.finished_at = self._clock.now()
            if self._metrics:
                self._metrics.increment("certnag_runs_total", labels={"outcome": outcome})

        log.info(
            "Expiration mailer finished: %d messages to %d recipients, "
            "%d nag commits, %d windows skipped, %d commit failures",
            result.messages_sent,
            result.recipients_notified,
            result.nag_commits,
            len(result.windows_skipped),
            len(result.commit_failures),
        )
        return result

    # -- per window ---------------------------------------------------------

    def _process_window(self, window: ExpiryWindow, now: datetime, result: RunResult) -> bool:
        """Handle one window.  Returns False when the run should stop."""
        try:
            certs = self._scanner.find_candidates(window)
        except TransientQueryError as exc:
            result.windows_skipped.append(window.index)
            log.error(  # noqa: TRY400
                "%s, skipping window",
                exc.describe(),
                extra={"window": window.index},
            )
            return True

        result.windows_scanned += 1
        for cert in certs:
            if self._limit_reached(result):
                result.limit_reached = True
                log.warning(
                    "Message limit of %d reached, stopping; remaining certificates "
                    "will be picked up by the next run",
                    self._settings.message_limit,
                    extra={"window": window.index},
                )
                return False
            self._process_certificate(window, cert, now, result)

        if certs:
            log.info("Finished sending messages", extra={"window": window.index})
        return True

    def _limit_reached(self, result: RunResult) -> bool:
        limit = self._settings.message_limit
        return limit > 0 and result.messages_sent >= limit

    # -- per certificate ----------------------------------------------------

    def _process_certificate(
        self,
        window: ExpiryWindow,
        cert: Certificate,
        now: datetime,
        result: RunResult,
    ) -> None:
        result.certificates_considered += 1

        try:
            registration = self._registrations.get_by_id(cert.registration_id)
        except MissingRegistrationError as exc:
            exc.window_index = window.index
            exc.serial = cert.serial
            raise

        try:
            dispatched = self._dispatcher.dispatch(cert, registration, now)
        except DispatchError as exc:
            exc.window_index = window.index
            exc.serial = cert.serial
            if self._settings.dispatch_failure_policy is DispatchFailurePolicy.FAIL_FAST:
                raise
            result.dispatch_failures.append(exc)
            if self._metrics:
                self._metrics.increment("certnag_dispatch_errors_total")
            log.error(  # noqa: TRY400
                "%s, skipping certificate",
                exc.describe(),
                extra={"window": window.index, "serial": cert.serial},
            )
            return

        if dispatched.sent:
            result.messages_sent += 1
            result.recipients_notified += len(dispatched.recipients)
        else:
            result.no_recipient_serials.append(cert.serial)
            if self._settings.no_recipient_policy is NoRecipientPolicy.RETRY:
                log.info(
                    "No recipients, leaving nag count unchanged for a later retry",
                    extra={"window": window.index, "serial": cert.serial},
                )
                return

        try:
            self._nag_store.commit(cert.serial, window.nag_target)
        except StateCommitError as exc:
            exc.window_index = window.index
            result.commit_failures.append(exc)
            log.error(  # noqa: TRY400
                "%s; certificate may be notified again next run",
                exc.describe(),
                extra={"window": window.index, "serial": cert.serial},
            )
            return
        result.nag_commits += 1
