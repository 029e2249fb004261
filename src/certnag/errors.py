"""Error taxonomy for an expiration-mailer run.

Every error carries enough attribution (window index and/or serial)
for the orchestrator to log *where* a run failed.  Whether an error
stops the run is decided by :class:`~certnag.services.mailer.ExpirationMailerRun`,
not by the raiser.
"""

from __future__ import annotations


class MailerError(Exception):
    """Base class for all certnag run errors.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    window_index:
        Index of the threshold window being processed, if known.
    serial:
        Serial of the certificate being processed, if known.

    """

    def __init__(
        self,
        detail: str,
        *,
        window_index: int | None = None,
        serial: str | None = None,
    ) -> None:
        self.detail = detail
        self.window_index = window_index
        self.serial = serial
        super().__init__(detail)

    def describe(self) -> str:
        """Return *detail* prefixed with the window/serial attribution."""
        parts = []
        if self.window_index is not None:
            parts.append(f"window={self.window_index}")
        if self.serial is not None:
            parts.append(f"serial={self.serial}")
        if not parts:
            return self.detail
        return f"[{' '.join(parts)}] {self.detail}"


class TransientQueryError(MailerError):
    """Certificate repository read failed for one window."""


class MissingRegistrationError(MailerError):
    """A candidate certificate references a registration that does not exist."""


class DispatchError(MailerError):
    """Certificate parsing, template rendering, or mail transport failed."""


class StateCommitError(MailerError):
    """The nag-state transaction for one certificate failed and was rolled back."""


class TransactionScopeError(MailerError):
    """A nag-state handle was used outside the transaction that created it."""


class MailTransportError(Exception):
    """Raised by a mail transport when a message could not be submitted."""
