"""Per-certificate warning email.

Graceful degradation:
- owner has no ``mailto`` contact → no message, not an error
- DER parse, template render or SMTP failure → :class:`DispatchError`
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from cryptography import x509
from cryptography.x509.oid import NameOID
from jinja2 import TemplateError

from certnag.core.serial import serial_to_string
from certnag.core.types import NotificationType
from certnag.errors import DispatchError, MailTransportError

if TYPE_CHECKING:
    from datetime import datetime

    from certnag.metrics.collector import MetricsCollector
    from certnag.models.certificate import Certificate
    from certnag.models.registration import Registration
    from certnag.notifications.renderer import TemplateRenderer
    from certnag.notifications.transport import SmtpTransport

log = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DispatchResult:
    serial: str
    recipients: tuple[str, ...]

    @property
    def sent(self) -> bool:
        return bool(self.recipients)


def days_until(now: datetime, expires: datetime) -> int:
    """Whole days from *now* to *expires*, truncated toward zero.

    Negative once the certificate has already expired.
    """
    delta = expires - now
    days = abs(delta) // _ONE_DAY
    return days if delta >= timedelta(0) else -days


def build_context(certificate: Certificate, now: datetime) -> dict[str, Any]:
    """Extract the template variables from the certificate's DER."""
    try:
        parsed = x509.load_der_x509_certificate(certificate.der)
    except ValueError as exc:
        msg = f"Could not parse certificate DER: {exc}"
        raise DispatchError(msg, serial=certificate.serial) from exc

    cn_attrs = parsed.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    common_name = str(cn_attrs[0].value) if cn_attrs else ""

    try:
        san = parsed.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        dns_names = san.value.get_values_for_type(x509.DNSName)
    except x509.ExtensionNotFound:
        dns_names = []

    expiration_date = parsed.not_valid_after_utc
    return {
        "serial": serial_to_string(parsed.serial_number),
        "common_name": common_name,
        "dns_names": ", ".join(dns_names),
        "expiration_date": expiration_date,
        "days_to_expiration": days_until(now, expiration_date),
    }


class NotificationDispatcher:
    """Renders and sends one expiration warning per certificate."""

    def __init__(
        self,
        renderer: TemplateRenderer,
        transport: SmtpTransport,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._renderer = renderer
        self._transport = transport
        self._metrics = metrics

    def dispatch(
        self,
        certificate: Certificate,
        registration: Registration,
        now: datetime,
    ) -> DispatchResult:
        """Send the warning for *certificate* to its owner's email contacts.

        All addresses go on a single message.  Returns the recipients
        (empty when the registration has no ``mailto`` contact).
        """
        emails = registration.email_addresses()
        if not emails:
            log.info(
                "Registration %s has no email contact, no message sent",
                registration.id,
                extra={"serial": certificate.serial},
            )
            return DispatchResult(serial=certificate.serial, recipients=())

        context = build_context(certificate, now)

        try:
            subject, body = self._renderer.render(NotificationType.EXPIRATION_WARNING, context)
        except TemplateError as exc:
            msg = f"Could not render warning template: {exc}"
            raise DispatchError(msg, serial=certificate.serial) from exc

        try:
            self._transport.send(emails, subject, body)
        except MailTransportError as exc:
            raise DispatchError(str(exc), serial=certificate.serial) from exc

        if self._metrics:
            self._metrics.increment("certnag_expiration_emails_sent_total", len(emails))

        log.info(
            "Sent expiration warning to %d recipient(s) (%d days left)",
            len(emails),
            context["days_to_expiration"],
            extra={"serial": certificate.serial},
        )
        return DispatchResult(serial=certificate.serial, recipients=tuple(emails))
