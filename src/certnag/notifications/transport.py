"""SMTP mail transport.

One call submits one message to every recipient at once.  Uses a
per-message connection (not pooled); a run sends few enough messages
that connection reuse is not worth the failure modes.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import TYPE_CHECKING

from certnag.errors import MailTransportError

if TYPE_CHECKING:
    from certnag.config.settings import SmtpSettings

log = logging.getLogger(__name__)


class SmtpTransport:
    """Submits plain-text messages through an SMTP relay."""

    def __init__(self, settings: SmtpSettings) -> None:
        self._smtp = settings

    def build_message(self, recipients: list[str], subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._smtp.from_address
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=False, usegmt=True)
        msg["Message-ID"] = make_msgid(domain=self._smtp.from_address.rpartition("@")[2] or None)
        msg.set_content(body)
        return msg

    def send(self, recipients: list[str], subject: str, body: str) -> None:
        """Send one message addressed to all *recipients*.

        Raises :class:`MailTransportError` on a malformed address or header,
        on any connection, auth or protocol failure, or when the relay
        refuses every recipient.
        """
        if not recipients:
            msg = "Refusing to send a message with no recipients"
            raise MailTransportError(msg)

        try:
            message = self.build_message(recipients, subject, body)
        except ValueError as exc:
            msg = f"Could not build message for {len(recipients)} recipient(s): {exc}"
            raise MailTransportError(msg) from exc

        try:
            with smtplib.SMTP(
                self._smtp.host, self._smtp.port, timeout=self._smtp.timeout_seconds
            ) as server:
                server.ehlo()
                if self._smtp.use_tls:
                    server.starttls()
                    server.ehlo()
                if self._smtp.username:
                    server.login(self._smtp.username, self._smtp.password)
                refused = server.send_message(
                    message,
                    from_addr=self._smtp.from_address,
                    to_addrs=recipients,
                )
        except (smtplib.SMTPException, OSError) as exc:
            msg = f"SMTP delivery to {len(recipients)} recipient(s) failed: {exc}"
            raise MailTransportError(msg) from exc

        if refused:
            log.warning(
                "SMTP relay refused %d of %d recipients: %s",
                len(refused),
                len(recipients),
                sorted(refused),
            )
