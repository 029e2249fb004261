"""Registration entity (certificate owner and its contact URIs)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from certnag.core.types import ContactScheme

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


@dataclass(frozen=True)
class Registration:
    id: int
    contacts: tuple[str, ...] = field(default_factory=tuple)
    created_at: datetime = _EPOCH

    def email_addresses(self) -> list[str]:
        """Return the opaque part of every ``mailto:`` contact, in order.

        The scheme match is case-insensitive.  Empty addresses, addresses
        containing control characters (CR/LF would break the ``To``
        header) and non-mailto URIs (``tel:`` etc.) are skipped.
        """
        prefix = f"{ContactScheme.MAILTO.value}:"
        emails = []
        for uri in self.contacts:
            if not uri.lower().startswith(prefix):
                continue
            address = uri[len(prefix) :].strip()
            if address and not _has_control_chars(address):
                emails.append(address)
        return emails
