"""Enumerated types for the certnag persistence layer and policies.

All enums inherit from :class:`enum.StrEnum` so their ``.value`` is a
plain string that psycopg serialises as TEXT and YAML config values
map onto directly.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Certificate
# ---------------------------------------------------------------------------


class CertificateStatus(StrEnum):
    VALID = "valid"
    REVOKED = "revoked"
    EXPIRED = "expired"


# ---------------------------------------------------------------------------
# Contact schemes
# ---------------------------------------------------------------------------


class ContactScheme(StrEnum):
    MAILTO = "mailto"
    TEL = "tel"


# ---------------------------------------------------------------------------
# Run policies
# ---------------------------------------------------------------------------


class NoRecipientPolicy(StrEnum):
    """What to do with a certificate whose owner has no ``mailto`` contact."""

    ADVANCE = "advance"
    RETRY = "retry"


class DispatchFailurePolicy(StrEnum):
    """How a template-render or mail-transport failure affects the run."""

    FAIL_FAST = "fail_fast"
    CONTINUE = "continue"


# ---------------------------------------------------------------------------
# Notification templates
# ---------------------------------------------------------------------------


class NotificationType(StrEnum):
    EXPIRATION_WARNING = "expiration_warning"
