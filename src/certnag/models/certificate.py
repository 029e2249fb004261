"""Certificate entity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from certnag.core.types import CertificateStatus

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class Certificate:
    serial: str
    registration_id: int
    der: bytes
    expires: datetime
    status: CertificateStatus
    issued_at: datetime = _EPOCH
