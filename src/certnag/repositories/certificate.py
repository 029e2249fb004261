"""Certificate repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pypgkit import BaseRepository

from certnag.core.types import CertificateStatus
from certnag.models.certificate import Certificate

if TYPE_CHECKING:
    from datetime import datetime


class CertificateRepository(BaseRepository[Certificate]):
    table_name = "certificates"
    primary_key = "serial"

    def _row_to_entity(self, row: dict) -> Certificate:
        return Certificate(
            serial=row["serial"],
            registration_id=row["registration_id"],
            der=bytes(row["der"]),
            expires=row["expires"],
            status=CertificateStatus(row["status"]),
            issued_at=row["issued_at"],
        )

    def _entity_to_row(self, entity: Certificate) -> dict:
        return {
            "serial": entity.serial,
            "registration_id": entity.registration_id,
            "der": entity.der,
            "expires": entity.expires,
            "status": entity.status.value,
        }

    def find_by_expiry_window(
        self,
        left: datetime,
        right: datetime,
        exclude_status: CertificateStatus,
        max_nag_count: int,
    ) -> list[Certificate]:
        """Certificates expiring in ``[left, right)`` that still need a warning.

        A certificate qualifies when its status is not *exclude_status*
        and its nag count (0 when no nag-state row exists yet) is strictly
        below *max_nag_count*.  Ordered by ascending expiry.
        """
        rows = self._db.fetch_all(
            "SELECT cert.* FROM certificates AS cert "
            "LEFT JOIN certificate_nag_state AS ns ON ns.serial = cert.serial "
            "WHERE cert.expires >= %s "
            "  AND cert.expires < %s "
            "  AND cert.status <> %s "
            "  AND COALESCE(ns.sent_count, 0) < %s "
            "ORDER BY cert.expires ASC, cert.serial ASC",
            (left, right, exclude_status.value, max_nag_count),
            as_dict=True,
        )
        return [self._row_to_entity(r) for r in rows]
