"""NagState repository.

Reads and writes that participate in the per-certificate commit take
an explicit :class:`~certnag.db.UnitOfWork` handle; only
:class:`~certnag.services.nag_state.NagStateStore` should open one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pypgkit import BaseRepository

from certnag.errors import TransactionScopeError
from certnag.models.nag_state import NagState

if TYPE_CHECKING:
    from certnag.db.unit_of_work import UnitOfWork


class NagStateRepository(BaseRepository[NagState]):
    table_name = "certificate_nag_state"
    primary_key = "serial"

    def _row_to_entity(self, row: dict) -> NagState:
        return NagState(
            serial=row["serial"],
            sent_count=row["sent_count"],
            updated_at=row["updated_at"],
        )

    def _entity_to_row(self, entity: NagState) -> dict:
        return {
            "serial": entity.serial,
            "sent_count": entity.sent_count,
        }

    @staticmethod
    def _check_handle(uow: UnitOfWork) -> None:
        if not uow.in_transaction:
            msg = "Nag state access requires an active transaction handle"
            raise TransactionScopeError(msg)

    def get_sent_count(self, uow: UnitOfWork, serial: str) -> int:
        """Lock the row for *serial* and return its count (0 when absent)."""
        self._check_handle(uow)
        row = uow.fetch_one(
            "SELECT sent_count FROM certificate_nag_state WHERE serial = %s FOR UPDATE",
            (serial,),
        )
        return row["sent_count"] if row else 0

    def set_sent_count(self, uow: UnitOfWork, serial: str, sent_count: int) -> int:
        """Upsert the count for *serial*; never lowers an existing value."""
        self._check_handle(uow)
        return uow.execute(
            "INSERT INTO certificate_nag_state (serial, sent_count, updated_at) "
            "VALUES (%s, %s, now()) "
            "ON CONFLICT (serial) DO UPDATE "
            "SET sent_count = GREATEST(certificate_nag_state.sent_count, EXCLUDED.sent_count), "
            "    updated_at = now()",
            (serial, sent_count),
        )
