"""Registration repository."""

from __future__ import annotations

from psycopg.types.json import Jsonb
from pypgkit import BaseRepository

from certnag.errors import MissingRegistrationError
from certnag.models.registration import Registration


class RegistrationRepository(BaseRepository[Registration]):
    table_name = "registrations"
    primary_key = "id"

    def _row_to_entity(self, row: dict) -> Registration:
        return Registration(
            id=row["id"],
            contacts=tuple(row.get("contacts") or ()),
            created_at=row["created_at"],
        )

    def _entity_to_row(self, entity: Registration) -> dict:
        return {
            "id": entity.id,
            "contacts": Jsonb(list(entity.contacts)),
        }

    def get_by_id(self, registration_id: int) -> Registration:
        """Return the registration, raising if it does not exist.

        A certificate pointing at a missing registration is a
        referential-integrity violation, not an empty result.
        """
        registration = self.find_by_id(registration_id)
        if registration is None:
            msg = f"Registration {registration_id} not found"
            raise MissingRegistrationError(msg)
        return registration
