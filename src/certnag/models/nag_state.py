"""NagState entity: how many warning thresholds have already fired."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class NagState:
    serial: str
    sent_count: int = 0
    updated_at: datetime = _EPOCH
