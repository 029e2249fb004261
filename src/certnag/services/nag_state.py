"""Durable per-certificate nag count.

Each :meth:`NagStateStore.commit` is exactly one transaction::

    BEGIN
    SELECT sent_count ... FOR UPDATE     -- missing row reads as 0
    INSERT ... ON CONFLICT DO UPDATE     -- GREATEST(old, new)
    COMMIT                               -- or ROLLBACK on any failure

The :class:`~certnag.db.UnitOfWork` handle never leaves this module and
is dead as soon as the ``with`` block exits, so a failed step can never
be followed by statements on a rolled-back transaction.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from certnag.db.unit_of_work import UnitOfWork
from certnag.errors import StateCommitError, TransactionScopeError
from certnag.repositories.nag_state import NagStateRepository

if TYPE_CHECKING:
    from pypgkit import Database

    from certnag.metrics.collector import MetricsCollector

log = logging.getLogger(__name__)


class NagStateStore:
    """Reads and atomically advances the nag count of one certificate at a time."""

    def __init__(
        self,
        database: Database,
        repository: NagStateRepository | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._db = database
        self._repo = repository or NagStateRepository(database)
        self._metrics = metrics
        self._active: UnitOfWork | None = None

    def commit(self, serial: str, new_count: int) -> int:
        """Record that *new_count* thresholds have fired for *serial*.

        The stored count never decreases: if a concurrent run already
        wrote a higher value, that value is kept.  Returns the count now
        stored.

        Raises
        ------
        StateCommitError
            The transaction failed and was rolled back.
        TransactionScopeError
            Called while another commit is still open.

        """
        if new_count < 0:
            msg = f"Nag count must be non-negative (got {new_count})"
            raise ValueError(msg)
        if self._active is not None:
            msg = "A nag-state transaction is already open; commits cannot be nested"
            raise TransactionScopeError(msg, serial=serial)

        try:
            with UnitOfWork(self._db) as uow:
                self._active = uow
                current = self._repo.get_sent_count(uow, serial)
                stored = max(current, new_count)
                if stored != current:
                    self._repo.set_sent_count(uow, serial, stored)
        except TransactionScopeError:
            raise
        except Exception as exc:
            if self._metrics:
                self._metrics.increment("certnag_state_commit_errors_total")
            msg = f"Nag state update rolled back: {exc}"
            raise StateCommitError(msg, serial=serial) from exc
        finally:
            self._active = None

        if current > new_count:
            log.debug(
                "Nag count already %d, not lowering to %d",
                current,
                new_count,
                extra={"serial": serial},
            )
        else:
            log.debug(
                "Nag count %d -> %d",
                current,
                stored,
                extra={"serial": serial},
            )
        return stored
