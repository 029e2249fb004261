"""Unit of Work: statements that must share one transaction.

PyPGKit's :class:`Database` helpers each borrow their own pooled
connection and commit immediately, so a read-then-write sequence made
with them is not atomic.  :class:`UnitOfWork` pins one connection for
the lifetime of a ``with`` block.

Usage::

    from certnag.db import UnitOfWork

    with UnitOfWork(db) as uow:
        row = uow.fetch_one("SELECT ... FOR UPDATE", (serial,))
        uow.execute("UPDATE ...", (...))
        # COMMIT on clean exit; ROLLBACK on exception

Once the block exits (either way) the handle is dead: any further
statement raises :class:`~certnag.errors.TransactionScopeError` instead
of silently running on a fresh autocommit connection.
"""

from __future__ import annotations

from typing import Any, Self

from psycopg.rows import dict_row
from pypgkit import Database

from certnag.errors import TransactionScopeError


class UnitOfWork:
    """Transaction-scoped helper over :meth:`Database.transaction`."""

    def __init__(self, database: Database | None = None) -> None:
        self._db = database or Database.get_instance()
        self._tx = None
        self._conn = None
        self._closed = False

    # -- context manager -----------------------------------------------------

    def __enter__(self) -> Self:
        if self._closed or self._conn is not None:
            msg = "UnitOfWork cannot be re-entered; open a new one"
            raise TransactionScopeError(msg)
        self._tx = self._db.transaction()
        self._conn = self._tx.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            self._tx.__exit__(exc_type, exc_val, exc_tb)
        finally:
            self._conn = None
            self._tx = None
            self._closed = True

    @property
    def in_transaction(self) -> bool:
        """True between ``__enter__`` and ``__exit__``."""
        return self._conn is not None

    def _require_conn(self):
        if self._conn is None:
            msg = "UnitOfWork must be used as a context manager (handle is not active)"
            raise TransactionScopeError(msg)
        return self._conn

    # -- helpers -------------------------------------------------------------

    def execute(self, sql: str, params: tuple | list | None = None) -> int:
        """Execute a statement and return the rowcount."""
        conn = self._require_conn()
        with conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.rowcount

    def fetch_one(
        self,
        sql: str,
        params: tuple | list | None = None,
    ) -> dict[str, Any] | None:
        """Execute a query and return the first row as a dict, or None."""
        conn = self._require_conn()
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(sql, params)
            return cur.fetchone()
