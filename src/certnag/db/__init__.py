"""Database subsystem for certnag.

Public API::

    from certnag.db import init_database, missing_tables, UnitOfWork
"""

from certnag.db.init import REQUIRED_TABLES, init_database, missing_tables
from certnag.db.unit_of_work import UnitOfWork

__all__ = [
    "REQUIRED_TABLES",
    "UnitOfWork",
    "init_database",
    "missing_tables",
]
