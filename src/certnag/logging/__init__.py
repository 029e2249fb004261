"""Logging subsystem for certnag.

Public API::

    from certnag.logging import configure_logging

    configure_logging(settings.logging)
"""

from certnag.logging.setup import configure_logging

__all__ = ["configure_logging"]
