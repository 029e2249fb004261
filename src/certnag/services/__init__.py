"""Expiration-mailer services.

Leaf-first: :class:`NagStateStore`, :class:`WindowScanner`,
:class:`NotificationDispatcher`, and the orchestrating
:class:`ExpirationMailerRun`.
"""

from certnag.services.dispatcher import DispatchResult, NotificationDispatcher
from certnag.services.mailer import ExpirationMailerRun, RunResult
from certnag.services.nag_state import NagStateStore
from certnag.services.scanner import ExpiryWindow, WindowScanner, compute_windows

__all__ = [
    "DispatchResult",
    "ExpirationMailerRun",
    "ExpiryWindow",
    "NagStateStore",
    "NotificationDispatcher",
    "RunResult",
    "WindowScanner",
    "compute_windows",
]
