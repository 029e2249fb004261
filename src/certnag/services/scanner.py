"""Threshold windows and per-window candidate selection.

Warning thresholds are ascending day counts, e.g. ``(1, 3, 7, 14)``.
They cut the interval ``[now, now + 14d)`` into one half-open window per
threshold::

    window 0: [now,       now + 1d)    nag_target 4
    window 1: [now + 1d,  now + 3d)    nag_target 3
    window 2: [now + 3d,  now + 7d)    nag_target 2
    window 3: [now + 7d,  now + 14d)   nag_target 1

A certificate is a candidate for window *i* while its nag count is below
``len(thresholds) - i``.  After it is notified there, its count becomes
exactly that target, which also disqualifies it from every later (less
urgent) window until time moves it into a more urgent one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from certnag.core.types import CertificateStatus
from certnag.errors import TransientQueryError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from certnag.metrics.collector import MetricsCollector
    from certnag.models.certificate import Certificate
    from certnag.repositories.certificate import CertificateRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryWindow:
    """Half-open interval ``[left, right)`` for one warning threshold."""

    index: int
    days: int
    left: datetime
    right: datetime
    nag_target: int


def compute_windows(now: datetime, thresholds: Sequence[int]) -> list[ExpiryWindow]:
    """Partition ``[now, now + max(thresholds) days)`` into expiry windows.

    Raises :class:`ValueError` unless *thresholds* is a non-empty,
    strictly ascending sequence of positive integers.
    """
    if not thresholds:
        msg = "At least one warning threshold is required"
        raise ValueError(msg)
    previous = 0
    for days in thresholds:
        if days <= previous:
            msg = (
                "Warning thresholds must be positive and strictly ascending "
                f"(got {list(thresholds)})"
            )
            raise ValueError(msg)
        previous = days

    total = len(thresholds)
    windows = []
    for i, days in enumerate(thresholds):
        left = now if i == 0 else now + timedelta(days=thresholds[i - 1])
        windows.append(
            ExpiryWindow(
                index=i,
                days=days,
                left=left,
                right=now + timedelta(days=days),
                nag_target=total - i,
            ),
        )
    return windows


class WindowScanner:
    """Computes the windows for a run and loads each window's candidates."""

    def __init__(
        self,
        cert_repo: CertificateRepository,
        warning_days: Sequence[int],
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._certs = cert_repo
        self._thresholds = tuple(warning_days)
        self._metrics = metrics
        # Fail at construction, not halfway through a run.
        compute_windows(datetime.min, self._thresholds)

    @property
    def thresholds(self) -> tuple[int, ...]:
        return self._thresholds

    def windows(self, now: datetime) -> list[ExpiryWindow]:
        """Return the windows for *now*, most urgent first."""
        return compute_windows(now, self._thresholds)

    def find_candidates(self, window: ExpiryWindow) -> list[Certificate]:
        """Load certificates in *window* that still owe a warning.

        Returns an empty list when nothing matches.  Any repository
        failure is re-raised as :class:`TransientQueryError` so the
        caller can skip just this window.
        """
        log.info(
            "Searching for certificates that expire between %s and %s",
            window.left.isoformat(),
            window.right.isoformat(),
            extra={"window": window.index},
        )
        try:
            certs = self._certs.find_by_expiry_window(
                window.left,
                window.right,
                CertificateStatus.REVOKED,
                window.nag_target,
            )
        except Exception as exc:
            if self._metrics:
                self._metrics.increment("certnag_window_query_errors_total")
            msg = f"Error loading certificates: {exc}"
            raise TransientQueryError(msg, window_index=window.index) from exc

        if not certs:
            log.info(
                "None found, no expiration emails needed",
                extra={"window": window.index},
            )
        else:
            log.info(
                "Found %d certificates, starting sending messages",
                len(certs),
                extra={"window": window.index},
            )
        return certs
