"""In-process metrics collector.

Collects counters without external dependencies and exports them in
Prometheus text format, suitable for the node-exporter textfile
collector that scrapes batch jobs.
"""

from __future__ import annotations

import os
import threading
import time
from pathlib import Path


class MetricsCollector:
    """Thread-safe in-process counter store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._start_time = time.time()

    def increment(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        """Increment a counter."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def get(self, name: str, labels: dict | None = None) -> int:
        """Get the current value of a counter."""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def export(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines = []
        lines.append("# HELP certnag_last_run_timestamp_seconds Start time of the last run")
        lines.append("# TYPE certnag_last_run_timestamp_seconds gauge")
        lines.append(f"certnag_last_run_timestamp_seconds {self._start_time:.0f}")
        lines.append("")

        with self._lock:
            grouped: dict[str, list[tuple[str, int]]] = {}
            for key, value in sorted(self._counters.items()):
                name = key.split("{")[0] if "{" in key else key
                grouped.setdefault(name, []).append((key, value))

            for name, entries in sorted(grouped.items()):
                lines.append(f"# TYPE {name} counter")
                for key, value in entries:
                    lines.append(f"{key} {value}")
                lines.append("")

        return "\n".join(lines) + "\n"

    def write_textfile(self, path: str | Path) -> None:
        """Atomically write :meth:`export` output to *path*.

        Writes to a sibling temp file then renames, so a scraper never
        reads a half-written file.
        """
        target = Path(path)
        tmp = target.with_name(f".{target.name}.{os.getpid()}.tmp")
        tmp.write_text(self.export(), encoding="utf-8")
        tmp.replace(target)

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"
