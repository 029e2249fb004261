"""Run metrics."""

from certnag.metrics.collector import MetricsCollector

__all__ = ["MetricsCollector"]
