"""Observability layer - logging and metrics."""

from kickfeed.observability.logging import setup_logging
from kickfeed.observability.metrics import MetricsCollector, get_metrics, setup_metrics

__all__ = ["setup_logging", "setup_metrics", "MetricsCollector", "get_metrics"]
