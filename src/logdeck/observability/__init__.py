"""
logdeck Observability Module.

Provides in-process metrics collection for log operations and errors.
"""

from logdeck.observability.metrics import MetricsStore, get_metrics_store

__all__ = ["MetricsStore", "get_metrics_store"]
