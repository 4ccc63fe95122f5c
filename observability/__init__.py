"""
Observability Module
====================

Full-stack observability: metrics, tracing, and structured logging.
"""

from observability.logging_config import bind_context, clear_context, get_logger, setup_logging
from observability.metrics import setup_metrics, track_run_error, track_run_metrics
from observability.tracing import setup_tracing

__all__ = [
    "setup_metrics",
    "track_run_metrics",
    "track_run_error",
    "setup_tracing",
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
