"""API middleware."""

from api.middleware.telemetry import TelemetryMiddleware

__all__ = ["TelemetryMiddleware"]
