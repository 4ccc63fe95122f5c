"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

from paper_replication.models import EvalAgentResult, ExecutionFailure

REPLICATION_ENDPOINT = "/api/v1/eval/agent"

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "paper_replication",
    "Paper replication service information",
    registry=REGISTRY,
)

RUNS_TOTAL = Counter(
    "paper_replication_runs_total",
    "Total number of replication runs",
    ["status"],  # success, failure, error
    registry=REGISTRY,
)

RUN_DURATION = Histogram(
    "paper_replication_run_duration_seconds",
    "Replication run duration in seconds",
    buckets=[5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 900.0],
    registry=REGISTRY,
)

RUN_ITERATIONS = Histogram(
    "paper_replication_run_iterations",
    "Number of iterations per replication run",
    buckets=[1, 2, 3, 4, 5, 8, 10],
    registry=REGISTRY,
)

EXECUTION_FAILURES = Counter(
    "paper_replication_execution_failures_total",
    "Sandbox executions that ended in a failure",
    registry=REGISTRY,
)

INSUFFICIENT_VERDICTS = Counter(
    "paper_replication_insufficient_verdicts_total",
    "Successful runs the judge rejected as insufficient evidence",
    registry=REGISTRY,
)

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 120.0, 600.0],
    registry=REGISTRY,
)

ACTIVE_RUNS = Gauge(
    "paper_replication_active_runs",
    "Number of replication runs currently in progress",
    registry=REGISTRY,
)


def setup_metrics(app: FastAPI, version: str) -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Service version reported in the info metric
    """
    APP_INFO.info({"version": version})

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_run_endpoint = request.url.path == REPLICATION_ENDPOINT
        if is_run_endpoint:
            ACTIVE_RUNS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_run_endpoint:
                ACTIVE_RUNS.dec()


def track_run_metrics(result: EvalAgentResult, duration_seconds: float) -> None:
    """
    Track metrics for a completed replication run.

    Args:
        result: Terminal run result
        duration_seconds: Total processing time
    """
    RUNS_TOTAL.labels(status="success" if result.success else "failure").inc()
    RUN_DURATION.observe(duration_seconds)
    RUN_ITERATIONS.observe(len(result.steps))

    for step in result.steps:
        if isinstance(step.run_result, ExecutionFailure):
            EXECUTION_FAILURES.inc()
        elif step.output_assessment is not None and not step.output_assessment.sufficient:
            INSUFFICIENT_VERDICTS.inc()


def track_run_error(duration_seconds: float) -> None:
    """Track a run that raised instead of returning a result."""
    RUNS_TOTAL.labels(status="error").inc()
    RUN_DURATION.observe(duration_seconds)


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    # Handle multiprocess mode if using gunicorn
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        metrics = generate_latest(registry)
    except ValueError:
        # Not in multiprocess mode
        metrics = generate_latest(REGISTRY)

    return Response(
        content=metrics,
        media_type=CONTENT_TYPE_LATEST,
    )
