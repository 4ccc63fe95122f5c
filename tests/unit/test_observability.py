"""
Unit Tests for Observability
============================

Tests for structured logging setup and run metrics.
"""

import json
import logging
from typing import Iterator

import pytest
import structlog

from observability.logging_config import bind_context, clear_context, get_logger, setup_logging
from observability.metrics import REGISTRY, track_run_error, track_run_metrics
from paper_replication.models import (
    CodeSuggestion,
    EvalAgentStep,
    ExecutionFailure,
    ExecutionSuccess,
    OutputAssessment,
    ReplicationSuccess,
)


@pytest.fixture
def json_logging(capsys: pytest.CaptureFixture) -> Iterator[None]:
    """JSON logging bound to the captured stdout of the current test."""
    setup_logging(level="INFO", json_format=True)
    yield
    clear_context()
    logging.getLogger().handlers = []
    structlog.reset_defaults()


def _sample(name: str, labels: dict | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestLogging:
    """Tests for structlog configuration."""

    def test_json_event_carries_bound_context(self, json_logging, capsys) -> None:
        bind_context(request_id="req-42")
        get_logger("tests.observability").info("replication_started", max_iterations=3)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "replication_started"
        assert event["request_id"] == "req-42"
        assert event["max_iterations"] == 3
        assert event["service"] == "paper-replication"
        assert event["level"] == "info"

    def test_clear_context(self, json_logging, capsys) -> None:
        bind_context(request_id="req-1")
        clear_context()
        get_logger("tests.observability").info("after_clear")

        event = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert "request_id" not in event


class TestRunMetrics:
    """Tests for per-run Prometheus metrics."""

    def test_track_run_metrics(self) -> None:
        runs_before = _sample("paper_replication_runs_total", {"status": "success"})
        failures_before = _sample("paper_replication_execution_failures_total")
        insufficient_before = _sample("paper_replication_insufficient_verdicts_total")

        code = CodeSuggestion(code="print(1)")
        result = ReplicationSuccess(
            steps=[
                EvalAgentStep(0, code, ExecutionFailure(error="E0")),
                EvalAgentStep(1, code, ExecutionSuccess(output="x"),
                              OutputAssessment(sufficient=False, missing=["seed"])),
                EvalAgentStep(2, code, ExecutionSuccess(output="y"),
                              OutputAssessment(sufficient=True)),
            ],
            final_output="y",
        )
        track_run_metrics(result, 1.5)

        assert _sample("paper_replication_runs_total", {"status": "success"}) == runs_before + 1
        assert _sample("paper_replication_execution_failures_total") == failures_before + 1
        assert _sample("paper_replication_insufficient_verdicts_total") == insufficient_before + 1

    def test_track_run_error(self) -> None:
        before = _sample("paper_replication_runs_total", {"status": "error"})
        track_run_error(0.2)
        assert _sample("paper_replication_runs_total", {"status": "error"}) == before + 1
