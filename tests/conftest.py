"""
Pytest Fixtures
===============

Shared fixtures for replication agent tests.
"""

import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

# Add src and the repository root to path for imports
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from paper_replication.agent import ReplicationAgent
from paper_replication.config import Settings
from paper_replication.generator import SuggestionGenerator
from paper_replication.judge import SufficiencyJudge
from paper_replication.llm.mock import MockLLM
from paper_replication.models import (
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
)
from paper_replication.sandbox.base import CodeExecutor

REPORT_OUTPUT = "REPLICATION REPORT\nok"


class ScriptedExecutor(CodeExecutor):
    """Executor that replays canned results and records what it was asked to run."""

    def __init__(self, results: list[ExecutionResult]) -> None:
        self.results = results
        self.calls: list[tuple[str, str]] = []

    async def execute(self, code: str, language: str) -> ExecutionResult:
        index = min(len(self.calls), len(self.results) - 1)
        self.calls.append((code, language))
        return self.results[index]


def suggestion(code: str = "print('REPLICATION REPORT')", language: str = "python",
               explanation: str = "") -> dict:
    """Code suggestion payload as the model would return it."""
    return {"code": code, "language": language, "explanation": explanation}


def verdict(sufficient: bool, missing: Optional[list] = None, rationale: str = "",
            requested_changes: Optional[list] = None) -> dict:
    """Output assessment payload as the model would return it."""
    return {
        "sufficient": sufficient,
        "missing": missing or [],
        "rationale": rationale,
        "requested_changes": requested_changes or [],
    }


@pytest.fixture
def settings() -> Settings:
    """Settings with fake credentials and a short run timeout."""
    return Settings(
        openai_api_key="test-openai-key",
        e2b_api_key="test-e2b-key",
        generator_model="gen-model",
        judge_model="judge-model",
        analyze_model="analyze-model",
        run_timeout_seconds=30.0,
    )


@pytest.fixture
def make_agent() -> Callable[..., tuple[ReplicationAgent, MockLLM, ScriptedExecutor]]:
    """Build an agent wired to a scripted LLM and executor."""

    def _make(
        suggestions: list,
        results: list[ExecutionResult],
        verdicts: Optional[list] = None,
        max_iterations: int = 5,
    ) -> tuple[ReplicationAgent, MockLLM, ScriptedExecutor]:
        llm = MockLLM(
            responses={
                "code_suggestion": suggestions,
                "output_assessment": verdicts or [],
            }
        )
        executor = ScriptedExecutor(results)
        agent = ReplicationAgent(
            generator=SuggestionGenerator(llm, model="gen-model"),
            executor=executor,
            judge=SufficiencyJudge(llm, model="judge-model"),
            max_iterations=max_iterations,
        )
        return agent, llm, executor

    return _make


@pytest.fixture
def success_result() -> ExecutionSuccess:
    return ExecutionSuccess(output=REPORT_OUTPUT)


@pytest.fixture
def failure_result() -> ExecutionFailure:
    return ExecutionFailure(error="Sandbox execution error (ValueError): bad\nTraceback ...")


def assert_step_invariants(result, max_iterations: int) -> None:
    """Properties every completed run must satisfy."""
    assert len(result.steps) <= max_iterations
    for index, step in enumerate(result.steps):
        assert step.iteration == index
        has_output = isinstance(step.run_result, ExecutionSuccess)
        has_error = isinstance(step.run_result, ExecutionFailure)
        assert has_output != has_error
        if step.output_assessment is not None:
            assert has_output, "judge consulted on a failed execution"
