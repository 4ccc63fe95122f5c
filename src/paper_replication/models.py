"""
Data Models
===========

Core data structures for the paper replication agent.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class CodeSuggestion:
    """One generated program attempt."""

    code: str
    language: Optional[str] = None
    explanation: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "language": self.language,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ExecutionSuccess:
    """Sandbox run that finished without a runtime fault."""

    output: str

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "output": self.output}


@dataclass(frozen=True)
class ExecutionFailure:
    """Sandbox run that raised, timed out, or could not be provisioned."""

    error: str

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error}


ExecutionResult = Union[ExecutionSuccess, ExecutionFailure]


@dataclass(frozen=True)
class OutputAssessment:
    """Judge verdict on whether a run's output can settle replicability."""

    sufficient: bool
    missing: list[str] = field(default_factory=list)
    rationale: str = ""
    requested_changes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sufficient": self.sufficient,
            "missing": list(self.missing),
            "rationale": self.rationale,
            "requested_changes": list(self.requested_changes),
        }


@dataclass(frozen=True)
class EvalAgentStep:
    """Record of one generate/execute/judge iteration."""

    iteration: int
    suggestion: CodeSuggestion
    run_result: ExecutionResult
    output_assessment: Optional[OutputAssessment] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "iteration": self.iteration,
            "suggestion": self.suggestion.to_dict(),
            "runResult": self.run_result.to_dict(),
        }
        if self.output_assessment is not None:
            data["outputAssessment"] = self.output_assessment.to_dict()
        return data


@dataclass(frozen=True)
class ReplicationSuccess:
    """Terminal outcome when a run produced accepted output."""

    steps: list[EvalAgentStep]
    final_output: str
    final_assessment: Optional[OutputAssessment] = None

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": True,
            "steps": [step.to_dict() for step in self.steps],
            "finalOutput": self.final_output,
        }
        if self.final_assessment is not None:
            data["finalAssessment"] = self.final_assessment.to_dict()
        return data


@dataclass(frozen=True)
class ReplicationFailure:
    """Terminal outcome when every iteration failed or was judged insufficient."""

    steps: list[EvalAgentStep]
    last_error: str

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "steps": [step.to_dict() for step in self.steps],
            "lastError": self.last_error,
        }


EvalAgentResult = Union[ReplicationSuccess, ReplicationFailure]


@dataclass
class LLMResponse:
    """Response from an LLM call.

    ``fragments`` holds every candidate text block found in the response,
    in order: the flattened output text first, then each content block.
    """

    content: str
    model: str
    fragments: list[str] = field(default_factory=list)
    tokens_used: int = 0
    request_id: Optional[str] = None
