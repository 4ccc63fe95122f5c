"""
API Schemas
===========

Pydantic models for API request/response validation.

Wire format is camelCase; judge verdict fields keep the names the judge
schema uses.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReplicationRequest(CamelModel):
    """Request body for a replication run."""

    task: str = Field(
        ...,
        description="What to replicate",
        examples=["Reproduce Table 2 of the paper"],
    )
    paper_text: Optional[str] = Field(None, description="Extracted paper text")
    method_text: Optional[str] = Field(
        None, description="Flattened method summary, secondary to the paper text"
    )
    max_iterations: Optional[int] = Field(
        default=None,
        ge=0,
        le=20,
        description="Iteration budget (default: 5)",
    )
    default_language: Optional[str] = Field(
        None, description="Runtime when the model names none (default: python3)"
    )
    model: Optional[str] = Field(None, description="Generator model override")
    require_sufficient_output: Optional[bool] = Field(
        None, description="Ask the judge to accept successful output (default: true)"
    )

    @field_validator("task")
    @classmethod
    def _task_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("task is required.")
        return value


class CodeSuggestionResponse(CamelModel):
    code: str
    language: Optional[str] = None
    explanation: Optional[str] = None


class ExecutionResultResponse(CamelModel):
    """Exactly one of ``output`` / ``error`` is set."""

    success: bool
    output: Optional[str] = None
    error: Optional[str] = None


class OutputAssessmentResponse(BaseModel):
    sufficient: bool
    missing: list[str] = Field(default_factory=list)
    rationale: str = ""
    requested_changes: list[str] = Field(default_factory=list)


class StepResponse(CamelModel):
    iteration: int
    suggestion: CodeSuggestionResponse
    run_result: ExecutionResultResponse
    output_assessment: Optional[OutputAssessmentResponse] = None


class ReplicationResultResponse(CamelModel):
    """EvalAgentResult as returned by the agent."""

    success: bool
    steps: list[StepResponse]
    final_output: Optional[str] = None
    final_assessment: Optional[OutputAssessmentResponse] = None
    last_error: Optional[str] = None


class ReplicationResponse(CamelModel):
    """Response body for a replication run."""

    success: bool = Field(..., description="Whether the run converged")
    result: ReplicationResultResponse
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class AnalyzeRequest(CamelModel):
    """Request body for a claims comparison."""

    replication_output: str = Field(..., description="Reproduction program output")
    paper_text: Optional[str] = None
    method_steps: Optional[list[Any]] = None
    method_assumptions: Optional[list[Any]] = None
    method_insights: Optional[list[Any]] = None
    model: Optional[str] = None

    @field_validator("replication_output")
    @classmethod
    def _output_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("replicationOutput is required.")
        return value


class AnalyzeResponse(CamelModel):
    success: bool = True
    analysis: str
    request_id: str


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: Optional[str] = Field(None, description="Request ID if available")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error details")
