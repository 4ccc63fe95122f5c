"""
Replication Routes
==================

Main API endpoints for paper replication runs and claims analysis.
"""

import asyncio
import time
import uuid
from typing import Union

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    ReplicationRequest,
    ReplicationResponse,
    ReplicationResultResponse,
)
from observability.metrics import track_run_error, track_run_metrics
from paper_replication.agent import ReplicationAgent
from paper_replication.analysis import ClaimsAnalyzer
from paper_replication.config import Settings
from paper_replication.errors import ConfigurationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Replication"])


def get_agent(request: Request) -> ReplicationAgent:
    """Dependency to get the configured agent from app state."""
    return request.app.state.agent


def get_analyzer(request: Request) -> ClaimsAnalyzer:
    return request.app.state.analyzer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_id(request: Request) -> str:
    """Request ID set by the telemetry middleware, or a fresh one."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


@router.post(
    "/eval/agent",
    response_model=ReplicationResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Configuration or internal error"},
        502: {"model": ErrorResponse, "description": "Model provider failure"},
        504: {"model": ErrorResponse, "description": "Run exceeded the time limit"},
    },
    summary="Attempt automated replication of a paper",
    description=(
        "Generates code from the paper, runs it in a sandbox, judges the output "
        "and retries until it converges or the iteration budget is spent"
    ),
)
async def run_replication(
    body: ReplicationRequest,
    agent: ReplicationAgent = Depends(get_agent),
    settings: Settings = Depends(get_settings),
    request_id: str = Depends(get_request_id),
) -> Union[ReplicationResponse, JSONResponse]:
    """
    Run the replication agent and return its result verbatim.

    Both converged and exhausted runs answer 200 with the full step history;
    ``success`` tells them apart. Once the run time limit passes, no new
    iteration starts and the run ends as a failure, but the iteration in
    flight is never cut short by it. Only a run still busy after the extra
    grace period (a hung model or sandbox call) is cancelled with a 504.
    """
    if not settings.llm_configured:
        raise ConfigurationError("OPENAI_API_KEY is required.")

    start_time = time.perf_counter()
    hard_timeout = settings.run_timeout_seconds + settings.run_grace_seconds
    logger.info(
        "replication_request_received",
        task_preview=body.task[:120],
        has_paper_text=bool(body.paper_text),
        has_method_text=bool(body.method_text),
        max_iterations=body.max_iterations,
        default_language=body.default_language,
    )

    try:
        result = await asyncio.wait_for(
            agent.run(
                body.task,
                paper_text=body.paper_text,
                method_text=body.method_text,
                max_iterations=body.max_iterations,
                default_language=body.default_language,
                model=body.model,
                require_sufficient_output=(
                    True if body.require_sufficient_output is None
                    else body.require_sufficient_output
                ),
                time_limit_seconds=settings.run_timeout_seconds,
            ),
            timeout=hard_timeout,
        )
    except asyncio.TimeoutError:
        track_run_error(time.perf_counter() - start_time)
        logger.error("replication_request_timed_out", timeout_seconds=hard_timeout)
        return JSONResponse(
            status_code=504,
            content=ErrorResponse(
                error="RunTimeout",
                message=f"Replication run exceeded {hard_timeout:g}s.",
                request_id=request_id,
            ).model_dump(),
        )
    except Exception:
        track_run_error(time.perf_counter() - start_time)
        raise

    duration = time.perf_counter() - start_time
    track_run_metrics(result, duration)
    logger.info(
        "replication_request_completed",
        success=result.success,
        step_count=len(result.steps),
    )

    return ReplicationResponse(
        success=result.success,
        result=ReplicationResultResponse.model_validate(result.to_dict()),
        request_id=request_id,
        processing_time_ms=duration * 1000,
    )


@router.post(
    "/eval/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        502: {"model": ErrorResponse, "description": "Model provider failure"},
    },
    summary="Compare paper claims against reproduction output",
)
async def analyze_claims(
    body: AnalyzeRequest,
    analyzer: ClaimsAnalyzer = Depends(get_analyzer),
    settings: Settings = Depends(get_settings),
    request_id: str = Depends(get_request_id),
) -> AnalyzeResponse:
    """Claim-by-claim CLAIMS CHECK report for a finished reproduction."""
    if not settings.llm_configured:
        raise ConfigurationError("OPENAI_API_KEY is required.")

    analysis = await analyzer.analyze(
        body.replication_output,
        paper_text=body.paper_text,
        method_steps=body.method_steps,
        method_assumptions=body.method_assumptions,
        method_insights=body.method_insights,
        model=body.model,
    )
    return AnalyzeResponse(analysis=analysis, request_id=request_id)
