"""
FastAPI Application
===================

Main FastAPI application for the paper replication service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.health import router as health_router
from api.routes.replication import router as replication_router
from api.schemas import ErrorResponse
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing
from paper_replication.agent import ReplicationAgent
from paper_replication.analysis import ClaimsAnalyzer
from paper_replication.config import Settings
from paper_replication.errors import ConfigurationError, ReplicationError
from paper_replication.llm.base import LLMInterface
from paper_replication.llm.openai_client import OpenAIResponsesLLM
from paper_replication.llm.retry import RetryPolicy
from paper_replication.sandbox.base import CodeExecutor
from paper_replication.sandbox.e2b_executor import E2BExecutor

logger = get_logger(__name__)


def create_llm(settings: Settings) -> OpenAIResponsesLLM:
    """Build the shared model client; it opens its connection pool on first use."""
    return OpenAIResponsesLLM(
        settings.openai_api_key,
        default_model=settings.generator_model,
        base_url=settings.openai_base_url,
        retry_policy=RetryPolicy(max_attempts=settings.llm_max_attempts),
    )


def create_executor(settings: Settings) -> E2BExecutor:
    return E2BExecutor(
        settings.e2b_api_key,
        timeout_seconds=settings.sandbox_timeout_seconds,
        request_timeout_seconds=settings.sandbox_request_timeout_seconds,
    )


def create_app(
    settings: Optional[Settings] = None,
    llm: Optional[LLMInterface] = None,
    executor: Optional[CodeExecutor] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Runtime settings (default: loaded from the environment)
        llm: Model provider (default: OpenAI Responses client)
        executor: Sandbox executor (default: E2B)
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """Application lifespan handler."""
        setup_logging()
        logger.info(
            "api_starting",
            version=__version__,
            llm_configured=settings.llm_configured,
            sandbox_configured=settings.sandbox_configured,
        )

        owned_llm = llm is None
        model_client = llm or create_llm(settings)
        sandbox = executor or create_executor(settings)

        app.state.settings = settings
        app.state.agent = ReplicationAgent.from_settings(settings, model_client, sandbox)
        app.state.analyzer = ClaimsAnalyzer(model_client, model=settings.analyze_model)

        yield

        if owned_llm:
            await model_client.close()
        logger.info("api_stopped")

    app = FastAPI(
        title="Paper Replication API",
        description=(
            "Attempts automated replication of a research paper's experiments: "
            "LLM-generated code, sandboxed execution and an output sufficiency judge."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(replication_router)

    setup_metrics(app, version=__version__)
    setup_tracing(app, version=__version__)
    app.add_route("/metrics", metrics_endpoint)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies are client errors."""
        first = exc.errors()[0] if exc.errors() else {}
        message = str(first.get("msg", "Invalid request body.")).removeprefix("Value error, ")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="InvalidRequest",
                message=message,
                request_id=getattr(request.state, "request_id", None),
                details={"errors": [str(e.get("loc")) for e in exc.errors()]},
            ).model_dump(),
        )

    @app.exception_handler(ReplicationError)
    async def replication_exception_handler(
        request: Request, exc: ReplicationError
    ) -> JSONResponse:
        """Precise errors from configuration or model calls."""
        status_code = 500 if isinstance(exc, ConfigurationError) else 502
        logger.error("replication_error", error_type=type(exc).__name__, message=str(exc))
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=type(exc).__name__,
                message=str(exc),
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=getattr(request.state, "request_id", None),
            ).model_dump(),
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
