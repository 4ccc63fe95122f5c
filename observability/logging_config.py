"""
Structured Logging Configuration
================================

structlog setup shared by the API and the replication core.

Core modules log with ``structlog.get_logger(__name__)`` and never configure
anything themselves; the service calls ``setup_logging`` once at startup.
"""

import logging
import os
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "paper-replication"

# Client libraries that log every HTTP exchange at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "e2b", "e2b_code_interpreter")


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors(json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
    return processors


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> None:
    """
    Route structlog and stdlib logging through one stdout handler.

    Args:
        level: Log level (default: LOG_LEVEL env or INFO)
        json_format: JSON lines instead of console output
                     (default: LOG_FORMAT=json, or ENVIRONMENT=production)
    """
    log_level = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    if json_format is None:
        json_format = (
            os.getenv("LOG_FORMAT", "").lower() == "json"
            or os.getenv("ENVIRONMENT", "development") == "production"
        )

    shared = _shared_processors(json_format)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: Optional[str] = None) -> Any:
    """Structured logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """
    Attach key-value pairs to every log event in the current context.

    The telemetry middleware binds ``request_id`` here so run, sandbox and
    model-call events from one request can be correlated.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
