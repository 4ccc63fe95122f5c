"""
Configuration
=============

Environment-backed settings for the replication agent.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_MODEL = "gpt-5.2-2025-12-11"


def _to_optional_string(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _to_positive_int(value: Optional[str], *, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _to_positive_float(value: Optional[str], *, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    generator_model: str = DEFAULT_MODEL
    judge_model: str = DEFAULT_MODEL
    analyze_model: str = DEFAULT_MODEL
    e2b_api_key: Optional[str] = None
    sandbox_timeout_seconds: float = 60.0
    sandbox_request_timeout_seconds: float = 60.0
    max_iterations: int = 5
    default_language: str = "python3"
    run_timeout_seconds: float = 900.0
    run_grace_seconds: float = 180.0
    llm_max_attempts: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        generator_model = _to_optional_string(os.getenv("EVAL_MODEL")) or DEFAULT_MODEL
        return cls(
            openai_api_key=_to_optional_string(os.getenv("OPENAI_API_KEY")),
            openai_base_url=_to_optional_string(os.getenv("OPENAI_BASE_URL")),
            generator_model=generator_model,
            judge_model=_to_optional_string(os.getenv("EVAL_JUDGE_MODEL")) or DEFAULT_MODEL,
            analyze_model=(
                _to_optional_string(os.getenv("EVAL_ANALYZE_MODEL")) or generator_model
            ),
            e2b_api_key=_to_optional_string(os.getenv("E2B_API_KEY")),
            sandbox_timeout_seconds=_to_positive_float(
                os.getenv("SANDBOX_TIMEOUT_SECONDS"), default=60.0
            ),
            sandbox_request_timeout_seconds=_to_positive_float(
                os.getenv("SANDBOX_REQUEST_TIMEOUT_SECONDS"), default=60.0
            ),
            max_iterations=_to_positive_int(
                os.getenv("REPLICATION_MAX_ITERATIONS"), default=5
            ),
            default_language=(
                _to_optional_string(os.getenv("REPLICATION_DEFAULT_LANGUAGE")) or "python3"
            ),
            run_timeout_seconds=_to_positive_float(
                os.getenv("REPLICATION_RUN_TIMEOUT_SECONDS"), default=900.0
            ),
            run_grace_seconds=_to_positive_float(
                os.getenv("REPLICATION_RUN_GRACE_SECONDS"), default=180.0
            ),
            llm_max_attempts=_to_positive_int(os.getenv("LLM_MAX_ATTEMPTS"), default=1),
        )

    @property
    def llm_configured(self) -> bool:
        return self.openai_api_key is not None

    @property
    def sandbox_configured(self) -> bool:
        return self.e2b_api_key is not None
