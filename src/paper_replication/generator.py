"""
Suggestion Generator
====================

Turns a replication task plus paper context into one runnable program.
"""

import time
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from paper_replication.errors import GenerationError, LLMError, ResponseParseError
from paper_replication.llm.base import LLMInterface
from paper_replication.llm.structured import extract_json_object, strict_object_schema
from paper_replication.models import CodeSuggestion
from paper_replication.text import preview, truncate_text

logger = structlog.get_logger(__name__)

MAX_PAPER_CHARS = 60_000

CODE_SUGGESTION_SCHEMA = strict_object_schema(
    "code_suggestion",
    {
        "code": {"type": "string"},
        "language": {"type": "string"},
        "explanation": {"type": "string"},
    },
)

SYSTEM_PROMPT = "\n".join(
    [
        "You are a research code replication agent.",
        "You rebuild the code behind an academic paper so that its results and conclusions can be checked again.",
        "",
        "Rules:",
        "- Reproduce the paper's methods, algorithms, data processing and hyperparameters as the text describes them.",
        "- Where the paper is underspecified, make the smallest conservative assumption that yields a working implementation and document it in the explanation field only, never inside the code.",
        "- Write a self-contained script that runs as-is (e.g. `python script.py`): define every function and class you use, import what you need, and generate toy data when the real data is not reachable.",
        "- Do not invent new algorithms or evaluation procedures; stay close to what the paper describes.",
        "- Keep explanations and markdown out of the code; they belong in the JSON `explanation` field.",
        "",
        "The printed output alone must let a third party judge replicability.",
        "Print all of the following:",
        "- A 'REPLICATION REPORT' section header.",
        "- Every parameter and hyperparameter value used, including assumed defaults.",
        "- The random seed(s) and a note on determinism.",
        "- Python version and versions of the key packages used (numpy, scipy, pandas, matplotlib, torch/sklearn when used).",
        "- The metrics and tables needed to evaluate the paper's conclusions, as numbers rather than plots.",
        "- For each paper claim you compare against, the claim next to your computed value.",
        "- A final single line prefixed with 'REPLICATION_JSON:' holding a JSON object with parameters, metrics and a short verdict.",
    ]
)


class _SuggestionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    language: Optional[Any] = None
    explanation: Optional[Any] = None


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_user_prompt(
    task: str,
    *,
    paper_text: Optional[str] = None,
    method_text: Optional[str] = None,
    previous_suggestion: Optional[CodeSuggestion] = None,
    last_error: Optional[str] = None,
    iteration: int = 0,
) -> str:
    """Assemble the user message for one generation round."""
    lines = [
        "Replication objective:",
        task,
        "",
        "Recreate the Python code implementing the paper's method and experiments so it can be rerun to check whether the same conclusions hold.",
    ]

    if paper_text:
        lines += [
            "",
            "Paper context (source of truth for the method; follow it closely):",
            truncate_text(paper_text, MAX_PAPER_CHARS),
        ]

    if method_text:
        lines += [
            "",
            "Structured methodology summary (secondary guide; where it conflicts with the paper text above, the paper text wins):",
            method_text,
        ]

    if iteration == 0:
        lines += ["", "This is the first attempt. Produce the best implementation you can."]
    else:
        lines += [
            "",
            f"This is refinement iteration {iteration}. Fix the root cause of the failure below in the previous code.",
        ]

    if previous_suggestion is not None:
        lines += [
            "",
            "Previous code (reuse or change it as needed):",
            "```",
            previous_suggestion.code,
            "```",
        ]

    if last_error:
        lines += [
            "",
            "Last execution error/output (analyze it and fix the root cause):",
            last_error,
        ]

    lines += [
        "",
        "Return ONLY a JSON object of this shape:",
        '{ "code": "<full script>", "language": "python", "explanation": "<short reasoning>" }',
    ]
    return "\n".join(lines)


def parse_suggestion(parsed: dict, *, request_id: Optional[str] = None) -> CodeSuggestion:
    """
    Validate the decoded JSON object and normalize optional fields.

    Only ``code`` is required; a non-string or blank ``language`` or
    ``explanation`` is treated as absent.
    """
    try:
        payload = _SuggestionPayload.model_validate(parsed)
    except ValidationError as e:
        raise ResponseParseError(
            f"Code suggestion JSON did not match the expected shape: {e.errors()[0]['msg']}",
            request_id=request_id,
        ) from e

    if not payload.code.strip():
        raise ResponseParseError(
            "Code suggestion JSON did not include a valid 'code' field.", request_id=request_id
        )

    return CodeSuggestion(
        code=payload.code,
        language=_optional_text(payload.language),
        explanation=_optional_text(payload.explanation),
    )


class SuggestionGenerator:
    """Single-call code generator with a strict output schema."""

    def __init__(self, llm: LLMInterface, model: Optional[str] = None) -> None:
        """
        Args:
            llm: LLM provider
            model: Default generator model (provider default when None)
        """
        self.llm = llm
        self.model = model

    async def suggest(
        self,
        task: str,
        *,
        paper_text: Optional[str] = None,
        method_text: Optional[str] = None,
        previous_suggestion: Optional[CodeSuggestion] = None,
        last_error: Optional[str] = None,
        iteration: int = 0,
        model: Optional[str] = None,
    ) -> CodeSuggestion:
        """
        Ask the model for the next program attempt.

        Raises:
            GenerationError: the call failed or its output was unusable
        """
        use_model = model or self.model
        prompt = build_user_prompt(
            task,
            paper_text=paper_text,
            method_text=method_text,
            previous_suggestion=previous_suggestion,
            last_error=last_error,
            iteration=iteration,
        )

        started = time.perf_counter()
        logger.info(
            "code_generation_started",
            iteration=iteration,
            model=use_model,
            prompt_chars=len(prompt),
            has_paper_text=bool(paper_text),
            has_method_text=bool(method_text),
            has_last_error=bool(last_error),
        )

        try:
            response = await self.llm.complete(
                system=SYSTEM_PROMPT,
                user=prompt,
                model=use_model,
                json_schema=CODE_SUGGESTION_SCHEMA,
            )
            suggestion = parse_suggestion(
                extract_json_object(response, label="Code suggestion"),
                request_id=response.request_id,
            )
        except (LLMError, ResponseParseError) as e:
            logger.error("code_generation_failed", iteration=iteration, error=str(e))
            raise GenerationError(str(e)) from e

        logger.info(
            "code_generation_completed",
            iteration=iteration,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            language=suggestion.language,
            code_length=len(suggestion.code),
            explanation_preview=preview(suggestion.explanation),
        )
        return suggestion
