"""
Sufficiency Judge
=================

Decides from program output alone whether replicability can be assessed.
"""

import time
from typing import Any, Optional

import structlog

from paper_replication.errors import JudgmentError, LLMError, ResponseParseError
from paper_replication.llm.base import LLMInterface
from paper_replication.llm.structured import extract_json_object, strict_object_schema
from paper_replication.models import OutputAssessment
from paper_replication.text import to_log_snippet, truncate_text

logger = structlog.get_logger(__name__)

MAX_OUTPUT_CHARS_FOR_JUDGE = 20_000
MAX_CONTEXT_CHARS_FOR_JUDGE = 30_000
MAX_LIST_ITEMS = 20

OUTPUT_ASSESSMENT_SCHEMA = strict_object_schema(
    "output_assessment",
    {
        "sufficient": {"type": "boolean"},
        "missing": {"type": "array", "items": {"type": "string"}},
        "rationale": {"type": "string"},
        "requested_changes": {"type": "array", "items": {"type": "string"}},
    },
)

SYSTEM_PROMPT = (
    "You are a strict reproducibility judge. Decide whether the provided run output "
    "is sufficient, on its own, to judge whether the paper is replicable. "
    "If it is not, list exactly what is missing and what the code should print next time."
)


def build_user_prompt(
    task: str,
    output: str,
    *,
    paper_text: Optional[str] = None,
    method_text: Optional[str] = None,
) -> str:
    parts = [f"Task:\n{task}\n"]
    if method_text:
        parts.append(f"Method summary:\n{method_text}\n")
    if paper_text:
        parts.append(f"Paper excerpt:\n{truncate_text(paper_text, MAX_CONTEXT_CHARS_FOR_JUDGE)}\n")
    parts.append(
        "Program output (stdout/stderr combined):\n"
        f"{truncate_text(output, MAX_OUTPUT_CHARS_FOR_JUDGE)}\n"
    )
    parts.append("Return JSON only.")
    return "\n".join(parts)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items[:MAX_LIST_ITEMS]


def parse_assessment(parsed: dict[str, Any]) -> OutputAssessment:
    """
    Coerce a decoded verdict into an OutputAssessment.

    The upstream schema should already constrain the shape, but the
    response is untrusted: lists are capped and junk entries dropped.
    """
    rationale = parsed.get("rationale")
    return OutputAssessment(
        sufficient=parsed.get("sufficient") is True,
        missing=_string_list(parsed.get("missing")),
        rationale=rationale if isinstance(rationale, str) else "",
        requested_changes=_string_list(parsed.get("requested_changes")),
    )


class SufficiencyJudge:
    """Single-call output judge with a strict output schema."""

    def __init__(self, llm: LLMInterface, model: Optional[str] = None) -> None:
        self.llm = llm
        self.model = model

    async def assess(
        self,
        task: str,
        output: str,
        *,
        paper_text: Optional[str] = None,
        method_text: Optional[str] = None,
    ) -> OutputAssessment:
        """
        Judge one successful run's output.

        Raises:
            JudgmentError: the call failed or its output was unusable
        """
        started = time.perf_counter()
        logger.info(
            "sufficiency_check_started",
            model=self.model,
            output_chars=len(output),
            has_paper_text=bool(paper_text),
            has_method_text=bool(method_text),
        )

        try:
            response = await self.llm.complete(
                system=SYSTEM_PROMPT,
                user=build_user_prompt(
                    task, output, paper_text=paper_text, method_text=method_text
                ),
                model=self.model,
                json_schema=OUTPUT_ASSESSMENT_SCHEMA,
            )
            assessment = parse_assessment(
                extract_json_object(response, label="Output assessment")
            )
        except (LLMError, ResponseParseError) as e:
            logger.error("sufficiency_check_failed", error=str(e))
            raise JudgmentError(str(e)) from e

        logger.info(
            "sufficiency_check_completed",
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            sufficient=assessment.sufficient,
            missing_count=len(assessment.missing),
            missing=assessment.missing,
            requested_changes=assessment.requested_changes,
            rationale_preview=to_log_snippet(assessment.rationale, 800),
        )
        return assessment
