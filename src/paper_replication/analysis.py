"""
Claims Analysis
===============

Compares the paper's major claims against what a reproduction printed.
"""

from typing import Any, Iterable, Optional

import structlog

from paper_replication.errors import AnalysisError, LLMError
from paper_replication.llm.base import LLMInterface
from paper_replication.text import truncate_text

logger = structlog.get_logger(__name__)

MAX_PAPER_CHARS = 30_000
MAX_OUTPUT_CHARS = 40_000
MAX_METHOD_STEPS = 80
MAX_METHOD_ASSUMPTIONS = 60
MAX_METHOD_INSIGHTS = 60

SYSTEM_PROMPT = "\n".join(
    [
        "You compare a paper's major claims with the outputs of a reproduction run.",
        "",
        "Goal:",
        "- Be concise, readable and to the point.",
        "- Only judge whether the MAJOR claims are broadly supported by the reproduced outputs.",
        "- Do NOT demand perfect replication of every appendix detail.",
        "- Do NOT give an overall verdict on the paper; go claim by claim.",
        "",
        "Task:",
        "- Extract the major claims/conclusions that are testable with the available information.",
        "- Summarize what the reproduction ran and which numbers it printed.",
        "- Rate each claim: Supported / Contradicted / Unclear (missing info).",
        "- Cite 1-3 concrete numbers from the reproduction output as evidence, or say 'no numeric evidence found'.",
        "- When a comparison is impossible, state exactly what is missing (baseline numbers, claim definition, units).",
        "",
        "Output format:",
        "- Plain text ONLY, in this structure:",
        "",
        "CLAIMS CHECK",
        "- Claim 1: <one sentence>",
        "  - Reproduction evidence: <numbers + brief context>",
        "  - Assessment: Supported | Contradicted | Unclear",
        "- Claim 2: ...",
        "",
        "NOTES (only if needed)",
        "- Missing info: <1-5 specific bullets>",
        "- Next experiments/logging: <1-5 specific bullets>",
        "",
        "Length limits:",
        "- At most 8 claims.",
        "- At most ~200 lines; prefer far fewer.",
    ]
)


def clean_items(values: Optional[Iterable[Any]], limit: int) -> list[str]:
    """Stringify, drop blanks, and cap a list of method items."""
    if not values:
        return []
    items = [str(value).strip() for value in values if value is not None]
    return [item for item in items if item][:limit]


def build_user_prompt(
    replication_output: str,
    *,
    paper_text: str = "",
    method_steps: Optional[list[str]] = None,
    method_assumptions: Optional[list[str]] = None,
    method_insights: Optional[list[str]] = None,
) -> str:
    sections = [
        f"Paper text excerpt:\n{truncate_text(paper_text, MAX_PAPER_CHARS)}"
        if paper_text
        else "Paper text excerpt: (not provided)"
    ]
    if method_steps:
        sections.append("Method steps (from earlier stage):\n- " + "\n- ".join(method_steps))
    if method_assumptions:
        sections.append("Assumptions (from earlier stage):\n- " + "\n- ".join(method_assumptions))
    if method_insights:
        sections.append("Insights (from earlier stage):\n- " + "\n- ".join(method_insights))
    sections.append(
        "Reproduction program output (stdout/stderr):\n"
        + truncate_text(replication_output, MAX_OUTPUT_CHARS)
    )
    return "\n\n".join(sections)


class ClaimsAnalyzer:
    """Plain-text claim-by-claim comparison."""

    def __init__(self, llm: LLMInterface, model: Optional[str] = None) -> None:
        self.llm = llm
        self.model = model

    async def analyze(
        self,
        replication_output: str,
        *,
        paper_text: Optional[str] = None,
        method_steps: Optional[Iterable[Any]] = None,
        method_assumptions: Optional[Iterable[Any]] = None,
        method_insights: Optional[Iterable[Any]] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Produce a CLAIMS CHECK report.

        Raises:
            ValueError: ``replication_output`` is empty
            AnalysisError: the call failed or returned nothing
        """
        output = replication_output.strip()
        if not output:
            raise ValueError("replication_output is required.")

        prompt = build_user_prompt(
            output,
            paper_text=(paper_text or "").strip(),
            method_steps=clean_items(method_steps, MAX_METHOD_STEPS),
            method_assumptions=clean_items(method_assumptions, MAX_METHOD_ASSUMPTIONS),
            method_insights=clean_items(method_insights, MAX_METHOD_INSIGHTS),
        )
        use_model = model or self.model
        logger.info("claims_analysis_started", model=use_model, prompt_chars=len(prompt))

        try:
            response = await self.llm.complete(system=SYSTEM_PROMPT, user=prompt, model=use_model)
        except LLMError as e:
            logger.error("claims_analysis_failed", error=str(e))
            raise AnalysisError(str(e)) from e

        analysis = response.content.strip()
        if not analysis:
            raise AnalysisError("Empty analysis output.")

        logger.info("claims_analysis_completed", analysis_chars=len(analysis))
        return analysis
