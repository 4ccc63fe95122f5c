"""
Unit Tests for SufficiencyJudge
===============================

Tests for verdict parsing and the judge prompt.
"""

import asyncio

import pytest

from paper_replication.errors import JudgmentError, LLMError
from paper_replication.judge import (
    MAX_CONTEXT_CHARS_FOR_JUDGE,
    MAX_LIST_ITEMS,
    MAX_OUTPUT_CHARS_FOR_JUDGE,
    SufficiencyJudge,
    build_user_prompt,
    parse_assessment,
)
from paper_replication.llm.mock import MockLLM
from paper_replication.models import LLMResponse


class TestParseAssessment:
    """Tests for defensive verdict coercion."""

    def test_well_formed(self) -> None:
        assessment = parse_assessment(
            {"sufficient": True, "missing": [], "rationale": "ok", "requested_changes": []}
        )
        assert assessment.sufficient is True
        assert assessment.rationale == "ok"

    def test_truthy_non_bool_is_not_sufficient(self) -> None:
        """Test that only a literal true counts as sufficient."""
        assert parse_assessment({"sufficient": "yes"}).sufficient is False
        assert parse_assessment({"sufficient": 1}).sufficient is False
        assert parse_assessment({}).sufficient is False

    def test_lists_filtered_and_capped(self) -> None:
        """Test that non-strings and blanks are dropped and lists are capped."""
        missing = ["  seed  ", "", 3, None] + [f"item {i}" for i in range(30)]
        assessment = parse_assessment({"sufficient": False, "missing": missing})
        assert assessment.missing[0] == "seed"
        assert len(assessment.missing) == MAX_LIST_ITEMS
        assert all(isinstance(item, str) and item for item in assessment.missing)

    def test_non_list_fields_become_empty(self) -> None:
        assessment = parse_assessment(
            {"sufficient": False, "missing": "accuracy", "requested_changes": {"a": 1},
             "rationale": 42}
        )
        assert assessment.missing == []
        assert assessment.requested_changes == []
        assert assessment.rationale == ""


class TestJudgePrompt:
    """Tests for the judge prompt."""

    def test_output_truncated(self) -> None:
        prompt = build_user_prompt("t", "o" * (MAX_OUTPUT_CHARS_FOR_JUDGE + 10))
        assert "...[truncated 10 chars]" in prompt

    def test_paper_context_truncated(self) -> None:
        prompt = build_user_prompt("t", "out", paper_text="p" * (MAX_CONTEXT_CHARS_FOR_JUDGE + 5))
        assert "...[truncated 5 chars]" in prompt

    def test_sections_present(self) -> None:
        prompt = build_user_prompt("Task X", "numbers", paper_text="Paper", method_text="Method")
        assert "Task:\nTask X" in prompt
        assert "Method summary:\nMethod" in prompt
        assert "Paper excerpt:\nPaper" in prompt
        assert "numbers" in prompt


class TestSufficiencyJudge:
    """Tests for the single judge call."""

    def test_assess(self) -> None:
        llm = MockLLM(responses={"output_assessment": [
            {"sufficient": False, "missing": ["seed"], "rationale": "No seed.",
             "requested_changes": ["print the seed"]}
        ]})
        assessment = asyncio.run(SufficiencyJudge(llm, model="judge").assess("t", "out"))

        assert assessment.sufficient is False
        assert assessment.missing == ["seed"]
        assert assessment.requested_changes == ["print the seed"]
        assert llm.calls[0].model == "judge"

    def test_fragment_used_when_content_empty(self) -> None:
        """Test that an object-shaped fragment is accepted without top-level text."""

        class FragmentLLM(MockLLM):
            async def complete(self, **kwargs):
                return LLMResponse(
                    content="",
                    model="m",
                    fragments=["thinking...", '{"sufficient": true, "missing": [], '
                               '"rationale": "", "requested_changes": []}'],
                )

        assessment = asyncio.run(SufficiencyJudge(FragmentLLM()).assess("t", "out"))
        assert assessment.sufficient is True

    def test_non_object_json(self) -> None:
        llm = MockLLM(responses={"output_assessment": ["[1, 2]"]})
        with pytest.raises(JudgmentError, match="did not include JSON output"):
            asyncio.run(SufficiencyJudge(llm).assess("t", "out"))

    def test_provider_error(self) -> None:
        llm = MockLLM(responses={"output_assessment": [LLMError("boom (status: 500)")]})
        with pytest.raises(JudgmentError, match="boom"):
            asyncio.run(SufficiencyJudge(llm).assess("t", "out"))

    def test_parse_error_keeps_request_id(self) -> None:
        """Test that an unusable verdict still reports the upstream request id."""
        llm = MockLLM(responses={"output_assessment": ["{broken"]}, request_id="req_555")
        with pytest.raises(JudgmentError, match=r"\(request_id: req_555\)"):
            asyncio.run(SufficiencyJudge(llm).assess("t", "out"))
