"""
Unit Tests for SuggestionGenerator
==================================

Tests for prompt assembly and suggestion parsing.
"""

import asyncio

import pytest

from paper_replication.errors import ConfigurationError, GenerationError, LLMError, ResponseParseError
from paper_replication.generator import (
    CODE_SUGGESTION_SCHEMA,
    MAX_PAPER_CHARS,
    SuggestionGenerator,
    build_user_prompt,
    parse_suggestion,
)
from paper_replication.llm.mock import MockLLM
from paper_replication.models import CodeSuggestion


class TestPrompt:
    """Tests for the generation prompt."""

    def test_first_attempt_prompt(self) -> None:
        """Test that iteration 0 asks for a first attempt without previous code."""
        prompt = build_user_prompt("Reproduce Figure 3", paper_text="We train a CNN.")
        assert "Reproduce Figure 3" in prompt
        assert "We train a CNN." in prompt
        assert "first attempt" in prompt
        assert "Previous code" not in prompt
        assert "Last execution error" not in prompt

    def test_refinement_prompt(self) -> None:
        """Test that later iterations carry previous code and the error."""
        prompt = build_user_prompt(
            "Reproduce",
            previous_suggestion=CodeSuggestion(code="import torch"),
            last_error="ModuleNotFoundError: torch",
            iteration=2,
        )
        assert "refinement iteration 2" in prompt
        assert "import torch" in prompt
        assert "ModuleNotFoundError: torch" in prompt

    def test_method_text_is_secondary(self) -> None:
        """Test that the method summary is labeled subordinate to the paper."""
        prompt = build_user_prompt("Reproduce", paper_text="PAPER BODY", method_text="Step 1")
        assert "Step 1" in prompt
        assert "the paper text wins" in prompt
        assert prompt.index("PAPER BODY") < prompt.index("Step 1")

    def test_paper_text_truncated(self) -> None:
        """Test that oversized paper text is cut with an explicit marker."""
        paper = "a" * (MAX_PAPER_CHARS + 250)
        prompt = build_user_prompt("Reproduce", paper_text=paper)
        assert "...[truncated 250 chars]" in prompt
        assert "a" * (MAX_PAPER_CHARS + 1) not in prompt

    def test_absent_context_omitted(self) -> None:
        """Test that missing paper and method sections are left out."""
        prompt = build_user_prompt("Reproduce")
        assert "Paper context" not in prompt
        assert "methodology summary" not in prompt


class TestParseSuggestion:
    """Tests for suggestion validation."""

    def test_full_payload(self) -> None:
        suggestion = parse_suggestion(
            {"code": "print(1)", "language": " python ", "explanation": " seed=0 "}
        )
        assert suggestion == CodeSuggestion(code="print(1)", language="python", explanation="seed=0")

    def test_empty_optional_fields_become_none(self) -> None:
        """Test that blank language and explanation normalize to None."""
        suggestion = parse_suggestion({"code": "print(1)", "language": "", "explanation": "  "})
        assert suggestion.language is None
        assert suggestion.explanation is None

    def test_blank_code_rejected(self) -> None:
        with pytest.raises(ResponseParseError, match="'code'"):
            parse_suggestion({"code": "   ", "language": "python"})

    def test_non_string_optional_fields_become_none(self) -> None:
        """Test that null or non-string language and explanation count as absent."""
        suggestion = parse_suggestion({"code": "print(1)", "language": None, "explanation": 7})
        assert suggestion == CodeSuggestion(code="print(1)", language=None, explanation=None)

    def test_shape_error_carries_request_id(self) -> None:
        with pytest.raises(ResponseParseError, match="request_id: req_9"):
            parse_suggestion({"language": "python"}, request_id="req_9")

    def test_missing_code_rejected(self) -> None:
        with pytest.raises(ResponseParseError):
            parse_suggestion({"language": "python"})

    def test_non_string_code_rejected(self) -> None:
        with pytest.raises(ResponseParseError):
            parse_suggestion({"code": ["print(1)"]})


class TestSuggestionGenerator:
    """Tests for the single generation call."""

    def test_requests_strict_schema(self) -> None:
        """Test that the call names the code_suggestion schema."""
        llm = MockLLM(responses={"code_suggestion": [{"code": "print(1)", "language": "python",
                                                       "explanation": ""}]})
        generator = SuggestionGenerator(llm, model="gen-model")
        suggestion = asyncio.run(generator.suggest("Reproduce"))

        assert suggestion.code == "print(1)"
        assert llm.calls[0].schema_name == CODE_SUGGESTION_SCHEMA["name"]
        assert llm.calls[0].model == "gen-model"
        assert "REPLICATION_JSON:" in llm.calls[0].system

    def test_model_override(self) -> None:
        llm = MockLLM(responses={"code_suggestion": [{"code": "x", "language": "", "explanation": ""}]})
        asyncio.run(SuggestionGenerator(llm, model="a").suggest("t", model="b"))
        assert llm.calls[0].model == "b"

    def test_non_json_output(self) -> None:
        llm = MockLLM(responses={"code_suggestion": ["```python\nprint(1)\n```"]})
        with pytest.raises(GenerationError, match="did not include JSON output"):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_malformed_json_output(self) -> None:
        llm = MockLLM(responses={"code_suggestion": ['{"code": "print(1)",}']})
        with pytest.raises(GenerationError, match="could not be parsed"):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_provider_error_keeps_request_id(self) -> None:
        """Test that the upstream request id survives the wrapping."""
        llm = MockLLM(responses={"code_suggestion": [
            LLMError("Rate limit reached (status: 429)", request_id="req_abc", status_code=429)
        ]})
        with pytest.raises(GenerationError, match="req_abc"):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_configuration_error_not_wrapped(self) -> None:
        """Test that a missing credential surfaces as itself."""
        llm = MockLLM(responses={"code_suggestion": [ConfigurationError("OPENAI_API_KEY is required")]})
        with pytest.raises(ConfigurationError):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_parse_error_keeps_request_id(self) -> None:
        """Test that an unusable answer still reports the upstream request id."""
        llm = MockLLM(responses={"code_suggestion": ["not json"]}, request_id="req_777")
        with pytest.raises(GenerationError, match=r"did not include JSON output\. \(request_id: req_777\)"):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_blank_code_keeps_request_id(self) -> None:
        llm = MockLLM(
            responses={"code_suggestion": [{"code": " ", "language": "python", "explanation": ""}]},
            request_id="req_778",
        )
        with pytest.raises(GenerationError, match="req_778"):
            asyncio.run(SuggestionGenerator(llm).suggest("t"))

    def test_null_optional_fields_accepted(self) -> None:
        """Test that null language and explanation do not abort generation."""
        llm = MockLLM(responses={"code_suggestion": [
            {"code": "print(1)", "language": None, "explanation": None}
        ]})
        suggestion = asyncio.run(SuggestionGenerator(llm).suggest("t"))
        assert suggestion == CodeSuggestion(code="print(1)")
