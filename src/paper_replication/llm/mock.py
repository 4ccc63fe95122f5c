"""
Mock LLM
========

Scripted LLM implementation for testing and demonstration.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from paper_replication.llm.base import LLMInterface
from paper_replication.models import LLMResponse

PLAIN_TEXT_KEY = "text"

ScriptedResponse = Union[str, dict, Exception]


@dataclass(frozen=True)
class RecordedCall:
    """One call received by the mock, kept for assertions."""

    system: str
    user: str
    model: Optional[str]
    schema_name: str


class MockLLM(LLMInterface):
    """
    Mock LLM that replays canned responses.

    In production, replace with OpenAIResponsesLLM.
    """

    def __init__(
        self,
        responses: dict[str, list[ScriptedResponse]] | None = None,
        request_id: Optional[str] = None,
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping structured-output schema names (or ``"text"``
                       for schema-less calls) to a list of responses. Each is
                       returned in sequence and the last one repeats. Dicts are
                       serialized to JSON; exceptions are raised.
            request_id: Upstream request id stamped on every response
        """
        self.responses = responses or {}
        self.request_id = request_id
        self.call_counts: dict[str, int] = {}
        self.calls: list[RecordedCall] = []

    async def complete(
        self,
        *,
        system: str,
        user: str,
        model: Optional[str] = None,
        json_schema: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        key = json_schema.get("name", "schema") if json_schema else PLAIN_TEXT_KEY
        self.calls.append(RecordedCall(system=system, user=user, model=model, schema_name=key))

        attempts = self.responses.get(key)
        if not attempts:
            return LLMResponse(content="", model="mock-llm-v1", request_id=self.request_id)

        count = self.call_counts.get(key, 0)
        self.call_counts[key] = count + 1
        scripted = attempts[min(count, len(attempts) - 1)]

        if isinstance(scripted, Exception):
            raise scripted
        content = json.dumps(scripted) if isinstance(scripted, dict) else scripted
        return LLMResponse(
            content=content, model=model or "mock-llm-v1", request_id=self.request_id
        )

    def calls_for(self, schema_name: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.schema_name == schema_name]

    def reset(self) -> None:
        """Reset call counts and history for fresh test runs."""
        self.call_counts = {}
        self.calls = []
