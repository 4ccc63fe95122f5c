"""
Structured Output Parsing
=========================

Pull exactly one JSON object out of a model response.
"""

import json
from typing import Any

from paper_replication.errors import ResponseParseError
from paper_replication.models import LLMResponse


def first_json_candidate(response: LLMResponse) -> str | None:
    """Return the first fragment shaped like a JSON object, if any."""
    candidates = [response.content, *response.fragments]
    for candidate in candidates:
        if not isinstance(candidate, str):
            continue
        text = candidate.strip()
        if text.startswith("{") and text.endswith("}"):
            return text
    return None


def extract_json_object(response: LLMResponse, *, label: str) -> dict[str, Any]:
    """
    Parse the first object-shaped fragment of ``response``.

    Args:
        response: Model response
        label: Human name of the call, used in error messages

    Raises:
        ResponseParseError: no fragment looks like an object, or it does not parse
    """
    candidate = first_json_candidate(response)
    if candidate is None:
        raise ResponseParseError(
            f"{label} response did not include JSON output.", request_id=response.request_id
        )

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"{label} response JSON could not be parsed: {e.msg} at position {e.pos}.",
            request_id=response.request_id,
        ) from e

    if not isinstance(parsed, dict):
        raise ResponseParseError(
            f"{label} response JSON is not an object.", request_id=response.request_id
        )
    return parsed


def strict_object_schema(
    name: str, properties: dict[str, Any]
) -> dict[str, Any]:
    """
    Build a named structured-output schema.

    Strict structured outputs require ``additionalProperties: false`` and a
    ``required`` list naming every property.
    """
    return {
        "name": name,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": properties,
            "required": list(properties.keys()),
        },
    }
