"""
Errors
======

Exception taxonomy for the replication agent.

Execution failures are deliberately absent: a sandboxed program that
crashes is a value (``ExecutionFailure``) the loop retries on, not an
exception.
"""

from typing import Optional


def with_request_id(message: str, request_id: Optional[str]) -> str:
    """Append the upstream request id so failures can be traced provider-side."""
    if request_id:
        return f"{message} (request_id: {request_id})"
    return message


class ReplicationError(Exception):
    """Base class for every error raised by the replication core."""


class ConfigurationError(ReplicationError):
    """A required credential or setting is missing."""


class LLMError(ReplicationError):
    """The model provider call failed (transport error or non-OK status)."""

    def __init__(
        self,
        message: str,
        *,
        request_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(with_request_id(message, request_id))
        self.request_id = request_id
        self.status_code = status_code


class ResponseParseError(ReplicationError):
    """The model answered but not with the required JSON object."""

    def __init__(self, message: str, *, request_id: Optional[str] = None) -> None:
        super().__init__(with_request_id(message, request_id))
        self.request_id = request_id


class GenerationError(ReplicationError):
    """Code suggestion could not be obtained."""


class JudgmentError(ReplicationError):
    """Output sufficiency verdict could not be obtained."""


class AnalysisError(ReplicationError):
    """Claims comparison could not be obtained."""
