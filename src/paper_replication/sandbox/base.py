"""
Base Executor
=============

Abstract interface for sandboxed code execution.
"""

from abc import ABC, abstractmethod

from paper_replication.models import ExecutionResult


def normalize_language(language: str | None) -> str:
    """
    Map a free-form language hint onto a runtime the sandbox understands.

    Anything starting with ``py`` (``python3``, ``py``, ``Python``) becomes
    ``python``; other values are lower-cased and passed through.
    """
    raw = (language or "python").strip().lower() or "python"
    if raw.startswith("py"):
        return "python"
    return raw


class CodeExecutor(ABC):
    """Runs untrusted generated code in an isolated environment."""

    @abstractmethod
    async def execute(self, code: str, language: str) -> ExecutionResult:
        """
        Run ``code`` once in a fresh environment.

        Never raises for program faults, timeouts or provisioning problems;
        those come back as ``ExecutionFailure``.
        """
        pass
