"""
Base LLM Interface
==================

Abstract interface for LLM providers.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from paper_replication.models import LLMResponse


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def complete(
        self,
        *,
        system: str,
        user: str,
        model: Optional[str] = None,
        json_schema: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        """
        Run one request/response model call.

        Args:
            system: System instruction
            user: User instruction
            model: Target model identifier (provider default when None)
            json_schema: Named strict output schema, ``{"name": ..., "schema": {...}}``

        Returns:
            LLMResponse with the flattened text and every content fragment

        Raises:
            ConfigurationError: provider credentials are missing
            LLMError: transport failure or non-OK status
        """
        pass
