"""
LLM Module
==========

Pluggable LLM interfaces for code generation and judgment.
"""

from paper_replication.llm.base import LLMInterface
from paper_replication.llm.mock import MockLLM
from paper_replication.llm.openai_client import OpenAIResponsesLLM
from paper_replication.llm.retry import NO_RETRY, RetryPolicy

__all__ = [
    "LLMInterface",
    "MockLLM",
    "OpenAIResponsesLLM",
    "RetryPolicy",
    "NO_RETRY",
]
