"""
Paper Replication Agent
=======================

Generate, run and judge code that reproduces a research paper's experiments.
"""

from paper_replication.agent import ReplicationAgent, build_insufficiency_error
from paper_replication.analysis import ClaimsAnalyzer
from paper_replication.config import Settings
from paper_replication.errors import (
    AnalysisError,
    ConfigurationError,
    GenerationError,
    JudgmentError,
    LLMError,
    ReplicationError,
    ResponseParseError,
)
from paper_replication.generator import SuggestionGenerator
from paper_replication.judge import SufficiencyJudge
from paper_replication.llm import LLMInterface, MockLLM, OpenAIResponsesLLM, RetryPolicy
from paper_replication.models import (
    CodeSuggestion,
    EvalAgentResult,
    EvalAgentStep,
    ExecutionFailure,
    ExecutionResult,
    ExecutionSuccess,
    LLMResponse,
    OutputAssessment,
    ReplicationFailure,
    ReplicationSuccess,
)
from paper_replication.sandbox import CodeExecutor, E2BExecutor, normalize_language

__version__ = "0.1.0"

__all__ = [
    # Models
    "CodeSuggestion",
    "ExecutionSuccess",
    "ExecutionFailure",
    "ExecutionResult",
    "OutputAssessment",
    "EvalAgentStep",
    "ReplicationSuccess",
    "ReplicationFailure",
    "EvalAgentResult",
    "LLMResponse",
    # Errors
    "ReplicationError",
    "ConfigurationError",
    "LLMError",
    "ResponseParseError",
    "GenerationError",
    "JudgmentError",
    "AnalysisError",
    # Agent
    "ReplicationAgent",
    "SuggestionGenerator",
    "SufficiencyJudge",
    "ClaimsAnalyzer",
    "build_insufficiency_error",
    "Settings",
    # LLM
    "LLMInterface",
    "MockLLM",
    "OpenAIResponsesLLM",
    "RetryPolicy",
    # Sandbox
    "CodeExecutor",
    "E2BExecutor",
    "normalize_language",
]
