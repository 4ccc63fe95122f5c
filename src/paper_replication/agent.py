"""
Replication Agent Controller
============================

Main agent that drives the generate / execute / judge / retry loop.
"""

import time
from typing import Optional

import structlog
from opentelemetry import trace

from paper_replication.config import Settings
from paper_replication.generator import SuggestionGenerator
from paper_replication.judge import SufficiencyJudge
from paper_replication.llm.base import LLMInterface
from paper_replication.models import (
    CodeSuggestion,
    EvalAgentResult,
    EvalAgentStep,
    ExecutionFailure,
    OutputAssessment,
    ReplicationFailure,
    ReplicationSuccess,
)
from paper_replication.sandbox.base import CodeExecutor
from paper_replication.text import preview, to_log_snippet

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

MAX_ITERATIONS_MESSAGE = "Max iterations reached without a successful run."
INSUFFICIENT_OUTPUT_SNIPPET_CHARS = 2_000


def build_time_limit_error(
    time_limit_seconds: float, iteration: int, last_error: Optional[str]
) -> str:
    message = f"Run time limit of {time_limit_seconds:g}s reached before iteration {iteration}."
    if last_error:
        message += f"\nLast error: {last_error}"
    return message


def build_insufficiency_error(assessment: OutputAssessment, output: str) -> str:
    """Explain to the next generation round why a clean run was rejected."""
    rationale = assessment.rationale.strip() or "(no rationale)"
    missing = "; ".join(assessment.missing) or "(none listed)"
    changes = "; ".join(assessment.requested_changes) or "(none listed)"
    return (
        "Execution succeeded but output was insufficient to judge replicability.\n"
        f"Judge rationale: {rationale}\n"
        f"Missing: {missing}\n"
        f"Requested changes: {changes}\n\n"
        "Output snippet:\n"
        f"{to_log_snippet(output, INSUFFICIENT_OUTPUT_SNIPPET_CHARS)}"
    )


class ReplicationAgent:
    """
    Main agent that tries to reproduce a paper's experiments in a sandbox.

    The agent:
    1. Asks the generator for a complete program
    2. Runs it in a fresh sandbox
    3. Optionally asks the judge whether the output settles replicability
    4. Feeds execution errors or the judge's objections into the next attempt
    5. Returns every step taken, whatever the outcome

    Generator and judge failures are not retried by the loop; they propagate
    out of ``run``. Only execution failures and insufficient verdicts consume
    another iteration.
    """

    def __init__(
        self,
        generator: SuggestionGenerator,
        executor: CodeExecutor,
        judge: SufficiencyJudge,
        max_iterations: int = 5,
        default_language: str = "python3",
    ) -> None:
        """
        Initialize the agent.

        Args:
            generator: Produces code suggestions
            executor: Runs suggestions in a sandbox
            judge: Assesses successful output
            max_iterations: Default iteration budget per run
            default_language: Runtime used when a suggestion names none
        """
        self.generator = generator
        self.executor = executor
        self.judge = judge
        self.max_iterations = max_iterations
        self.default_language = default_language

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        llm: LLMInterface,
        executor: CodeExecutor,
    ) -> "ReplicationAgent":
        return cls(
            generator=SuggestionGenerator(llm, model=settings.generator_model),
            executor=executor,
            judge=SufficiencyJudge(llm, model=settings.judge_model),
            max_iterations=settings.max_iterations,
            default_language=settings.default_language,
        )

    async def run(
        self,
        task: str,
        *,
        paper_text: Optional[str] = None,
        method_text: Optional[str] = None,
        max_iterations: Optional[int] = None,
        default_language: Optional[str] = None,
        model: Optional[str] = None,
        require_sufficient_output: bool = True,
        time_limit_seconds: Optional[float] = None,
    ) -> EvalAgentResult:
        """
        Main entry point: attempt to replicate the paper.

        Args:
            task: What to replicate
            paper_text: Extracted paper text (source of truth)
            method_text: Flattened method summary (secondary guidance)
            max_iterations: Iteration budget (agent default when None)
            default_language: Runtime when a suggestion names none
            model: Generator model override
            require_sufficient_output: Consult the judge after successful runs
            time_limit_seconds: Stop before starting a new iteration once this
                much time has passed; an iteration in flight always completes

        Returns:
            ReplicationSuccess or ReplicationFailure, each with the full step history

        Raises:
            GenerationError: the generator could not produce a suggestion
            JudgmentError: the judge could not produce a verdict
        """
        budget = self.max_iterations if max_iterations is None else max_iterations
        language_fallback = default_language or self.default_language
        deadline = (
            time.monotonic() + time_limit_seconds if time_limit_seconds is not None else None
        )

        logger.info(
            "replication_started",
            task_preview=preview(task),
            has_paper_text=bool(paper_text),
            has_method_text=bool(method_text),
            max_iterations=budget,
            default_language=language_fallback,
            model=model,
            require_sufficient_output=require_sufficient_output,
        )

        steps: list[EvalAgentStep] = []
        previous_suggestion: Optional[CodeSuggestion] = None
        last_error: Optional[str] = None

        with tracer.start_as_current_span("replication.run") as run_span:
            run_span.set_attribute("replication.max_iterations", budget)

            for iteration in range(budget):
                if deadline is not None and time.monotonic() >= deadline:
                    run_span.set_attribute("replication.success", False)
                    logger.warning(
                        "replication_time_limit_reached",
                        iteration=iteration,
                        time_limit_seconds=time_limit_seconds,
                        total_steps=len(steps),
                    )
                    return ReplicationFailure(
                        steps=steps,
                        last_error=build_time_limit_error(time_limit_seconds, iteration, last_error),
                    )

                with tracer.start_as_current_span("replication.generate") as span:
                    span.set_attribute("replication.iteration", iteration)
                    suggestion = await self.generator.suggest(
                        task,
                        paper_text=paper_text,
                        method_text=method_text,
                        previous_suggestion=previous_suggestion,
                        last_error=last_error,
                        iteration=iteration,
                        model=model,
                    )

                language = suggestion.language or language_fallback
                with tracer.start_as_current_span("replication.execute") as span:
                    span.set_attribute("replication.iteration", iteration)
                    span.set_attribute("replication.language", language)
                    run_result = await self.executor.execute(suggestion.code, language)
                    span.set_attribute("replication.execution_success", run_result.success)

                if isinstance(run_result, ExecutionFailure):
                    logger.info(
                        "iteration_executed",
                        iteration=iteration,
                        language=language,
                        success=False,
                        error_preview=to_log_snippet(run_result.error, 800),
                    )
                    steps.append(EvalAgentStep(iteration, suggestion, run_result))
                    previous_suggestion = suggestion
                    last_error = run_result.error
                    logger.warning(
                        "retrying_after_execution_failure",
                        iteration=iteration,
                        error_preview=to_log_snippet(run_result.error, 1_200),
                    )
                    continue

                logger.info(
                    "iteration_executed",
                    iteration=iteration,
                    language=language,
                    success=True,
                    output_preview=to_log_snippet(run_result.output, 800),
                )

                if not require_sufficient_output:
                    steps.append(EvalAgentStep(iteration, suggestion, run_result))
                    run_span.set_attribute("replication.success", True)
                    logger.info("replication_succeeded", iteration=iteration, total_steps=len(steps))
                    return ReplicationSuccess(steps=steps, final_output=run_result.output)

                with tracer.start_as_current_span("replication.judge") as span:
                    span.set_attribute("replication.iteration", iteration)
                    assessment = await self.judge.assess(
                        task,
                        run_result.output,
                        paper_text=paper_text,
                        method_text=method_text,
                    )
                    span.set_attribute("replication.sufficient", assessment.sufficient)
                steps.append(EvalAgentStep(iteration, suggestion, run_result, assessment))

                if assessment.sufficient:
                    run_span.set_attribute("replication.success", True)
                    logger.info(
                        "replication_succeeded_with_sufficient_output",
                        iteration=iteration,
                        total_steps=len(steps),
                    )
                    return ReplicationSuccess(
                        steps=steps,
                        final_output=run_result.output,
                        final_assessment=assessment,
                    )

                previous_suggestion = suggestion
                last_error = build_insufficiency_error(assessment, run_result.output)
                logger.warning(
                    "retrying_after_insufficient_output",
                    iteration=iteration,
                    missing_count=len(assessment.missing),
                    requested_changes_count=len(assessment.requested_changes),
                )

            run_span.set_attribute("replication.success", False)

        logger.warning("replication_failed_to_converge", max_iterations=budget, final_error=last_error)
        return ReplicationFailure(steps=steps, last_error=last_error or MAX_ITERATIONS_MESSAGE)
