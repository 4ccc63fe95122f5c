"""
E2B Executor
============

Runs generated code in an ephemeral E2B code-interpreter sandbox.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog
from e2b import TimeoutException
from e2b_code_interpreter import AsyncSandbox

from paper_replication.models import ExecutionFailure, ExecutionResult, ExecutionSuccess
from paper_replication.sandbox.base import CodeExecutor, normalize_language
from paper_replication.text import to_log_snippet

logger = structlog.get_logger(__name__)

NO_OUTPUT_MESSAGE = "Execution finished with no output."
MISSING_KEY_MESSAGE = "E2B_API_KEY is required to run code in the sandbox."

SandboxFactory = Callable[..., Awaitable[Any]]


class E2BExecutor(CodeExecutor):
    """
    One sandbox per call, killed as soon as the call returns.

    Sandboxes are never reused, so files, globals or consumed randomness left
    by one attempt cannot leak into the next.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        timeout_seconds: float = 60.0,
        request_timeout_seconds: float = 60.0,
        sandbox_factory: Optional[SandboxFactory] = None,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.request_timeout_seconds = request_timeout_seconds
        self.sandbox_factory = sandbox_factory or AsyncSandbox.create

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def execute(self, code: str, language: str) -> ExecutionResult:
        if not self.api_key:
            logger.error("sandbox_missing_api_key")
            return ExecutionFailure(error=MISSING_KEY_MESSAGE)

        runtime = normalize_language(language)
        logger.info("sandbox_run_requested", code_length=len(code), language=runtime)

        try:
            sandbox = await self.sandbox_factory(
                api_key=self.api_key,
                request_timeout=self.request_timeout_seconds,
            )
        except Exception as e:
            logger.error("sandbox_provisioning_failed", error=str(e))
            return ExecutionFailure(error=f"Failed to run code in e2b sandbox: {e}")

        logger.info("sandbox_created", sandbox_id=getattr(sandbox, "sandbox_id", None))
        try:
            execution = await asyncio.wait_for(
                sandbox.run_code(
                    code,
                    language=runtime,
                    timeout=self.timeout_seconds,
                    request_timeout=self.request_timeout_seconds,
                ),
                timeout=self.timeout_seconds + self.request_timeout_seconds,
            )
        except (asyncio.TimeoutError, TimeoutException):
            logger.warning("sandbox_run_timed_out", timeout_seconds=self.timeout_seconds)
            return ExecutionFailure(
                error=f"Sandbox execution timed out after {self.timeout_seconds:g}s."
            )
        except Exception as e:
            logger.error("sandbox_run_failed", error=str(e))
            return ExecutionFailure(error=f"Failed to run code in e2b sandbox: {e}")
        finally:
            await self._discard(sandbox)

        return to_execution_result(execution)

    @staticmethod
    async def _discard(sandbox: Any) -> None:
        try:
            await sandbox.kill()
        except Exception as e:
            # The sandbox expires on its own; a failed kill only delays that.
            logger.warning("sandbox_kill_failed", error=str(e))


def to_execution_result(execution: Any) -> ExecutionResult:
    """Map an e2b ``Execution`` onto the success/failure union."""
    error = getattr(execution, "error", None)
    if error is not None:
        traceback = getattr(error, "traceback", None)
        suffix = f"\n{traceback}" if traceback else ""
        logger.warning("sandbox_execution_error", name=error.name, value=error.value)
        return ExecutionFailure(
            error=f"Sandbox execution error ({error.name}): {error.value}{suffix}"
        )

    output = (getattr(execution, "text", None) or "").strip()
    if not output:
        logs = getattr(execution, "logs", None)
        stdout = "".join(getattr(logs, "stdout", None) or []).strip()
        stderr = "".join(getattr(logs, "stderr", None) or []).strip()
        output = "\n\n".join(part for part in (stdout, stderr) if part) or NO_OUTPUT_MESSAGE

    logger.info("sandbox_execution_succeeded", output_preview=to_log_snippet(output, 800))
    return ExecutionSuccess(output=output)
