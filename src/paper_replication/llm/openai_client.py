"""
OpenAI LLM
==========

LLM provider backed by the OpenAI Responses API.
"""

import asyncio
import json
from typing import Any, Optional

import structlog
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from paper_replication.config import DEFAULT_MODEL
from paper_replication.errors import ConfigurationError, LLMError
from paper_replication.llm.base import LLMInterface
from paper_replication.llm.retry import NO_RETRY, RetryPolicy
from paper_replication.models import LLMResponse

logger = structlog.get_logger(__name__)


class OpenAIResponsesLLM(LLMInterface):
    """
    Thin async wrapper around ``client.responses.create``.

    The underlying ``AsyncOpenAI`` client is created on first use and reused
    for every later call so its connection pool is shared. Call ``close()``
    when the owning service shuts down.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        default_model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        retry_policy: RetryPolicy = NO_RETRY,
    ) -> None:
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = base_url
        self.retry_policy = retry_policy
        self._client: Optional[AsyncOpenAI] = None

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is required to call the model provider.")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(
        self,
        *,
        system: str,
        user: str,
        model: Optional[str] = None,
        json_schema: Optional[dict[str, Any]] = None,
    ) -> LLMResponse:
        client = self._get_client()
        use_model = model or self.default_model

        kwargs: dict[str, Any] = {}
        if json_schema is not None:
            kwargs["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": json_schema.get("name", "schema"),
                    "strict": True,
                    "schema": json_schema.get("schema", {}),
                }
            }

        attempt = 0
        while True:
            attempt += 1
            try:
                response = await client.responses.create(
                    model=use_model,
                    input=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    **kwargs,
                )
                break
            except APIStatusError as e:
                if self.retry_policy.should_retry(attempt, e.status_code):
                    delay = self.retry_policy.delay_for(attempt)
                    logger.warning(
                        "llm_request_retrying",
                        model=use_model,
                        status=e.status_code,
                        attempt=attempt,
                        delay_seconds=delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    "llm_request_http_error",
                    model=use_model,
                    status=e.status_code,
                    request_id=e.request_id,
                    message=e.message,
                )
                raise LLMError(
                    f"{e.message} (status: {e.status_code})",
                    request_id=e.request_id,
                    status_code=e.status_code,
                ) from e
            except APIConnectionError as e:
                logger.error("llm_request_transport_error", model=use_model, error=str(e))
                raise LLMError(f"Model request transport error: {e}") from e

        return _to_llm_response(response, use_model)


def _to_llm_response(response: Any, model: str) -> LLMResponse:
    output_text = getattr(response, "output_text", None)
    content = output_text.strip() if isinstance(output_text, str) else ""

    dump: Any = None
    if hasattr(response, "model_dump"):
        dump = response.model_dump()
    elif isinstance(response, dict):
        dump = response

    fragments = _collect_fragments(dump if isinstance(dump, dict) else {})
    usage = getattr(response, "usage", None)
    tokens = int(getattr(usage, "total_tokens", 0) or 0) if usage is not None else 0

    return LLMResponse(
        content=content,
        model=str(getattr(response, "model", None) or model),
        fragments=fragments,
        tokens_used=tokens,
        request_id=getattr(response, "_request_id", None),
    )


def _collect_fragments(payload: dict[str, Any]) -> list[str]:
    """Gather text (and inline JSON) blocks from ``output[].content[]``."""
    fragments: list[str] = []
    output = payload.get("output")
    if not isinstance(output, list):
        return fragments

    for item in output:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for block in content:
            if not isinstance(block, dict):
                continue
            text = block.get("text")
            if isinstance(text, str) and text.strip():
                fragments.append(text.strip())
            inline = block.get("json")
            if isinstance(inline, dict):
                fragments.append(json.dumps(inline))
    return fragments
