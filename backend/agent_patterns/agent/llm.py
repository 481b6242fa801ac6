"""Chat access shared by the agent runtime and the tap paraphraser.

LLMClient sits on an OpenAI-compatible endpoint (OpenRouter by default) and
offers the two calls this package needs: a streamed chat for the agent loop
and a one-shot structured parse for paraphrasing. The underlying
AsyncOpenAI client is built on first use, so a missing key surfaces as an
OpenAIError from the call itself rather than at import time.

Only opening a chat stream is retried. A stream that fails after chunks
have started is the agent loop's problem, and paraphrase failures go to
the tap.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncGenerator

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI
from pydantic import BaseModel

from agent_patterns.config import settings
from agent_patterns.constants import (
    AGENT_TEMPERATURE,
    LLM_MAX_RETRIES,
    LLM_RETRY_BASE_DELAY_SECONDS,
    LLM_RETRY_MAX_DELAY_SECONDS,
    LLM_RETRYABLE_STATUS_CODES,
)

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(exc, APIConnectionError):
        return True
    return (
        isinstance(exc, APIStatusError)
        and exc.status_code in LLM_RETRYABLE_STATUS_CODES
    )


class LLMClient:
    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        max_attempts: int = LLM_MAX_RETRIES,
        retry_base_delay: float = LLM_RETRY_BASE_DELAY_SECONDS,
    ) -> None:
        self._client = client
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.OPENROUTER_API_KEY,
                base_url=settings.OPENROUTER_BASE_URL,
                timeout=httpx.Timeout(
                    settings.LLM_TIMEOUT_SECONDS,
                    connect=settings.LLM_CONNECT_TIMEOUT_SECONDS,
                ),
            )
        return self._client

    def backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based), capped."""
        return min(
            self.retry_base_delay * 2 ** (attempt - 1), LLM_RETRY_MAX_DELAY_SECONDS
        )

    async def _open_stream(self, request: dict) -> Any:
        attempt = 1
        while True:
            try:
                return await self.client.chat.completions.create(**request)
            except Exception as exc:
                if attempt >= self.max_attempts or not is_transient(exc):
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    "Opening chat stream for %s failed (%s); attempt %d of %d, "
                    "next in %.1fs",
                    request["model"],
                    exc,
                    attempt,
                    self.max_attempts,
                    delay,
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def stream_chat(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
        model: str | None = None,
    ) -> AsyncGenerator[Any, None]:
        """Yield chat completion chunks for one agent request."""
        request: dict = {
            "model": model or settings.OPENROUTER_MODEL,
            "messages": messages,
            "stream": True,
            "temperature": AGENT_TEMPERATURE,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        stream = await self._open_stream(request)
        async for chunk in stream:
            yield chunk

    async def parse(
        self, messages: list[dict], schema: type[BaseModel], model: str
    ) -> Any:
        return await self.client.chat.completions.parse(
            model=model, messages=messages, response_format=schema
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


_shared: LLMClient | None = None


def get_llm() -> LLMClient:
    """The process-wide client used when callers don't bring their own."""
    global _shared
    if _shared is None:
        _shared = LLMClient()
    return _shared
