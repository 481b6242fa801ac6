"""Paraphraser: turns a batch of tap lines into one readable summary.

The batch is joined into a single text block and rewritten by a small LLM
through the structured-output API, so the summary always matches the tap
schema (a pydantic model). The call is not retried; retries belong to the
host.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from agent_patterns.agent.llm import LLMClient, get_llm
from agent_patterns.config import settings
from agent_patterns.errors import ExternalServiceError, MalformedSummaryError

logger = logging.getLogger(__name__)


DEFAULT_PARAPHRASE_PROMPT = """\
Rewrite the following logs. The output should be human readable, and should be a valid JSON object.
The logs come from an AI agent processing a user request. Therefore you have to rewrite the text,
using the same language as the logs, but in a plain language, no technical jargon.
Also use the first person (we), and the present tense (are, do, have)."""


class TapMessage(BaseModel):
    """Default tap schema: a single free-text message."""

    message: str


class Paraphraser:
    def __init__(
        self,
        prompt: str = DEFAULT_PARAPHRASE_PROMPT,
        schema: type[BaseModel] = TapMessage,
        model: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.prompt = prompt
        self.schema = schema
        self.model = model or settings.PARAPHRASE_MODEL
        self._llm = LLMClient(client) if client is not None else None

    def _build_messages(self, lines: list[str]) -> list[dict]:
        return [
            {"role": "system", "content": self.prompt},
            {"role": "user", "content": "\n".join(lines)},
        ]

    def _validate(self, parsed: object) -> BaseModel:
        if parsed is None:
            raise MalformedSummaryError("Paraphrase response had no parsed output")
        if isinstance(parsed, self.schema):
            return parsed
        try:
            if isinstance(parsed, BaseModel):
                parsed = parsed.model_dump()
            return self.schema.model_validate(parsed)
        except ValidationError as exc:
            raise MalformedSummaryError(
                f"Paraphrase response does not match {self.schema.__name__}: {exc}"
            ) from exc

    async def paraphrase(self, lines: list[str]) -> BaseModel:
        if not lines:
            raise ExternalServiceError("Cannot paraphrase an empty batch")

        logger.debug("Paraphrasing %d tap lines with %s", len(lines), self.model)
        try:
            # building the default client can fail too, e.g. without a key
            llm = self._llm or get_llm()
            completion = await llm.parse(
                self._build_messages(lines), self.schema, self.model
            )
        except ValidationError as exc:
            raise MalformedSummaryError(
                f"Paraphrase response does not match {self.schema.__name__}: {exc}"
            ) from exc
        except OpenAIError as exc:
            raise ExternalServiceError(f"Paraphrase request failed: {exc}") from exc

        if not completion.choices:
            raise MalformedSummaryError("Paraphrase response had no choices")
        message = completion.choices[0].message
        if getattr(message, "refusal", None):
            raise MalformedSummaryError(
                f"Paraphrase request was refused: {message.refusal}"
            )
        return self._validate(message.parsed)
