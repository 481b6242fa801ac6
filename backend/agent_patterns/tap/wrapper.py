"""TapWrapper: periodic plain-language summaries of a running agent.

Sits between an agent run (an async stream of AgentEvents) and an observer.
Tap-worthy events become lines in a buffer; every ``flush_threshold`` lines
the batch is paraphrased and handed to ``on_tap``. When the stream ends a
"Task finished" line is added and a final flush is awaited, so the observer
always gets at least one tap and the last one arrives before wrap() returns.

Intermediate flushes run as detached tasks and are not awaited by the
consumption loop, so the tap never slows the agent down. Their taps may
therefore reach the observer out of order unless ``ordered=True``.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from typing import Any, Callable

from pydantic import BaseModel

from agent_patterns.config import settings
from agent_patterns.constants import TASK_FINISHED_LINE
from agent_patterns.tap.buffer import LineBuffer
from agent_patterns.tap.filters import EventFilter, tool_call_filter
from agent_patterns.tap.paraphrase import (
    DEFAULT_PARAPHRASE_PROMPT,
    Paraphraser,
    TapMessage,
)

logger = logging.getLogger(__name__)


class TapState(str, enum.Enum):
    IDLE = "idle"
    CONSUMING = "consuming"
    DRAINING = "draining"
    DONE = "done"


class TapWrapper:
    def __init__(
        self,
        on_tap: Callable[[BaseModel], Any],
        flush_threshold: int | None = None,
        paraphrase_prompt: str = DEFAULT_PARAPHRASE_PROMPT,
        tap_schema: type[BaseModel] = TapMessage,
        *,
        paraphraser: Paraphraser | None = None,
        event_filter: EventFilter = tool_call_filter,
        ordered: bool = False,
    ) -> None:
        if flush_threshold is None:
            flush_threshold = settings.TAP_FLUSH_THRESHOLD
        self.on_tap = on_tap
        self.ordered = ordered
        self.state = TapState.IDLE
        self._buffer = LineBuffer(flush_threshold)
        self._paraphraser = paraphraser or Paraphraser(
            prompt=paraphrase_prompt, schema=tap_schema
        )
        self._event_filter = event_filter
        self._pending: set[asyncio.Task] = set()
        self._last_flush: asyncio.Task | None = None

    @property
    def flush_threshold(self) -> int:
        return self._buffer.threshold

    @property
    def pending_flushes(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Stream adapter
    # ------------------------------------------------------------------

    async def wrap(self, run: Any) -> Any:
        """Consume ``run`` to the end and return its ``result`` unchanged.

        Upstream errors propagate untouched. A failure of the final
        paraphrase propagates too; failures of intermediate ones are logged.
        """
        if self.state is not TapState.IDLE:
            raise RuntimeError("TapWrapper is single-use; create a new one per run")

        self.state = TapState.CONSUMING
        async for event in run:
            self._push_event(event)

        self.state = TapState.DRAINING
        await self._store_and_maybe_flush(TASK_FINISHED_LINE, force=True)
        self.state = TapState.DONE
        return getattr(run, "result", None)

    def _push_event(self, event: Any) -> None:
        # events the filter turns into no line never reach the buffer
        line = self._event_filter(event)
        if line is None:
            return
        flush = self._store_and_maybe_flush(line)
        if flush is not None:
            self._spawn(flush)

    async def join(self) -> None:
        """Wait for the intermediate flushes still in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Flush scheduling
    # ------------------------------------------------------------------

    def _store_and_maybe_flush(self, line: str, force: bool = False):
        """Buffer ``line``; return the flush coroutine if one is due.

        The buffer is drained here, before anything is awaited, so lines
        appended while a paraphrase is in flight start a new batch.
        """
        if not self._buffer.append(line) and not force:
            return None
        batch = self._buffer.drain()
        logger.debug("Tap flushing %d lines (force=%s)", len(batch), force)
        return self._flush(batch, self._last_flush if self.ordered else None)

    def _spawn(self, flush) -> None:
        task = asyncio.create_task(flush)
        self._pending.add(task)
        task.add_done_callback(self._on_flush_done)
        self._last_flush = task

    def _on_flush_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Tap flush failed: %s", exc, exc_info=exc)

    async def _flush(self, batch: list[str], previous: asyncio.Task | None) -> None:
        tap = await self._paraphraser.paraphrase(batch)
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        delivered = self.on_tap(tap)
        if inspect.isawaitable(delivered):
            await delivered
