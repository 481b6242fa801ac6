"""Countdown patterns: tell the agent how much of its allowance is left.

CountDownTurns counts LLM requests, CountDownTimer counts wall-clock
seconds. Both append a progress note to every result of the tools they
wrap and provide a paragraph to append to the agent instructions.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any

from agent_patterns.tools.registry import ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


TURNS_PROMPT_DECORATION = """\
# TURNS LIMIT
You have a maximum amount of turns to complete your task. Each time you call a tool (or multiple tools) you are using a turn.
The turns limit is {turns_limit} turns.
Each tool call is going to inform you about the turns passed.
Some tool descriptions may explain the approximate turns it takes to complete.
Use this information to make the best use of the turns you have.
Your goal is to complete the task in the turns limit."""

TIME_PROMPT_DECORATION = """\
# TIME LIMIT
You have a time limit to complete your task.
The time limit is {seconds} seconds.
Each tool call is going to inform you about the time passed.
Some tool descriptions may explain the approximate time it takes to complete.
Use this information to make the best use of the time you have.
Your goal is to complete the task in the time limit."""


class CountDownTurns:
    def __init__(self, max_turns: int) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.max_turns = max_turns
        self.current_turn = 0

    def restart(self) -> None:
        self.current_turn = 0

    def _set_turns_passed(self, context: ToolContext | None) -> None:
        # Every LLM request is one turn; never move backwards
        if context is not None:
            self.current_turn = max(context.requests, self.current_turn)

    def turns_passed_text(self) -> str:
        if self.current_turn + 1 == self.max_turns:
            text = (
                "This is the last turn. You don't have any more turns left. "
                "You have to return the result to the user, don't call any "
                "more tools."
            )
        elif self.current_turn > self.max_turns:
            text = (
                f"You are taking too long to complete your task. You have "
                f"{self.current_turn - self.max_turns} turns over the time "
                f"goal. It is late."
            )
        else:
            text = (
                f"{self.current_turn} turns since you started, you have "
                f"{self.max_turns - self.current_turn} turns left."
            )
        logger.info('Injecting in the tool result: "%s"', text)
        return text

    def wrap_tool(self, tool: ToolDefinition) -> ToolDefinition:
        async def execute(arguments: dict, context: ToolContext | None = None) -> Any:
            self._set_turns_passed(context)
            result = await tool.execute(arguments, context)
            if isinstance(result, dict):
                return {**result, "turnsPassed": self.turns_passed_text()}
            return f"{result}\n\n{self.turns_passed_text()}"

        return replace(tool, handler=execute, takes_context=True)

    def prompt_decoration(self) -> str:
        # The agent's own first request counts as a turn
        return TURNS_PROMPT_DECORATION.format(turns_limit=self.max_turns - 1)


class CountDownTimer:
    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("seconds must be positive")
        self.seconds = seconds
        self._started_at: float | None = None

    def start(self) -> None:
        self._started_at = time.monotonic()

    def elapsed(self) -> float:
        if self._started_at is None:
            logger.warning(
                "CountDownTimer: start() was not called before starting the agent."
            )
            self.start()
        return time.monotonic() - self._started_at

    def time_passed_text(self) -> str:
        elapsed = self.elapsed()
        if elapsed > self.seconds:
            text = (
                f"You are taking too long to complete your task. You have "
                f"{elapsed - self.seconds:.1f} seconds over the time goal. "
                f"It is late."
            )
            logger.warning("CountDownTimer: %s", text)
            return text
        logger.debug("CountDownTimer: %.1f seconds passed", elapsed)
        return (
            f"{elapsed:.1f} seconds since you started, you have "
            f"{self.seconds - elapsed:.1f} seconds left."
        )

    def wrap_tool(self, tool: ToolDefinition) -> ToolDefinition:
        async def execute(arguments: dict, context: ToolContext | None = None) -> Any:
            result = await tool.execute(arguments, context)
            if isinstance(result, dict):
                return {**result, "timePassed": self.time_passed_text()}
            return f"{result} {self.time_passed_text()}"

        return replace(tool, handler=execute, takes_context=True)

    def prompt_decoration(self) -> str:
        return TIME_PROMPT_DECORATION.format(seconds=self.seconds)
