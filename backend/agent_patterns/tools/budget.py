"""Budget pattern: cap how many times an agent may call a tool.

The wrapped tool keeps working until the cap is hit; after that it answers
with a BUDGET_EXCEEDED result instead of running. Every result carries the
remaining budget so the model can plan around it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any

from agent_patterns.constants import BUDGET_EXCEEDED
from agent_patterns.tools.registry import ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


@dataclass
class BudgetState:
    tool_name: str
    max_times: int
    times_used: int = 0

    @property
    def remaining(self) -> int:
        return max(self.max_times - self.times_used, 0)


class ToolBudget:
    """Usage counter for one tool.

    State lives on the instance, so two budgets over the same tool never
    share a counter.
    """

    def __init__(self, max_times: int) -> None:
        if max_times < 1:
            raise ValueError("max_times must be at least 1")
        self.max_times = max_times
        self.state: BudgetState | None = None

    def reset(self) -> None:
        if self.state is not None:
            self.state.times_used = 0
            logger.info("[budget] Reset budget for tool %s", self.state.tool_name)

    def _budget_info(self) -> str:
        remaining = self.state.remaining
        if remaining > 0:
            return f"This tool can be used {remaining} more times"
        return "This tool has reached its usage limit"

    def wrap_tool(self, tool: ToolDefinition) -> ToolDefinition:
        if self.state is not None:
            raise RuntimeError(
                f"Budget already wraps tool {self.state.tool_name}"
            )
        self.state = BudgetState(tool_name=tool.name, max_times=self.max_times)
        state = self.state

        async def execute(arguments: dict, context: ToolContext | None = None) -> Any:
            logger.info(
                "[budget] Requested tool %s with input %s",
                state.tool_name,
                json.dumps(arguments, default=str),
            )
            if state.times_used >= state.max_times:
                logger.info(
                    "[budget] Tool %s has been used %d times, exceeding max %d.",
                    state.tool_name,
                    state.times_used,
                    state.max_times,
                )
                return {
                    "budget": (
                        f"This tool cannot be used anymore. It has reached its "
                        f"limit of {state.max_times} uses. Consider using "
                        f"alternative tools."
                    ),
                    "error": BUDGET_EXCEEDED,
                }

            state.times_used += 1
            logger.info(
                "[budget] Invoking tool %s (usage %d/%d)",
                state.tool_name,
                state.times_used,
                state.max_times,
            )
            result = await tool.execute(arguments, context)

            info = self._budget_info()
            if isinstance(result, dict):
                return {**result, "budget": info}
            if isinstance(result, str) and result:
                return f"{result} \n\n[BUDGET INFO] {info}"
            return result

        logger.info(
            "[budget] Tool %s budgeted with %d uses", tool.name, self.max_times
        )
        return replace(
            tool,
            handler=execute,
            takes_context=True,
            description=(
                f"{tool.description} \n\n[BUDGET CONSTRAINT] This tool can be "
                f"used {self.max_times} times maximum. After that, it will "
                f"return a failure. Use strategically as it represents "
                f"expensive operations."
            ),
        )


def budget(tool: ToolDefinition, max_times: int) -> ToolDefinition:
    """Shortcut for ToolBudget(max_times).wrap_tool(tool)."""
    return ToolBudget(max_times).wrap_tool(tool)
