"""Tool definitions and the decorators that wrap them."""

from agent_patterns.tools.registry import ToolContext, ToolDefinition, ToolRegistry
from agent_patterns.tools.budget import BudgetState, ToolBudget, budget
from agent_patterns.tools.explaining import with_explanation
from agent_patterns.tools.countdown import CountDownTimer, CountDownTurns

__all__ = [
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "BudgetState",
    "ToolBudget",
    "budget",
    "with_explanation",
    "CountDownTimer",
    "CountDownTurns",
]
