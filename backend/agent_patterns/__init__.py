"""Wrappers for tool-calling agents: progress taps, tool budgets,
required explanations and countdowns."""

from agent_patterns.agent import Agent, AgentEvent, StreamedRun, run_streamed
from agent_patterns.tap import Paraphraser, TapMessage, TapWrapper
from agent_patterns.tools import (
    CountDownTimer,
    CountDownTurns,
    ToolBudget,
    ToolDefinition,
    ToolRegistry,
    budget,
    with_explanation,
)

__all__ = [
    "Agent",
    "AgentEvent",
    "StreamedRun",
    "run_streamed",
    "Paraphraser",
    "TapMessage",
    "TapWrapper",
    "CountDownTimer",
    "CountDownTurns",
    "ToolBudget",
    "ToolDefinition",
    "ToolRegistry",
    "budget",
    "with_explanation",
]
