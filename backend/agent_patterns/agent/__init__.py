"""Minimal streaming agent runtime."""

from agent_patterns.agent.events import AgentEvent
from agent_patterns.agent.runner import Agent, StreamedRun, run_streamed

__all__ = [
    "AgentEvent",
    "Agent",
    "StreamedRun",
    "run_streamed",
]
