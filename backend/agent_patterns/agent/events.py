"""AgentEvent: the single canonical event type streamed by agent runs.

The tap pipeline, the runtime, and the tests all import from here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

AGENT_MESSAGE_START = "agent_message_start"
AGENT_MESSAGE_DELTA = "agent_message_delta"
AGENT_MESSAGE_END = "agent_message_end"
TOOL_CALL_START = "tool_call_start"
TOOL_CALL_RESULT = "tool_call_result"
AGENT_RESULT = "agent_result"
ERROR = "error"


@dataclass
class AgentEvent:
    """Events yielded by an agent run to whoever consumes the stream.

    Known types:
        agent_message_start  — LLM started producing text
        agent_message_delta  — streaming text token: data={"token": str}
        agent_message_end    — LLM finished text for this turn
        tool_call_start      — about to execute: data={"tool": str, "arguments": Any}
        tool_call_result     — execution done: data={"tool": str, "result": str}
        agent_result         — final result: data={"status", "final_output", "error", "turns"}
        error                — non-fatal error: data={"message": str}
    """

    type: str
    data: dict = field(default_factory=dict)
