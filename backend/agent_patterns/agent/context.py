from __future__ import annotations

from agent_patterns.tools.registry import ToolContext


class RunContext:
    """Conversation and usage bookkeeping for a single agent run.

    Ephemeral: one instance per run_streamed() call, nothing is persisted.
    """

    def __init__(self, agent_name: str, instructions: str) -> None:
        self.agent_name = agent_name
        self.messages: list[dict] = [
            {"role": "system", "content": instructions}
        ]
        # LLM requests issued so far; CountDownTurns reads it through ToolContext
        self.requests = 0

    def add_user_input(self, content: str) -> None:
        self.messages.append({"role": "user", "content": content})

    def add_answer(self, content: str) -> None:
        self.messages.append({"role": "assistant", "content": content})

    def add_tool_calls(self, content: str | None, tool_calls: list[dict]) -> None:
        msg: dict = {"role": "assistant", "tool_calls": tool_calls}
        if content:
            msg["content"] = content
        self.messages.append(msg)

    def add_tool_output(self, tool_call_id: str, output: str) -> None:
        self.messages.append(
            {"role": "tool", "tool_call_id": tool_call_id, "content": output}
        )

    def tool_context(self) -> ToolContext:
        return ToolContext(agent_name=self.agent_name, requests=self.requests)
