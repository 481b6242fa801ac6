from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolContext:
    """Run information handed to tools that ask for it."""

    agent_name: str = ""
    requests: int = 0  # LLM requests issued so far in the run


@dataclass
class ToolDefinition:
    """A tool the LLM can call.

    ``handler`` is awaited with the call arguments as keyword arguments.
    When ``takes_context`` is set it is instead awaited as
    ``handler(arguments, context)``, so the run context never shares a
    namespace with the model's arguments. Every decorator in this package
    produces such a tool around another one.
    """

    name: str
    description: str
    parameters: dict
    handler: Callable[..., Awaitable[Any]]
    takes_context: bool = False

    async def execute(
        self, arguments: dict, context: ToolContext | None = None
    ) -> Any:
        if self.takes_context:
            return await self.handler(arguments, context)
        return await self.handler(**arguments)

    def openai_schema(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def render_result(result: Any) -> str:
    """Turn a tool result into the text appended to the conversation."""
    if isinstance(result, str):
        return result
    try:
        return json.dumps(result, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(result)


class ToolRegistry:
    """Registry for agent tools. Each tool is a function the LLM can call."""

    def __init__(self, tools: list[ToolDefinition] | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get_openai_schema(self) -> list[dict]:
        """Return tools in OpenAI function-calling format."""
        return [t.openai_schema() for t in self._tools.values()]

    async def execute(
        self, name: str, arguments: dict, context: ToolContext | None = None
    ) -> str:
        """Execute a tool by name; failures come back as text for the LLM."""
        tool = self._tools.get(name)
        if not tool:
            return f"Error: Unknown tool '{name}'"
        try:
            result = await tool.execute(arguments, context)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return f"Error executing {name}: {type(e).__name__}: {str(e)}"
        return render_result(result)

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())
