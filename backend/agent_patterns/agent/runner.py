"""Agent runtime: the streaming ReAct loop that tap and tools plug into.

run_streamed() returns a StreamedRun: an async iterable of AgentEvents
(text tokens, tool calls, tool results) that ends with one agent_result
event. The run's final result is available as ``StreamedRun.result`` once
the stream is exhausted, which is what TapWrapper.wrap() hands back.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, AsyncIterator, Callable

from agent_patterns.agent.context import RunContext
from agent_patterns.agent.events import (
    AGENT_MESSAGE_DELTA,
    AGENT_MESSAGE_END,
    AGENT_MESSAGE_START,
    AGENT_RESULT,
    ERROR,
    TOOL_CALL_RESULT,
    TOOL_CALL_START,
    AgentEvent,
)
from agent_patterns.agent.llm import get_llm
from agent_patterns.constants import (
    DEFAULT_MAX_TOOL_ROUNDS,
    INVALID_ARGUMENTS_PREVIEW_CHARS,
    TOOL_RESULT_EVENT_MAX_CHARS,
)
from agent_patterns.tools.registry import ToolDefinition, ToolRegistry

logger = logging.getLogger(__name__)

ChatStream = Callable[..., AsyncIterator[Any]]


@dataclass
class Agent:
    name: str
    instructions: str
    tools: list[ToolDefinition] = field(default_factory=list)
    model: str | None = None
    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS

    def registry(self) -> ToolRegistry:
        return ToolRegistry(self.tools)


class StreamedRun:
    """Events of one agent run. Can be iterated exactly once."""

    def __init__(self, events: AsyncIterator[AgentEvent]) -> None:
        self._events = events
        self._consumed = False
        self.is_complete = False
        self.result: dict | None = None

    def __aiter__(self) -> AsyncIterator[AgentEvent]:
        if self._consumed:
            raise RuntimeError("StreamedRun can only be consumed once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncGenerator[AgentEvent, None]:
        async for event in self._events:
            if event.type == AGENT_RESULT:
                self.result = event.data
            yield event
        self.is_complete = True

    @property
    def final_output(self) -> str | None:
        return (self.result or {}).get("final_output")


def run_streamed(
    agent: Agent, user_input: str, llm: ChatStream | None = None
) -> StreamedRun:
    """Start ``agent`` on ``user_input``. Nothing runs until iterated.

    ``llm`` defaults to the shared LLMClient's stream_chat.
    """
    return StreamedRun(_agent_loop(agent, user_input, llm or get_llm().stream_chat))


def _result_event(
    context: RunContext,
    status: str,
    final_output: str | None = None,
    error: str | None = None,
) -> AgentEvent:
    return AgentEvent(
        type=AGENT_RESULT,
        data={
            "status": status,
            "final_output": final_output,
            "error": error,
            "turns": context.requests,
        },
    )


def _accumulate_tool_calls(tool_calls_acc: dict[int, dict], deltas) -> None:
    for tc in deltas:
        idx = tc.index
        if idx not in tool_calls_acc:
            tool_calls_acc[idx] = {
                "id": tc.id or "",
                "type": "function",
                "function": {"name": "", "arguments": ""},
            }
        if tc.id:
            tool_calls_acc[idx]["id"] = tc.id
        if tc.function:
            if tc.function.name:
                tool_calls_acc[idx]["function"]["name"] += tc.function.name
            if tc.function.arguments:
                tool_calls_acc[idx]["function"]["arguments"] += tc.function.arguments


async def _agent_loop(
    agent: Agent, user_input: str, llm: ChatStream
) -> AsyncGenerator[AgentEvent, None]:
    context = RunContext(agent.name, agent.instructions)
    context.add_user_input(user_input)
    registry = agent.registry()
    tools = registry.get_openai_schema() or None

    for _round in range(agent.max_tool_rounds):
        # --- LLM call ---
        text_parts: list[str] = []
        tool_calls_acc: dict[int, dict] = {}
        started_text = False
        context.requests += 1

        try:
            async for chunk in llm(context.messages, tools=tools, model=agent.model):
                delta = chunk.choices[0].delta if chunk.choices else None
                if delta is None:
                    continue

                if delta.content:
                    if not started_text:
                        yield AgentEvent(type=AGENT_MESSAGE_START)
                        started_text = True
                    yield AgentEvent(
                        type=AGENT_MESSAGE_DELTA, data={"token": delta.content}
                    )
                    text_parts.append(delta.content)

                if delta.tool_calls:
                    _accumulate_tool_calls(tool_calls_acc, delta.tool_calls)

        except Exception as e:
            logger.warning("%s: LLM call failed: %s", agent.name, e)
            yield AgentEvent(type=ERROR, data={"message": f"LLM error: {e}"})
            yield _result_event(context, "error", error=f"LLM error: {e}")
            return

        if started_text:
            yield AgentEvent(type=AGENT_MESSAGE_END)

        full_text = "".join(text_parts) if text_parts else None

        if not tool_calls_acc:
            # No tool calls: the agent has answered
            if full_text:
                context.add_answer(full_text)
            yield _result_event(context, "success", final_output=full_text)
            return

        # --- Tool execution ---
        tool_calls_list = [tool_calls_acc[i] for i in sorted(tool_calls_acc.keys())]
        context.add_tool_calls(full_text, tool_calls_list)

        for tc in tool_calls_list:
            func_name = tc["function"]["name"]
            raw_args = tc["function"]["arguments"]
            try:
                args = json.loads(raw_args) if raw_args else {}
                if not isinstance(args, dict):
                    raise ValueError("arguments must be a JSON object")
            except ValueError as je:
                error_msg = (
                    f"Error: invalid JSON in tool arguments: {je}. "
                    f"Raw arguments: {raw_args[:INVALID_ARGUMENTS_PREVIEW_CHARS]}"
                )
                context.add_tool_output(tc["id"], error_msg)
                yield AgentEvent(
                    type=TOOL_CALL_RESULT,
                    data={"tool": func_name, "result": error_msg},
                )
                continue

            yield AgentEvent(
                type=TOOL_CALL_START, data={"tool": func_name, "arguments": args}
            )
            result = await registry.execute(func_name, args, context.tool_context())
            context.add_tool_output(tc["id"], result)
            yield AgentEvent(
                type=TOOL_CALL_RESULT,
                data={
                    "tool": func_name,
                    "result": result[:TOOL_RESULT_EVENT_MAX_CHARS],
                },
            )

    logger.warning(
        "%s: stopped after %d tool rounds without an answer",
        agent.name,
        agent.max_tool_rounds,
    )
    yield _result_event(
        context,
        "error",
        error=f"Exceeded {agent.max_tool_rounds} tool rounds without a final answer",
    )
