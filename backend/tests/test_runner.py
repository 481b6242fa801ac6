"""Tests for the streaming agent runtime.

The LLM is replaced by a scripted stream of chat completion chunks, one
script per LLM request, so tool-call accumulation, tool execution and the
final result can be checked without network access.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from agent_patterns.agent.runner import Agent, run_streamed
from agent_patterns.tap import TapMessage, TapWrapper
from agent_patterns.tools import CountDownTurns, ToolDefinition


# ── Scripted LLM ─────────────────────────────────────────────────


def text_chunk(text: str):
    delta = SimpleNamespace(content=text, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def tool_chunk(index: int, id=None, name=None, arguments=None):
    call = SimpleNamespace(
        index=index, id=id, function=SimpleNamespace(name=name, arguments=arguments)
    )
    delta = SimpleNamespace(content=None, tool_calls=[call])
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def scripted_llm(*turns):
    requests: list[dict] = []

    async def llm(messages, tools=None, model=None):
        requests.append({"messages": list(messages), "tools": tools, "model": model})
        script = turns[len(requests) - 1]
        if isinstance(script, Exception):
            raise script
        for chunk in script:
            yield chunk

    llm.requests = requests
    return llm


ADD_CALL = [
    tool_chunk(0, id="call_1", name="add", arguments='{"a": 25,'),
    tool_chunk(0, arguments=' "b": 17}'),
]
ANSWER = [text_chunk("The total "), text_chunk("is 42.")]


def make_add_tool(seen: list) -> ToolDefinition:
    async def add(a, b):
        seen.append((a, b))
        return {"result": a + b}

    return ToolDefinition(
        name="add",
        description="Add two numbers",
        parameters={"type": "object", "properties": {}},
        handler=add,
    )


async def collect(run):
    return [event async for event in run]


# ── Loop behaviour ───────────────────────────────────────────────


def test_tool_call_then_answer():
    seen: list = []
    agent = Agent(name="calc", instructions="Use tools.", tools=[make_add_tool(seen)])
    llm = scripted_llm(ADD_CALL, ANSWER)

    run = run_streamed(agent, "What is 25 + 17?", llm=llm)
    events = asyncio.run(collect(run))

    assert [e.type for e in events] == [
        "tool_call_start",
        "tool_call_result",
        "agent_message_start",
        "agent_message_delta",
        "agent_message_delta",
        "agent_message_end",
        "agent_result",
    ]
    assert events[0].data == {"tool": "add", "arguments": {"a": 25, "b": 17}}
    assert events[1].data == {"tool": "add", "result": '{"result": 42}'}
    assert seen == [(25, 17)]
    assert run.is_complete
    assert run.result == {
        "status": "success",
        "final_output": "The total is 42.",
        "error": None,
        "turns": 2,
    }
    assert run.final_output == "The total is 42."


def test_conversation_sent_to_the_llm():
    agent = Agent(name="calc", instructions="Use tools.", tools=[make_add_tool([])], model="m")
    llm = scripted_llm(ADD_CALL, ANSWER)

    asyncio.run(collect(run_streamed(agent, "What is 25 + 17?", llm=llm)))

    first, second = llm.requests
    assert first["model"] == "m"
    assert first["tools"][0]["function"]["name"] == "add"
    assert first["messages"][:2] == [
        {"role": "system", "content": "Use tools."},
        {"role": "user", "content": "What is 25 + 17?"},
    ]
    assert second["messages"][2]["tool_calls"][0]["function"] == {
        "name": "add",
        "arguments": '{"a": 25, "b": 17}',
    }
    assert second["messages"][3] == {
        "role": "tool",
        "tool_call_id": "call_1",
        "content": '{"result": 42}',
    }


def test_agent_without_tools_sends_none():
    llm = scripted_llm(ANSWER)
    asyncio.run(collect(run_streamed(Agent(name="a", instructions="hi"), "hello", llm=llm)))
    assert llm.requests[0]["tools"] is None


def test_invalid_arguments_are_reported_to_the_model():
    seen: list = []
    agent = Agent(name="calc", instructions="", tools=[make_add_tool(seen)])
    bad_call = [tool_chunk(0, id="call_9", name="add", arguments="{not json")]
    llm = scripted_llm(bad_call, ANSWER)

    events = asyncio.run(collect(run_streamed(agent, "add", llm=llm)))

    assert events[0].type == "tool_call_result"
    assert events[0].data["result"].startswith("Error: invalid JSON in tool arguments")
    assert "tool_call_start" not in [e.type for e in events]
    assert seen == []
    assert llm.requests[1]["messages"][-1]["tool_call_id"] == "call_9"


def test_llm_failure_ends_the_run_with_an_error_result():
    agent = Agent(name="calc", instructions="")
    llm = scripted_llm(RuntimeError("503 upstream"))

    run = run_streamed(agent, "hi", llm=llm)
    events = asyncio.run(collect(run))

    assert [e.type for e in events] == ["error", "agent_result"]
    assert run.result["status"] == "error"
    assert "503 upstream" in run.result["error"]


def test_round_limit():
    agent = Agent(name="loop", instructions="", tools=[make_add_tool([])], max_tool_rounds=2)
    llm = scripted_llm(ADD_CALL, ADD_CALL)

    run = run_streamed(agent, "loop forever", llm=llm)
    asyncio.run(collect(run))

    assert run.result["status"] == "error"
    assert "2 tool rounds" in run.result["error"]
    assert run.result["turns"] == 2


def test_tools_receive_request_count():
    turns = CountDownTurns(max_turns=5)
    agent = Agent(
        name="calc", instructions="", tools=[turns.wrap_tool(make_add_tool([]))]
    )
    llm = scripted_llm(ADD_CALL, ANSWER)

    events = asyncio.run(collect(run_streamed(agent, "add", llm=llm)))

    assert "1 turns since you started, you have 4 turns left." in events[1].data["result"]


def test_streamed_run_is_single_use():
    run = run_streamed(Agent(name="a", instructions=""), "hi", llm=scripted_llm(ANSWER))
    asyncio.run(collect(run))
    with pytest.raises(RuntimeError):
        asyncio.run(collect(run))


# ── Tap over a real run ──────────────────────────────────────────


class EchoParaphraser:
    def __init__(self):
        self.batches: list[list[str]] = []

    async def paraphrase(self, lines):
        self.batches.append(list(lines))
        return TapMessage(message="\n".join(lines))


def test_tap_wraps_a_streamed_run():
    agent = Agent(name="calc", instructions="", tools=[make_add_tool([])])
    llm = scripted_llm(ADD_CALL, ANSWER)
    paraphraser = EchoParaphraser()
    taps: list = []
    tap = TapWrapper(on_tap=taps.append, flush_threshold=3, paraphraser=paraphraser)

    run = run_streamed(agent, "What is 25 + 17?", llm=llm)
    result = asyncio.run(tap.wrap(run))

    assert result is run.result
    assert result["final_output"] == "The total is 42."
    assert paraphraser.batches == [
        ['Invoked function add with params ({"a":25,"b":17})', "Task finished"]
    ]
    assert len(taps) == 1
