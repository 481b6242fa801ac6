"""Tests for the tap event filters and the line buffer."""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from agent_patterns.agent.events import AgentEvent
from agent_patterns.tap.buffer import LineBuffer
from agent_patterns.tap.filters import (
    combine_filters,
    render_value,
    tool_call_filter,
    tool_result_filter,
)


# ── tool_call_filter ─────────────────────────────────────────────


def test_tool_call_becomes_a_line():
    event = AgentEvent(
        type="tool_call_start",
        data={"tool": "calculator", "arguments": {"operation": "add", "a": 25, "b": 17}},
    )
    assert tool_call_filter(event) == (
        'Invoked function calculator with params ({"operation":"add","a":25,"b":17})'
    )


def test_string_arguments_are_quoted():
    event = AgentEvent(type="tool_call_start", data={"tool": "echo", "arguments": "héllo"})
    assert tool_call_filter(event) == 'Invoked function echo with params ("héllo")'


def test_missing_arguments_render_as_null():
    event = AgentEvent(type="tool_call_start", data={"tool": "ping"})
    assert tool_call_filter(event) == "Invoked function ping with params (null)"


@pytest.mark.parametrize(
    "event",
    [
        AgentEvent(type="agent_message_delta", data={"token": "hi"}),
        AgentEvent(type="tool_call_result", data={"tool": "x", "result": "y"}),
        AgentEvent(type="agent_result", data={"status": "success"}),
        AgentEvent(type="tool_call_start", data={}),
        AgentEvent(type="tool_call_start", data={"tool": ""}),
        SimpleNamespace(type="tool_call_start", data="not a dict"),
        object(),
        None,
    ],
)
def test_non_tap_worthy_events_are_skipped(event):
    assert tool_call_filter(event) is None


def test_unserializable_arguments_use_placeholder():
    event = AgentEvent(
        type="tool_call_start", data={"tool": "upload", "arguments": {"file": object()}}
    )
    assert tool_call_filter(event) == (
        "Invoked function upload with params (<unserializable arguments>)"
    )


def test_circular_arguments_use_placeholder():
    args: dict = {}
    args["self"] = args
    assert render_value(args) == "<unserializable arguments>"


# ── tool_result_filter / combine_filters ─────────────────────────


def test_tool_result_filter_only_matches_results():
    result = AgentEvent(type="tool_call_result", data={"tool": "search", "result": "3 hits"})
    call = AgentEvent(type="tool_call_start", data={"tool": "search", "arguments": {}})

    assert tool_result_filter(result) == 'Function search returned ("3 hits")'
    assert tool_result_filter(call) is None


def test_combined_filter_takes_first_match():
    combined = combine_filters(tool_call_filter, tool_result_filter)
    call = AgentEvent(type="tool_call_start", data={"tool": "search", "arguments": {"q": 1}})
    result = AgentEvent(type="tool_call_result", data={"tool": "search", "result": 1})
    text = AgentEvent(type="agent_message_delta", data={"token": "x"})

    assert combined(call) == 'Invoked function search with params ({"q":1})'
    assert combined(result) == "Function search returned (1)"
    assert combined(text) is None


# ── LineBuffer ───────────────────────────────────────────────────


def test_buffer_reports_threshold():
    buffer = LineBuffer(threshold=2)
    assert buffer.append("a") is False
    assert buffer.append("b") is True
    assert buffer.lines == ("a", "b")


def test_drain_snapshots_and_clears():
    buffer = LineBuffer(threshold=3)
    buffer.append("a")
    buffer.append("b")

    batch = buffer.drain()
    buffer.append("c")

    assert batch == ["a", "b"]
    assert buffer.lines == ("c",)
    assert len(buffer) == 1


def test_drain_on_empty_buffer():
    assert LineBuffer(threshold=1).drain() == []


@pytest.mark.parametrize("threshold", [0, -1])
def test_threshold_must_be_at_least_one(threshold):
    with pytest.raises(ValueError):
        LineBuffer(threshold=threshold)
