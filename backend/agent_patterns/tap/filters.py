"""Event filters: decide which stream events become tap lines.

A filter is any callable taking one event and returning the line to buffer,
or None to skip it. Filters never raise on odd input; a tap must not be
able to break the run it observes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from agent_patterns.agent.events import TOOL_CALL_RESULT, TOOL_CALL_START
from agent_patterns.constants import UNSERIALIZABLE_ARGUMENTS

logger = logging.getLogger(__name__)

EventFilter = Callable[[Any], "str | None"]


def render_value(value: Any) -> str:
    """Compact JSON for a tool payload, or a placeholder if it has none."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as exc:
        logger.debug("Tap could not serialize %s: %s", type(value).__name__, exc)
        return UNSERIALIZABLE_ARGUMENTS


def _event_payload(event: Any, expected_type: str) -> dict | None:
    if getattr(event, "type", None) != expected_type:
        return None
    data = getattr(event, "data", None)
    if not isinstance(data, dict) or not data.get("tool"):
        return None
    return data


def tool_call_filter(event: Any) -> str | None:
    """Default filter: only tool invocations are tap-worthy.

    Reasoning text, tool results and errors are skipped; combine with
    tool_result_filter to include results too.
    """
    data = _event_payload(event, TOOL_CALL_START)
    if data is None:
        return None
    # arguments can be arbitrarily long
    return (
        f"Invoked function {data['tool']} with params "
        f"({render_value(data.get('arguments'))})"
    )


def tool_result_filter(event: Any) -> str | None:
    data = _event_payload(event, TOOL_CALL_RESULT)
    if data is None:
        return None
    return f"Function {data['tool']} returned ({render_value(data.get('result'))})"


def combine_filters(*filters: EventFilter) -> EventFilter:
    """Filter returning the line of the first filter that accepts the event."""

    def combined(event: Any) -> str | None:
        for event_filter in filters:
            line = event_filter(event)
            if line is not None:
                return line
        return None

    return combined
