"""Tap pipeline: streamed agent events in, paraphrased progress taps out."""

from agent_patterns.tap.buffer import LineBuffer
from agent_patterns.tap.filters import (
    EventFilter,
    combine_filters,
    tool_call_filter,
    tool_result_filter,
)
from agent_patterns.tap.paraphrase import (
    DEFAULT_PARAPHRASE_PROMPT,
    Paraphraser,
    TapMessage,
)
from agent_patterns.tap.wrapper import TapState, TapWrapper

__all__ = [
    "LineBuffer",
    "EventFilter",
    "combine_filters",
    "tool_call_filter",
    "tool_result_filter",
    "DEFAULT_PARAPHRASE_PROMPT",
    "Paraphraser",
    "TapMessage",
    "TapState",
    "TapWrapper",
]
