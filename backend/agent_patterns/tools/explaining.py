"""Explaining pattern: every call must say why it is being made.

Adds a required ``why`` argument to the tool schema. The explanation is
logged for observability and stripped before the wrapped tool runs, so the
tool itself never sees it.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Any

from agent_patterns.constants import (
    DEFAULT_EXPLANATION_PROMPT,
    EXPLANATION_FIELD,
    EXPLANATION_INVALID,
    EXPLANATION_REQUIRED,
)
from agent_patterns.tools.registry import ToolContext, ToolDefinition

logger = logging.getLogger(__name__)


def _explanation_prompt(prompt: str, min_length: int, max_length: int | None) -> str:
    if max_length is not None:
        return f"{prompt} ({min_length}-{max_length} characters)"
    if min_length > 0:
        return f"{prompt} (at least {min_length} characters)"
    return prompt


def _with_why_parameter(parameters: dict, description: str, required: bool) -> dict:
    schema = copy.deepcopy(parameters) if parameters else {}
    schema.setdefault("type", "object")
    schema.setdefault("properties", {})
    schema["properties"][EXPLANATION_FIELD] = {
        "type": "string",
        "description": description,
    }
    if required:
        required_fields = list(schema.get("required", []))
        if EXPLANATION_FIELD not in required_fields:
            required_fields.append(EXPLANATION_FIELD)
        schema["required"] = required_fields
    return schema


def with_explanation(
    tool: ToolDefinition,
    require_explanation: bool = True,
    explanation_prompt: str = DEFAULT_EXPLANATION_PROMPT,
    min_length: int = 0,
    max_length: int | None = None,
) -> ToolDefinition:
    if min_length < 0:
        raise ValueError("Explanation minimum length cannot be negative")
    if max_length is not None and max_length < min_length:
        raise ValueError(
            "Explanation maximum length must be greater than minimum length"
        )

    async def execute(arguments: dict, context: ToolContext | None = None) -> Any:
        arguments = dict(arguments)
        why = arguments.pop(EXPLANATION_FIELD, None)
        logger.info(
            '[explaining] Tool %s called with explanation: "%s"', tool.name, why
        )

        explanation = why.strip() if isinstance(why, str) else ""
        if not explanation:
            if require_explanation:
                logger.info(
                    "[explaining] Tool %s called without required explanation",
                    tool.name,
                )
                return {
                    "error": EXPLANATION_REQUIRED,
                    "message": (
                        "This tool requires an explanation of why it's being "
                        f"used. Please provide a '{EXPLANATION_FIELD}' parameter."
                    ),
                }
        elif len(explanation) < min_length or (
            max_length is not None and len(explanation) > max_length
        ):
            bounds = (
                f"between {min_length} and {max_length}"
                if max_length is not None
                else f"at least {min_length}"
            )
            return {
                "error": EXPLANATION_INVALID,
                "message": (
                    f"The '{EXPLANATION_FIELD}' explanation must be {bounds} "
                    f"characters long, got {len(explanation)}."
                ),
            }

        logger.info("[explaining] Invoking tool %s", tool.name)
        result = await tool.execute(arguments, context)
        logger.info("[explaining] Tool %s completed.", tool.name)
        return result

    logger.info(
        "[explaining] Tool %s enhanced with explanation requirements", tool.name
    )
    return replace(
        tool,
        handler=execute,
        takes_context=True,
        parameters=_with_why_parameter(
            tool.parameters,
            _explanation_prompt(explanation_prompt, min_length, max_length),
            require_explanation,
        ),
        description=(
            f"{tool.description} \n\n[EXPLANATION REQUIRED] You must provide a "
            f"clear explanation of why this action is justified and what goal "
            f"it serves. Include a '{EXPLANATION_FIELD}' parameter with your "
            f"reasoning."
        ),
    )
