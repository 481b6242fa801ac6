"""Constants for the agent patterns.

Single source of truth for the magic numbers and fixed strings used across
the tap pipeline, the tool decorators, and the agent runtime.
"""

# ---------------------------------------------------------------------------
# Agent loop limits
# ---------------------------------------------------------------------------
DEFAULT_MAX_TOOL_ROUNDS = 20

# ---------------------------------------------------------------------------
# Output truncation
# ---------------------------------------------------------------------------
TOOL_RESULT_EVENT_MAX_CHARS = 2000
INVALID_ARGUMENTS_PREVIEW_CHARS = 200

# ---------------------------------------------------------------------------
# LLM retry (stream creation only, never the paraphrase call)
# ---------------------------------------------------------------------------
LLM_MAX_RETRIES = 3
LLM_RETRY_BASE_DELAY_SECONDS = 1.0
LLM_RETRY_MAX_DELAY_SECONDS = 15.0
LLM_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
AGENT_TEMPERATURE = 0.2

# ---------------------------------------------------------------------------
# Tap pipeline
# ---------------------------------------------------------------------------
DEFAULT_FLUSH_THRESHOLD = 3
TASK_FINISHED_LINE = "Task finished"
UNSERIALIZABLE_ARGUMENTS = "<unserializable arguments>"

# ---------------------------------------------------------------------------
# Tool decorators
# ---------------------------------------------------------------------------
BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
EXPLANATION_REQUIRED = "EXPLANATION_REQUIRED"
EXPLANATION_INVALID = "EXPLANATION_INVALID"
EXPLANATION_FIELD = "why"
DEFAULT_EXPLANATION_PROMPT = (
    "Explain why this action is justified and what goal it serves"
)
