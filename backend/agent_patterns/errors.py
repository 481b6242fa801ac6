"""Exceptions raised to the host.

Errors the model should react to (unknown tool, exhausted budget, missing
explanation) are returned to it as tool results instead; only failures the
host has to handle are raised.
"""

from __future__ import annotations


class AgentPatternsError(Exception):
    """Base class for errors raised by this package."""


class ExternalServiceError(AgentPatternsError):
    """The text-generation service failed or could not be reached."""


class MalformedSummaryError(ExternalServiceError):
    """The service answered, but not with a value matching the tap schema."""
