"""
Exception types raised by vizai.

Only two kinds reach the user: a data-parse failure (the uploaded CSV
could not be read) and a generation failure (anything that went wrong
talking to the AI provider).  Both are flattened to a single blocking
notice by the caller.
"""

from __future__ import annotations

from typing import List, Optional


class VizAIError(Exception):
    """Base class for every vizai error."""


class DataParseError(VizAIError):
    """The CSV input could not be parsed into rows and columns."""


class GenerationError(VizAIError):
    """An AI generation or refinement call failed."""


class MissingCredentialError(GenerationError):
    """No API key was found in the environment for the selected provider."""

    def __init__(self, provider: str, env_vars: List[str]):
        self.provider = provider
        self.env_vars = env_vars
        super().__init__(
            f"API Key not found in environment variables "
            f"({provider}: set one of {', '.join(env_vars)})"
        )


class InvalidAIResponseError(GenerationError):
    """The AI returned nothing, or something that does not match the schema."""

    def __init__(self, message: str, raw: Optional[str] = None):
        self.raw = raw
        super().__init__(message)


class GenerationInProgressError(VizAIError):
    """A generation was requested while another one is still outstanding."""
