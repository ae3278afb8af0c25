"""
AIService implementation backed by the Anthropic Claude API.

Supports:
  - Text-only prompts  (get_decision)
  - Image + text       (get_decision_for_media): images (png, jpeg,
    gif, webp) are sent as base64 image content blocks.  Other
    formats are converted to PNG with Pillow first; an image that
    cannot be read is skipped and only the text prompt is sent.

The Messages API has no response-schema parameter, so the schema is
appended to the prompt and the caller extracts the JSON from the text.

Reads ANTHROPIC_API_KEY from the environment.
Default model: claude-opus-4-6 (override with VIZAI_CLAUDE_MODEL).
"""

from __future__ import annotations

import base64
import json
import logging
import os
from typing import Any, Dict, List, Optional

from anthropic import (
    Anthropic,
    APIConnectionError,
    APITimeoutError,
    RateLimitError,
    InternalServerError,
)

from ai.credentials import require_api_key
from ai.retry import make_retry_decorator
from ai.service import AIService
from utils.images import convert_to_png

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "claude-opus-4-6"

_MAX_TOKENS = 16384

# Transient exception types that may trigger a retry.
_RETRYABLE_EXCEPTIONS = (
    APIConnectionError,
    APITimeoutError,
    RateLimitError,
    InternalServerError,
)

_retry_decorator = make_retry_decorator(_RETRYABLE_EXCEPTIONS, logger)

# MIME types that Claude accepts as image content blocks.
_IMAGE_MIMES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/webp",
    }
)


def _with_schema(prompt: str, response_schema: Optional[Dict[str, Any]]) -> str:
    if response_schema is None:
        return prompt
    return (
        f"{prompt}\n\n"
        "Respond with a single JSON object only, no prose and no code fences. "
        "It must conform to this JSON schema:\n"
        f"{json.dumps(response_schema, indent=2)}\n"
    )


class ClaudeService(AIService):
    """AIService backed by the Anthropic Claude API."""

    def __init__(self, model: Optional[str] = None):
        self._model = model or os.getenv("VIZAI_CLAUDE_MODEL", _DEFAULT_MODEL)
        api_key = require_api_key("claude", ("ANTHROPIC_API_KEY",))
        self._client = Anthropic(api_key=api_key)

    def _create(self, content: Any) -> str:
        message = self._client.messages.create(
            model=self._model,
            max_tokens=_MAX_TOKENS,
            messages=[{"role": "user", "content": content}],
        )
        return message.content[0].text if message.content else ""

    @_retry_decorator
    def get_decision(
        self, prompt: str, response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        return self._create(_with_schema(prompt, response_schema))

    @_retry_decorator
    def get_decision_for_media(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/png",
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        text = _with_schema(prompt, response_schema)
        if mime_type not in _IMAGE_MIMES:
            try:
                image_bytes = convert_to_png(image_bytes)
            except ValueError:
                logger.warning(
                    "  [Claude] Could not convert %s image, sending text-only prompt",
                    mime_type,
                )
                return self._create(text)
            logger.info("  [Claude] Converted %s image to PNG", mime_type)
            mime_type = "image/png"

        b64_data = base64.standard_b64encode(image_bytes).decode("ascii")
        content: List[Dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": b64_data,
                },
            },
            {"type": "text", "text": text},
        ]
        return self._create(content)
