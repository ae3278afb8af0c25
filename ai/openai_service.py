import base64
import logging
import os
from typing import Any, Dict, Optional

from openai import OpenAI, APIConnectionError, APITimeoutError, RateLimitError, InternalServerError

from ai.credentials import require_api_key
from ai.retry import make_retry_decorator
from ai.service import AIService

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gpt-5.2"

_RETRYABLE_EXCEPTIONS = (
    APIConnectionError,
    APITimeoutError,
    RateLimitError,
    InternalServerError,
)

_retry_decorator = make_retry_decorator(_RETRYABLE_EXCEPTIONS, logger)


class OpenAIService(AIService):
    """AIService backed by the OpenAI API."""

    def __init__(self, model: Optional[str] = None):
        self._model = model or os.getenv("VIZAI_OPENAI_MODEL", _DEFAULT_MODEL)
        api_key = require_api_key("openai", ("OPENAI_API_KEY",))
        self._client = OpenAI(api_key=api_key)

    @staticmethod
    def _response_format(response_schema: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if response_schema is None:
            return {}
        return {
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "visualization_config",
                    "schema": response_schema,
                },
            }
        }

    @_retry_decorator
    def get_decision(
        self, prompt: str, response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            **self._response_format(response_schema),
        )
        return response.choices[0].message.content or ""

    @_retry_decorator
    def get_decision_for_media(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/png",
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        b64 = base64.b64encode(image_bytes).decode()
        data_url = f"data:{mime_type};base64,{b64}"
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": data_url},
                        },
                    ],
                }
            ],
            **self._response_format(response_schema),
        )
        return response.choices[0].message.content or ""
