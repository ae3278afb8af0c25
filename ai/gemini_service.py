import logging
import os
from typing import Any, Dict, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ai.credentials import require_api_key
from ai.retry import make_retry_decorator
from ai.service import AIService

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-2.5-flash"

_API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")

_RETRYABLE_EXCEPTIONS = (ConnectionError, genai_errors.ServerError)

_retry_decorator = make_retry_decorator(_RETRYABLE_EXCEPTIONS, logger)


class GeminiService(AIService):
    """AIService backed by the Google Gemini API."""

    def __init__(self, model: Optional[str] = None):
        self._model = model or os.getenv("VIZAI_GEMINI_MODEL", _DEFAULT_MODEL)
        api_key = require_api_key("gemini", _API_KEY_VARS)
        self._client = genai.Client(api_key=api_key)

    @staticmethod
    def _config(
        response_schema: Optional[Dict[str, Any]],
    ) -> Optional[types.GenerateContentConfig]:
        if response_schema is None:
            return None
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=response_schema,
        )

    @_retry_decorator
    def get_decision(
        self, prompt: str, response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        response = self._client.models.generate_content(
            model=self._model,
            contents=prompt,
            config=self._config(response_schema),
        )
        return response.text or ""

    @_retry_decorator
    def get_decision_for_media(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/png",
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        response = self._client.models.generate_content(
            model=self._model,
            contents=[prompt, image_part],
            config=self._config(response_schema),
        )
        return response.text or ""
