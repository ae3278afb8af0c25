from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class AIService(ABC):
    """
    Base class for AI-powered visualization services.

    Subclasses must implement both of:
      - get_decision            (text-only prompt → text response)
      - get_decision_for_media  (image + prompt → text response)

    When *response_schema* is given the provider is asked to answer with
    JSON matching it; how strictly that is enforced depends on the
    provider.
    """

    @abstractmethod
    def get_decision(
        self, prompt: str, response_schema: Optional[Dict[str, Any]] = None
    ) -> str:
        """Send a text prompt to the LLM and return its response."""
        ...

    @abstractmethod
    def get_decision_for_media(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str = "image/png",
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send an image together with a text prompt and return the LLM response."""
        ...
