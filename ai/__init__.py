from ai.service import AIService
from ai.factory import get_decision_service, get_decision_for_media_service
from ai.response_parser import parse_llm_json

__all__ = [
    "AIService",
    "get_decision_service",
    "get_decision_for_media_service",
    "parse_llm_json",
]
