"""
AI request builder.

Two operations, both returning a validated VisualizationConfig:

  analyze_image_and_data : full generation from data (+ optional
                           reference image) and a free-text instruction
  refine_config          : mutate an existing config per an instruction

Any provider failure, missing credential or unusable payload surfaces
as a GenerationError subclass.  Nothing is retried here and nothing is
partially applied.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from ai.factory import get_decision_service, get_decision_for_media_service
from ai.response_parser import parse_llm_json
from ai.service import AIService
from dto.dataset import Row
from dto.visualization import VisualizationConfig
from errors import GenerationError, InvalidAIResponseError
from prompts.schema import VISUALIZATION_RESPONSE_SCHEMA
from prompts.visualization import (
    DEFAULT_USER_PROMPT,
    get_generation_prompt,
    get_refinement_prompt,
)
from utils.images import decode_image_payload

logger = logging.getLogger(__name__)


def parse_visualization_config(raw: Optional[str]) -> VisualizationConfig:
    """
    Validate a raw AI response against the visualization schema.

    Raises ``InvalidAIResponseError`` for an empty response, a response
    with no JSON object in it, or one that is missing required fields /
    has the wrong types.
    """
    if not raw or not raw.strip():
        raise InvalidAIResponseError("No response from AI", raw=raw)

    parsed = parse_llm_json(raw)
    if not isinstance(parsed, dict):
        raise InvalidAIResponseError(
            "AI response did not contain a JSON object", raw=raw
        )

    try:
        return VisualizationConfig.model_validate(parsed)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidAIResponseError(
            f"AI response does not match the visualization schema ({problems})",
            raw=raw,
        ) from exc


def _call(fn, *args: Any, **kwargs: Any) -> str:
    """Invoke a provider method, folding provider exceptions into GenerationError."""
    try:
        return fn(*args, **kwargs)
    except GenerationError:
        raise
    except Exception as exc:
        raise GenerationError(f"AI request failed: {exc}") from exc


def analyze_image_and_data(
    image_data: Optional[str],
    data_sample: List[Row],
    columns: List[str],
    user_prompt: str,
    service: Optional[AIService] = None,
) -> VisualizationConfig:
    """
    Ask the model for a chart configuration for this dataset.

    *image_data* is a data URL or bare base64 string of a reference
    chart; its ``data:`` header is stripped before sending.
    """
    prompt = get_generation_prompt(
        user_prompt or DEFAULT_USER_PROMPT, columns, data_sample
    )

    if image_data:
        try:
            image_bytes, mime_type = decode_image_payload(image_data)
        except ValueError as exc:
            raise GenerationError(str(exc)) from exc
        logger.info(
            "  [Generate] Sending multimodal request (%s, %d bytes)",
            mime_type,
            len(image_bytes),
        )
        ai = service or get_decision_for_media_service()
        raw = _call(
            ai.get_decision_for_media,
            prompt,
            image_bytes,
            mime_type=mime_type,
            response_schema=VISUALIZATION_RESPONSE_SCHEMA,
        )
    else:
        logger.info("  [Generate] Sending text-only request")
        ai = service or get_decision_service()
        raw = _call(
            ai.get_decision, prompt, response_schema=VISUALIZATION_RESPONSE_SCHEMA
        )

    config = parse_visualization_config(raw)
    logger.info(
        "  [Generate] -> %s chart '%s'", config.chart_type.value, config.title
    )
    return config


def refine_config(
    current_config: VisualizationConfig,
    user_prompt: str,
    service: Optional[AIService] = None,
) -> VisualizationConfig:
    """Ask the model to update *current_config* per *user_prompt*.  No image is sent."""
    prompt = get_refinement_prompt(current_config.to_payload(), user_prompt)

    logger.info("  [Refine] Sending refinement request")
    ai = service or get_decision_service()
    raw = _call(ai.get_decision, prompt, response_schema=VISUALIZATION_RESPONSE_SCHEMA)

    config = parse_visualization_config(raw)
    logger.info("  [Refine] -> %s chart '%s'", config.chart_type.value, config.title)
    return config
