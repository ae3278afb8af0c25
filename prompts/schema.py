"""
Response schema for visualization requests.

Kept to the JSON-schema subset every provider understands (type,
properties, items, enum, description, required) so the same dict can
be handed to Gemini, OpenAI and Claude.
"""

from __future__ import annotations

from typing import Any, Dict

from dto.visualization import ChartType

REQUIRED_FIELDS = ["chartType", "xAxisKey", "yAxisKey", "title", "rCode", "pythonCode"]

_STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _build_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "chartType": {
                "type": "string",
                "enum": [t.value for t in ChartType],
            },
            "xAxisKey": {
                "type": "string",
                "description": "Key from data to use for X axis",
            },
            "yAxisKey": {
                "type": "string",
                "description": "Key from data to use for Y axis (primary metric)",
            },
            "seriesKeys": {
                **_STRING_LIST,
                "description": "Array of keys for multiple lines/bars if applicable",
            },
            "groupBy": {
                "type": "string",
                "description": "Key to group by for colors (e.g., 'Pclass' or 'Sex')",
            },
            "title": {"type": "string"},
            "description": {"type": "string"},
            "xLabel": {"type": "string"},
            "yLabel": {"type": "string"},
            "colors": dict(_STRING_LIST),
            "rCode": {
                "type": "string",
                "description": "Complete R script using ggplot2",
            },
            "pythonCode": {
                "type": "string",
                "description": "Complete Python script using seaborn/matplotlib",
            },
        },
        "required": list(REQUIRED_FIELDS),
    }


VISUALIZATION_RESPONSE_SCHEMA: Dict[str, Any] = _build_schema()
