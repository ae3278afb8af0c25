"""
VisualizationConfig DTO: the chart configuration proposed by the AI.

Field aliases are the camelCase keys of the response schema, so a raw
AI payload validates directly and ``model_dump(by_alias=True)`` gives
back the same shape for the refinement prompt.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChartType(str, Enum):
    BAR = "bar"
    LINE = "line"
    SCATTER = "scatter"
    AREA = "area"
    PIE = "pie"
    RADAR = "radar"
    COMPOSED = "composed"


class VisualizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chart_type: ChartType = Field(alias="chartType")
    x_axis_key: str = Field(alias="xAxisKey")
    y_axis_key: str = Field(alias="yAxisKey")
    series_keys: Optional[List[str]] = Field(default=None, alias="seriesKeys")
    group_by: Optional[str] = Field(default=None, alias="groupBy")
    title: str
    description: str = ""
    colors: Optional[List[str]] = None
    x_label: Optional[str] = Field(default=None, alias="xLabel")
    y_label: Optional[str] = Field(default=None, alias="yLabel")
    r_code: str = Field(alias="rCode")
    python_code: str = Field(alias="pythonCode")

    def to_payload(self) -> dict:
        """camelCase dict without unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
