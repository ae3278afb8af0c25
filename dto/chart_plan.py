"""
ChartPlan DTO: what to draw, independent of the drawing library.

The renderer turns (rows, VisualizationConfig) into a ChartPlan; the
matplotlib and openpyxl backends only ever look at the plan.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel

from dto.dataset import Row

PLAN_KINDS = Literal["bar", "line", "scatter", "pie", "area", "composed"]


class SeriesSpec(BaseModel):
    """One drawn series (a bar group, a line, an area band or a scatter cloud)."""
    key: str
    color: str
    name: Optional[str] = None


class ChartPlan(BaseModel):
    kind: PLAN_KINDS
    title: str = ""
    description: str = ""
    data: List[Row] = []
    x_key: str = ""
    series: List[SeriesSpec] = []
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    # Pie only: which column names a slice and which holds its value.
    name_key: Optional[str] = None
    value_key: Optional[str] = None
    slice_colors: List[str] = []
    aggregated: bool = False
