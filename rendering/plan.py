"""
Chart planning: turns (rows, VisualizationConfig) into a ChartPlan.

This is the renderer's decision layer: which primitive to draw, which
columns become series, what colour each one gets, and whether a large
categorical dataset should be collapsed into per-category counts first.
It does no drawing; see matplotlib_renderer / xlsx_renderer.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

from dto.chart_plan import ChartPlan, SeriesSpec
from dto.dataset import Row
from dto.visualization import ChartType, VisualizationConfig

logger = logging.getLogger(__name__)

PALETTE = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#6366f1"]

SCATTER_FILL = "#8884d8"

# Above this many rows a bar/pie chart without a real metric shows counts.
AGGREGATION_THRESHOLD = 20
COUNT_KEY = "count"
DEFAULT_VALUE_KEY = "value"
DEFAULT_NAME_KEY = "name"

_BAR_LIKE = {ChartType.BAR, ChartType.LINE, ChartType.AREA}


def needs_aggregation(rows: List[Row], config: VisualizationConfig) -> bool:
    return (
        config.chart_type in (ChartType.PIE, ChartType.BAR)
        and len(rows) > AGGREGATION_THRESHOLD
        and (not config.y_axis_key or config.y_axis_key == COUNT_KEY)
    )


def aggregate_counts(rows: List[Row], x_key: str, value_key: str) -> List[Row]:
    """One row per distinct ``str(row[x_key])``, in first-seen order, holding its count."""
    counts = Counter(str(row.get(x_key)) for row in rows)
    return [
        {x_key: name, value_key: count, DEFAULT_NAME_KEY: name}
        for name, count in counts.items()
    ]


def process_data(rows: List[Row], config: Optional[VisualizationConfig]) -> List[Row]:
    """
    Rows to plot for *config*: the raw rows, or per-category counts when
    the aggregation heuristic applies.
    """
    if not rows or config is None:
        return []
    if needs_aggregation(rows, config):
        value_key = config.y_axis_key or DEFAULT_VALUE_KEY
        aggregated = aggregate_counts(rows, config.x_axis_key, value_key)
        logger.debug(
            "  [Plan] Aggregated %d rows into %d '%s' groups",
            len(rows), len(aggregated), config.x_axis_key,
        )
        return aggregated
    return rows


def series_color(config: VisualizationConfig, index: int) -> str:
    if config.colors and index < len(config.colors) and config.colors[index]:
        return config.colors[index]
    return PALETTE[index % len(PALETTE)]


def slice_color(config: VisualizationConfig, index: int) -> str:
    if config.colors:
        return config.colors[index % len(config.colors)]
    return PALETTE[index % len(PALETTE)]


def series_keys(config: VisualizationConfig) -> List[str]:
    if config.series_keys:
        return list(config.series_keys)
    return [config.y_axis_key or DEFAULT_VALUE_KEY]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_chart_plan(rows: List[Row], config: VisualizationConfig) -> ChartPlan:
    """
    Decide what to draw.  Unknown or unsupported chart types (radar,
    composed, anything new) fall back to a bar-like composed chart.
    """
    data = process_data(rows, config)
    aggregated = data is not rows and bool(data)

    common = dict(
        title=config.title,
        description=config.description,
        x_key=config.x_axis_key,
        x_label=config.x_label,
        y_label=config.y_label,
        aggregated=aggregated,
    )

    if config.chart_type == ChartType.SCATTER:
        points = [
            r for r in data
            if _is_number(r.get(config.x_axis_key)) and _is_number(r.get(config.y_axis_key))
        ]
        return ChartPlan(
            kind="scatter",
            data=points,
            series=[SeriesSpec(key=config.y_axis_key, color=SCATTER_FILL, name=config.title)],
            **common,
        )

    if config.chart_type == ChartType.PIE:
        return ChartPlan(
            kind="pie",
            data=data,
            name_key=config.x_axis_key or DEFAULT_NAME_KEY,
            value_key=config.y_axis_key or DEFAULT_VALUE_KEY,
            slice_colors=[slice_color(config, i) for i in range(len(data))],
            **common,
        )

    series = [
        SeriesSpec(key=key, color=series_color(config, i), name=key)
        for i, key in enumerate(series_keys(config))
    ]
    kind = config.chart_type.value if config.chart_type in _BAR_LIKE else "composed"
    if kind == "composed":
        logger.debug(
            "  [Plan] No dedicated rendering for '%s', using bar fallback",
            config.chart_type.value,
        )
    return ChartPlan(kind=kind, data=data, series=series, **common)
