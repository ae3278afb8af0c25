"""
Text shown in the output panels (chart summary, R code, Python code).
"""

from __future__ import annotations

from typing import Optional

from dto.state import ActiveTab, AppState

R_PLACEHOLDER = "# R code will appear here"
PYTHON_PLACEHOLDER = "# Python code will appear here"
NO_CHART_MESSAGE = "No visualization generated yet"


def chart_summary(state: AppState) -> str:
    config = state.config
    if config is None or state.dataset is None:
        return NO_CHART_MESSAGE
    lines = [config.title]
    if config.description:
        lines.append(config.description)
    lines.append(
        f"{config.chart_type.value} chart  x={config.x_axis_key!r}  y={config.y_axis_key!r}"
    )
    if config.series_keys:
        lines.append(f"series: {', '.join(config.series_keys)}")
    if config.group_by:
        lines.append(f"grouped by: {config.group_by}")
    return "\n".join(lines)


def panel_text(state: AppState, tab: Optional[ActiveTab] = None) -> str:
    """Text for *tab* (default: the state's active tab)."""
    tab = tab or state.active_tab
    config = state.config
    if tab == ActiveTab.R:
        return (config.r_code if config else "") or R_PLACEHOLDER
    if tab == ActiveTab.PYTHON:
        return (config.python_code if config else "") or PYTHON_PLACEHOLDER
    return chart_summary(state)
