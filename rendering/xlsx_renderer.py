"""
Writes a ChartPlan to an .xlsx workbook as a native Excel chart.

The plotted rows go to a "Data" sheet (x column first, then one column
per series) and the chart is anchored beside them, so the result can be
opened and restyled in Excel or LibreOffice.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from openpyxl import Workbook
from openpyxl.chart import AreaChart, BarChart, LineChart, PieChart, Reference, ScatterChart, Series
from openpyxl.chart.marker import DataPoint, Marker
from openpyxl.chart.shapes import GraphicalProperties
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from dto.chart_plan import ChartPlan, SeriesSpec

logger = logging.getLogger(__name__)

DATA_SHEET = "Data"

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")

_CHART_WIDTH_CM = 20
_CHART_HEIGHT_CM = 12


def _excel_color(color: Optional[str]) -> Optional[str]:
    """'#3b82f6' → '3B82F6'; anything that is not a 6-digit hex is dropped."""
    if not color:
        return None
    m = _HEX_COLOR.match(color.strip())
    return m.group(1).upper() if m else None


def _table_series(plan: ChartPlan) -> List[SeriesSpec]:
    """Series that get their own value column (the x column is not one)."""
    return [s for s in plan.series if s.key != plan.x_key]


def _write_table(ws: Worksheet, plan: ChartPlan) -> List[str]:
    """Write header + rows; return the header keys in column order."""
    if plan.kind == "pie":
        keys = [plan.name_key or "name", plan.value_key or "value"]
    else:
        keys = [plan.x_key] + [s.key for s in _table_series(plan)]
    ws.append(keys)
    for row in plan.data:
        ws.append([row.get(k) for k in keys])
    return keys


def _bar_like_chart(ws: Worksheet, plan: ChartPlan, n_rows: int, n_cols: int):
    if plan.kind == "line":
        chart = LineChart()
    elif plan.kind == "area":
        chart = AreaChart()
        chart.grouping = "stacked"
    else:
        chart = BarChart()
        chart.type = "col"

    if n_cols > 1:
        data = Reference(ws, min_col=2, max_col=n_cols, min_row=1, max_row=n_rows + 1)
        chart.add_data(data, titles_from_data=True)
    cats = Reference(ws, min_col=1, min_row=2, max_row=n_rows + 1)
    chart.set_categories(cats)

    for series, spec in zip(chart.series, _table_series(plan)):
        color = _excel_color(spec.color)
        if color is None:
            continue
        if plan.kind == "line":
            series.graphicalProperties.line.solidFill = color
            series.graphicalProperties.line.width = 25400  # 2pt in EMU
        else:
            series.graphicalProperties.solidFill = color
            series.graphicalProperties.line.solidFill = color
    return chart


def _scatter_chart(ws: Worksheet, plan: ChartPlan, n_rows: int):
    chart = ScatterChart()
    chart.style = 13
    xvalues = Reference(ws, min_col=1, min_row=2, max_row=n_rows + 1)
    values = Reference(ws, min_col=2, min_row=1, max_row=n_rows + 1)
    series = Series(values, xvalues, title_from_data=True)
    series.graphicalProperties.line.noFill = True
    marker = Marker(symbol="circle")
    color = _excel_color(plan.series[0].color) if plan.series else None
    if color:
        marker.graphicalProperties = GraphicalProperties(solidFill=color)
    series.marker = marker
    chart.series.append(series)
    return chart


def _pie_chart(ws: Worksheet, plan: ChartPlan, n_rows: int):
    chart = PieChart()
    labels = Reference(ws, min_col=1, min_row=2, max_row=n_rows + 1)
    data = Reference(ws, min_col=2, min_row=1, max_row=n_rows + 1)
    chart.add_data(data, titles_from_data=True)
    chart.set_categories(labels)
    if chart.series:
        for idx, color in enumerate(plan.slice_colors):
            hex_color = _excel_color(color)
            if hex_color is None:
                continue
            point = DataPoint(idx=idx, spPr=GraphicalProperties(solidFill=hex_color))
            chart.series[0].dPt.append(point)
    return chart


def build_workbook(plan: ChartPlan) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = DATA_SHEET

    keys = _write_table(ws, plan)
    n_rows = len(plan.data)
    if n_rows == 0:
        logger.warning("  [Render] No rows to chart, workbook holds the header only")
        return wb

    if plan.kind == "pie":
        chart = _pie_chart(ws, plan, n_rows)
    elif plan.kind == "scatter":
        chart = _scatter_chart(ws, plan, n_rows)
    else:
        chart = _bar_like_chart(ws, plan, n_rows, len(keys))

    chart.title = plan.title or None
    if plan.kind != "pie":
        chart.x_axis.title = plan.x_label or plan.x_key
        if plan.y_label:
            chart.y_axis.title = plan.y_label
    chart.width = _CHART_WIDTH_CM
    chart.height = _CHART_HEIGHT_CM

    anchor = f"{get_column_letter(len(keys) + 2)}2"
    ws.add_chart(chart, anchor)
    return wb


def render_chart_workbook(plan: ChartPlan, output_path: Union[str, Path]) -> Path:
    """Write *plan* as data + native chart to *output_path* (.xlsx)."""
    path = Path(output_path)
    wb = build_workbook(plan)
    wb.save(path)
    wb.close()
    logger.info("Chart workbook written to %s", path)
    return path
