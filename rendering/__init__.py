from pathlib import Path
from typing import Union

from dto.chart_plan import ChartPlan
from rendering.plan import build_chart_plan, process_data
from rendering.matplotlib_renderer import render_chart_image
from rendering.xlsx_renderer import render_chart_workbook


def render_chart(plan: ChartPlan, output_path: Union[str, Path]) -> Path:
    """Render *plan* with the backend matching the file suffix (.xlsx → openpyxl, else matplotlib)."""
    if Path(output_path).suffix.lower() == ".xlsx":
        return render_chart_workbook(plan, output_path)
    return render_chart_image(plan, output_path)


__all__ = [
    "build_chart_plan",
    "process_data",
    "render_chart",
    "render_chart_image",
    "render_chart_workbook",
]
