"""
Draws a ChartPlan with matplotlib (Agg backend, no display needed).

The output format follows the file suffix (.png, .svg, .pdf, ...).
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.colors import is_color_like  # noqa: E402
import numpy as np  # noqa: E402

from dto.chart_plan import ChartPlan  # noqa: E402
from rendering.plan import PALETTE  # noqa: E402
from dto.dataset import Row  # noqa: E402

logger = logging.getLogger(__name__)

_FIGSIZE = (10, 6)
_DPI = 120
_GRID_COLOR = "#334155"


def _numeric(rows: List[Row], key: str) -> np.ndarray:
    """Column as floats; anything non-numeric becomes NaN (not drawn)."""
    out = []
    for r in rows:
        v = r.get(key)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            out.append(float(v))
        else:
            out.append(math.nan)
    return np.array(out, dtype=float)


def _color(color: str, index: int) -> str:
    """AI-supplied colours may be anything; fall back to the palette."""
    return color if is_color_like(color) else PALETTE[index % len(PALETTE)]


def _labels(rows: List[Row], key: str) -> List[str]:
    return ["" if r.get(key) is None else str(r.get(key)) for r in rows]


def _draw_bars(ax, plan: ChartPlan) -> None:
    positions = np.arange(len(plan.data))
    n = max(1, len(plan.series))
    width = 0.8 / n
    for i, s in enumerate(plan.series):
        offset = (i - (n - 1) / 2) * width
        ax.bar(positions + offset, _numeric(plan.data, s.key), width=width,
               color=_color(s.color, i), label=s.name or s.key)
    ax.set_xticks(positions)
    ax.set_xticklabels(_labels(plan.data, plan.x_key), rotation=45, ha="right")


def _draw_lines(ax, plan: ChartPlan) -> None:
    positions = np.arange(len(plan.data))
    for i, s in enumerate(plan.series):
        ax.plot(positions, _numeric(plan.data, s.key), color=_color(s.color, i),
                linewidth=2, marker="o", markersize=4, label=s.name or s.key)
    ax.set_xticks(positions)
    ax.set_xticklabels(_labels(plan.data, plan.x_key), rotation=45, ha="right")


def _draw_areas(ax, plan: ChartPlan) -> None:
    # Stacked, like a shared stack id for every series.
    positions = np.arange(len(plan.data))
    baseline = np.zeros(len(plan.data))
    for i, s in enumerate(plan.series):
        color = _color(s.color, i)
        values = np.nan_to_num(_numeric(plan.data, s.key))
        top = baseline + values
        ax.fill_between(positions, baseline, top, color=color, alpha=0.6,
                        label=s.name or s.key)
        ax.plot(positions, top, color=color)
        baseline = top
    ax.set_xticks(positions)
    ax.set_xticklabels(_labels(plan.data, plan.x_key), rotation=45, ha="right")


def _draw_scatter(ax, plan: ChartPlan) -> None:
    s = plan.series[0]
    ax.scatter(_numeric(plan.data, plan.x_key), _numeric(plan.data, s.key),
               color=_color(s.color, 0), label=s.name or s.key)


def _draw_pie(ax, plan: ChartPlan) -> None:
    values = np.clip(np.nan_to_num(_numeric(plan.data, plan.value_key or "value")), 0, None)
    if not values.any():
        logger.warning("  [Render] Pie has no positive values to draw")
        return
    ax.pie(values, labels=_labels(plan.data, plan.name_key or "name"),
           colors=[_color(c, i) for i, c in enumerate(plan.slice_colors)] or None, autopct="%1.0f%%")
    ax.axis("equal")


_DRAWERS = {
    "bar": _draw_bars,
    "composed": _draw_bars,
    "line": _draw_lines,
    "area": _draw_areas,
    "scatter": _draw_scatter,
    "pie": _draw_pie,
}


def draw_chart(plan: ChartPlan):
    """Return a matplotlib Figure for *plan*.  The caller closes it."""
    fig, ax = plt.subplots(figsize=_FIGSIZE)
    drawer = _DRAWERS.get(plan.kind, _draw_bars)
    if plan.data:
        drawer(ax, plan)
    else:
        ax.text(0.5, 0.5, "No data to plot", ha="center", va="center",
                transform=ax.transAxes)

    if plan.title:
        ax.set_title(plan.title)
    if plan.kind != "pie":
        ax.set_xlabel(plan.x_label or plan.x_key)
        if plan.y_label:
            ax.set_ylabel(plan.y_label)
        ax.grid(True, linestyle="--", color=_GRID_COLOR, alpha=0.3)
    if plan.data and (plan.series or plan.kind == "pie"):
        handles, _ = ax.get_legend_handles_labels()
        if handles:
            ax.legend()
    fig.tight_layout()
    return fig


def render_chart_image(plan: ChartPlan, output_path: Union[str, Path]) -> Path:
    """Draw *plan* and save it to *output_path*."""
    path = Path(output_path)
    fig = draw_chart(plan)
    try:
        fig.savefig(path, dpi=_DPI)
    finally:
        plt.close(fig)
    logger.info("Chart written to %s", path)
    return path
