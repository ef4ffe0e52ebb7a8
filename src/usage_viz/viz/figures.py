from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

from usage_viz.interaction import HoverController, bind_matplotlib_hover
from usage_viz.views import ChartModel
from usage_viz.viz.common import save_figure

DPI = 100


def draw_chart(model: ChartModel) -> tuple[Figure, Axes]:
    """Draw ``model`` on axes whose data space is the chart's pixel space."""
    geometry = model.geometry
    margins = model.margins
    total_width = geometry.x_extent + margins.left + margins.right
    total_height = geometry.height + margins.top + margins.bottom

    figure = plt.figure(figsize=(total_width / DPI, total_height / DPI), dpi=DPI)
    axes = figure.add_axes(
        (
            margins.left / total_width,
            margins.bottom / total_height,
            geometry.x_extent / total_width,
            geometry.height / total_height,
        )
    )
    for rect in geometry.rects:
        axes.add_patch(
            Rectangle(
                (rect.x, rect.y),
                rect.width,
                rect.height,
                facecolor=rect.fill,
                edgecolor="none",
            )
        )

    axes.set_xlim(0, geometry.x_extent)
    axes.set_ylim(geometry.height, 0)
    axes.set_xticks(
        [tick.position for tick in geometry.x_ticks],
        [tick.label for tick in geometry.x_ticks],
        rotation=model.x_tick_rotation,
        ha="right" if model.x_tick_rotation else "center",
        fontsize=7,
    )
    axes.set_yticks(
        [tick.position for tick in geometry.y_ticks],
        [tick.label for tick in geometry.y_ticks],
        fontsize=7,
    )
    for side in ("top", "right"):
        axes.spines[side].set_visible(False)
    figure.suptitle(model.title)
    return figure, axes


def plot_chart(model: ChartModel | None, output_path: Path) -> Path | None:
    if model is None or not model.geometry.rects:
        return None
    figure, _ = draw_chart(model)
    return save_figure(figure, output_path)


def show_chart(model: ChartModel | None, hover: HoverController | None) -> Figure | None:
    """Open ``model`` in an interactive window with hover tooltips."""
    if model is None or hover is None:
        return None
    figure, axes = draw_chart(model)
    bind_matplotlib_hover(figure, axes, hover)
    return figure
