from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from usage_viz.models import BillRecord, RollupCell, StackedSegment
from usage_viz.viz.geometry import HeatRect, Rect, StackRect, format_hour, format_month

TOOLTIP_OFFSET = (10.0, -20.0)


@dataclass(frozen=True)
class Tooltip:
    text: str
    x: float
    y: float


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def hit_test(rects: Sequence[Rect], x: float, y: float) -> Rect | None:
    """Top-most rect under the point; later rects are drawn on top."""
    for rect in reversed(rects):
        if rect.contains(x, y):
            return rect
    return None


def describe_segment(
    record: BillRecord,
    segment: StackedSegment,
    *,
    show_percent: bool = False,
) -> str:
    lines = [
        f"{record.start_date.isoformat()} to {record.end_date.isoformat()}",
        f"Total Cost: $ {format_number(record.cost)}",
        f"Total Use: {format_number(record.use)} kWh",
        f"Variance in {segment.category}:",
    ]
    variance = record.variance_for(segment.category)
    if variance is None:
        lines.append("no variance reported")
        return "\n".join(lines)

    amount = f"{round_half_up(variance.signed_value)} kWh"
    if show_percent:
        amount = f"{amount} ({variance.percent_value:+.1f}%)"
    lines.append(amount)
    return "\n".join(lines)


def describe_cell(cell: RollupCell) -> str:
    value = cell.mean_value if cell.mean_value is not None else 0.0
    return "\n".join(
        [
            f"Month: {format_month(cell.month_key)}",
            f"Hour: {format_hour(cell.hour_of_day)}",
            f"Value: {value:.2f}",
        ]
    )


def stack_describer(
    records: Sequence[BillRecord], *, show_percent: bool = False
) -> Callable[[Rect], str]:
    def describe(rect: Rect) -> str:
        if not isinstance(rect, StackRect):
            raise TypeError(f"expected a stack rect, got {type(rect).__name__}")
        record = records[rect.segment.source_record_index]
        return describe_segment(record, rect.segment, show_percent=show_percent)

    return describe


def heatmap_describer(rect: Rect) -> str:
    if not isinstance(rect, HeatRect):
        raise TypeError(f"expected a heatmap rect, got {type(rect).__name__}")
    return describe_cell(rect.cell)


class HoverController:
    """Owns the single "currently hovered" slot for one chart."""

    def __init__(self, rects: Sequence[Rect], describe: Callable[[Rect], str]) -> None:
        self.rects = list(rects)
        self.describe = describe
        self.hovered: Rect | None = None
        self.tooltip: Tooltip | None = None

    def pointer_move(self, x: float, y: float) -> Tooltip | None:
        target = hit_test(self.rects, x, y)
        if target is None:
            return self.pointer_leave()
        dx, dy = TOOLTIP_OFFSET
        self.hovered = target
        self.tooltip = Tooltip(text=self.describe(target), x=x + dx, y=y + dy)
        return self.tooltip

    def pointer_leave(self) -> None:
        self.hovered = None
        self.tooltip = None
        return None


def bind_matplotlib_hover(figure: Any, axes: Any, controller: HoverController) -> Any:
    """Drive ``controller`` from matplotlib pointer events on ``axes``.

    Axes data coordinates must equal the geometry's pixel space. One annotation
    is reused for every hover so only one tooltip is ever visible.
    """
    annotation = axes.annotate(
        "",
        xy=(0, 0),
        # Offset points grow upward; the pixel-space offset grows downward.
        xytext=(TOOLTIP_OFFSET[0], -TOOLTIP_OFFSET[1]),
        textcoords="offset points",
        bbox={"boxstyle": "round", "fc": "white", "alpha": 0.9},
        fontsize=8,
        annotation_clip=False,
    )
    annotation.set_visible(False)

    def _on_move(event: Any) -> None:
        if event.inaxes is not axes or event.xdata is None or event.ydata is None:
            _on_leave(event)
            return
        tooltip = controller.pointer_move(event.xdata, event.ydata)
        if tooltip is None:
            _on_leave(event)
            return
        annotation.xy = (event.xdata, event.ydata)
        annotation.set_text(tooltip.text)
        annotation.set_visible(True)
        figure.canvas.draw_idle()

    def _on_leave(event: Any) -> None:
        controller.pointer_leave()
        if annotation.get_visible():
            annotation.set_visible(False)
            figure.canvas.draw_idle()

    figure.canvas.mpl_connect("motion_notify_event", _on_move)
    figure.canvas.mpl_connect("axes_leave_event", _on_leave)
    return annotation
