from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from usage_viz.config import HeatmapChartConfig
from usage_viz.features.rollup import HOURS_PER_DAY, MonthHourRollup
from usage_viz.features.stack import VarianceStack
from usage_viz.models import BillRecord, RollupCell, StackedSegment
from usage_viz.scales import HeatmapScales, StackScales

MONTH_LABEL_FORMAT = "%b %Y"


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.width and self.y <= py <= self.y + self.height


@dataclass(frozen=True)
class StackRect(Rect):
    segment: StackedSegment


@dataclass(frozen=True)
class HeatRect(Rect):
    cell: RollupCell


@dataclass(frozen=True)
class AxisTick:
    position: float
    label: str


@dataclass(frozen=True)
class ChartGeometry:
    width: float
    height: float
    rects: list[Rect] = field(default_factory=list)
    x_ticks: list[AxisTick] = field(default_factory=list)
    y_ticks: list[AxisTick] = field(default_factory=list)

    @property
    def x_extent(self) -> float:
        """Right edge of the drawing; hour-23 heatmap cells start at ``width``."""
        return max([self.width, *(rect.x + rect.width for rect in self.rects)])


def format_month(month_key: date) -> str:
    return month_key.strftime(MONTH_LABEL_FORMAT)


def format_hour(hour: float) -> str:
    return f"{int(hour)}:00"


def build_stack_geometry(
    records: Sequence[BillRecord],
    stack: VarianceStack,
    scales: StackScales,
) -> ChartGeometry:
    rects: list[Rect] = [
        StackRect(
            x=scales.x(segment.source_record_index),
            y=scales.y(segment.top_offset),
            width=scales.x.bandwidth,
            height=scales.y(segment.base_offset) - scales.y(segment.top_offset),
            fill=scales.color(segment.category),
            segment=segment,
        )
        for segment in stack.segments
    ]
    x_ticks = [
        AxisTick(position=scales.x.center(index), label=record.period_label)
        for index, record in enumerate(records)
    ]
    y_ticks = [AxisTick(position=scales.y(tick), label=f"{tick:g}") for tick in scales.y.ticks()]
    return ChartGeometry(
        width=scales.x.range[1],
        height=scales.y.range[0],
        rects=rects,
        x_ticks=x_ticks,
        y_ticks=y_ticks,
    )


def build_heatmap_geometry(
    rollup: MonthHourRollup,
    scales: HeatmapScales,
    config: HeatmapChartConfig,
) -> ChartGeometry:
    cell_width = config.width / HOURS_PER_DAY - config.cell_gap
    rects: list[Rect] = []
    for cell in rollup:
        # Empty buckets are only collapsed to 0 here, for colouring.
        value = cell.mean_value if cell.mean_value is not None else 0.0
        rects.append(
            HeatRect(
                x=scales.x(cell.hour_of_day),
                y=scales.y(cell.month_key),
                width=cell_width,
                height=scales.y.bandwidth,
                fill=scales.color(value),
                cell=cell,
            )
        )
    x_ticks = [
        AxisTick(position=scales.x(hour), label=format_hour(hour))
        for hour in scales.x.ticks(HOURS_PER_DAY)
    ]
    y_ticks = [
        AxisTick(position=scales.y.center(month), label=format_month(month))
        for month in scales.y.domain
    ]
    return ChartGeometry(
        width=float(config.width),
        height=float(config.height),
        rects=rects,
        x_ticks=x_ticks,
        y_ticks=y_ticks,
    )
