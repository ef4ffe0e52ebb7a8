from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from usage_viz.config import BillingChartConfig, HeatmapChartConfig
from usage_viz.features.rollup import build_month_hour_rollup
from usage_viz.features.stack import VarianceStack
from usage_viz.models import ReadingPoint
from usage_viz.scales import (
    BandScale,
    LinearScale,
    OrdinalColorScale,
    SequentialColorScale,
    build_heatmap_scales,
    build_stack_scales,
    nice_domain,
    tick_increment,
    value_extent,
)

PASTEL1 = [
    "#fbb4ae",
    "#b3cde3",
    "#ccebc5",
    "#decbe4",
    "#fed9a6",
    "#ffffcc",
    "#e5d8bd",
    "#fddaec",
    "#f2f2f2",
]


@pytest.mark.parametrize(
    ("stop", "expected"),
    [(15.0, 16.0), (11.0, 11.0), (97.0, 100.0), (1234.0, 1300.0), (0.87, 0.9), (10.0, 10.0)],
)
def test_nice_domain_rounds_ceiling_up(stop: float, expected: float) -> None:
    assert nice_domain(0.0, stop) == pytest.approx((0.0, expected))


def test_nice_domain_leaves_zero_span_alone() -> None:
    assert nice_domain(0.0, 0.0) == (0.0, 0.0)
    assert tick_increment(0.0, 0.0) == 0.0


def test_linear_scale_maps_and_inverts() -> None:
    scale = LinearScale.nice(domain=(0.0, 15.0), range_=(600.0, 0.0))

    assert scale.domain == (0.0, 16.0)
    assert scale(0.0) == 600.0
    assert scale(16.0) == 0.0
    assert scale(8.0) == 300.0
    assert scale.invert(300.0) == 8.0
    assert scale.ticks() == pytest.approx([0, 2, 4, 6, 8, 10, 12, 14, 16])


def test_linear_scale_with_empty_domain_maps_to_midpoint() -> None:
    scale = LinearScale(domain=(0.0, 0.0), range=(600.0, 0.0))

    assert scale(0.0) == 300.0


def test_hour_scale_ticks_every_hour() -> None:
    scale = LinearScale(domain=(0.0, 23.0), range=(0.0, 800.0))

    assert scale.ticks(24) == list(range(24))
    assert scale(23.0) == 800.0


def test_band_scale_matches_padded_layout() -> None:
    scale = BandScale(domain=("a", "b", "c"), range=(0.0, 310.0), padding=0.1)

    assert scale.step == pytest.approx(100.0)
    assert scale.bandwidth == pytest.approx(90.0)
    assert scale("a") == pytest.approx(10.0)
    assert scale("c") == pytest.approx(210.0)
    assert scale.center("b") == pytest.approx(155.0)
    with pytest.raises(KeyError):
        scale("d")


def test_band_scale_single_item_and_empty_domain() -> None:
    single = BandScale(domain=(0,), range=(0.0, 800.0), padding=0.1)
    assert single.step == pytest.approx(800.0 / 1.1)
    assert single(0) + single.bandwidth <= 800.0

    empty = BandScale(domain=(), range=(0.0, 800.0), padding=0.1)
    assert empty.bandwidth == pytest.approx(720.0)


def test_ordinal_colors_follow_pastel_palette_and_cycle() -> None:
    color = OrdinalColorScale(["heat", "base"], palette="Pastel1")

    assert color("heat") == PASTEL1[0]
    assert color("base") == PASTEL1[1]
    assert color("heat") == PASTEL1[0]

    many = OrdinalColorScale([str(i) for i in range(10)], palette="Pastel1")
    assert many("9") == many("0")


def test_ordinal_colors_reject_unknown_category_without_growing() -> None:
    color = OrdinalColorScale(["heat", "base"], palette="Pastel1")

    with pytest.raises(KeyError):
        color("new")

    assert color.domain == ["heat", "base"]


def test_sequential_color_spans_extent() -> None:
    color = SequentialColorScale(extent=(2.0, 10.0), colormap="RdPu")

    assert color.normalize(2.0) == 0.0
    assert color.normalize(10.0) == 1.0
    assert color.normalize(0.0) == 0.0
    assert color(2.0) != color(10.0)
    assert color(2.0).startswith("#")


def test_value_extent_skips_absent_values() -> None:
    assert value_extent([None, 3.0, -1.0, None]) == (-1.0, 3.0)
    assert value_extent([None]) is None


def test_stack_scales_are_built_from_stack() -> None:
    stack = VarianceStack(categories=["heat", "base"], segments=[], totals=[15.0, 11.0])

    scales = build_stack_scales(stack, BillingChartConfig())

    assert scales.x.domain == (0, 1)
    assert scales.y.domain == (0.0, 16.0)
    assert scales.y.range == (600.0, 0.0)
    assert scales.color.domain == ["heat", "base"]


def test_heatmap_scales_use_raw_reading_extent() -> None:
    tz = "UTC"
    points = [
        ReadingPoint(pd.Timestamp("2024-01-15T03:00", tz=tz), 5.0),
        ReadingPoint(pd.Timestamp("2024-01-20T03:00", tz=tz), 7.0),
        ReadingPoint(pd.Timestamp("2024-02-01T04:00", tz=tz), None),
    ]
    rollup = build_month_hour_rollup(points)

    scales = build_heatmap_scales(rollup, points, HeatmapChartConfig())

    assert scales.color.extent == (5.0, 7.0)
    assert scales.y.domain == (date(2024, 1, 1), date(2024, 2, 1))
    assert scales.x.domain == (0.0, 23.0)


def test_scales_are_rebuilt_per_dataset() -> None:
    small = build_stack_scales(
        VarianceStack(categories=["a"], segments=[], totals=[1.0]), BillingChartConfig()
    )
    large = build_stack_scales(
        VarianceStack(categories=["a", "b"], segments=[], totals=[1.0, 2.0, 90.0]),
        BillingChartConfig(),
    )

    assert small.x.domain == (0,)
    assert large.x.domain == (0, 1, 2)
    assert large.y.domain == (0.0, 90.0)
