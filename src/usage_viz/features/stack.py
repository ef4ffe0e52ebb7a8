from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import pandas as pd

from usage_viz.models import BillRecord, StackedSegment


@dataclass(frozen=True)
class VarianceStack:
    categories: list[str]
    segments: list[StackedSegment]
    totals: list[float] = field(default_factory=list)

    @property
    def y_max(self) -> float:
        return max(self.totals, default=0.0)

    def layer(self, category: str) -> list[StackedSegment]:
        return [segment for segment in self.segments if segment.category == category]

    def column(self, record_index: int) -> list[StackedSegment]:
        return [
            segment for segment in self.segments if segment.source_record_index == record_index
        ]


def stack_categories(records: Sequence[BillRecord]) -> list[str]:
    """Category order for the stack: the first bill's order, then any late arrivals."""
    ordered: dict[str, None] = {}
    for record in records:
        for category in record.categories:
            ordered.setdefault(category, None)
    return list(ordered)


def build_magnitude_table(records: Sequence[BillRecord], categories: list[str]) -> pd.DataFrame:
    rows = [{v.category: abs(v.value) for v in record.variances} for record in records]
    return pd.DataFrame(rows, columns=categories, dtype="float64").fillna(0.0)


def build_variance_stack(records: Sequence[BillRecord]) -> VarianceStack:
    """Cumulative per-category offsets for each bill.

    Heights are absolute variances so a bar's total is the overall size of the
    change; the direction only survives on the source ``Variance``.
    """
    if not records:
        return VarianceStack(categories=[], segments=[], totals=[])

    categories = stack_categories(records)
    magnitudes = build_magnitude_table(records, categories)
    tops = magnitudes.cumsum(axis=1)
    # Shift rather than subtract so each base is bit-identical to the top below it.
    bases = tops.shift(1, axis=1, fill_value=0.0)

    segments = [
        StackedSegment(
            category=category,
            source_record_index=int(record_index),
            base_offset=float(bases.at[record_index, category]),
            top_offset=float(tops.at[record_index, category]),
        )
        for category in categories
        for record_index in magnitudes.index
    ]
    totals = [float(value) for value in magnitudes.sum(axis=1)]
    return VarianceStack(categories=categories, segments=segments, totals=totals)
