from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

import pandas as pd

Sign = Literal["positive", "negative"]


@dataclass(frozen=True)
class Variance:
    category: str
    value: float
    signed_value: float
    percent_value: float
    sign: Sign

    @classmethod
    def from_signed(cls, category: str, signed_value: float, percent_value: float) -> Variance:
        return cls(
            category=category,
            value=abs(signed_value),
            signed_value=signed_value,
            percent_value=percent_value,
            sign="positive" if signed_value >= 0 else "negative",
        )


@dataclass(frozen=True)
class BillRecord:
    start_date: date
    end_date: date
    cost: float
    use: float
    variances: tuple[Variance, ...] = ()

    @property
    def categories(self) -> list[str]:
        return [variance.category for variance in self.variances]

    @property
    def period_label(self) -> str:
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def variance_for(self, category: str) -> Variance | None:
        for variance in self.variances:
            if variance.category == category:
                return variance
        return None


@dataclass(frozen=True)
class ReadingPoint:
    timestamp: pd.Timestamp
    value: float | None


@dataclass(frozen=True)
class StackedSegment:
    category: str
    source_record_index: int
    base_offset: float
    top_offset: float

    @property
    def height(self) -> float:
        return self.top_offset - self.base_offset


@dataclass(frozen=True)
class RollupCell:
    """Mean of present readings for one (month, hour-of-day) bucket.

    The mean is derived from ``value_sum`` and ``value_count`` on read, so a
    bucket that only saw absent readings reports ``None`` rather than ``0.0``.
    """

    month_key: date
    hour_of_day: int
    value_sum: float = 0.0
    value_count: int = 0

    @property
    def mean_value(self) -> float | None:
        if self.value_count == 0:
            return None
        return self.value_sum / self.value_count
