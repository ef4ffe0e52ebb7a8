from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterator, Sequence

import pandas as pd

from usage_viz.models import ReadingPoint, RollupCell

HOURS_PER_DAY = 24


@dataclass(frozen=True)
class MonthHourRollup:
    """Readings grouped by (calendar month, local hour) in traversal order."""

    cells: tuple[RollupCell, ...] = ()

    def __iter__(self) -> Iterator[RollupCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    @property
    def months(self) -> list[date]:
        return list(dict.fromkeys(cell.month_key for cell in self.cells))

    def as_mapping(self) -> dict[tuple[date, int], RollupCell]:
        return {(cell.month_key, cell.hour_of_day): cell for cell in self.cells}

    def cell(self, month_key: date, hour_of_day: int) -> RollupCell | None:
        return self.as_mapping().get((month_key, hour_of_day))

    def hours_for(self, month_key: date) -> list[RollupCell]:
        return [cell for cell in self.cells if cell.month_key == month_key]


def month_key(timestamp: pd.Timestamp) -> date:
    return date(timestamp.year, timestamp.month, 1)


def build_readings_frame(points: Sequence[ReadingPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "month_key": [month_key(point.timestamp) for point in points],
            "hour_of_day": [int(point.timestamp.hour) for point in points],
            "value": [
                float("nan") if point.value is None else point.value for point in points
            ],
        }
    )


def build_month_hour_rollup(points: Sequence[ReadingPoint]) -> MonthHourRollup:
    """Sum/count of present readings per (month, hour).

    Absent readings still create their bucket but do not count towards it.
    Months keep first-seen order, as do hours within a month.
    """
    if not points:
        return MonthHourRollup()

    frame = build_readings_frame(points)
    grouped = (
        frame.groupby(["month_key", "hour_of_day"], sort=False)
        .agg(value_sum=("value", "sum"), value_count=("value", "count"))
        .reset_index()
    )
    grouped["month_rank"] = pd.factorize(grouped["month_key"])[0]
    grouped = grouped.sort_values("month_rank", kind="stable")

    cells = tuple(
        RollupCell(
            month_key=row.month_key,
            hour_of_day=int(row.hour_of_day),
            value_sum=float(row.value_sum),
            value_count=int(row.value_count),
        )
        for row in grouped.itertuples(index=False)
    )
    return MonthHourRollup(cells=cells)
