from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

import pandas as pd

from usage_viz.errors import DataEmptyError, ShapeError
from usage_viz.models import BillRecord, ReadingPoint, Variance


def _require_mapping(value: Any, *, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ShapeError(f"{where} must be an object, got {type(value).__name__}")
    return value


def _require_sequence(value: Any, *, where: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ShapeError(f"{where} must be a list, got {type(value).__name__}")
    return value


def _field(container: Mapping[str, Any], key: str, *, where: str) -> Any:
    try:
        return container[key]
    except KeyError as exc:
        raise ShapeError(f"{where} is missing field '{key}'") from exc


def _finite_number(value: Any, *, where: str) -> float:
    # bool is an int subclass; a true/false cost is a shape problem, not 1/0.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShapeError(f"{where} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError as exc:
        raise ShapeError(f"{where} is out of range, got {value!r}") from exc
    if not math.isfinite(number):
        raise ShapeError(f"{where} must be finite, got {value!r}")
    return number


def _calendar_date(value: Any, *, where: str) -> date:
    if not isinstance(value, str) or not value.strip():
        raise ShapeError(f"{where} must be an ISO date string, got {value!r}")
    try:
        return pd.Timestamp(value.strip()).date()
    except (ValueError, TypeError) as exc:
        raise ShapeError(f"{where} is not a valid date: {value!r}") from exc


def _local_timestamp(value: str, *, timezone: str) -> pd.Timestamp:
    try:
        parsed = pd.Timestamp(value)
    except (ValueError, TypeError) as exc:
        raise ShapeError(f"reading timestamp is not ISO-8601: {value!r}") from exc
    if pd.isna(parsed):
        raise ShapeError(f"reading timestamp is not ISO-8601: {value!r}")
    if parsed.tzinfo is None:
        return parsed.tz_localize(timezone, nonexistent="shift_forward", ambiguous=False)
    return parsed.tz_convert(timezone)


def _parse_variance(raw: Any, *, where: str) -> Variance:
    entry = _require_mapping(raw, where=where)
    category = _field(entry, "category", where=where)
    if not isinstance(category, str) or not category:
        raise ShapeError(f"{where}.category must be a non-empty string")
    return Variance.from_signed(
        category=category,
        signed_value=_finite_number(
            _field(entry, "absoluteVariance", where=where), where=f"{where}.absoluteVariance"
        ),
        percent_value=_finite_number(
            _field(entry, "percentVariance", where=where), where=f"{where}.percentVariance"
        ),
    )


def parse_bills(payload: Any) -> list[BillRecord]:
    """Turn a bills response into ``BillRecord`` values in response order."""
    body = _require_mapping(payload, where="bills response")
    entries = _require_sequence(_field(body, "data", where="bills response"), where="data")

    records: list[BillRecord] = []
    for index, raw in enumerate(entries):
        where = f"data[{index}]"
        attributes = _require_mapping(
            _field(_require_mapping(raw, where=where), "attributes", where=where),
            where=f"{where}.attributes",
        )
        where = f"{where}.attributes"
        bill_variances = _require_mapping(
            _field(attributes, "billVariances", where=where), where=f"{where}.billVariances"
        )
        raw_variances = _require_sequence(
            _field(bill_variances, "variances", where=f"{where}.billVariances"),
            where=f"{where}.billVariances.variances",
        )
        variances = tuple(
            _parse_variance(item, where=f"{where}.billVariances.variances[{position}]")
            for position, item in enumerate(raw_variances)
        )
        categories = [variance.category for variance in variances]
        if len(set(categories)) != len(categories):
            raise ShapeError(f"{where} repeats a variance category: {categories}")

        start = _field(attributes, "start", where=where)
        end = _field(attributes, "end", where=where)
        records.append(
            BillRecord(
                start_date=_calendar_date(start, where=f"{where}.start"),
                end_date=_calendar_date(end, where=f"{where}.end"),
                cost=_finite_number(_field(attributes, "cost", where=where), where=f"{where}.cost"),
                use=_finite_number(_field(attributes, "use", where=where), where=f"{where}.use"),
                variances=variances,
            )
        )

    if not records:
        raise DataEmptyError("bills response contained no bills")
    return records


def parse_readings(payload: Any, timezone: str = "America/Los_Angeles") -> list[ReadingPoint]:
    """Turn a readings response into ``ReadingPoint`` values in response order.

    Only the first meter entry is read.  ``null`` readings are kept as
    ``value=None`` so the rollup can tell an empty bucket from a zero mean.
    """
    body = _require_mapping(payload, where="readings response")
    entries = _require_sequence(_field(body, "data", where="readings response"), where="data")
    if not entries:
        raise DataEmptyError("readings response contained no meters")

    meter = _require_mapping(entries[0], where="data[0]")
    attributes = _require_mapping(
        _field(meter, "attributes", where="data[0]"), where="data[0].attributes"
    )
    readings = _require_mapping(
        _field(attributes, "readings", where="data[0].attributes"),
        where="data[0].attributes.readings",
    )
    series = _require_mapping(
        _field(readings, "kw", where="data[0].attributes.readings"),
        where="data[0].attributes.readings.kw",
    )

    points: list[ReadingPoint] = []
    for raw_timestamp, raw_value in series.items():
        if not isinstance(raw_timestamp, str):
            raise ShapeError(f"reading timestamp must be a string, got {raw_timestamp!r}")
        value = (
            None
            if raw_value is None
            else _finite_number(raw_value, where=f"readings.kw[{raw_timestamp}]")
        )
        points.append(
            ReadingPoint(timestamp=_local_timestamp(raw_timestamp, timezone=timezone), value=value)
        )

    if not points:
        raise DataEmptyError("readings response contained no readings")
    return points
