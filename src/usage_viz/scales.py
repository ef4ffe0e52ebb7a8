from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Hashable, Iterable, Sequence

import matplotlib
import numpy as np
from matplotlib.colors import to_hex

from usage_viz.config import BillingChartConfig, HeatmapChartConfig
from usage_viz.features.rollup import HOURS_PER_DAY, MonthHourRollup
from usage_viz.features.stack import VarianceStack
from usage_viz.models import ReadingPoint

DEFAULT_TICK_COUNT = 10
_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def tick_increment(start: float, stop: float, count: int = DEFAULT_TICK_COUNT) -> float:
    """Step between "nice" ticks; negative values mean 1/-step for sub-unit steps."""
    if count <= 0 or stop <= start:
        return 0.0
    step = (stop - start) / count
    power = math.floor(math.log10(step))
    error = step / 10**power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        return -(10 ** -power) / factor
    return float(10**power * factor)


def nice_domain(
    start: float, stop: float, count: int = DEFAULT_TICK_COUNT
) -> tuple[float, float]:
    """Extend ``[start, stop]`` outward to round tick boundaries."""
    previous: float | None = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == previous:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        previous = step
    return float(start), float(stop)


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return (d0 + d1) / 2
        return d0 + (pixel - r0) / (r1 - r0) * (d1 - d0)

    def ticks(self, count: int = DEFAULT_TICK_COUNT) -> list[float]:
        start, stop = sorted(self.domain)
        step = tick_increment(start, stop, count)
        if step > 0:
            first, last = math.ceil(start / step), math.floor(stop / step)
            return [i * step for i in range(first, last + 1)]
        if step < 0:
            first, last = math.ceil(start * -step), math.floor(stop * -step)
            return [i / -step for i in range(first, last + 1)]
        return [start] if math.isfinite(start) else []

    @classmethod
    def nice(
        cls, domain: tuple[float, float], range_: tuple[float, float]
    ) -> LinearScale:
        return cls(domain=nice_domain(*domain), range=range_)


@dataclass(frozen=True)
class BandScale:
    """Equal-width slots for a discrete domain, padded inside and out."""

    domain: tuple[Hashable, ...]
    range: tuple[float, float]
    padding: float = 0.1

    @property
    def step(self) -> float:
        r0, r1 = self.range
        n = len(self.domain)
        return (r1 - r0) / max(1.0, n - self.padding + self.padding * 2)

    @property
    def bandwidth(self) -> float:
        return self.step * (1 - self.padding)

    @property
    def offset(self) -> float:
        r0, r1 = self.range
        n = len(self.domain)
        return r0 + (r1 - r0 - self.step * (n - self.padding)) * 0.5

    def index(self, key: Hashable) -> int:
        try:
            return self.domain.index(key)
        except ValueError as exc:
            raise KeyError(key) from exc

    def __call__(self, key: Hashable) -> float:
        return self.offset + self.step * self.index(key)

    def center(self, key: Hashable) -> float:
        return self(key) + self.bandwidth / 2


class OrdinalColorScale:
    """Fixed palette indexed by position in ``domain``, cycling past its length."""

    def __init__(self, domain: Iterable[str], palette: str | Sequence[str] = "Pastel1") -> None:
        if isinstance(palette, str):
            colors = matplotlib.colormaps[palette].colors
            self.palette = [to_hex(color) for color in colors]
        else:
            self.palette = [to_hex(color) for color in palette]
        self._index: dict[str, int] = {}
        for key in domain:
            self._index.setdefault(key, len(self._index))

    @property
    def domain(self) -> list[str]:
        return list(self._index)

    def __call__(self, key: str) -> str:
        position = self._index.get(key)
        if position is None:
            raise KeyError(key)
        return self.palette[position % len(self.palette)]


@dataclass(frozen=True)
class SequentialColorScale:
    extent: tuple[float, float]
    colormap: str = "RdPu"

    def normalize(self, value: float) -> float:
        low, high = self.extent
        if high == low:
            return 0.0
        return float(np.clip((value - low) / (high - low), 0.0, 1.0))

    def __call__(self, value: float) -> str:
        return to_hex(matplotlib.colormaps[self.colormap](self.normalize(value)))


def value_extent(values: Iterable[float | None]) -> tuple[float, float] | None:
    present = [value for value in values if value is not None]
    if not present:
        return None
    return min(present), max(present)


@dataclass(frozen=True)
class StackScales:
    x: BandScale
    y: LinearScale
    color: OrdinalColorScale


@dataclass(frozen=True)
class HeatmapScales:
    x: LinearScale
    y: BandScale
    color: SequentialColorScale


def build_stack_scales(stack: VarianceStack, config: BillingChartConfig) -> StackScales:
    record_count = len(stack.totals)
    return StackScales(
        x=BandScale(
            domain=tuple(range(record_count)),
            range=(0.0, float(config.width)),
            padding=config.band_padding,
        ),
        y=LinearScale.nice(domain=(0.0, stack.y_max), range_=(float(config.height), 0.0)),
        color=OrdinalColorScale(stack.categories, palette=config.palette),
    )


def build_heatmap_scales(
    rollup: MonthHourRollup,
    points: Sequence[ReadingPoint],
    config: HeatmapChartConfig,
) -> HeatmapScales:
    months: list[date] = rollup.months
    extent = value_extent(point.value for point in points) or (0.0, 0.0)
    return HeatmapScales(
        x=LinearScale(domain=(0.0, float(HOURS_PER_DAY - 1)), range=(0.0, float(config.width))),
        y=BandScale(
            domain=tuple(months),
            range=(0.0, float(config.height)),
            padding=config.band_padding,
        ),
        color=SequentialColorScale(extent=extent, colormap=config.colormap),
    )
