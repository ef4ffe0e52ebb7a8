from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from usage_viz.config import AppConfig, MarginsConfig
from usage_viz.errors import FETCH_ERRORS
from usage_viz.features.rollup import build_month_hour_rollup
from usage_viz.features.stack import build_variance_stack
from usage_viz.interaction import HoverController, heatmap_describer, stack_describer
from usage_viz.io.client import SnapmeterClient
from usage_viz.io.parse import parse_bills, parse_readings
from usage_viz.models import BillRecord, ReadingPoint
from usage_viz.scales import build_heatmap_scales, build_stack_scales
from usage_viz.viz.geometry import ChartGeometry, build_heatmap_geometry, build_stack_geometry

LOGGER = logging.getLogger(__name__)

DatasetT = TypeVar("DatasetT", bound=Sequence)


class DatasetSlot(Generic[DatasetT]):
    """Holds the loaded dataset and rejects completions older than it."""

    def __init__(self) -> None:
        self.dataset: DatasetT | None = None
        self._next_generation = 0
        self._loaded_generation = 0

    @property
    def loaded_generation(self) -> int:
        return self._loaded_generation

    def begin_fetch(self) -> int:
        self._next_generation += 1
        return self._next_generation

    def complete(self, generation: int, dataset: DatasetT) -> bool:
        if generation < self._loaded_generation:
            LOGGER.info(
                "Ignoring dataset from fetch %s; fetch %s already loaded",
                generation,
                self._loaded_generation,
            )
            return False
        self.dataset = dataset
        self._loaded_generation = generation
        return True


@dataclass(frozen=True)
class ChartModel:
    title: str
    geometry: ChartGeometry
    margins: MarginsConfig
    # Degrees counter-clockwise, as matplotlib measures it.
    x_tick_rotation: float = 0.0


class ChartView(Generic[DatasetT]):
    name: str

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.slot: DatasetSlot[DatasetT] = DatasetSlot()
        self.model: ChartModel | None = None
        self.hover: HoverController | None = None

    def fetch(self, client: SnapmeterClient) -> DatasetT:
        raise NotImplementedError

    def build(self, dataset: DatasetT) -> tuple[ChartModel, HoverController]:
        raise NotImplementedError

    def mount(self, client: SnapmeterClient) -> bool:
        """Run this view's single fetch; failures leave the view without data."""
        generation = self.slot.begin_fetch()
        try:
            dataset = self.fetch(client)
        except FETCH_ERRORS as exc:
            LOGGER.error("%s fetch failed (%s): %s", self.name, type(exc).__name__, exc)
            return False
        return self.receive(generation, dataset)

    def receive(self, generation: int, dataset: DatasetT) -> bool:
        if not self.slot.complete(generation, dataset):
            return False
        self.refresh()
        return True

    def refresh(self) -> None:
        dataset = self.slot.dataset
        if not dataset:
            self.model, self.hover = None, None
            return
        self.model, self.hover = self.build(dataset)


class BillingView(ChartView[list[BillRecord]]):
    name = "billing"

    def fetch(self, client: SnapmeterClient) -> list[BillRecord]:
        return parse_bills(client.fetch_bills())

    def build(self, dataset: list[BillRecord]) -> tuple[ChartModel, HoverController]:
        chart = self.config.charts.billing
        stack = build_variance_stack(dataset)
        scales = build_stack_scales(stack, chart)
        geometry = build_stack_geometry(dataset, stack, scales)
        model = ChartModel(
            title=chart.title,
            geometry=geometry,
            margins=chart.margins,
            x_tick_rotation=45.0,
        )
        hover = HoverController(
            geometry.rects,
            stack_describer(dataset, show_percent=chart.show_percent_variance),
        )
        return model, hover


class ReadingsView(ChartView[list[ReadingPoint]]):
    name = "readings"

    def fetch(self, client: SnapmeterClient) -> list[ReadingPoint]:
        return parse_readings(client.fetch_readings(), timezone=self.config.time.timezone)

    def build(self, dataset: list[ReadingPoint]) -> tuple[ChartModel, HoverController]:
        chart = self.config.charts.heatmap
        rollup = build_month_hour_rollup(dataset)
        scales = build_heatmap_scales(rollup, dataset, chart)
        geometry = build_heatmap_geometry(rollup, scales, chart)
        model = ChartModel(
            title=chart.title,
            geometry=geometry,
            margins=chart.margins,
            x_tick_rotation=45.0,
        )
        return model, HoverController(geometry.rects, heatmap_describer)
