from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from usage_viz.config import AppConfig
from usage_viz.io.client import SnapmeterClient
from usage_viz.views import BillingView, ChartView, ReadingsView
from usage_viz.viz.figures import plot_chart
from usage_viz.viz.page import render_page

LOGGER = logging.getLogger(__name__)


@dataclass
class RunResult:
    views: list[ChartView]
    figures: dict[str, Path] = field(default_factory=dict)
    page: Path | None = None


def mount_views(config: AppConfig, client: SnapmeterClient | None = None) -> list[ChartView]:
    """Readings heatmap first, then billing variances, each with one fetch."""
    client = client or SnapmeterClient(config.api)
    views: list[ChartView] = [ReadingsView(config), BillingView(config)]
    for view in views:
        if view.mount(client):
            LOGGER.info("Loaded %s dataset (%s records)", view.name, len(view.slot.dataset or []))
    return views


def run_all(
    out_dir: Path,
    config: AppConfig,
    *,
    client: SnapmeterClient | None = None,
) -> RunResult:
    views = mount_views(config, client=client)
    result = RunResult(views=views)

    figure_names = {"readings": "readings_heatmap", "billing": "billing_variances"}
    suffix = config.outputs.figures_format
    for view in views:
        path = plot_chart(view.model, out_dir / "figures" / f"{figure_names[view.name]}.{suffix}")
        if path is None:
            LOGGER.warning("No %s data; skipped figure", view.name)
            continue
        result.figures[view.name] = path

    if config.outputs.write_html:
        result.page = render_page(views, out_dir / "index.html")
    return result
