from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from usage_viz.views import ChartModel, ChartView
from usage_viz.viz.geometry import Rect


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _chart_context(
    css_class: str,
    model: ChartModel | None,
    describe: Callable[[Rect], str] | None,
) -> dict[str, Any]:
    if model is None or describe is None:
        return {"css_class": css_class, "title": None, "rects": []}

    geometry = model.geometry
    margins = model.margins
    return {
        "css_class": css_class,
        "title": model.title,
        "outer_width": geometry.x_extent + margins.left + margins.right,
        "outer_height": geometry.height + margins.top + margins.bottom,
        "margin_left": margins.left,
        "margin_top": margins.top,
        "width": geometry.width,
        "height": geometry.height,
        # SVG rotates clockwise.
        "x_tick_rotation": -model.x_tick_rotation,
        "rects": [
            {
                "x": round(rect.x, 3),
                "y": round(rect.y, 3),
                "width": round(max(rect.width, 0.0), 3),
                "height": round(max(rect.height, 0.0), 3),
                "fill": rect.fill,
                "tip": describe(rect),
            }
            for rect in geometry.rects
        ],
        "x_ticks": [{"position": round(t.position, 3), "label": t.label} for t in geometry.x_ticks],
        "y_ticks": [{"position": round(t.position, 3), "label": t.label} for t in geometry.y_ticks],
    }


def render_page(views: Sequence[ChartView], output_path: Path) -> Path:
    """Write one HTML page stacking every view that has data."""
    template = _template_env().get_template("page.html.j2")
    charts = [
        _chart_context(
            css_class=f"{view.name}-chart",
            model=view.model,
            describe=view.hover.describe if view.hover is not None else None,
        )
        for view in views
    ]
    rendered = template.render(
        generated_at=datetime.now(timezone.utc).isoformat(),
        charts=[chart for chart in charts if chart["rects"]],
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered, encoding="utf-8")
    return output_path
