from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import typer
import yaml
from pydantic import ValidationError

from usage_viz.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from usage_viz.logging import configure_logging
from usage_viz.pipeline.run_all import run_all
from usage_viz.viz.figures import show_chart

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    try:
        return load_config(config_path)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config {config_path}:\n{exc}") from exc


@app.command()
def render(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    show: bool = typer.Option(False, help="Open interactive windows with hover tooltips."),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Fetch bills and readings, then write the heatmap and variance charts."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    result = run_all(out_dir=out, config=cfg)

    for name, path in sorted(result.figures.items()):
        typer.echo(f"{name}: {path}")
    if result.page is not None:
        typer.echo(f"page: {result.page}")
    if not result.figures:
        typer.echo("No data loaded; nothing drawn.")

    if show:
        figures = [show_chart(view.model, view.hover) for view in result.views]
        if any(figure is not None for figure in figures):
            plt.show()


@app.command("show-config")
def show_config(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Print the effective configuration with the API token redacted."""
    cfg = _load_app_config(config)
    data = cfg.model_dump(mode="json")
    if data["api"].get("token"):
        data["api"]["token"] = "***"
    typer.echo(yaml.safe_dump(data, sort_keys=False))


if __name__ == "__main__":
    app()
