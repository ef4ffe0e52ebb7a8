from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

TOKEN_ENV_VARS = ("USAGE_VIZ_API_TOKEN", "SNAPMETER_API_TOKEN")


class ApiConfig(BaseModel):
    base_url: str = "https://snapmeter.com/api/public"
    service_id: str = "2080448990210"
    meter_id: str = "2080448990211"
    start: date = date(2023, 9, 1)
    end: date = date(2025, 9, 1)
    token: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)

    @model_validator(mode="after")
    def _check_range(self) -> "ApiConfig":
        if self.end < self.start:
            raise ValueError("api.end must not be before api.start")
        return self


class TimeConfig(BaseModel):
    timezone: str = "America/Los_Angeles"


class MarginsConfig(BaseModel):
    top: int = Field(default=20, ge=0)
    left: int = Field(default=100, ge=0)
    right: int = Field(default=100, ge=0)
    bottom: int = Field(default=20, ge=0)


class BillingChartConfig(BaseModel):
    title: str = "Billing Variances"
    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)
    margins: MarginsConfig = Field(default_factory=lambda: MarginsConfig(bottom=120))
    band_padding: float = Field(default=0.1, ge=0, lt=1)
    palette: str = "Pastel1"
    show_percent_variance: bool = False


class HeatmapChartConfig(BaseModel):
    title: str = "Meter Readings"
    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)
    margins: MarginsConfig = Field(default_factory=MarginsConfig)
    band_padding: float = Field(default=0.1, ge=0, lt=1)
    cell_gap: float = Field(default=2.0, ge=0)
    colormap: str = "RdPu"


class ChartsConfig(BaseModel):
    billing: BillingChartConfig = Field(default_factory=BillingChartConfig)
    heatmap: HeatmapChartConfig = Field(default_factory=HeatmapChartConfig)


class OutputsConfig(BaseModel):
    figures_format: Literal["png", "svg", "pdf"] = "png"
    write_html: bool = True


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api: ApiConfig = Field(default_factory=ApiConfig)
    time: TimeConfig = Field(default_factory=TimeConfig)
    charts: ChartsConfig = Field(default_factory=ChartsConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    config.api.token = config.api.token or next(
        (os.environ[name] for name in TOKEN_ENV_VARS if os.getenv(name)),
        None,
    )
    return config
