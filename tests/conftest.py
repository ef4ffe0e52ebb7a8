from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from usage_viz.config import ApiConfig
from usage_viz.io.client import SnapmeterClient


def _bill_entry(
    start: str,
    end: str,
    variances: dict[str, float],
    *,
    cost: float = 100.0,
    use: float = 500.0,
) -> dict[str, Any]:
    return {
        "type": "bill",
        "attributes": {
            "start": start,
            "end": end,
            "cost": cost,
            "use": use,
            "billVariances": {
                "variances": [
                    {
                        "category": category,
                        "absoluteVariance": value,
                        "percentVariance": value / 10.0,
                    }
                    for category, value in variances.items()
                ]
            },
        },
    }


def _readings_body(kw: dict[str, float | None]) -> dict[str, Any]:
    return {"data": [{"type": "meter", "attributes": {"readings": {"kw": kw}}}]}


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, bad_json: bool = False) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self._bad_json = bad_json

    def json(self) -> Any:
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Routes GETs by URL suffix and records every call."""

    def __init__(self, routes: dict[str, FakeResponse]) -> None:
        self.routes = routes
        self.calls: list[SimpleNamespace] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(SimpleNamespace(url=url, **kwargs))
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse(status_code=404)


@pytest.fixture
def bills_payload() -> dict[str, Any]:
    return {
        "data": [
            _bill_entry("2024-01-01", "2024-01-31", {"heat": 10.0, "base": 5.0}, cost=120.5),
            _bill_entry("2024-02-01", "2024-02-29", {"heat": -3.0, "base": 8.0}, use=410.0),
        ]
    }


@pytest.fixture
def readings_payload() -> dict[str, Any]:
    return _readings_body(
        {
            "2024-01-15T03:00:00": 5.0,
            "2024-01-20T03:00:00": 7.0,
            "2024-01-20T04:00:00": None,
            "2024-02-01T00:00:00": 2.0,
            "2024-02-01T23:00:00": 10.0,
        }
    )


@pytest.fixture
def bill_entry():
    return _bill_entry


@pytest.fixture
def readings_body():
    return _readings_body


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_client():
    """Build a client whose GETs are answered by suffix-matched fake responses."""

    def _make(config: ApiConfig, routes: dict[str, FakeResponse]) -> SnapmeterClient:
        return SnapmeterClient(config, session=FakeSession(routes))

    return _make


@pytest.fixture
def fake_session():
    return FakeSession
