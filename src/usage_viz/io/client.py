from __future__ import annotations

from typing import Any

import requests

from usage_viz.config import ApiConfig
from usage_viz.errors import NetworkError, ShapeError


class SnapmeterClient:
    """Thin wrapper over the public bills/readings endpoints.

    Every call is a single GET; callers own retry policy (there is none).
    """

    def __init__(
        self,
        config: ApiConfig,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        if not self.config.token:
            return {}
        return {"Authorization": self.config.token}

    def _params(self) -> dict[str, str]:
        return {"start": self.config.start.isoformat(), "end": self.config.end.isoformat()}

    def _get_json(self, path: str) -> Any:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            r = self.session.get(
                url,
                params=self._params(),
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if not r.ok:
            raise NetworkError(f"HTTP Error! status: {r.status_code}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError as exc:
            raise ShapeError(f"Response from {url} is not JSON") from exc

    def fetch_bills(self) -> Any:
        return self._get_json(f"services/{self.config.service_id}/bills")

    def fetch_readings(self) -> Any:
        return self._get_json(f"meters/{self.config.meter_id}/readings")
