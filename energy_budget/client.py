"""HTTP client for the remote budget forecast service.

The service owns the authoritative monthly records.  This client only
moves JSON in and out; turning rows into :class:`MonthlyForecastRecord`
objects is done by :mod:`energy_budget.store`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from .config import AGGREGATE_KEY, API_BASE_URL, REQUEST_TIMEOUT
from .errors import TransportError
from .metering import MeteringPointInfo, RealPoint

logger = logging.getLogger(__name__)

# Record field -> key used by the service payloads
WIRE_FIELDS: Dict[str, str] = {
    "month": "mese",
    "base_energy_cost": "prezzoEnergiaBase",
    "base_consumption": "consumiBase",
    "base_ancillary_cost": "oneriBase",
    "energy_price_pct": "prezzoEnergiaPerc",
    "consumption_pct": "consumiPerc",
    "ancillary_pct": "oneriPerc",
}


class ForecastServiceClient:
    """Thin wrapper around the budget endpoints of the forecast service."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        return response

    @staticmethod
    def _check(response: requests.Response, what: str) -> None:
        if not response.ok:
            raise TransportError(
                f"{what} failed with HTTP {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

    def _json(self, response: requests.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{what} returned invalid JSON", status=response.status_code) from exc

    def fetch_forecasts(self, point_id: str, year: int) -> List[Dict[str, Any]]:
        """GET the raw forecast rows of one metering point for one year.

        A 404 means the service has no bills for that year and yields an
        empty list.
        """
        what = f"Forecast list for {point_id}/{year}"
        response = self._request("GET", f"/budget/{point_id}/{year}")
        if response.status_code == 404:
            return []
        self._check(response, what)
        data = self._json(response, what)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TransportError(f"{what} is not a list", status=response.status_code)
        logger.debug("Fetched %d forecast rows for %s/%s", len(data), point_id, year)
        return data

    def update_forecast(
        self,
        point_id: str,
        year: int,
        month: int,
        deltas: Mapping[str, float],
    ) -> None:
        """PUT the three percentage deltas of one month."""
        payload = {WIRE_FIELDS[name]: float(value) for name, value in deltas.items()}
        response = self._request(
            "PUT",
            "/budget/previsioni",
            params={"pod": point_id, "anno": year, "mese": month},
            json=payload,
        )
        self._check(response, f"Forecast update for {point_id}/{year}/{month}")

    def list_metering_points(self) -> List[MeteringPointInfo]:
        """GET the user's metering points, without the aggregate entity."""
        what = "Metering point list"
        response = self._request("GET", "/pod")
        self._check(response, what)
        points: List[MeteringPointInfo] = []
        for item in self._json(response, what) or []:
            point_id = str(item.get("id") or "").strip()
            if not point_id or point_id.upper() == AGGREGATE_KEY:
                continue
            points.append(MeteringPointInfo(RealPoint(point_id), item.get("sede")))
        return points

    def export_workbook(self, point_key: str, year: int) -> bytes:
        """GET the Excel export of a year's budget."""
        response = self._request(
            "GET", "/budget/export", params={"pod": point_key, "anno": year}
        )
        self._check(response, f"Export for {point_key}/{year}")
        return response.content
