from datetime import date

import pytest

from energy_budget.errors import TransportError
from energy_budget.metering import MeteringPointInfo, RealPoint
from energy_budget.overlay import LocalOverlayCache
from energy_budget.session import BudgetSession
from energy_budget.store import MonthlyForecastStore

TODAY = date(2026, 10, 19)


def forecast_row(month, energy_cost=0.0, consumption=0.0, ancillary=0.0, ep=0.0, cp=0.0, ap=0.0):
    return {
        'mese': month,
        'prezzoEnergiaBase': energy_cost,
        'consumiBase': consumption,
        'oneriBase': ancillary,
        'prezzoEnergiaPerc': ep,
        'consumiPerc': cp,
        'oneriPerc': ap,
    }


class FakeForecastService:
    """In-memory stand-in for the budget REST service."""

    def __init__(self):
        self.rows = {}
        self.points = []
        self.failing = set()
        self.reject_updates = False
        self.fetches = []
        self.updates = []
        self.exports = []

    def add(self, point_id, year, *rows):
        self.rows.setdefault((point_id, year), []).extend(rows)

    def fetch_forecasts(self, point_id, year):
        self.fetches.append((point_id, year))
        if point_id in self.failing or (point_id, year) in self.failing:
            raise TransportError(f"{point_id} unreachable", status=503)
        return list(self.rows.get((point_id, year), []))

    def update_forecast(self, point_id, year, month, deltas):
        if self.reject_updates:
            raise TransportError("update refused", status=500, body='{"error": "db down"}')
        self.updates.append((point_id, year, month, dict(deltas)))

    def list_metering_points(self):
        return [MeteringPointInfo(RealPoint(pid), site) for pid, site in self.points]

    def export_workbook(self, point_key, year):
        self.exports.append((point_key, year))
        return f"{point_key}-{year}".encode()


@pytest.fixture
def row():
    return forecast_row


@pytest.fixture
def service():
    return FakeForecastService()


@pytest.fixture
def overlay():
    return LocalOverlayCache()


@pytest.fixture
def store(service, overlay):
    return MonthlyForecastStore(service, overlay, today=lambda: TODAY)


@pytest.fixture
def session(service):
    return BudgetSession(service, today=lambda: TODAY)
