"""Monthly forecast records and the values derived from them.

A record carries the base values of a month (last billed energy cost,
consumption and ancillary charges) and three percentage deltas chosen by
the user.  :func:`compute_derived` turns them into the unit energy price,
projected consumption, projected ancillary cost and total cost shown on
each month card.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List

MONTH_NAMES: List[str] = [
    "Gennaio", "Febbraio", "Marzo", "Aprile",
    "Maggio", "Giugno", "Luglio", "Agosto",
    "Settembre", "Ottobre", "Novembre", "Dicembre",
]

BASE_FIELDS = ("base_energy_cost", "base_consumption", "base_ancillary_cost")
PCT_FIELDS = ("energy_price_pct", "consumption_pct", "ancillary_pct")


def validate_month(month: int) -> int:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return month


@dataclass
class MonthlyForecastRecord:
    """One month of forecast data for one metering point.

    ``source`` tells where the values came from: ``authoritative`` (the
    service), ``overlay`` (a session-local seed), ``projected`` (rolled
    forward from the prior year), ``aggregate`` or ``empty``.
    """

    point_id: str
    year: int
    month: int
    base_energy_cost: float = 0.0
    base_consumption: float = 0.0
    base_ancillary_cost: float = 0.0
    energy_price_pct: float = 0.0
    consumption_pct: float = 0.0
    ancillary_pct: float = 0.0
    source: str = "authoritative"

    @property
    def editable(self) -> bool:
        """Percentages only make sense once there is a base to apply them to."""
        return (
            self.base_energy_cost > 0
            or self.base_consumption > 0
            or self.base_ancillary_cost > 0
        )

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    def with_values(self, **changes) -> "MonthlyForecastRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class DerivedForecast:
    unit_energy_price: float
    projected_consumption: float
    projected_ancillary_cost: float
    total_cost: float


def empty_record(point_id: str, year: int, month: int) -> MonthlyForecastRecord:
    """A month with no data: every value zero, never editable."""
    return MonthlyForecastRecord(point_id, year, validate_month(month), source="empty")


def _apply_pct(value: float, pct: float) -> float:
    return value * (1 + pct / 100)


def compute_derived(record: MonthlyForecastRecord) -> DerivedForecast:
    """Compute the forecast values for a record.

    Percentages are applied as given; any clamping is up to the caller.

    Example:
        >>> rec = MonthlyForecastRecord("P1", 2024, 6, 200, 1000, 50, energy_price_pct=10)
        >>> round(compute_derived(rec).total_cost, 2)
        270.0
    """
    if record.base_consumption > 0:
        unit_price = _apply_pct(
            record.base_energy_cost / record.base_consumption, record.energy_price_pct
        )
    else:
        unit_price = 0.0
    consumption = _apply_pct(record.base_consumption, record.consumption_pct)
    ancillary = _apply_pct(record.base_ancillary_cost, record.ancillary_pct)
    return DerivedForecast(
        unit_energy_price=unit_price,
        projected_consumption=consumption,
        projected_ancillary_cost=ancillary,
        total_cost=unit_price * consumption + ancillary,
    )


def clamp_pct(value: float, low: float = -100.0, high: float = 100.0) -> float:
    """Clamp a percentage to the range offered by the month card sliders."""
    return max(low, min(high, float(value)))
