"""Roll-forward projection of a month from the prior year's record.

When the service has no record yet for a month, the baseline is derived
from the same month of the previous year: its projected consumption and
ancillary cost become the new bases, and the new energy cost base is the
prior unit price times that consumption.  The percentages start at zero.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from .forecast import MonthlyForecastRecord, compute_derived, empty_record, validate_month


def in_projection_window(year: int, month: int, today: date) -> bool:
    """Whether ``(year, month)`` may be projected from the prior year.

    Every month of a past year qualifies.  For the current year and the
    next one only months strictly before the current calendar month do.
    """
    validate_month(month)
    if year < today.year:
        return True
    if year <= today.year + 1:
        return month < today.month
    return False


def project_from_prior(prior: MonthlyForecastRecord, year: int) -> MonthlyForecastRecord:
    """Build the projected record for ``year`` from ``prior``."""
    derived = compute_derived(prior)
    return MonthlyForecastRecord(
        point_id=prior.point_id,
        year=year,
        month=prior.month,
        base_energy_cost=derived.unit_energy_price * derived.projected_consumption,
        base_consumption=derived.projected_consumption,
        base_ancillary_cost=derived.projected_ancillary_cost,
        source="projected",
    )


def roll_forward(
    prior: Optional[MonthlyForecastRecord],
    point_id: str,
    year: int,
    month: int,
    today: date,
) -> MonthlyForecastRecord:
    """Project ``(point_id, year, month)`` or fall back to the empty record."""
    if prior is None or not prior.editable or not in_projection_window(year, month, today):
        return empty_record(point_id, year, month)
    return project_from_prior(prior, year)
