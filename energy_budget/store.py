"""Yearly forecast series for a single metering point.

For a (metering point, year) the store fetches the authoritative rows
from the service and fills every month:

1. the authoritative record, with the overlay applied;
2. otherwise an overlay entry that carries base values (written by a
   save of the previous year), applied to an empty record;
3. otherwise a roll-forward from the prior year's month, when the
   projection window allows it;
4. otherwise the empty, non-editable record.

Malformed rows degrade to the empty record for their month so the series
always has twelve renderable entries.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .client import WIRE_FIELDS
from .errors import TransportError, ValidationError
from .forecast import BASE_FIELDS, PCT_FIELDS, MonthlyForecastRecord, empty_record
from .overlay import LocalOverlayCache, apply_entry
from .rollforward import in_projection_window, roll_forward

logger = logging.getLogger(__name__)

MONTHS = range(1, 13)


class ForecastSource(Protocol):
    def fetch_forecasts(self, point_id: str, year: int) -> List[Dict[str, Any]]:
        ...


def _number(row: Mapping[str, Any], name: str) -> float:
    wire = WIRE_FIELDS[name]
    value = row.get(wire)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"Field '{wire}' must be a finite number, got {value!r}")
    return float(value)


def parse_month(row: Mapping[str, Any]) -> int:
    month = row.get(WIRE_FIELDS["month"]) if isinstance(row, Mapping) else None
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"Row has no valid month: {row!r}")
    return month


def parse_forecast_row(row: Mapping[str, Any], point_id: str, year: int) -> MonthlyForecastRecord:
    """Convert one service row into a record.

    Raises:
        ValidationError: If the month or any numeric field is missing or
            invalid, or a base value is negative.
    """
    month = parse_month(row)
    values = {name: _number(row, name) for name in BASE_FIELDS + PCT_FIELDS}
    negative = [name for name in BASE_FIELDS if values[name] < 0]
    if negative:
        raise ValidationError(f"Negative base values {negative} for month {month}")
    return MonthlyForecastRecord(point_id, year, month, **values)


def parse_forecast_rows(
    rows: Iterable[Mapping[str, Any]],
    point_id: str,
    year: int,
) -> Dict[int, MonthlyForecastRecord]:
    """Parse service rows into a month -> record mapping.

    A row with a valid month but bad values becomes the empty record for
    that month.  Rows without a usable month are dropped.  Only the first
    row of a month is kept.
    """
    records: Dict[int, MonthlyForecastRecord] = {}
    for row in rows:
        try:
            month = parse_month(row)
        except ValidationError as exc:
            logger.warning("Skipping forecast row for %s/%s: %s", point_id, year, exc)
            continue
        if month in records:
            logger.warning("Duplicate forecast row for %s/%s/%s ignored", point_id, year, month)
            continue
        try:
            records[month] = parse_forecast_row(row, point_id, year)
        except ValidationError as exc:
            logger.warning("Degrading %s/%s/%s to an empty month: %s", point_id, year, month, exc)
            records[month] = empty_record(point_id, year, month)
    return records


class MonthlyForecastStore:
    """Builds complete 12-month series for real metering points."""

    def __init__(
        self,
        source: ForecastSource,
        overlay: LocalOverlayCache,
        today: Callable[[], date] = date.today,
    ):
        self.source = source
        self.overlay = overlay
        self.today = today
        self._fetched: Dict[Tuple[str, int], Dict[int, MonthlyForecastRecord]] = {}

    def authoritative_rows(
        self,
        point_id: str,
        year: int,
        refresh: bool = False,
    ) -> Dict[int, MonthlyForecastRecord]:
        """Authoritative records by month, memoized for the session.

        Raises:
            TransportError: If the service cannot be reached.
        """
        slot = (point_id, year)
        if refresh or slot not in self._fetched:
            rows = self.source.fetch_forecasts(point_id, year)
            self._fetched[slot] = parse_forecast_rows(rows, point_id, year)
        return self._fetched[slot]

    def get_yearly_series(self, point_id: str, year: int) -> List[MonthlyForecastRecord]:
        """Fetch and assemble the 12 months of ``year`` for ``point_id``.

        Raises:
            TransportError: If the year itself cannot be fetched.
        """
        current = self.authoritative_rows(point_id, year, refresh=True)
        prior_loader = _PriorYear(self, point_id, year - 1)
        return [
            self._resolve(point_id, year, month, current, prior_loader)
            for month in MONTHS
        ]

    def resolve_month(self, point_id: str, year: int, month: int) -> MonthlyForecastRecord:
        """Resolve a single month using the memoized rows where available."""
        current = self.authoritative_rows(point_id, year)
        return self._resolve(point_id, year, month, current, _PriorYear(self, point_id, year - 1))

    def _resolve(
        self,
        point_id: str,
        year: int,
        month: int,
        current: Mapping[int, MonthlyForecastRecord],
        prior_loader: "_PriorYear",
    ) -> MonthlyForecastRecord:
        entry = self.overlay.get(point_id, year, month)
        record = current.get(month)
        if record is not None:
            return apply_entry(record, entry)
        if entry is not None and entry.has_bases:
            return apply_entry(empty_record(point_id, year, month), entry).with_values(source="overlay")
        if not in_projection_window(year, month, self.today()):
            return apply_entry(empty_record(point_id, year, month), entry)
        prior = prior_loader.record(month)
        projected = roll_forward(prior, point_id, year, month, self.today())
        return apply_entry(projected, entry)


class _PriorYear:
    """Lazy access to the overlay-applied records of the prior year."""

    def __init__(self, store: MonthlyForecastStore, point_id: str, year: int):
        self.store = store
        self.point_id = point_id
        self.year = year
        self._rows: Optional[Dict[int, MonthlyForecastRecord]] = None

    def _load(self) -> Dict[int, MonthlyForecastRecord]:
        if self._rows is None:
            try:
                self._rows = self.store.authoritative_rows(self.point_id, self.year)
            except TransportError as exc:
                logger.warning(
                    "No roll-forward for %s/%s, prior year unavailable: %s",
                    self.point_id, self.year + 1, exc,
                )
                self._rows = {}
        return self._rows

    def record(self, month: int) -> Optional[MonthlyForecastRecord]:
        entry = self.store.overlay.get(self.point_id, self.year, month)
        record = self._load().get(month)
        if record is not None:
            return apply_entry(record, entry)
        if entry is not None and entry.has_bases:
            return apply_entry(empty_record(self.point_id, self.year, month), entry)
        return None
