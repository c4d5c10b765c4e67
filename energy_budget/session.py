"""Facade used by the budget page.

A :class:`BudgetSession` owns one overlay cache and one sequence clock and
wires the store, the aggregator and the persistence gateway around them.
It also tracks the selected (metering point, year) so that a series
fetched for a selection the user has already left is discarded.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, List, Optional, Tuple

from .aggregation import Aggregator
from .client import ForecastServiceClient
from .errors import InvalidSaveTarget, PersistenceError
from .forecast import PCT_FIELDS, MonthlyForecastRecord, validate_month
from .metering import AggregatePoint, MeteringPoint, MeteringPointInfo, RealPoint, with_aggregate
from .overlay import LocalOverlayCache, SequenceClock
from .persistence import ForecastDeltas, PersistenceGateway, SaveOutcome
from .store import MonthlyForecastStore

logger = logging.getLogger(__name__)


class BudgetSession:
    """One user's view of the budget forecasts."""

    def __init__(
        self,
        client: Optional[ForecastServiceClient] = None,
        today: Callable[[], date] = date.today,
    ):
        self.client = client or ForecastServiceClient()
        self.overlay = LocalOverlayCache()
        self.clock = SequenceClock()
        self.store = MonthlyForecastStore(self.client, self.overlay, today)
        self.aggregator = Aggregator(self.store, self.overlay)
        self.gateway = PersistenceGateway(self.client, self.store, self.overlay, self.clock)
        self.selection: Optional[Tuple[MeteringPoint, int]] = None
        self.rows: List[MonthlyForecastRecord] = []
        self._points: Optional[List[MeteringPointInfo]] = None

    def metering_points(self, refresh: bool = False) -> List[MeteringPointInfo]:
        """Selectable metering points, the aggregate entity first."""
        if refresh or self._points is None:
            self._points = with_aggregate(self.client.list_metering_points())
        return self._points

    def member_ids(self) -> List[str]:
        return [
            info.point.point_id
            for info in self.metering_points()
            if isinstance(info.point, RealPoint)
        ]

    def get_yearly_series(self, point: MeteringPoint, year: int) -> List[MonthlyForecastRecord]:
        if isinstance(point, AggregatePoint):
            return self.aggregator.build_series(self.member_ids(), year)
        return self.store.get_yearly_series(point.point_id, year)

    def select(self, point: MeteringPoint, year: int) -> None:
        self.selection = (point, year)

    def load(self) -> Optional[List[MonthlyForecastRecord]]:
        """Fetch the series of the current selection.

        Returns:
            The series, or None if the selection changed while fetching, in
            which case the result is dropped and ``rows`` is unchanged.
        """
        if self.selection is None:
            self.rows = []
            return self.rows
        target = self.selection
        series = self.get_yearly_series(*target)
        if self.selection != target:
            logger.info("Discarding series for %s/%s, selection changed", target[0].key, target[1])
            return None
        self.rows = series
        return series

    @property
    def has_data(self) -> bool:
        return any(record.editable for record in self.rows)

    def resolve_month(self, point: MeteringPoint, year: int, month: int) -> MonthlyForecastRecord:
        validate_month(month)
        if isinstance(point, AggregatePoint):
            return self.get_yearly_series(point, year)[month - 1]
        return self.store.resolve_month(point.point_id, year, month)

    def edit_month(self, point: MeteringPoint, year: int, month: int, **values: float) -> bool:
        """Record an unsaved edit in the overlay.

        Returns:
            False if the edit was refused: percentages on a month without
            base values, or an edit older than the stored one.
        """
        if set(values) & set(PCT_FIELDS) and not self.resolve_month(point, year, month).editable:
            logger.info("Refused edit of %s/%s/%s, no base values", point.key, year, month)
            return False
        return self.overlay.put(point.key, year, month, values, self.clock.tick())

    def save_month(
        self,
        point: MeteringPoint,
        year: int,
        month: int,
        deltas: ForecastDeltas,
    ) -> SaveOutcome:
        """Save a month, reporting failures as an outcome instead of raising."""
        if isinstance(point, AggregatePoint):
            error = InvalidSaveTarget("The all-sites view cannot be saved")
            logger.info("Rejected save on aggregate %s/%s", year, month)
            return SaveOutcome("rejected", point.key, year, month, message=str(error))
        try:
            return self.gateway.save(point, year, month, deltas)
        except PersistenceError as exc:
            return SaveOutcome("failed", point.key, year, month, message=str(exc))

    def export_workbook(self, point: MeteringPoint, year: int) -> bytes:
        return self.client.export_workbook(point.key, year)
