"""Synthetic "all sites" series built from the real metering points.

For each month the members with an editable record form the contributing
set.  When at least one of them has data for the requested year itself,
the bases are summed and the percentages are averaged: energy price and
consumption percentages weighted by base consumption, the ancillary
percentage weighted by base ancillary cost.  When every contributor is a
roll-forward projection, the projected bases are summed and the
percentages start at zero.

Edits on the aggregate live only in the aggregate's own overlay entries;
they override the computed fields and are never spread to the members.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .config import AGGREGATE_KEY
from .errors import TransportError
from .forecast import MonthlyForecastRecord, empty_record
from .overlay import LocalOverlayCache, apply_entry
from .rollforward import roll_forward
from .store import MONTHS, MonthlyForecastStore

logger = logging.getLogger(__name__)

YEAR_BASED_SOURCES = frozenset({"authoritative", "overlay"})


def weighted_pct(pairs: Iterable[tuple]) -> float:
    """Weighted mean of ``(pct, weight)`` pairs, 0 when the weights sum to 0."""
    numerator = 0.0
    total_weight = 0.0
    for pct, weight in pairs:
        numerator += pct * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return numerator / total_weight


def combine_month(
    records: Sequence[MonthlyForecastRecord],
    year: int,
    month: int,
) -> Optional[MonthlyForecastRecord]:
    """Combine the members' records of one month.

    Returns:
        The aggregate record, or None if no member has an editable record.
    """
    contributors = [record for record in records if record.editable]
    if not contributors:
        return None

    totals = {
        "base_energy_cost": sum(r.base_energy_cost for r in contributors),
        "base_consumption": sum(r.base_consumption for r in contributors),
        "base_ancillary_cost": sum(r.base_ancillary_cost for r in contributors),
    }
    aggregate = MonthlyForecastRecord(AGGREGATE_KEY, year, month, source="aggregate", **totals)

    if not any(r.source in YEAR_BASED_SOURCES for r in contributors):
        return aggregate

    return aggregate.with_values(
        energy_price_pct=weighted_pct(
            (r.energy_price_pct, r.base_consumption) for r in contributors
        ),
        consumption_pct=weighted_pct(
            (r.consumption_pct, r.base_consumption) for r in contributors
        ),
        ancillary_pct=weighted_pct(
            (r.ancillary_pct, r.base_ancillary_cost) for r in contributors
        ),
    )


class Aggregator:
    """Builds the aggregate entity's yearly series."""

    def __init__(
        self,
        store: MonthlyForecastStore,
        overlay: LocalOverlayCache,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.overlay = overlay
        self.today = today or store.today

    def member_series(
        self,
        member_ids: Iterable[str],
        year: int,
    ) -> Dict[str, List[MonthlyForecastRecord]]:
        """Fetch every member's series, skipping members that fail."""
        series: Dict[str, List[MonthlyForecastRecord]] = {}
        for point_id in member_ids:
            if point_id == AGGREGATE_KEY:
                continue
            try:
                series[point_id] = self.store.get_yearly_series(point_id, year)
            except TransportError as exc:
                logger.warning("Leaving %s out of the %s aggregate: %s", point_id, year, exc)
        return series

    def build_series(self, member_ids: Iterable[str], year: int) -> List[MonthlyForecastRecord]:
        members = self.member_series(member_ids, year)
        return [
            self.aggregate_month(
                [series[month - 1] for series in members.values()], year, month
            )
            for month in MONTHS
        ]

    def aggregate_month(
        self,
        records: Sequence[MonthlyForecastRecord],
        year: int,
        month: int,
    ) -> MonthlyForecastRecord:
        entry = self.overlay.get(AGGREGATE_KEY, year, month)
        combined = combine_month(records, year, month)
        if combined is not None:
            return apply_entry(combined, entry)
        return apply_entry(self._own_history(year, month), entry)

    def _own_history(self, year: int, month: int) -> MonthlyForecastRecord:
        """Fallback for a month no member contributes to."""
        entry = self.overlay.get(AGGREGATE_KEY, year, month)
        if entry is not None and entry.has_bases:
            return apply_entry(empty_record(AGGREGATE_KEY, year, month), entry).with_values(
                source="overlay"
            )
        prior_entry = self.overlay.get(AGGREGATE_KEY, year - 1, month)
        prior = None
        if prior_entry is not None and prior_entry.has_bases:
            prior = apply_entry(empty_record(AGGREGATE_KEY, year - 1, month), prior_entry)
        return roll_forward(prior, AGGREGATE_KEY, year, month, self.today())
