"""Session-local overlay of edited forecast fields.

Every edit on a month card and every successful save writes a partial
entry here.  When a series is rebuilt the overlay is laid on top of the
fetched records field by field, so the page keeps showing what the user
did even before the service reflects it.

Entries are ordered by stamps from a :class:`SequenceClock` rather than
wall-clock time.  A write whose stamp is older than the stored one is
ignored; equal stamps accept the incoming write.

The cache is not synchronized.  One instance belongs to one session and
all writes go through that session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .forecast import BASE_FIELDS, PCT_FIELDS, MonthlyForecastRecord, validate_month

logger = logging.getLogger(__name__)

OVERLAY_FIELDS = PCT_FIELDS + BASE_FIELDS


@dataclass(frozen=True)
class OverlayEntry:
    energy_price_pct: Optional[float] = None
    consumption_pct: Optional[float] = None
    ancillary_pct: Optional[float] = None
    base_energy_cost: Optional[float] = None
    base_consumption: Optional[float] = None
    base_ancillary_cost: Optional[float] = None
    stamp: int = 0

    def values(self) -> Dict[str, float]:
        """The fields this entry actually carries."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "stamp" and getattr(self, f.name) is not None
        }

    @property
    def has_bases(self) -> bool:
        return any(getattr(self, name) is not None for name in BASE_FIELDS)


class SequenceClock:
    """Monotonic source of overlay stamps."""

    def __init__(self, start: int = 0):
        self._last = start

    @property
    def last(self) -> int:
        return self._last

    def tick(self, count: int = 1) -> int:
        """Reserve ``count`` consecutive stamps and return the first one."""
        if count < 1:
            raise ValueError("count must be at least 1")
        first = self._last + 1
        self._last += count
        return first


class LocalOverlayCache:
    """Timestamp-ordered shadow store keyed by (entity, year, month)."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, int, int], OverlayEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def put(
        self,
        key: str,
        year: int,
        month: int,
        partial: Mapping[str, float],
        stamp: int,
    ) -> bool:
        """Merge ``partial`` into the entry unless the stored one is newer.

        Returns:
            True if the write was applied, False if it was older than the
            stored entry and therefore dropped.
        """
        validate_month(month)
        unknown = set(partial) - set(OVERLAY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown overlay fields: {sorted(unknown)}")

        slot = (key, year, month)
        current = self._entries.get(slot)
        if current is not None and stamp < current.stamp:
            logger.debug(
                "Dropped stale overlay write for %s/%s/%s (stamp %s < %s)",
                key, year, month, stamp, current.stamp,
            )
            return False

        values = {name: float(value) for name, value in partial.items() if value is not None}
        base = current or OverlayEntry()
        self._entries[slot] = replace(base, stamp=stamp, **values)
        logger.debug("Overlay %s/%s/%s <- %s at stamp %s", key, year, month, values, stamp)
        return True

    def get(self, key: str, year: int, month: int) -> Optional[OverlayEntry]:
        return self._entries.get((key, year, month))

    def apply_overlay(
        self,
        records: Iterable[MonthlyForecastRecord],
        key: str,
        year: int,
    ) -> List[MonthlyForecastRecord]:
        """Return copies of ``records`` with overlay fields taking precedence."""
        result: List[MonthlyForecastRecord] = []
        for record in records:
            entry = self.get(key, year, record.month)
            result.append(apply_entry(record, entry))
        return result


def apply_entry(
    record: MonthlyForecastRecord,
    entry: Optional[OverlayEntry],
) -> MonthlyForecastRecord:
    if entry is None:
        return record
    return record.with_values(**entry.values())
