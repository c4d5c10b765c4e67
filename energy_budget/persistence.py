"""Saving a month's percentage deltas back to the forecast service.

After a successful save two overlay entries are written: the saved deltas
for the month itself, and the roll-forward of the just-saved record for
the same month of the next year, so the next year shows the new baseline
before the service recomputes it.  The second entry uses the stamp right
after the first one.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from .errors import PersistenceError, TransportError
from .forecast import MonthlyForecastRecord, validate_month
from .metering import RealPoint
from .overlay import LocalOverlayCache, SequenceClock
from .rollforward import project_from_prior
from .store import MonthlyForecastStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastDeltas:
    energy_price_pct: float = 0.0
    consumption_pct: float = 0.0
    ancillary_pct: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {name: float(value) for name, value in asdict(self).items()}


@dataclass(frozen=True)
class SaveOutcome:
    status: str
    point_key: str
    year: int
    month: int
    stamp: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "saved"


class PersistenceGateway:
    """Writes deltas to the service and seeds the overlay on success."""

    def __init__(
        self,
        client,
        store: MonthlyForecastStore,
        overlay: LocalOverlayCache,
        clock: SequenceClock,
    ):
        self.client = client
        self.store = store
        self.overlay = overlay
        self.clock = clock

    def save(
        self,
        point: RealPoint,
        year: int,
        month: int,
        deltas: ForecastDeltas,
        stamp: Optional[int] = None,
    ) -> SaveOutcome:
        """Save ``deltas`` for one month of a real metering point.

        Args:
            stamp: Overlay stamp of the edit being saved.  Defaults to a
                fresh pair reserved from the clock when the save starts,
                so edits made while the request runs stay newer.

        A month without base values has nothing to apply percentages to;
        it comes back as ``rejected`` and the service is not called.

        Raises:
            PersistenceError: If the month cannot be loaded or the service
                rejects the save.  The overlay is left untouched.
        """
        validate_month(month)
        if stamp is None:
            stamp = self.clock.tick(2)
        values = deltas.as_dict()

        try:
            current = self.store.resolve_month(point.point_id, year, month)
        except TransportError as exc:
            raise PersistenceError(
                f"Could not load {point.point_id} {year}/{month:02d} before saving: {exc}",
                status=exc.status,
                body=exc.body,
            ) from exc
        if not current.editable:
            logger.info("Rejected save of %s/%s/%s, no base values", point.point_id, year, month)
            return SaveOutcome(
                "rejected", point.key, year, month,
                message=f"{point.point_id} {year}/{month:02d} has no base values to adjust",
            )

        try:
            self.client.update_forecast(point.point_id, year, month, values)
        except TransportError as exc:
            logger.warning("Save of %s/%s/%s rejected: %s", point.point_id, year, month, exc)
            raise PersistenceError(
                f"Could not save {point.point_id} {year}/{month:02d}: {exc}",
                status=exc.status,
                body=exc.body,
            ) from exc

        self.overlay.put(point.key, year, month, values, stamp)
        logger.info("Saved %s/%s/%s %s", point.point_id, year, month, values)
        self._seed_next_year(current.with_values(**values), stamp + 1)
        return SaveOutcome("saved", point.key, year, month, stamp)

    def _seed_next_year(self, saved: MonthlyForecastRecord, stamp: int) -> None:
        projected = project_from_prior(saved, saved.year + 1)
        self.overlay.put(
            saved.point_id,
            saved.year + 1,
            saved.month,
            {
                "base_energy_cost": projected.base_energy_cost,
                "base_consumption": projected.base_consumption,
                "base_ancillary_cost": projected.base_ancillary_cost,
                "energy_price_pct": 0.0,
                "consumption_pct": 0.0,
                "ancillary_pct": 0.0,
            },
            stamp,
        )
