"""Metering point identities.

A metering point (POD) is either a real site connection or the synthetic
"all sites" entity whose series is aggregated from the real ones.  The two
are distinct types so that only a :class:`RealPoint` can be handed to the
persistence gateway.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .config import AGGREGATE_KEY, AGGREGATE_LABEL


@dataclass(frozen=True)
class RealPoint:
    """A real metering point identified by its POD code."""

    point_id: str

    def __post_init__(self) -> None:
        if not self.point_id or not self.point_id.strip():
            raise ValueError("Metering point id cannot be empty")
        if self.point_id.strip().upper() == AGGREGATE_KEY:
            raise ValueError(f"'{self.point_id}' is reserved for the aggregate entity")

    @property
    def key(self) -> str:
        return self.point_id


@dataclass(frozen=True)
class AggregatePoint:
    """The synthetic entity combining every real metering point."""

    @property
    def key(self) -> str:
        return AGGREGATE_KEY


AGGREGATE = AggregatePoint()

MeteringPoint = Union[RealPoint, AggregatePoint]


@dataclass(frozen=True)
class MeteringPointInfo:
    """A selectable metering point with its optional site label."""

    point: MeteringPoint
    site: Optional[str] = None

    @property
    def label(self) -> str:
        if isinstance(self.point, AggregatePoint):
            return self.site or AGGREGATE_LABEL
        if self.site:
            return f"{self.site} ({self.point.point_id})"
        return self.point.point_id


def with_aggregate(points: Iterable[MeteringPointInfo]) -> List[MeteringPointInfo]:
    """Prepend the aggregate entity to a list of real metering points."""
    real = [info for info in points if isinstance(info.point, RealPoint)]
    return [MeteringPointInfo(AGGREGATE, AGGREGATE_LABEL)] + real
