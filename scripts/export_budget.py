#!/usr/bin/env python3
"""Print or save a year's budget forecast for one metering point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from energy_budget.client import ForecastServiceClient
from energy_budget.config import AGGREGATE_KEY, API_BASE_URL
from energy_budget.errors import TransportError
from energy_budget.metering import AGGREGATE, RealPoint
from energy_budget.reporting import format_euro, save_series_csv, series_dataframe, yearly_totals
from energy_budget.session import BudgetSession


def main(pod: str, year: int, base_url: str, output: Path | None = None) -> int:
    session = BudgetSession(ForecastServiceClient(base_url))
    point = AGGREGATE if pod.upper() == AGGREGATE_KEY else RealPoint(pod)
    try:
        series = session.get_yearly_series(point, year)
    except TransportError as exc:
        print(f"Could not load forecasts for {pod}/{year}: {exc}")
        return 1

    print(series_dataframe(series).to_string(index=False))
    totals = yearly_totals(series)
    print(f"\nTotal cost: {format_euro(totals['total_cost'])}")

    if output is not None:
        target = save_series_csv(series, point.key, year, output)
        print(f"Saved {target}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show the monthly budget forecast of a POD.')
    parser.add_argument('pod', help=f"POD code, or {AGGREGATE_KEY} for all sites")
    parser.add_argument('year', type=int, help='Forecast year')
    parser.add_argument('--base-url', default=API_BASE_URL, help='Forecast service URL')
    parser.add_argument('--output', type=Path, default=None, help='Directory for a CSV copy')
    parser.add_argument('--verbose', action='store_true', help='Log cache and fetch activity')
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    raise SystemExit(main(args.pod, args.year, args.base_url, args.output))
