"""Tabular views and exports of a forecast series."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Sequence

import pandas as pd

from .config import ensure_export_dir
from .forecast import MonthlyForecastRecord, compute_derived

SERIES_COLUMNS = [
    'Month',
    'Month Name',
    'Energy Price (EUR/kWh)',
    'Consumption (kWh)',
    'Ancillary Cost (EUR)',
    'Total Cost (EUR)',
    'Energy Price %',
    'Consumption %',
    'Ancillary %',
    'Editable',
    'Source',
]


def format_euro(amount: float) -> str:
    """Format an amount the Italian way, e.g. ``1.234,56 €``.

    Example:
        >>> format_euro(1234.5)
        '1.234,50 €'
    """
    formatted = f"{abs(amount):,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    sign = '-' if amount < 0 else ''
    return f"{sign}{formatted} €"


def series_dataframe(series: Sequence[MonthlyForecastRecord]) -> pd.DataFrame:
    """One row per month with the derived forecast values."""
    rows = []
    for record in series:
        derived = compute_derived(record)
        rows.append({
            'Month': record.month,
            'Month Name': record.month_name,
            'Energy Price (EUR/kWh)': derived.unit_energy_price,
            'Consumption (kWh)': derived.projected_consumption,
            'Ancillary Cost (EUR)': derived.projected_ancillary_cost,
            'Total Cost (EUR)': derived.total_cost,
            'Energy Price %': record.energy_price_pct,
            'Consumption %': record.consumption_pct,
            'Ancillary %': record.ancillary_pct,
            'Editable': record.editable,
            'Source': record.source,
        })
    return pd.DataFrame(rows, columns=SERIES_COLUMNS)


def yearly_totals(series: Sequence[MonthlyForecastRecord]) -> Dict[str, float]:
    """Sum consumption, ancillary and total cost over the editable months."""
    df = series_dataframe(series)
    df = df[df['Editable']]
    return {
        'consumption': float(df['Consumption (kWh)'].sum()),
        'ancillary_cost': float(df['Ancillary Cost (EUR)'].sum()),
        'total_cost': float(df['Total Cost (EUR)'].sum()),
    }


def export_filename(point_key: str, year: int, suffix: str = 'xlsx') -> str:
    return f"budget_{point_key}_{year}.{suffix}"


def write_export(content: bytes, point_key: str, year: int, directory: Optional[Path] = None) -> Path:
    """Write a workbook downloaded from the service to the export directory."""
    target_dir = directory or ensure_export_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / export_filename(point_key, year)
    target.write_bytes(content)
    return target


def save_series_csv(
    series: Sequence[MonthlyForecastRecord],
    point_key: str,
    year: int,
    directory: Optional[Path] = None,
) -> Path:
    target_dir = directory or ensure_export_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / export_filename(point_key, year, 'csv')
    series_dataframe(series).to_csv(target, index=False)
    return target
