"""Configuration management for the energy budget engine.

This module centralizes all configuration values including the forecast
service location, the selectable years and export paths, with
environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

# Base project root - assumes this file is in energy_budget/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Forecast service
API_BASE_URL = os.getenv("ENERGY_BUDGET_API_URL", "http://localhost:8081").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("ENERGY_BUDGET_TIMEOUT", "10"))

# Year selector
FIRST_YEAR = int(os.getenv("ENERGY_BUDGET_FIRST_YEAR", "2023"))
YEAR_COUNT = int(os.getenv("ENERGY_BUDGET_YEAR_COUNT", "8"))

# Synthetic all-sites entity, as known to the service and the UI
AGGREGATE_KEY = "ALL"
AGGREGATE_LABEL = os.getenv("ENERGY_BUDGET_AGGREGATE_LABEL", "Tutte le sedi")

# Data directories
DATA_DIR = Path(os.getenv("ENERGY_BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORT_DIR = Path(os.getenv("ENERGY_BUDGET_EXPORT_DIR", DATA_DIR / "exports"))


def available_years() -> List[int]:
    """Years offered by the year selector, oldest first."""
    return [FIRST_YEAR + offset for offset in range(YEAR_COUNT)]


def ensure_export_dir() -> Path:
    """Create the export directory if it doesn't exist and return it."""
    EXPORT_DIR.mkdir(parents=True, exist_ok=True)
    return EXPORT_DIR
