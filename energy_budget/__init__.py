"""Top-level package for the Energy Budget forecast engine.

The engine turns the monthly forecast records held by the remote budget
service into complete 12-month series for a metering point (or for all
sites at once), keeping the user's unsaved and just-saved edits visible
on top of the fetched data.  The primary modules are:

* ``forecast`` – the record type and the derived price/consumption/cost values
* ``rollforward`` – projection of a missing month from the prior year
* ``overlay`` – the session-local shadow store for edited fields
* ``store`` – assembly of a yearly series for one metering point
* ``aggregation`` – the synthetic "all sites" series
* ``persistence`` – saving a month's percentage deltas
* ``session`` – the facade used by the Streamlit page

To run the dashboard from the command line you can execute:

```bash
python run_dashboard.py
```
"""

from .errors import (  # noqa: F401
    ForecastEngineError,
    InvalidSaveTarget,
    PersistenceError,
    TransportError,
    ValidationError,
)
from .forecast import DerivedForecast, MonthlyForecastRecord, compute_derived  # noqa: F401
from .metering import AGGREGATE, AggregatePoint, MeteringPointInfo, RealPoint  # noqa: F401
from .session import BudgetSession  # noqa: F401


__all__ = [
    "AGGREGATE",
    "AggregatePoint",
    "BudgetSession",
    "DerivedForecast",
    "ForecastEngineError",
    "InvalidSaveTarget",
    "MeteringPointInfo",
    "MonthlyForecastRecord",
    "PersistenceError",
    "RealPoint",
    "TransportError",
    "ValidationError",
    "compute_derived",
]
