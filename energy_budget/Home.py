"""Streamlit page for the monthly energy budget forecasts.

Run it with::

    streamlit run energy_budget/Home.py

or through ``run_dashboard.py`` at the project root.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, MutableMapping, Optional

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from energy_budget.config import available_years
from energy_budget.errors import TransportError
from energy_budget.forecast import MonthlyForecastRecord, clamp_pct, compute_derived
from energy_budget.metering import MeteringPoint, MeteringPointInfo
from energy_budget.persistence import ForecastDeltas
from energy_budget.reporting import export_filename, format_euro, series_dataframe
from energy_budget.session import BudgetSession
from energy_budget import visualization as viz

SLIDERS = [
    ('energy_price_pct', "Prezzo Energia (%)"),
    ('consumption_pct', "Consumi (%)"),
    ('ancillary_pct', "Oneri (%)"),
]


def _get_session() -> BudgetSession:
    if 'budget_session' not in st.session_state:
        st.session_state['budget_session'] = BudgetSession()
    return st.session_state['budget_session']


def _select_point(points: List[MeteringPointInfo]) -> MeteringPointInfo:
    labels = [info.label for info in points]
    index = st.sidebar.selectbox(
        "Seleziona POD", range(len(points)), format_func=lambda i: labels[i]
    )
    return points[index]


def _default_year_index(years: List[int], today: date) -> int:
    """Index of the current year in ``years``, or the middle one."""
    if today.year in years:
        return years.index(today.year)
    return len(years) // 2


def _cached_export(
    session: BudgetSession,
    point: MeteringPoint,
    year: int,
    state: MutableMapping,
    requested: bool,
) -> Optional[bytes]:
    """Workbook of (point, year), fetched only once it has been requested."""
    cache = state.setdefault('budget_exports', {})
    slot = (point.key, year)
    if requested and slot not in cache:
        cache[slot] = session.export_workbook(point, year)
    return cache.get(slot)


def _render_card(session: BudgetSession, record: MonthlyForecastRecord, info: MeteringPointInfo) -> None:
    derived = compute_derived(record)
    with st.container(border=True):
        st.subheader(record.month_name)
        left, right = st.columns([1, 2])
        with left:
            st.metric("Prezzo Energia", f"{derived.unit_energy_price:.4f} €/kWh", f"{record.energy_price_pct:+.1f}%")
            st.metric("Consumi", f"{derived.projected_consumption:,.2f} kWh", f"{record.consumption_pct:+.1f}%")
            st.metric("Oneri", format_euro(derived.projected_ancillary_cost), f"{record.ancillary_pct:+.1f}%")
            st.markdown(f"**Spesa Totale:** {format_euro(derived.total_cost)}")
        with right:
            edited = {}
            for field, label in SLIDERS:
                current = int(round(clamp_pct(getattr(record, field))))
                value = st.slider(
                    label,
                    min_value=-100,
                    max_value=100,
                    value=current,
                    step=1,
                    disabled=not record.editable,
                    key=f"{info.point.key}-{record.year}-{record.month}-{field}",
                )
                if value != current:
                    edited[field] = float(value)
            if edited:
                session.edit_month(info.point, record.year, record.month, **edited)
                st.rerun()
            if st.button(
                "Salva",
                key=f"save-{info.point.key}-{record.year}-{record.month}",
                disabled=not record.editable,
            ):
                outcome = session.save_month(
                    info.point,
                    record.year,
                    record.month,
                    ForecastDeltas(record.energy_price_pct, record.consumption_pct, record.ancillary_pct),
                )
                if outcome.ok:
                    st.session_state.pop('budget_exports', None)
                    st.success("Salvato")
                else:
                    st.error(outcome.message)


def main() -> None:
    """Entry point for the Streamlit app."""
    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Budget Energia", layout="wide")
    st.title("Budget Energia")
    st.markdown("Pianifica, monitora e ottimizza il budget energetico della tua azienda")

    session = _get_session()
    try:
        points = session.metering_points()
    except TransportError as exc:
        st.error(f"Impossibile caricare i POD: {exc}")
        return

    info = _select_point(points)
    years = available_years()
    year = st.sidebar.selectbox("Anno", years, index=_default_year_index(years, date.today()))

    session.select(info.point, year)
    try:
        series = session.load()
    except TransportError as exc:
        st.error(f"Impossibile caricare le previsioni: {exc}")
        return
    if series is None:
        st.stop()
    if not session.has_data:
        st.sidebar.warning("Nessuna bolletta trovata")

    df = series_dataframe(series)
    st.plotly_chart(viz.create_monthly_cost_chart(df), use_container_width=True)

    if session.has_data:
        requested = st.sidebar.button("Prepara Excel", key=f"export-{info.point.key}-{year}")
        try:
            workbook = _cached_export(session, info.point, year, st.session_state, requested)
        except TransportError as exc:
            st.sidebar.caption(f"Export non disponibile: {exc}")
            workbook = None
        if workbook is not None:
            st.sidebar.download_button(
                "Scarica Excel",
                data=workbook,
                file_name=export_filename(info.point.key, year),
            )

    columns = st.columns(3)
    for i, record in enumerate(series):
        with columns[i % 3]:
            _render_card(session, record, info)

    st.caption(
        "Usa gli slider per impostare le variazioni percentuali rispetto ai dati base mensili. "
        "La spesa totale viene ricalcolata in tempo reale."
    )


if __name__ == "__main__":
    main()
