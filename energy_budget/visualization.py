"""Plotly charts for a yearly forecast series.

Both functions accept the DataFrame produced by
:func:`energy_budget.reporting.series_dataframe` and return a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_monthly_cost_chart(df: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Stacked bars of energy and ancillary cost per month.

    Parameters
    ----------
    df : pandas.DataFrame
        Output of ``series_dataframe``.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Bar chart, or an empty figure if no month is editable.
    """
    if df.empty or not df['Editable'].any():
        return _empty_figure()
    data = df.copy()
    data['Energy Cost (EUR)'] = data['Total Cost (EUR)'] - data['Ancillary Cost (EUR)']
    long = data.melt(
        id_vars=['Month Name'],
        value_vars=['Energy Cost (EUR)', 'Ancillary Cost (EUR)'],
        var_name='Component',
        value_name='EUR',
    )
    fig = px.bar(long, x='Month Name', y='EUR', color='Component', barmode='stack')
    fig.update_layout(
        title=title or "Forecast cost by month",
        xaxis_title="Month",
        yaxis_title="EUR",
    )
    return fig


def create_consumption_chart(df: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Line chart of projected consumption per month."""
    if df.empty or not df['Editable'].any():
        return _empty_figure()
    fig = px.line(df, x='Month Name', y='Consumption (kWh)', markers=True)
    fig.update_layout(
        title=title or "Projected consumption",
        xaxis_title="Month",
        yaxis_title="kWh",
    )
    return fig
