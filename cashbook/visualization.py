"""Plotly visualisation helpers for the cashbook dashboard.

Each function accepts a DataFrame produced by
:class:`cashbook.analytics.FinanceAnalytics` and returns a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.  Empty inputs produce an empty figure titled
"No data to display" instead of raising.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

INCOME_COLOR = "#0ea5e9"
EXPENSE_COLOR = "#f97316"


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_category_pie_chart(breakdown: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Generate a donut chart of spend per category.

    Parameters
    ----------
    breakdown : pandas.DataFrame
        Output of ``FinanceAnalytics.category_breakdown`` with ``name``,
        ``color`` and ``amount`` columns.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Donut chart coloured with each category's display colour.
    """
    if breakdown.empty:
        return _empty_figure()
    fig = px.pie(
        breakdown,
        names="name",
        values="amount",
        color="name",
        color_discrete_map=dict(zip(breakdown["name"], breakdown["color"])),
        hole=0.6,
    )
    fig.update_layout(title=title or "Expenses by category", legend_title_text="Category")
    return fig


def create_income_expense_bar_chart(series: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bar chart of monthly income against expenses.

    Parameters
    ----------
    series : pandas.DataFrame
        Output of ``FinanceAnalytics.year_series``: indexed by month key
        with ``Income`` and ``Expenses`` columns.
    title : str, optional
        Chart title.
    """
    if series.empty:
        return _empty_figure()
    df = series.reset_index()
    df["Month"] = df["Month"].str[5:]
    long_df = df.melt(id_vars="Month", value_vars=["Income", "Expenses"], var_name="Flow", value_name="Amount")
    fig = px.bar(
        long_df,
        x="Month",
        y="Amount",
        color="Flow",
        barmode="group",
        color_discrete_map={"Income": INCOME_COLOR, "Expenses": EXPENSE_COLOR},
    )
    fig.update_layout(
        title=title or "Income vs expenses",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig
