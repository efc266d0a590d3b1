"""Main entry point for the Streamlit app.

Run with ``streamlit run cashbook/Home.py`` or ``python run_dashboard.py``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from cashbook.analytics import FinanceAnalytics  # noqa: E402
from cashbook.config import configure_logging  # noqa: E402
from cashbook.ui import FinanceUI, get_backend, get_store  # noqa: E402


def main() -> None:
    """Render the dashboard for the current session."""
    configure_logging()
    ui = FinanceUI(configure_page=True)
    store = get_store()
    backend = get_backend()

    ui.render_quick_entry(store, backend)

    # Recompute everything from the store on every rerun
    analytics = FinanceAnalytics(store)

    ui.render_header(store)
    ui.render_notice()
    ui.render_metrics(analytics)
    ui.render_charts(analytics)

    tabs = st.tabs([
        "💵 Income",
        "🧾 Expenses",
        "🛒 Purchases",
        "💳 Statements",
        "🏷️ Categories",
        "🗓️ Planning",
        "☁️ Remote",
        "ℹ️ About",
    ])
    with tabs[0]:
        ui.render_income_tab(store, analytics)
    with tabs[1]:
        ui.render_expenses_tab(store, analytics)
    with tabs[2]:
        ui.render_purchases_tab(store, analytics)
    with tabs[3]:
        ui.render_statements_tab(analytics)
    with tabs[4]:
        ui.render_categories_tab(store, analytics)
    with tabs[5]:
        ui.render_planning_tab(store, analytics)
    with tabs[6]:
        ui.render_remote_tab(store, backend, analytics)
    with tabs[7]:
        ui.render_about_tab()


if __name__ == "__main__":
    main()
