"""Streamlit UI components for the cashbook dashboard.

The UI owns no business rules.  Every form builds a draft from
:mod:`cashbook.forms`, hands it to the :class:`FinanceStore` kept in
``st.session_state`` and reruns the script so that every figure is
recomputed from the updated store.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List

import pandas as pd
import streamlit as st
from streamlit.errors import StreamlitAPIException

from .analytics import DUE_SOON, OVERDUE, FinanceAnalytics
from .backend import SupabaseBackend
from .config import DEFAULT_PAYMENT_METHOD, EXPORT_FILENAME, PAYMENT_METHODS, BackendConfig
from .export import build_workbook
from .formatting import escape_currency_for_markdown, format_currency, format_status
from .forms import (
    CategoryForm,
    ExpenseForm,
    IncomeForm,
    PlanForm,
    PurchaseItemForm,
    ValidationError,
)
from .models import EXPENSE, INCOME, Category
from .quick_entry import QUICK_KINDS, QuickEntry, submit_quick_entry
from .store import FinanceStore
from .visualization import create_category_pie_chart, create_income_expense_bar_chart

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
STATUS_COLORS = {
    OVERDUE: 'background-color: rgba(239, 68, 68, 0.15)',
    DUE_SOON: 'background-color: rgba(245, 158, 11, 0.15)',
}
QUICK_KIND_LABELS = {'income': 'Income', 'expense': 'Expense', 'purchase': 'Purchase'}


def get_store() -> FinanceStore:
    """Return the session's store, creating it on first run."""
    if 'store' not in st.session_state:
        st.session_state.store = FinanceStore()
    return st.session_state.store


def get_backend() -> SupabaseBackend:
    if 'backend' not in st.session_state:
        st.session_state.backend = SupabaseBackend(BackendConfig.from_env())
    return st.session_state.backend


def set_notice(kind: str, title: str, message: str = '') -> None:
    """Queue a notice to be shown after the next rerun."""
    st.session_state.notice = {'kind': kind, 'title': title, 'message': message}


def _rerun() -> None:
    if hasattr(st, 'rerun'):
        st.rerun()
    else:  # pragma: no cover - older Streamlit
        st.experimental_rerun()


def _category_options(categories: List[Category]) -> Dict[str, str]:
    return {c.id: c.name for c in categories}


def _plan_defaults(store: FinanceStore, month: str) -> Dict[str, object]:
    """Initial plan form values: the saved plan for ``month`` if any."""
    plan = store.get_plan(month)
    if plan is None:
        return {'planned_income': 0.0, 'planned_expense': 0.0, 'comment': ''}
    return {
        'planned_income': float(plan.planned_income),
        'planned_expense': float(plan.planned_expense),
        'comment': plan.comment or '',
    }


def _highlight_due(row: pd.Series) -> List[str]:
    style = STATUS_COLORS.get(row.get('status'), '')
    return [style] * len(row)


class FinanceUI:
    """UI components for the dashboard page."""
    _PAGE_CONFIGURED = False

    def __init__(self, *, configure_page: bool = False):
        if configure_page:
            self.setup_page_config()

    def setup_page_config(self) -> None:
        if FinanceUI._PAGE_CONFIGURED:
            return
        try:
            st.set_page_config(
                page_title="Cashbook",
                page_icon="💰",
                layout="wide",
                initial_sidebar_state="expanded",
            )
        except StreamlitAPIException:
            pass
        finally:
            FinanceUI._PAGE_CONFIGURED = True

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    def _submit(self, action: Callable[[], object], success: str) -> None:
        """Run a store mutation and rerun, or show what is missing."""
        try:
            action()
        except ValidationError as exc:
            st.warning(f"Fill in the required fields: {', '.join(exc.missing)}")
            return
        set_notice('success', success)
        _rerun()

    def render_notice(self) -> None:
        notice = st.session_state.pop('notice', None)
        if not notice:
            return
        text = f"**{notice['title']}**"
        if notice.get('message'):
            text += f" {notice['message']}"
        if notice['kind'] == 'success':
            st.success(text)
        else:
            st.warning(text)

    def render_header(self, store: FinanceStore) -> None:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.title("💰 Cashbook")
            st.markdown("Monthly income, expenses, installments and card statements in one sheet.")
        with col2:
            st.download_button(
                "📥 Export to Excel",
                data=build_workbook(store),
                file_name=EXPORT_FILENAME,
                mime=XLSX_MIME,
                use_container_width=True,
            )

    def render_metrics(self, analytics: FinanceAnalytics) -> None:
        summary = analytics.calculate_monthly_summary()
        col1, col2, col3 = st.columns(3)
        col1.metric("Income (month)", format_currency(summary['income']))
        col2.metric("Expenses (month)", format_currency(summary['expenses']))
        col3.metric(
            "Balance (month)",
            format_currency(summary['balance']),
            delta="Negative" if summary['balance'] < 0 else None,
            delta_color="inverse",
        )

    def render_charts(self, analytics: FinanceAnalytics) -> None:
        col1, col2 = st.columns(2)
        with col1:
            breakdown = analytics.category_breakdown()
            st.plotly_chart(
                create_category_pie_chart(breakdown, "Expenses by category (month)"),
                use_container_width=True,
            )
            alerts = analytics.concentration_alerts(breakdown)
            if alerts:
                st.error(f"High spending in {', '.join(alerts)}")
        with col2:
            st.plotly_chart(
                create_income_expense_bar_chart(analytics.year_series(), "Income vs expenses (year)"),
                use_container_width=True,
            )

    # ------------------------------------------------------------------
    # Quick entry
    # ------------------------------------------------------------------

    def render_quick_entry(self, store: FinanceStore, backend: SupabaseBackend) -> None:
        st.sidebar.subheader("⚡ Quick entry")
        if not backend.is_configured:
            st.sidebar.warning(
                "Supabase is not configured. Entries are kept for this session only. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY to sync."
            )
        kind = st.sidebar.radio(
            "Type",
            options=list(QUICK_KINDS),
            format_func=QUICK_KIND_LABELS.get,
            horizontal=True,
            key="quick_kind",
        )
        categories = store.categories_of_kind(INCOME if kind == 'income' else EXPENSE)
        options = _category_options(categories)
        with st.sidebar.form("quick_entry_form", clear_on_submit=True):
            entry_date = st.date_input("Date", value=date.today())
            description = st.text_input("Source" if kind == 'income' else "Description")
            amount = st.number_input("Amount", min_value=0.0, step=0.01)
            category_id = st.selectbox(
                "Category",
                options=list(options),
                format_func=options.get,
                index=None,
                placeholder="Select",
            )
            payment_method = DEFAULT_PAYMENT_METHOD
            if kind != 'income':
                payment_method = st.selectbox(
                    "Payment method",
                    options=PAYMENT_METHODS,
                    index=PAYMENT_METHODS.index(DEFAULT_PAYMENT_METHOD),
                )
            submitted = st.form_submit_button("Save")

        if not submitted:
            return
        entry = QuickEntry(
            kind=kind,
            date=entry_date,
            description=description,
            amount=amount,
            category_id=category_id,
            payment_method=payment_method,
        )
        try:
            result = submit_quick_entry(store, backend, entry)
        except ValidationError as exc:
            st.sidebar.warning(f"Fill in the required fields: {', '.join(exc.missing)}")
            return
        set_notice('success' if result.synced else 'warning', result.title, result.message)
        _rerun()

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    def render_income_tab(self, store: FinanceStore, analytics: FinanceAnalytics) -> None:
        st.subheader("Log income")
        options = _category_options(store.categories_of_kind(INCOME))
        with st.form("income_form", clear_on_submit=True):
            cols = st.columns(5)
            income_date = cols[0].date_input("Date", value=date.today())
            source = cols[1].text_input("Source")
            amount = cols[2].number_input("Amount", min_value=0.0, step=0.01)
            category_id = cols[3].selectbox(
                "Category", options=list(options), format_func=options.get, index=None, placeholder="Select"
            )
            note = cols[4].text_input("Notes")
            submitted = st.form_submit_button("Add")
        if submitted:
            self._submit(
                lambda: store.add_income(IncomeForm(
                    date=income_date, source=source, amount=amount, category_id=category_id, note=note,
                )),
                "Income added",
            )

        table = analytics.income.drop(columns=['month']).copy()
        if table.empty:
            st.info("No income logged yet.")
            return
        table['category'] = table['category_id'].map(analytics.category_name)
        st.dataframe(
            table[['date', 'source', 'amount', 'category', 'note']]
            .style.format({'amount': format_currency}),
            use_container_width=True,
            hide_index=True,
        )

    def render_expenses_tab(self, store: FinanceStore, analytics: FinanceAnalytics) -> None:
        st.subheader("Log expense")
        options = _category_options(store.categories_of_kind(EXPENSE))
        with st.form("expense_form", clear_on_submit=True):
            row1 = st.columns(4)
            expense_date = row1[0].date_input("Date", value=date.today())
            description = row1[1].text_input("Description")
            amount = row1[2].number_input("Total amount", min_value=0.0, step=0.01)
            category_id = row1[3].selectbox(
                "Category", options=list(options), format_func=options.get, index=None, placeholder="Select"
            )
            row2 = st.columns(4)
            payment_method = row2[0].selectbox("Payment method", options=PAYMENT_METHODS)
            installments = row2[1].number_input("Installments", min_value=1, step=1, value=1)
            due_date = row2[2].date_input("Due date", value=date.today())
            card = row2[3].text_input("Card (optional)")
            row3 = st.columns([1, 3])
            paid = row3[0].checkbox("Paid")
            note = row3[1].text_input("Notes")
            submitted = st.form_submit_button("Add")
        if submitted:
            self._submit(
                lambda: store.add_expense(ExpenseForm(
                    date=expense_date,
                    description=description,
                    amount=amount,
                    category_id=category_id,
                    payment_method=payment_method,
                    installments=installments,
                    due_date=due_date,
                    paid=paid,
                    note=note,
                    card=card,
                )),
                "Expense added",
            )

        table = analytics.expenses_with_status()
        if table.empty:
            st.info("No expenses logged yet.")
            return
        table['payment'] = [
            f"{method} ({card})" if card else method
            for method, card in zip(table['payment_method'], table['card'])
        ]
        table['alert'] = table['status'].map(format_status)
        columns = [
            'date', 'description', 'amount', 'category', 'payment',
            'installments', 'due_date', 'paid', 'note', 'alert', 'status',
        ]
        st.dataframe(
            table[columns]
            .style.apply(_highlight_due, axis=1)
            .format({'amount': format_currency}),
            use_container_width=True,
            hide_index=True,
            column_config={'status': None},
        )

    def render_purchases_tab(self, store: FinanceStore, analytics: FinanceAnalytics) -> None:
        st.subheader("Add purchase item")
        options = _category_options(store.categories_of_kind(EXPENSE))
        with st.form("purchase_form", clear_on_submit=True):
            row1 = st.columns(4)
            purchase_date = row1[0].date_input("Date", value=date.today())
            merchant = row1[1].text_input("Merchant")
            item = row1[2].text_input("Item")
            category_id = row1[3].selectbox(
                "Category", options=list(options), format_func=options.get, index=None, placeholder="Select"
            )
            row2 = st.columns(4)
            quantity = row2[0].number_input("Quantity", min_value=1.0, step=1.0, value=1.0)
            unit_price = row2[1].number_input("Unit price", min_value=0.0, step=0.01)
            line_total = row2[2].number_input(
                "Line total", min_value=0.0, step=0.01, help="Leave at 0 to use quantity x unit price"
            )
            payment_method = row2[3].selectbox("Payment method", options=PAYMENT_METHODS)
            row3 = st.columns(2)
            receipt_url = row3[0].text_input("Receipt URL")
            purchase_id = row3[1].text_input("Purchase ID (optional)", help="Reuse an ID to group items")
            submitted = st.form_submit_button("Add")
        if submitted:
            self._submit(
                lambda: store.add_purchase_item(PurchaseItemForm(
                    date=purchase_date,
                    merchant=merchant,
                    item=item,
                    quantity=quantity,
                    unit_price=unit_price,
                    line_total=line_total,
                    category_id=category_id,
                    payment_method=payment_method,
                    receipt_url=receipt_url,
                    purchase_id=purchase_id,
                )),
                "Item added",
            )

        groups = analytics.purchase_groups()
        if not groups:
            st.info("No purchases logged yet.")
            return
        st.subheader("Grouped purchases")
        for group in groups:
            # Expander labels render markdown
            label = f"{group.date} · {group.merchant} · {escape_currency_for_markdown(group.total)}"
            with st.expander(label):
                st.caption(f"Purchase ID: {group.purchase_id}")
                items = pd.DataFrame([{
                    'item': i.item,
                    'quantity': i.quantity,
                    'unit_price': i.unit_price,
                    'line_total': i.line_total,
                    'category': analytics.category_name(i.category_id),
                    'payment': i.payment_method,
                    'receipt': i.receipt_url,
                } for i in group.items])
                st.dataframe(
                    items.style.format({'unit_price': format_currency, 'line_total': format_currency}),
                    use_container_width=True,
                    hide_index=True,
                    column_config={'receipt': st.column_config.LinkColumn("Receipt", display_text="Open")},
                )

    def render_statements_tab(self, analytics: FinanceAnalytics) -> None:
        st.subheader("Card statements (derived)")
        statements = analytics.card_statements()
        if statements.empty:
            st.info("No card expenses yet.")
            return
        st.dataframe(
            statements[['card', 'month', 'amount', 'installments', 'description', 'note']]
            .style.format({'amount': format_currency}),
            use_container_width=True,
            hide_index=True,
        )
        with st.expander("Totals per card and month"):
            st.dataframe(
                analytics.card_statement_totals().style.format({'amount': format_currency}),
                use_container_width=True,
                hide_index=True,
            )

    def render_categories_tab(self, store: FinanceStore, analytics: FinanceAnalytics) -> None:
        st.subheader("Categories and cost centers")
        table = analytics.categories[['name', 'kind', 'cost_center', 'color']]
        st.dataframe(
            table.style.apply(
                lambda row: ['', '', '', f"background-color: {row['color']}"], axis=1
            ),
            use_container_width=True,
            hide_index=True,
        )
        with st.form("category_form", clear_on_submit=True):
            cols = st.columns(4)
            name = cols[0].text_input("Name")
            kind = cols[1].selectbox("Kind", options=[EXPENSE, INCOME], format_func=str.capitalize)
            cost_center = cols[2].text_input("Cost center (optional)")
            color = cols[3].color_picker("Color", value="#22c55e")
            submitted = st.form_submit_button("Add category")
        if submitted:
            self._submit(
                lambda: store.add_category(CategoryForm(
                    name=name, kind=kind, cost_center=cost_center, color=color,
                )),
                "Category added",
            )

    def render_planning_tab(self, store: FinanceStore, analytics: FinanceAnalytics) -> None:
        st.subheader("Monthly plan")
        defaults = _plan_defaults(store, analytics.current_month)
        with st.form("plan_form"):
            cols = st.columns(4)
            month = cols[0].text_input("Month (YYYY-MM)", value=analytics.current_month)
            planned_income = cols[1].number_input(
                "Planned income", min_value=0.0, step=0.01, value=defaults['planned_income']
            )
            planned_expense = cols[2].number_input(
                "Planned expense", min_value=0.0, step=0.01, value=defaults['planned_expense']
            )
            comment = cols[3].text_input("Comments", value=defaults['comment'])
            submitted = st.form_submit_button("Save")
        if submitted:
            self._submit(
                lambda: store.save_plan(PlanForm(
                    month=month,
                    planned_income=planned_income,
                    planned_expense=planned_expense,
                    comment=comment,
                )),
                "Plan saved",
            )

        summary = analytics.plan_vs_actual()
        if summary.empty:
            st.info("No plans saved yet.")
            return
        money = [
            'planned_income', 'actual_income', 'planned_expense', 'actual_expense',
            'planned_balance', 'actual_balance', 'difference',
        ]
        st.dataframe(
            summary.style
            .apply(
                lambda row: [STATUS_COLORS[OVERDUE] if row['behind_plan'] else ''] * len(row),
                axis=1,
            )
            .format({column: format_currency for column in money}),
            use_container_width=True,
            hide_index=True,
            column_config={'behind_plan': None},
        )

    def render_remote_tab(self, store: FinanceStore, backend: SupabaseBackend, analytics: FinanceAnalytics) -> None:
        st.subheader("Remote backend")
        if not backend.is_configured:
            st.info("Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY to enable sync.")
            return
        col1, col2 = st.columns([1, 3])
        month = col1.text_input("Month (YYYY-MM)", value=analytics.current_month, key="remote_month")
        if col1.button("Load transactions"):
            try:
                rows = backend.list_transactions_by_month(month)
            except Exception as exc:
                logger.exception("Could not list remote transactions for %s", month)
                st.error(f"Could not load remote transactions: {exc}")
            else:
                col2.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
        if col1.button("Import categories"):
            try:
                added = store.merge_remote_categories(backend.list_categories())
            except Exception as exc:
                logger.exception("Could not list remote categories")
                st.error(f"Could not load remote categories: {exc}")
            else:
                set_notice('success', f"Imported {len(added)} categories")
                _rerun()

    def render_about_tab(self) -> None:
        st.subheader("About this sheet")
        st.markdown(
            "Entries live in this browser session. Quick entries are also sent to Supabase "
            "when it is configured; a failed sync keeps the local copy. Installment expenses "
            "are spread evenly over consecutive months starting at the due date, and card "
            "statements are derived from expenses paid with a card."
        )
