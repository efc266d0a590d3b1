"""Monthly aggregation over the in-memory record store.

``FinanceAnalytics`` is rebuilt on every dashboard rerun and computes all
derived figures from scratch: monthly totals, the yearly income/expense
series, the per-category breakdown with its concentration alert, card
statements, purchase groups, due-date status and the plan-vs-actual
summary.  Expenses always contribute through their installment
allocations, never through their raw amount.

Months are matched lexically on the first seven characters of the ISO
date, so ``2024-05-31`` belongs to ``2024-05`` regardless of time zone.
"""

from __future__ import annotations

from dataclasses import fields
from datetime import date
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .allocation import allocations_frame, month_key
from .config import (
    CARD_METHOD_MARKER,
    CONCENTRATION_THRESHOLD,
    DEFAULT_CARD_LABEL,
    DUE_SOON_DAYS,
)
from .models import (
    EXPENSE,
    Category,
    ExpenseRecord,
    IncomeRecord,
    MonthlyPlan,
    PurchaseGroup,
    PurchaseLineItem,
    records_to_rows,
)
from .store import FinanceStore

OVERDUE = 'overdue'
DUE_SOON = 'due_soon'
NORMAL = 'normal'

BREAKDOWN_COLUMNS = ['category_id', 'name', 'color', 'amount']
STATEMENT_COLUMNS = ['card', 'month', 'amount', 'installments', 'description', 'note', 'expense_id']
PLAN_COLUMNS = [
    'month',
    'planned_income',
    'actual_income',
    'planned_expense',
    'actual_expense',
    'planned_balance',
    'actual_balance',
    'difference',
    'comment',
]


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _frame(records: List[Any], record_type: type) -> pd.DataFrame:
    columns = [f.name for f in fields(record_type)]
    return pd.DataFrame(records_to_rows(records), columns=columns)


def classify_due(due_dates: pd.Series, paid: pd.Series, today: Any = None) -> np.ndarray:
    """Vectorised due status for parallel due-date and paid columns."""
    today = _to_date(today) or date.today()
    days_left = (pd.to_datetime(due_dates, errors='coerce') - pd.Timestamp(today)).dt.days
    unpaid = ~paid.fillna(False).astype(bool)
    return np.select(
        [unpaid & (days_left < 0), unpaid & (days_left <= DUE_SOON_DAYS)],
        [OVERDUE, DUE_SOON],
        default=NORMAL,
    )


def due_status(expense: ExpenseRecord, today: Any = None) -> str:
    """Classify an expense as overdue, due soon or normal for display."""
    status = classify_due(
        pd.Series([expense.due_date], dtype=object),
        pd.Series([expense.paid]),
        today,
    )
    return str(status[0])


def concentration_alerts(breakdown: pd.DataFrame) -> List[str]:
    """Names of categories whose share of the total exceeds the threshold."""
    if breakdown.empty:
        return []
    total = breakdown['amount'].sum()
    if total <= 0:
        return []
    shares = breakdown['amount'] / total
    return breakdown.loc[shares > CONCENTRATION_THRESHOLD, 'name'].tolist()


def is_card_payment(payment_method: Optional[str]) -> bool:
    return CARD_METHOD_MARKER in (payment_method or '').lower()


class FinanceAnalytics:
    """Derived figures for one snapshot of a :class:`FinanceStore`."""

    def __init__(self, store: FinanceStore, today: Any = None):
        self.store = store
        self.today = _to_date(today) or date.today()
        self._prepare_data()

    def _prepare_data(self) -> None:
        """Build the record DataFrames used by every calculation."""
        self.categories = _frame(self.store.categories, Category)
        self.income = _frame(self.store.incomes, IncomeRecord)
        self.income['month'] = self.income['date'].astype(str).str[:7]
        self.income['amount'] = pd.to_numeric(self.income['amount'], errors='coerce').fillna(0.0)
        self.expenses = _frame(self.store.expenses, ExpenseRecord)
        self.purchases = _frame(self.store.purchases, PurchaseLineItem)
        self.allocations = allocations_frame(self.store.expenses)

    @property
    def current_month(self) -> str:
        return month_key(self.today)

    def category_name(self, category_id: Optional[str]) -> Optional[str]:
        category = self.store.get_category(category_id)
        return category.name if category else None

    # ------------------------------------------------------------------
    # Monthly totals
    # ------------------------------------------------------------------

    def monthly_income(self, month: Optional[str] = None) -> float:
        month = month or self.current_month
        return float(self.income.loc[self.income['month'] == month, 'amount'].sum())

    def monthly_expenses(self, month: Optional[str] = None) -> float:
        month = month or self.current_month
        allocations = self.allocations
        return float(allocations.loc[allocations['month'] == month, 'amount'].sum())

    def calculate_monthly_summary(self, month: Optional[str] = None) -> Dict[str, float]:
        """Income, allocated expenses and balance for a month."""
        income = self.monthly_income(month)
        expenses = self.monthly_expenses(month)
        return {
            'income': income,
            'expenses': expenses,
            'balance': income - expenses,
        }

    def year_series(self, year: Optional[int] = None) -> pd.DataFrame:
        """Income and expenses for each month of a calendar year."""
        year = year or self.today.year
        keys = [f"{year}-{m:02d}" for m in range(1, 13)]
        income = self.income.groupby('month')['amount'].sum()
        expenses = self.allocations.groupby('month')['amount'].sum()
        series = pd.DataFrame({
            'Income': income.reindex(keys, fill_value=0.0).astype(float),
            'Expenses': expenses.reindex(keys, fill_value=0.0).astype(float),
        })
        series.index.name = 'Month'
        return series

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def category_breakdown(self, month: Optional[str] = None) -> pd.DataFrame:
        """Allocated spend per expense category, zero rows dropped."""
        month = month or self.current_month
        allocations = self.allocations
        in_month = allocations[allocations['month'] == month]
        totals = in_month.groupby('category_id')['amount'].sum()

        expense_categories = self.categories[self.categories['kind'] == EXPENSE]
        breakdown = pd.DataFrame({
            'category_id': expense_categories['id'],
            'name': expense_categories['name'],
            'color': expense_categories['color'],
            'amount': expense_categories['id'].map(totals).fillna(0.0).astype(float),
        }, columns=BREAKDOWN_COLUMNS)
        return breakdown[breakdown['amount'] > 0].reset_index(drop=True)

    def concentration_alerts(self, breakdown: Optional[pd.DataFrame] = None) -> List[str]:
        if breakdown is None:
            breakdown = self.category_breakdown()
        return concentration_alerts(breakdown)

    # ------------------------------------------------------------------
    # Card statements
    # ------------------------------------------------------------------

    def card_statements(self) -> pd.DataFrame:
        """One row per card expense per allocated month.

        Rows are not summed: two expenses on the same card in the same
        month produce two rows.
        """
        allocations = self.allocations
        if allocations.empty:
            return pd.DataFrame(columns=STATEMENT_COLUMNS)
        mask = allocations['payment_method'].map(is_card_payment).astype(bool)
        statements = allocations[mask].copy()
        statements['card'] = statements['card'].fillna('').replace('', DEFAULT_CARD_LABEL)
        return statements[STATEMENT_COLUMNS].reset_index(drop=True)

    def card_statement_totals(self) -> pd.DataFrame:
        """Statement rows summed per card and month."""
        statements = self.card_statements()
        if statements.empty:
            return pd.DataFrame(columns=['card', 'month', 'amount', 'lines'])
        totals = statements.groupby(['card', 'month']).agg(
            amount=('amount', 'sum'),
            lines=('amount', 'count'),
        )
        return totals.reset_index().sort_values(['card', 'month']).reset_index(drop=True)

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------

    def purchase_groups(self) -> List[PurchaseGroup]:
        """Line items grouped by purchase id in first-seen order."""
        groups: Dict[str, PurchaseGroup] = {}
        for item in self.store.purchases:
            group = groups.setdefault(item.purchase_id, PurchaseGroup(purchase_id=item.purchase_id))
            group.items.append(item)
        return list(groups.values())

    # ------------------------------------------------------------------
    # Expense table
    # ------------------------------------------------------------------

    def expenses_with_status(self) -> pd.DataFrame:
        """Expense rows with resolved category names and due status."""
        table = self.expenses.copy()
        if table.empty:
            table['category'] = pd.Series(dtype=object)
            table['status'] = pd.Series(dtype=object)
            return table
        table['category'] = table['category_id'].map(self.category_name)
        table['status'] = classify_due(table['due_date'], table['paid'], self.today)
        return table

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_vs_actual(self) -> pd.DataFrame:
        """Planned against actual figures for every saved monthly plan."""
        plans: List[MonthlyPlan] = sorted(self.store.plans, key=lambda p: p.month)
        if not plans:
            return pd.DataFrame(columns=PLAN_COLUMNS)
        rows = []
        for plan in plans:
            actual_income = self.monthly_income(plan.month)
            actual_expense = self.monthly_expenses(plan.month)
            planned_balance = plan.planned_income - plan.planned_expense
            actual_balance = actual_income - actual_expense
            rows.append({
                'month': plan.month,
                'planned_income': plan.planned_income,
                'actual_income': actual_income,
                'planned_expense': plan.planned_expense,
                'actual_expense': actual_expense,
                'planned_balance': planned_balance,
                'actual_balance': actual_balance,
                'difference': actual_balance - planned_balance,
                'comment': plan.comment or '',
            })
        summary = pd.DataFrame(rows, columns=PLAN_COLUMNS)
        summary['behind_plan'] = summary['difference'] < 0
        return summary
