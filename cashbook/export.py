"""Spreadsheet export of the whole session."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict

import pandas as pd

from .analytics import FinanceAnalytics
from .store import FinanceStore

logger = logging.getLogger(__name__)

SHEET_NAMES = ['Income', 'Expenses', 'Purchases', 'Statements', 'Categories', 'Plan']


def _categories_sheet(analytics: FinanceAnalytics) -> pd.DataFrame:
    categories = analytics.categories
    return pd.DataFrame({
        'Category': categories['name'],
        'Kind': categories['kind'],
        'CostCenter': categories['cost_center'].fillna(''),
        'Color': categories['color'],
    })


def _plan_sheet(analytics: FinanceAnalytics) -> pd.DataFrame:
    summary = analytics.plan_vs_actual()
    return pd.DataFrame({
        'Month': summary['month'],
        'PlannedIncome': summary['planned_income'],
        'ActualIncome': summary['actual_income'],
        'PlannedExpense': summary['planned_expense'],
        'ActualExpense': summary['actual_expense'],
        'Comments': summary['comment'],
    })


def build_sheets(store: FinanceStore, today: Any = None) -> Dict[str, pd.DataFrame]:
    """Assemble one DataFrame per workbook sheet."""
    analytics = FinanceAnalytics(store, today=today)
    return {
        'Income': analytics.income.drop(columns=['month']),
        'Expenses': analytics.expenses,
        'Purchases': analytics.purchases,
        'Statements': analytics.card_statements(),
        'Categories': _categories_sheet(analytics),
        'Plan': _plan_sheet(analytics),
    }


def build_workbook(store: FinanceStore, today: Any = None) -> bytes:
    """Render the session as an ``.xlsx`` workbook and return its bytes."""
    buffer = BytesIO()
    sheets = build_sheets(store, today=today)
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for name in SHEET_NAMES:
            sheets[name].to_excel(writer, sheet_name=name, index=False)
    logger.info(
        "Exported workbook with %s",
        ', '.join(f"{name}={len(sheets[name])}" for name in SHEET_NAMES),
    )
    return buffer.getvalue()
