"""Installment allocation helpers.

An expense paid in ``n`` installments is spread over ``n`` consecutive
calendar months starting at the month of its due date, each month
receiving an equal share of the total.  Every aggregate in
:mod:`cashbook.analytics` and every statement row in the export is built
from these allocations rather than from the raw expense amount.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List

import pandas as pd

from .models import Allocation, ExpenseRecord

ALLOCATION_COLUMNS = [
    'expense_id',
    'category_id',
    'description',
    'month',
    'amount',
    'payment_method',
    'card',
    'installments',
    'note',
]


def month_key(value: Any) -> str:
    """Return the ``YYYY-MM`` prefix of an ISO date or timestamp."""
    if hasattr(value, 'isoformat'):
        value = value.isoformat()
    return str(value)[:7]


def normalize_installments(value: Any) -> int:
    """Coerce an installment count to an integer of at least one."""
    try:
        count = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(count) or math.isinf(count):
        return 1
    return max(1, int(count))


def shift_month(iso_date: str, months: int) -> str:
    """Add calendar months to an ISO date.

    The day is clamped to the end of the target month, so January 31
    plus one month is the last day of February.
    """
    shifted = pd.Timestamp(iso_date) + pd.DateOffset(months=months)
    return shifted.strftime('%Y-%m-%d')


def allocate_installments(expense: ExpenseRecord) -> List[Allocation]:
    """Split an expense into one allocation per installment."""
    count = normalize_installments(expense.installments)
    share = float(expense.amount) / count
    return [
        Allocation(
            month=month_key(shift_month(expense.due_date, step)),
            amount=share,
            card=expense.card,
        )
        for step in range(count)
    ]


def allocations_frame(expenses: Iterable[ExpenseRecord]) -> pd.DataFrame:
    """Flatten the allocations of every expense into a single DataFrame."""
    rows = []
    for expense in expenses:
        count = normalize_installments(expense.installments)
        for allocation in allocate_installments(expense):
            rows.append({
                'expense_id': expense.id,
                'category_id': expense.category_id,
                'description': expense.description,
                'month': allocation.month,
                'amount': allocation.amount,
                'payment_method': expense.payment_method or '',
                'card': allocation.card,
                'installments': count,
                'note': expense.note,
            })
    if not rows:
        return pd.DataFrame(columns=ALLOCATION_COLUMNS).astype({'amount': float})
    return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)
