"""Record types held by the in-memory store.

Dates are ISO ``YYYY-MM-DD`` strings and month keys are ``YYYY-MM``
strings so that month matching stays a plain prefix comparison.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

INCOME = 'income'
EXPENSE = 'expense'
CATEGORY_KINDS = (INCOME, EXPENSE)


@dataclass
class Category:
    id: str
    name: str
    kind: str
    color: str
    cost_center: Optional[str] = None


@dataclass
class IncomeRecord:
    id: str
    date: str
    source: str
    amount: float
    category_id: str
    note: Optional[str] = None


@dataclass
class ExpenseRecord:
    id: str
    date: str
    description: str
    amount: float
    category_id: str
    payment_method: str
    installments: int
    due_date: str
    paid: bool = False
    note: Optional[str] = None
    card: Optional[str] = None


@dataclass
class PurchaseLineItem:
    id: str
    date: str
    merchant: str
    item: str
    quantity: float
    unit_price: float
    line_total: float
    category_id: str
    payment_method: str
    purchase_id: str
    receipt_url: Optional[str] = None


@dataclass
class MonthlyPlan:
    month: str
    planned_income: float = 0.0
    planned_expense: float = 0.0
    comment: Optional[str] = None


@dataclass(frozen=True)
class Allocation:
    """One month's share of an expense."""

    month: str
    amount: float
    card: Optional[str] = None


@dataclass
class PurchaseGroup:
    purchase_id: str
    items: List[PurchaseLineItem] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def merchant(self) -> str:
        return self.items[0].merchant if self.items else ''

    @property
    def date(self) -> str:
        return self.items[0].date if self.items else ''


def records_to_rows(records: List[Any]) -> List[Dict[str, Any]]:
    """Convert dataclass records into plain dictionaries for DataFrames."""
    return [asdict(record) for record in records]


DEFAULT_CATEGORIES = [
    Category(id='cat-salary', name='Salary', kind=INCOME, color='#0ea5e9'),
    Category(id='cat-freelance', name='Freelance', kind=INCOME, color='#8b5cf6'),
    Category(id='cat-refunds', name='Refunds', kind=INCOME, color='#14b8a6'),
    Category(id='cat-investments', name='Investments', kind=INCOME, color='#6366f1'),
    Category(id='cat-groceries', name='Groceries', kind=EXPENSE, color='#22c55e'),
    Category(id='cat-housing', name='Housing', kind=EXPENSE, color='#ef4444'),
    Category(id='cat-transport', name='Transport', kind=EXPENSE, color='#f59e0b'),
    Category(id='cat-leisure', name='Leisure', kind=EXPENSE, color='#3b82f6'),
]
