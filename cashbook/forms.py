"""Structured form drafts for every record the dashboard can create.

Each form holds the raw values entered by the user.  ``to_record`` checks
the required fields and produces the stored record,
raising :class:`ValidationError` before anything is created.  Quick entry
sets ``category_optional`` because its category picker may be left empty.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Optional

import pandas as pd

from .allocation import normalize_installments
from .config import DEFAULT_CATEGORY_COLOR, DEFAULT_PAYMENT_METHOD
from .models import (
    CATEGORY_KINDS,
    EXPENSE,
    Category,
    ExpenseRecord,
    IncomeRecord,
    MonthlyPlan,
    PurchaseLineItem,
)


class ValidationError(ValueError):
    """Raised when a form is missing required fields."""

    def __init__(self, missing: List[str], message: Optional[str] = None):
        self.missing = list(missing)
        super().__init__(message or f"Missing required fields: {', '.join(self.missing)}")


def new_id() -> str:
    return str(uuid.uuid4())


def today_iso() -> str:
    return date.today().isoformat()


def to_iso_date(value: Any) -> Optional[str]:
    """Normalise dates, timestamps and date strings to ``YYYY-MM-DD``."""
    if value is None or value == "":
        return None
    if hasattr(value, 'to_pydatetime'):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    ts = pd.to_datetime(str(value), errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date().isoformat()


def to_month_key(value: Any) -> Optional[str]:
    """Normalise a month picker value or ``YYYY-MM`` string to a month key."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and len(value.strip()) == 7:
        value = f"{value.strip()}-01"
    iso = to_iso_date(value)
    return iso[:7] if iso else None


def _number(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if pd.isna(number):
        return default
    return number


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ''


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _require(checks: List[tuple]) -> None:
    missing = [name for name, ok in checks if not ok]
    if missing:
        raise ValidationError(missing)


@dataclass
class CategoryForm:
    name: str = ''
    kind: str = EXPENSE
    cost_center: str = ''
    color: str = ''

    def to_record(self, record_id: Optional[str] = None) -> Category:
        _require([('name', _text(self.name))])
        kind = self.kind if self.kind in CATEGORY_KINDS else EXPENSE
        return Category(
            id=record_id or new_id(),
            name=_text(self.name),
            kind=kind,
            cost_center=_optional_text(self.cost_center),
            color=_text(self.color) or DEFAULT_CATEGORY_COLOR,
        )


@dataclass
class IncomeForm:
    date: Any = field(default_factory=today_iso)
    source: str = ''
    amount: Any = 0.0
    category_id: Optional[str] = None
    note: str = ''
    category_optional: bool = False

    def to_record(self, record_id: Optional[str] = None) -> IncomeRecord:
        iso = to_iso_date(self.date)
        amount = _number(self.amount)
        _require([
            ('date', iso),
            ('amount', amount > 0),
            ('category', self.category_id or self.category_optional),
        ])
        return IncomeRecord(
            id=record_id or new_id(),
            date=iso,
            source=_text(self.source),
            amount=amount,
            category_id=self.category_id or '',
            note=_optional_text(self.note),
        )


@dataclass
class ExpenseForm:
    date: Any = field(default_factory=today_iso)
    description: str = ''
    amount: Any = 0.0
    category_id: Optional[str] = None
    payment_method: str = DEFAULT_PAYMENT_METHOD
    installments: Any = 1
    due_date: Any = field(default_factory=today_iso)
    paid: bool = False
    note: str = ''
    card: str = ''
    category_optional: bool = False

    def to_record(self, record_id: Optional[str] = None) -> ExpenseRecord:
        iso = to_iso_date(self.date)
        amount = _number(self.amount)
        _require([
            ('date', iso),
            ('amount', amount > 0),
            ('category', self.category_id or self.category_optional),
        ])
        return ExpenseRecord(
            id=record_id or new_id(),
            date=iso,
            description=_text(self.description),
            amount=amount,
            category_id=self.category_id or '',
            payment_method=_text(self.payment_method) or DEFAULT_PAYMENT_METHOD,
            installments=normalize_installments(self.installments),
            due_date=to_iso_date(self.due_date) or iso,
            paid=bool(self.paid),
            note=_optional_text(self.note),
            card=_optional_text(self.card),
        )


@dataclass
class PurchaseItemForm:
    date: Any = field(default_factory=today_iso)
    merchant: str = ''
    item: str = ''
    quantity: Any = 1
    unit_price: Any = 0.0
    line_total: Any = 0.0
    category_id: Optional[str] = None
    payment_method: str = DEFAULT_PAYMENT_METHOD
    receipt_url: str = ''
    purchase_id: str = ''
    category_optional: bool = False

    def to_record(self, record_id: Optional[str] = None) -> PurchaseLineItem:
        iso = to_iso_date(self.date)
        _require([
            ('date', iso),
            ('merchant', _text(self.merchant)),
            ('item', _text(self.item)),
            ('category', self.category_id or self.category_optional),
        ])
        quantity = _number(self.quantity) or 1
        unit_price = _number(self.unit_price)
        # An entered line total wins even when it disagrees with quantity x price
        line_total = _number(self.line_total) or unit_price * quantity
        return PurchaseLineItem(
            id=record_id or new_id(),
            date=iso,
            merchant=_text(self.merchant),
            item=_text(self.item),
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total,
            category_id=self.category_id or '',
            payment_method=_text(self.payment_method) or DEFAULT_PAYMENT_METHOD,
            receipt_url=_optional_text(self.receipt_url),
            purchase_id=_text(self.purchase_id) or new_id(),
        )


@dataclass
class PlanForm:
    month: Any = None
    planned_income: Any = 0.0
    planned_expense: Any = 0.0
    comment: str = ''

    def to_record(self) -> MonthlyPlan:
        key = to_month_key(self.month)
        _require([('month', key)])
        return MonthlyPlan(
            month=key,
            planned_income=_number(self.planned_income),
            planned_expense=_number(self.planned_expense),
            comment=_optional_text(self.comment),
        )
