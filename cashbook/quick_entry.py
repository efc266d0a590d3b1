"""Quick entry: abbreviated record creation with best-effort sync.

Submitting a quick entry always happens in two steps.  The record is
committed to the local store first, then a copy is sent to the remote
backend.  A failed or unconfigured backend is reported back to the
caller but never undoes the local commit, and nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .backend import SupabaseBackend, TransactionInsert, to_utc_timestamp
from .config import DEFAULT_PAYMENT_METHOD, QUICK_ADD_NOTE
from .forms import (
    ExpenseForm,
    IncomeForm,
    PurchaseItemForm,
    ValidationError,
    to_iso_date,
    today_iso,
)
from .store import FinanceStore

logger = logging.getLogger(__name__)

QUICK_KINDS = ('income', 'expense', 'purchase')
FALLBACK_DESCRIPTIONS = {
    'income': 'Quick income',
    'expense': 'Quick expense',
    'purchase': 'Quick purchase',
}


@dataclass
class QuickEntry:
    kind: str = 'expense'
    date: Any = field(default_factory=today_iso)
    description: str = ''
    amount: Any = 0.0
    category_id: Optional[str] = None
    payment_method: str = DEFAULT_PAYMENT_METHOD


@dataclass
class QuickEntryResult:
    record: Any
    synced: bool
    title: str
    message: str


def _commit_locally(store: FinanceStore, entry: QuickEntry) -> Any:
    category_id = entry.category_id or ''
    if entry.kind == 'income':
        return store.add_income(IncomeForm(
            date=entry.date,
            source=entry.description,
            amount=entry.amount,
            category_id=category_id,
            note=QUICK_ADD_NOTE,
            category_optional=True,
        ))
    if entry.kind == 'expense':
        return store.add_expense(ExpenseForm(
            date=entry.date,
            description=entry.description,
            amount=entry.amount,
            category_id=category_id,
            payment_method=entry.payment_method or DEFAULT_PAYMENT_METHOD,
            installments=1,
            due_date=entry.date,
            paid=False,
            note=QUICK_ADD_NOTE,
            category_optional=True,
        ))
    description = entry.description or FALLBACK_DESCRIPTIONS['purchase']
    return store.add_purchase_item(PurchaseItemForm(
        date=entry.date,
        merchant=description,
        item=description,
        quantity=1,
        unit_price=entry.amount,
        line_total=entry.amount,
        category_id=category_id,
        payment_method=entry.payment_method or DEFAULT_PAYMENT_METHOD,
        category_optional=True,
    ))


def _validate(entry: QuickEntry) -> None:
    missing = []
    if entry.kind not in QUICK_KINDS:
        missing.append('kind')
    if not to_iso_date(entry.date):
        missing.append('date')
    try:
        amount = float(entry.amount)
    except (TypeError, ValueError):
        amount = 0.0
    if amount <= 0:
        missing.append('amount')
    if missing:
        raise ValidationError(missing)


def submit_quick_entry(
    store: FinanceStore,
    backend: Optional[SupabaseBackend],
    entry: QuickEntry,
) -> QuickEntryResult:
    """Commit a quick entry locally, then try to mirror it remotely.

    Raises:
        ValidationError: If date or amount is missing.  Nothing is stored.
    """
    _validate(entry)
    record = _commit_locally(store, entry)

    backend = backend or SupabaseBackend()
    try:
        backend.create_transaction(TransactionInsert(
            date=to_utc_timestamp(record.date),
            description=entry.description or FALLBACK_DESCRIPTIONS[entry.kind],
            amount=float(entry.amount),
            category_id=entry.category_id or None,
            payment_method=entry.payment_method or None,
            is_paid=entry.kind != 'expense',
            source='manual',
        ))
    except Exception:
        logger.exception("Quick %s %s saved locally but could not be synced", entry.kind, record.id)
        return QuickEntryResult(
            record=record,
            synced=False,
            title='Saved locally',
            message='Could not sync right now. Check the Supabase configuration.',
        )

    logger.info("Quick %s %s synced to backend", entry.kind, record.id)
    return QuickEntryResult(
        record=record,
        synced=True,
        title='Entry saved',
        message='Synced with Supabase.',
    )
