"""Tests for quick entry commit-then-sync behaviour."""

from __future__ import annotations

import pytest

from cashbook.backend import BackendUnavailableError, SupabaseBackend
from cashbook.config import BackendConfig
from cashbook.forms import ValidationError
from cashbook.models import ExpenseRecord, IncomeRecord, PurchaseLineItem
from cashbook.quick_entry import QuickEntry, submit_quick_entry
from cashbook.store import FinanceStore


class RecordingBackend:
    def __init__(self):
        self.inserted = []

    def create_transaction(self, transaction):
        self.inserted.append(transaction.to_payload())
        return {'id': 'remote-1'}


class FailingBackend:
    def __init__(self):
        self.calls = 0

    def create_transaction(self, transaction):
        self.calls += 1
        raise ConnectionError("network down")


def test_expense_is_committed_and_synced() -> None:
    store = FinanceStore()
    backend = RecordingBackend()
    result = submit_quick_entry(store, backend, QuickEntry(
        kind='expense', date='2024-05-03', description='Coffee', amount=12.5,
        category_id='cat-leisure', payment_method='PIX',
    ))

    assert result.synced
    assert result.title == 'Entry saved'
    assert isinstance(result.record, ExpenseRecord)
    assert store.expenses == [result.record]
    assert result.record.installments == 1
    assert result.record.due_date == '2024-05-03'
    assert result.record.paid is False
    assert result.record.note == 'Quick Add'

    payload = backend.inserted[0]
    assert payload['date'] == '2024-05-03T00:00:00+00:00'
    assert payload['description'] == 'Coffee'
    assert payload['amount'] == 12.5
    assert payload['category_id'] == 'cat-leisure'
    assert payload['payment_method'] == 'PIX'
    assert payload['is_paid'] is False
    assert payload['source'] == 'manual'


def test_failed_sync_keeps_local_record() -> None:
    store = FinanceStore()
    backend = FailingBackend()
    result = submit_quick_entry(store, backend, QuickEntry(
        kind='income', date='2024-05-03', description='Gift', amount=100,
    ))

    assert not result.synced
    assert result.title == 'Saved locally'
    assert 'Supabase' in result.message
    assert isinstance(result.record, IncomeRecord)
    assert store.incomes == [result.record]
    assert result.record.category_id == ''
    # No retry
    assert backend.calls == 1


def test_unconfigured_backend_is_reported_as_not_synced() -> None:
    store = FinanceStore()
    backend = SupabaseBackend(BackendConfig())
    result = submit_quick_entry(store, backend, QuickEntry(
        kind='expense', date='2024-05-03', amount=20,
    ))
    assert not result.synced
    assert len(store.expenses) == 1


def test_missing_backend_falls_back_to_empty_config(monkeypatch) -> None:
    def refuse(self, transaction):
        raise BackendUnavailableError("not configured")

    monkeypatch.setattr(SupabaseBackend, 'create_transaction', refuse)
    store = FinanceStore()
    result = submit_quick_entry(store, None, QuickEntry(kind='expense', date='2024-05-03', amount=20))
    assert not result.synced
    assert len(store.expenses) == 1


@pytest.mark.parametrize('entry, missing', [
    (QuickEntry(kind='expense', date='2024-05-03', amount=0), ['amount']),
    (QuickEntry(kind='expense', date='', amount=10), ['date']),
    (QuickEntry(kind='transfer', date='2024-05-03', amount='abc'), ['kind', 'amount']),
])
def test_validation_failure_stores_and_sends_nothing(entry, missing) -> None:
    store = FinanceStore()
    backend = RecordingBackend()
    with pytest.raises(ValidationError) as excinfo:
        submit_quick_entry(store, backend, entry)
    assert excinfo.value.missing == missing
    assert store.incomes == [] and store.expenses == [] and store.purchases == []
    assert backend.inserted == []


def test_purchase_becomes_single_line_item() -> None:
    store = FinanceStore()
    backend = RecordingBackend()
    result = submit_quick_entry(store, backend, QuickEntry(
        kind='purchase', date='2024-05-04', amount=42.0, category_id='cat-groceries',
    ))

    item = result.record
    assert isinstance(item, PurchaseLineItem)
    assert store.purchases == [item]
    assert item.merchant == 'Quick purchase'
    assert item.quantity == 1
    assert item.line_total == 42.0
    assert backend.inserted[0]['description'] == 'Quick purchase'
    assert backend.inserted[0]['is_paid'] is True


def test_income_without_description_sends_fallback() -> None:
    backend = RecordingBackend()
    submit_quick_entry(FinanceStore(), backend, QuickEntry(kind='income', date='2024-05-03', amount=5))
    assert backend.inserted[0]['description'] == 'Quick income'
    assert backend.inserted[0]['category_id'] is None


def test_negative_amount_is_rejected_before_commit() -> None:
    store = FinanceStore()
    backend = RecordingBackend()
    with pytest.raises(ValidationError) as excinfo:
        submit_quick_entry(store, backend, QuickEntry(kind='expense', date='2024-05-03', amount=-99))
    assert excinfo.value.missing == ['amount']
    assert store.expenses == []
    assert backend.inserted == []
