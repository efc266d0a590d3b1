"""Tests for the Supabase backend wrapper using a fake client."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

import cashbook.backend as backend_module
from cashbook.backend import (
    BackendUnavailableError,
    SupabaseBackend,
    TransactionInsert,
    month_range,
    to_utc_timestamp,
)
from cashbook.config import BackendConfig


class FakeQuery:
    def __init__(self, table, rows):
        self.table_name = table
        self.rows = rows
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return record

    def execute(self):
        return SimpleNamespace(data=self.rows)


class FakeClient:
    def __init__(self, rows=None):
        self.rows = rows if rows is not None else []
        self.queries = []

    def table(self, name):
        query = FakeQuery(name, self.rows)
        self.queries.append(query)
        return query


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient(rows=[{'id': 'row-1'}])
    created = []

    def fake_create_client(url, key):
        created.append((url, key))
        return client

    monkeypatch.setattr(backend_module, 'create_client', fake_create_client)
    client.created = created
    return client


def _backend():
    return SupabaseBackend(BackendConfig(url='https://example.supabase.co', key='anon'))


def test_unconfigured_backend_raises() -> None:
    backend = SupabaseBackend(BackendConfig(url='https://example.supabase.co'))
    assert not backend.is_configured
    with pytest.raises(BackendUnavailableError):
        backend.client()


def test_client_is_created_once(fake_client) -> None:
    backend = _backend()
    assert backend.client() is backend.client()
    assert fake_client.created == [('https://example.supabase.co', 'anon')]


def test_create_transaction_inserts_payload(fake_client) -> None:
    row = _backend().create_transaction(TransactionInsert(
        date='2024-05-03T00:00:00+00:00', description='Coffee', amount=12, category_id='',
    ))
    assert row == {'id': 'row-1'}
    query = fake_client.queries[0]
    assert query.table_name == 'transactions'
    name, args, _ = query.calls[0]
    assert name == 'insert'
    assert args[0]['amount'] == 12.0
    assert args[0]['category_id'] is None
    assert args[0]['source'] == 'manual'


def test_create_transaction_returns_empty_dict_without_rows(monkeypatch) -> None:
    monkeypatch.setattr(backend_module, 'create_client', lambda url, key: FakeClient(rows=None))
    assert _backend().create_transaction(TransactionInsert('2024-05-03', 'x', 1.0)) == {}


def test_list_transactions_by_month_filters_and_orders(fake_client) -> None:
    rows = _backend().list_transactions_by_month('2024-12')
    assert rows == [{'id': 'row-1'}]
    calls = [(name, args, kwargs) for name, args, kwargs in fake_client.queries[0].calls]
    assert calls[0] == ('select', ('*',), {})
    assert calls[1] == ('gte', ('date', '2024-12-01T00:00:00+00:00'), {})
    assert calls[2] == ('lt', ('date', '2025-01-01T00:00:00+00:00'), {})
    assert calls[3] == ('order', ('date',), {'desc': True})


def test_category_calls_use_categories_table(fake_client) -> None:
    backend = _backend()
    backend.list_categories()
    backend.create_category('Pets', 'expense', color='', cost_center='Home')
    assert [q.table_name for q in fake_client.queries] == ['categories', 'categories']
    name, args, _ = fake_client.queries[1].calls[0]
    assert name == 'insert'
    assert args[0] == {'name': 'Pets', 'type': 'expense', 'color': None, 'cost_center': 'Home'}


def test_month_range_and_timestamps() -> None:
    assert month_range('2024-02') == ('2024-02-01T00:00:00+00:00', '2024-03-01T00:00:00+00:00')
    assert to_utc_timestamp('2024-05-03') == '2024-05-03T00:00:00+00:00'


def test_backend_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv('SUPABASE_URL', 'https://example.supabase.co')
    monkeypatch.delenv('SUPABASE_ANON_KEY', raising=False)
    config = BackendConfig.from_env()
    assert config.url == 'https://example.supabase.co'
    assert config.key is None
    assert not config.is_complete


def test_transaction_source_must_be_known() -> None:
    assert TransactionInsert('2024-05-03', 'x', 1.0, source='ocr').to_payload()['source'] == 'ocr'
    assert TransactionInsert('2024-05-03', 'x', 1.0, source=None).to_payload()['source'] is None
    with pytest.raises(ValueError):
        TransactionInsert('2024-05-03', 'x', 1.0, source='import').to_payload()
