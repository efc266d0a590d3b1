"""Tests for the in-memory store and its form drafts."""

from __future__ import annotations

from datetime import date

import pytest

from cashbook.config import DEFAULT_CATEGORY_COLOR, DEFAULT_PAYMENT_METHOD
from cashbook.forms import (
    CategoryForm,
    ExpenseForm,
    IncomeForm,
    PlanForm,
    PurchaseItemForm,
    ValidationError,
    to_iso_date,
    to_month_key,
)
from cashbook.store import FinanceStore


def test_store_starts_with_default_categories() -> None:
    store = FinanceStore()
    assert {c.name for c in store.categories_of_kind('income')} == {
        'Salary', 'Freelance', 'Refunds', 'Investments',
    }
    assert len(store.categories_of_kind('expense')) == 4
    # Each store gets its own copy
    store.categories[0].name = 'Changed'
    assert FinanceStore().categories[0].name == 'Salary'


def test_save_plan_replaces_existing_month() -> None:
    store = FinanceStore()
    store.save_plan(PlanForm(month='2024-05', planned_income=1000, planned_expense=800))
    store.save_plan(PlanForm(month='2024-06', planned_income=50))
    store.save_plan(PlanForm(month='2024-05', planned_income=1500, planned_expense=900, comment='bonus'))

    may_plans = [p for p in store.plans if p.month == '2024-05']
    assert len(may_plans) == 1
    assert may_plans[0].planned_income == 1500.0
    assert may_plans[0].planned_expense == 900.0
    assert may_plans[0].comment == 'bonus'
    assert len(store.plans) == 2


def test_plan_requires_month() -> None:
    store = FinanceStore()
    with pytest.raises(ValidationError) as excinfo:
        store.save_plan(PlanForm(month=''))
    assert excinfo.value.missing == ['month']
    assert store.plans == []


def test_income_validation_blocks_insertion() -> None:
    store = FinanceStore()
    with pytest.raises(ValidationError) as excinfo:
        store.add_income(IncomeForm(date='2024-05-01', amount=0, category_id=None))
    assert excinfo.value.missing == ['amount', 'category']
    assert store.incomes == []


def test_add_income_normalises_values() -> None:
    store = FinanceStore()
    record = store.add_income(IncomeForm(
        date=date(2024, 5, 3), source=' Job ', amount='2500.50', category_id='cat-salary',
    ))
    assert record.date == '2024-05-03'
    assert record.source == 'Job'
    assert record.amount == 2500.50
    assert record.note is None
    assert store.incomes == [record]


def test_expense_defaults() -> None:
    store = FinanceStore()
    record = store.add_expense(ExpenseForm(
        date='2024-05-03', amount=120, category_id='cat-housing', installments='', due_date='',
    ))
    assert record.installments == 1
    assert record.due_date == '2024-05-03'
    assert record.payment_method == DEFAULT_PAYMENT_METHOD
    assert record.paid is False
    assert record.card is None


def test_expense_requires_date_amount_and_category() -> None:
    with pytest.raises(ValidationError) as excinfo:
        ExpenseForm(date='not a date', amount=None).to_record()
    assert excinfo.value.missing == ['date', 'amount', 'category']


def test_purchase_line_total_is_kept_when_entered() -> None:
    store = FinanceStore()
    record = store.add_purchase_item(PurchaseItemForm(
        date='2024-05-04', merchant='Market', item='Rice', quantity=2, unit_price=10,
        line_total=18, category_id='cat-groceries', purchase_id='p1',
    ))
    assert record.line_total == 18.0
    assert record.quantity * record.unit_price == 20.0
    assert record.purchase_id == 'p1'


def test_purchase_line_total_falls_back_to_quantity_times_price() -> None:
    record = PurchaseItemForm(
        date='2024-05-04', merchant='Market', item='Soap', quantity=3, unit_price=2.5,
        category_id='cat-groceries',
    ).to_record()
    assert record.line_total == 7.5
    assert record.purchase_id


def test_purchase_requires_merchant_and_item() -> None:
    with pytest.raises(ValidationError) as excinfo:
        PurchaseItemForm(date='2024-05-04', category_id='cat-groceries').to_record()
    assert excinfo.value.missing == ['merchant', 'item']


def test_category_form_defaults() -> None:
    store = FinanceStore()
    category = store.add_category(CategoryForm(name='Health', kind='other'))
    assert category.kind == 'expense'
    assert category.color == DEFAULT_CATEGORY_COLOR
    assert category.cost_center is None
    assert store.get_category(category.id) is category
    with pytest.raises(ValidationError):
        store.add_category(CategoryForm(name='  '))


def test_merge_remote_categories_adds_unknown_ids_only() -> None:
    store = FinanceStore()
    added = store.merge_remote_categories([
        {'id': 'cat-salary', 'name': 'Salary', 'type': 'income'},
        {'id': 'r-1', 'name': 'Pets', 'type': 'expense', 'color': '#000000', 'cost_center': 'Home'},
        {'id': 'r-2', 'name': 'Bonus', 'type': 'income', 'color': None},
        {'id': None, 'name': 'Broken'},
    ])
    assert [c.id for c in added] == ['r-1', 'r-2']
    assert store.get_category('r-1').cost_center == 'Home'
    assert store.get_category('r-2').kind == 'income'
    assert len(store.categories) == 10


def test_date_helpers() -> None:
    assert to_iso_date('2024-05-03') == '2024-05-03'
    assert to_iso_date('') is None
    assert to_iso_date('garbage') is None
    assert to_month_key('2024-05') == '2024-05'
    assert to_month_key(date(2024, 12, 31)) == '2024-12'
    assert to_month_key('2024-13') is None


def test_merge_remote_categories_is_all_or_nothing() -> None:
    store = FinanceStore()
    with pytest.raises(ValidationError) as excinfo:
        store.merge_remote_categories([
            {'id': 'r-1', 'name': 'Pets', 'type': 'expense'},
            {'id': 'r-2', 'name': None, 'type': 'expense'},
        ])
    assert excinfo.value.missing == ['name']
    assert len(store.categories) == 8
    assert store.get_category('r-1') is None


@pytest.mark.parametrize('form', [
    IncomeForm(date='2024-05-01', amount=-250, category_id='cat-salary'),
    ExpenseForm(date='2024-05-01', amount=-99, category_id='cat-housing'),
    ExpenseForm(date='2024-05-01', amount='-0.01', category_id='cat-housing'),
])
def test_negative_amounts_are_rejected(form) -> None:
    with pytest.raises(ValidationError) as excinfo:
        form.to_record()
    assert excinfo.value.missing == ['amount']
