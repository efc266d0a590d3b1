"""In-memory record store for a dashboard session.

The store is the single source of truth for a session.  It is kept in
``st.session_state`` by the UI and rebuilt from scratch for tests.
Nothing here talks to the remote backend.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .forms import CategoryForm, ExpenseForm, IncomeForm, PlanForm, PurchaseItemForm
from .models import (
    CATEGORY_KINDS,
    DEFAULT_CATEGORIES,
    Category,
    ExpenseRecord,
    IncomeRecord,
    MonthlyPlan,
    PurchaseLineItem,
)

logger = logging.getLogger(__name__)


def default_categories() -> List[Category]:
    return copy.deepcopy(DEFAULT_CATEGORIES)


@dataclass
class FinanceStore:
    """Categories, records and monthly plans for one session."""

    categories: List[Category] = field(default_factory=default_categories)
    incomes: List[IncomeRecord] = field(default_factory=list)
    expenses: List[ExpenseRecord] = field(default_factory=list)
    purchases: List[PurchaseLineItem] = field(default_factory=list)
    plans: List[MonthlyPlan] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_category(self, category_id: Optional[str]) -> Optional[Category]:
        if not category_id:
            return None
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def categories_of_kind(self, kind: str) -> List[Category]:
        return [c for c in self.categories if c.kind == kind]

    def add_category(self, form: CategoryForm) -> Category:
        category = form.to_record()
        self.categories.append(category)
        logger.debug("Added %s category %r", category.kind, category.name)
        return category

    def merge_remote_categories(self, rows: Iterable[Dict[str, Any]]) -> List[Category]:
        """Add backend categories whose id is not known locally.

        Every row is converted before any is stored, so an invalid row
        raises :class:`ValidationError` and leaves the store unchanged.
        """
        known = {c.id for c in self.categories}
        added: List[Category] = []
        for row in rows:
            category_id = str(row.get('id') or '')
            if not category_id or category_id in known:
                continue
            kind = row.get('type') if row.get('type') in CATEGORY_KINDS else 'expense'
            added.append(CategoryForm(
                name=row.get('name') or '',
                kind=kind,
                cost_center=row.get('cost_center') or '',
                color=row.get('color') or '',
            ).to_record(record_id=category_id))
            known.add(category_id)
        self.categories.extend(added)
        if added:
            logger.info("Merged %d remote categories", len(added))
        return added

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def add_income(self, form: IncomeForm) -> IncomeRecord:
        record = form.to_record()
        self.incomes.append(record)
        logger.debug("Added income %s of %.2f on %s", record.id, record.amount, record.date)
        return record

    def add_expense(self, form: ExpenseForm) -> ExpenseRecord:
        record = form.to_record()
        self.expenses.append(record)
        logger.debug(
            "Added expense %s of %.2f in %d installment(s) due %s",
            record.id, record.amount, record.installments, record.due_date,
        )
        return record

    def add_purchase_item(self, form: PurchaseItemForm) -> PurchaseLineItem:
        record = form.to_record()
        self.purchases.append(record)
        logger.debug("Added purchase item %r to purchase %s", record.item, record.purchase_id)
        return record

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def save_plan(self, form: PlanForm) -> MonthlyPlan:
        """Insert a plan, replacing any existing plan for the same month."""
        plan = form.to_record()
        self.plans = [p for p in self.plans if p.month != plan.month]
        self.plans.append(plan)
        logger.debug("Saved plan for %s", plan.month)
        return plan

    def get_plan(self, month: str) -> Optional[MonthlyPlan]:
        for plan in self.plans:
            if plan.month == month:
                return plan
        return None
