"""Optional Supabase backend for mirroring records remotely.

The backend is never a source of truth.  Local state is committed first
and a remote write is attempted afterwards; see :mod:`cashbook.quick_entry`.
Connection settings are passed in explicitly via :class:`BackendConfig` and
the client is created lazily on first use.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from supabase import Client, create_client

from .config import BackendConfig

logger = logging.getLogger(__name__)

TRANSACTIONS_TABLE = 'transactions'
CATEGORIES_TABLE = 'categories'
CATEGORY_FIELDS = 'id, name, type, color, cost_center'
TRANSACTION_SOURCES = ('manual', 'ocr', 'card')


class BackendUnavailableError(RuntimeError):
    """Raised when the backend is used without connection settings."""


@dataclass
class TransactionInsert:
    """Row payload for the ``transactions`` table."""

    date: str
    description: str
    amount: float
    category_id: Optional[str] = None
    payment_method: Optional[str] = None
    is_paid: Optional[bool] = None
    source: Optional[str] = 'manual'
    card: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        if self.source is not None and self.source not in TRANSACTION_SOURCES:
            raise ValueError(
                f"Unknown transaction source {self.source!r}; expected one of {TRANSACTION_SOURCES}"
            )
        payload = asdict(self)
        payload['amount'] = float(self.amount)
        payload['category_id'] = self.category_id or None
        return payload


def to_utc_timestamp(iso_date: str) -> str:
    """Render a day-precision ISO date as a UTC midnight timestamp."""
    return pd.Timestamp(iso_date, tz='UTC').isoformat()


def month_range(month: str) -> Tuple[str, str]:
    """UTC bounds ``[start, end)`` for a ``YYYY-MM`` month key."""
    start = pd.Timestamp(f"{month}-01", tz='UTC')
    end = start + pd.DateOffset(months=1)
    return start.isoformat(), end.isoformat()


class SupabaseBackend:
    """Thin wrapper over the two Supabase tables the dashboard uses."""

    def __init__(self, config: Optional[BackendConfig] = None):
        self.config = config or BackendConfig()
        self._client: Optional[Client] = None

    @property
    def is_configured(self) -> bool:
        return self.config.is_complete

    def client(self) -> Client:
        if self._client is not None:
            return self._client
        if not self.is_configured:
            raise BackendUnavailableError(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        self._client = create_client(self.config.url, self.config.key)
        logger.info("Connected Supabase client for %s", self.config.url)
        return self._client

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def create_transaction(self, transaction: TransactionInsert) -> Dict[str, Any]:
        """Insert one transaction and return the stored row."""
        response = (
            self.client()
            .table(TRANSACTIONS_TABLE)
            .insert(transaction.to_payload())
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else {}

    def list_transactions_by_month(self, month: str) -> List[Dict[str, Any]]:
        """Transactions dated within a month, newest first."""
        start, end = month_range(month)
        response = (
            self.client()
            .table(TRANSACTIONS_TABLE)
            .select('*')
            .gte('date', start)
            .lt('date', end)
            .order('date', desc=True)
            .execute()
        )
        return list(response.data or [])

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> List[Dict[str, Any]]:
        response = self.client().table(CATEGORIES_TABLE).select(CATEGORY_FIELDS).execute()
        return list(response.data or [])

    def create_category(
        self,
        name: str,
        kind: str,
        color: Optional[str] = None,
        cost_center: Optional[str] = None,
    ) -> Dict[str, Any]:
        response = (
            self.client()
            .table(CATEGORIES_TABLE)
            .insert({
                'name': name,
                'type': kind,
                'color': color or None,
                'cost_center': cost_center or None,
            })
            .execute()
        )
        rows = response.data or []
        return rows[0] if rows else {}
