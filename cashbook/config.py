"""Configuration management for the cashbook dashboard.

This module centralizes all configuration values including fixed
thresholds, form defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

# Logging
LOG_LEVEL = os.getenv("CASHBOOK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Aggregation constants
CONCENTRATION_THRESHOLD = 0.35
DUE_SOON_DAYS = 3

# Payment methods.  Statements are derived for any method whose label
# contains CARD_METHOD_MARKER ("Cartão", "Cartão Nubank", ...).
PAYMENT_METHODS = ["Cartão", "PIX", "Débito", "Dinheiro", "Boleto"]
DEFAULT_PAYMENT_METHOD = "Cartão"
CARD_METHOD_MARKER = "cart"
DEFAULT_CARD_LABEL = "Cartão"

DEFAULT_CATEGORY_COLOR = "#6366f1"
QUICK_ADD_NOTE = "Quick Add"

EXPORT_FILENAME = "cashbook-export.xlsx"


@dataclass(frozen=True)
class BackendConfig:
    """Connection settings for the optional Supabase backend."""

    url: Optional[str] = None
    key: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.url and self.key)

    @classmethod
    def from_env(cls) -> "BackendConfig":
        """Read ``SUPABASE_URL`` and ``SUPABASE_ANON_KEY`` from the environment."""
        return cls(
            url=os.getenv("SUPABASE_URL") or None,
            key=os.getenv("SUPABASE_ANON_KEY") or None,
        )


_LOGGING_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once per process."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
    _LOGGING_CONFIGURED = True
