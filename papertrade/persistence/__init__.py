"""Persistence interfaces.

These protocols define the storage boundary of the ledger. Implementations
live in papertrade.storage (in-memory and SQLAlchemy-backed).
"""

from .interfaces import (
    FavouriteStore,
    HoldingStore,
    LedgerStores,
    SettingsStore,
    TransactionStore,
    WalletStore,
)

__all__ = [
    "FavouriteStore",
    "HoldingStore",
    "LedgerStores",
    "SettingsStore",
    "TransactionStore",
    "WalletStore",
]
