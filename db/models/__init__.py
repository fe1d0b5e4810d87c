"""SQLAlchemy models for the papertrade database."""

from db.models.ledger import (
    Base,
    FavouriteRow,
    HoldingRow,
    SettingRow,
    TransactionRow,
    WalletRow,
    WalletTransactionRow,
)

__all__ = [
    "Base",
    "FavouriteRow",
    "HoldingRow",
    "SettingRow",
    "TransactionRow",
    "WalletRow",
    "WalletTransactionRow",
]
