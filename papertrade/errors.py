"""Ledger errors.

Every rejected wallet or portfolio operation raises one of these. They derive
from ValueError so callers that only care about "bad input" can catch that.
The HTTP layer maps them to status codes.
"""

from __future__ import annotations

from decimal import Decimal


class LedgerError(ValueError):
    """Base error for all ledger operations."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidAmountError(LedgerError):
    """Raised for a non-positive price, amount or quantity, or one over a limit."""


class InsufficientFundsError(LedgerError):
    """Raised when the wallet balance cannot cover a debit."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        super().__init__(f"Insufficient funds in wallet: required {required}, available {available}")
        self.required = required
        self.available = available


class InsufficientQuantityError(LedgerError):
    """Raised when a sell asks for more than the holding contains."""

    def __init__(self, asset_id: str, requested: Decimal, available: Decimal) -> None:
        super().__init__(f"Insufficient quantity to sell {asset_id}: requested {requested}, available {available}")
        self.asset_id = asset_id
        self.requested = requested
        self.available = available


class HoldingNotFoundError(LedgerError):
    """Raised when an asset is not held in the portfolio."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Asset not found in portfolio: {asset_id}")
        self.asset_id = asset_id


class WalletNotFoundError(LedgerError):
    """Raised when the store holds no wallet row (not initialized)."""

    def __init__(self) -> None:
        super().__init__("Wallet not found. Initialize the store first.")


class AssetNotFoundError(LedgerError):
    """Raised when the market data catalog does not know an asset."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Asset not found: {asset_id}")
        self.asset_id = asset_id
