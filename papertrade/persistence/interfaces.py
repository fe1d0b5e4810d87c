from __future__ import annotations

from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from papertrade.types import AssetCategory, FavouriteAsset, Holding, Transaction, Wallet, WalletTransaction


class WalletStore(Protocol):
    def get_wallet(self) -> Optional[Wallet]:
        """Fetch the single wallet row, or None if the store is not initialized."""

    def save_wallet(self, *, wallet: Wallet) -> None:
        """Persist the wallet totals and balance."""

    def log_wallet_transaction(self, *, transaction: WalletTransaction) -> int:
        """Persist a wallet movement and return its id."""

    def get_wallet_transactions(self, *, limit: int | None = None) -> Sequence[WalletTransaction]:
        """List wallet movements, newest first."""


class TransactionStore(Protocol):
    def log_transaction(self, *, transaction: Transaction) -> int:
        """Persist a buy/sell record and return its id."""

    def get_transactions(
        self,
        *,
        limit: int | None = None,
        asset_id: str | None = None,
    ) -> Sequence[Transaction]:
        """List trades, newest first, optionally for one asset."""


class HoldingStore(Protocol):
    def get_holding(self, *, asset_id: str) -> Optional[Holding]:
        """Fetch the holding for an asset."""

    def get_holdings(self, *, category: AssetCategory | None = None) -> Sequence[Holding]:
        """List open holdings, largest total_invested first."""

    def upsert_holding(self, *, holding: Holding) -> int:
        """Insert or update a holding keyed by asset_id and return its id."""

    def delete_holding(self, *, asset_id: str) -> bool:
        """Remove a holding. Returns False if there was none."""


class FavouriteStore(Protocol):
    def add_favourite(self, *, favourite: FavouriteAsset) -> bool:
        """Insert a favourite. Returns False if the asset was already listed."""

    def remove_favourite(self, *, asset_id: str) -> bool:
        """Delete a favourite. Returns False if it was not listed."""

    def get_favourites(self) -> Sequence[FavouriteAsset]:
        """List favourites, most recently added first."""

    def is_favourite(self, *, asset_id: str) -> bool:
        """Check whether an asset is on the wishlist."""


class SettingsStore(Protocol):
    def get_setting(self, *, key: str) -> Optional[str]:
        """Fetch a preference value."""

    def set_setting(self, *, key: str, value: str) -> None:
        """Insert or update a preference value."""


class LedgerStores(WalletStore, TransactionStore, HoldingStore, FavouriteStore, SettingsStore, Protocol):
    """Everything the portfolio manager needs from a backend."""

    def initialize(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        """Create the schema and seed the wallet if missing. Idempotent."""

    def reset(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        """Drop all ledger data and initialize again."""

    def atomic(self) -> AbstractContextManager[None]:
        """Group several writes so they commit or roll back together."""

    def ping(self) -> bool:
        """Check that the backend is reachable."""
