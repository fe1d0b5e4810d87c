from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Optional, Sequence

from papertrade.persistence.interfaces import LedgerStores
from papertrade.types import AssetCategory, FavouriteAsset, Holding, Transaction, Wallet, WalletTransaction


class InMemoryStores(LedgerStores):
    """Dict-backed ledger storage.

    Used by tests and by the API when no database is wanted. `atomic()`
    snapshots every table and restores it if the block raises.

    Thread-safety: Not thread-safe. Use external locking if needed.
    """

    def __init__(self) -> None:
        self._wallet: Optional[Wallet] = None
        self._wallet_transactions: list[WalletTransaction] = []
        self._transactions: list[Transaction] = []
        self._holdings: dict[str, Holding] = {}  # asset_id -> Holding
        self._favourites: dict[str, FavouriteAsset] = {}  # asset_id -> FavouriteAsset
        self._settings: dict[str, str] = {}
        self._next_ids: dict[str, int] = {}

    def _next_id(self, table: str) -> int:
        next_id = self._next_ids.get(table, 1)
        self._next_ids[table] = next_id + 1
        return next_id

    def _snapshot(self) -> dict[str, Any]:
        return {
            "wallet": self._wallet,
            "wallet_transactions": list(self._wallet_transactions),
            "transactions": list(self._transactions),
            "holdings": dict(self._holdings),
            "favourites": dict(self._favourites),
            "settings": dict(self._settings),
            "next_ids": dict(self._next_ids),
        }

    def _restore(self, state: dict[str, Any]) -> None:
        self._wallet = state["wallet"]
        self._wallet_transactions = state["wallet_transactions"]
        self._transactions = state["transactions"]
        self._holdings = state["holdings"]
        self._favourites = state["favourites"]
        self._settings = state["settings"]
        self._next_ids = state["next_ids"]

    # ---- Lifecycle

    def initialize(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        if self._wallet is None:
            now = datetime.now(timezone.utc)
            self._wallet = Wallet(
                total_funds_added=initial_balance,
                total_funds_used=Decimal("0"),
                current_balance=initial_balance,
                last_updated=now,
            )
            self.log_wallet_transaction(
                transaction=WalletTransaction(
                    type="add",
                    amount=initial_balance,
                    description="Initial virtual funds",
                    balance_after=initial_balance,
                    timestamp=now,
                )
            )
        self._settings.setdefault("default_currency", currency)

    def reset(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        self._wallet = None
        self._wallet_transactions = []
        self._transactions = []
        self._holdings = {}
        self._favourites = {}
        self._settings = {}
        self._next_ids = {}
        self.initialize(initial_balance=initial_balance, currency=currency)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        state = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(state)
            raise

    def ping(self) -> bool:
        return True

    # ---- WalletStore

    def get_wallet(self) -> Optional[Wallet]:
        return self._wallet

    def save_wallet(self, *, wallet: Wallet) -> None:
        self._wallet = wallet

    def log_wallet_transaction(self, *, transaction: WalletTransaction) -> int:
        row = replace(transaction, id=self._next_id("wallet_transactions"))
        self._wallet_transactions.append(row)
        return row.id

    def get_wallet_transactions(self, *, limit: int | None = None) -> Sequence[WalletTransaction]:
        rows = sorted(self._wallet_transactions, key=lambda t: (t.timestamp, t.id), reverse=True)
        return rows[:limit] if limit else rows

    # ---- TransactionStore

    def log_transaction(self, *, transaction: Transaction) -> int:
        row = replace(transaction, id=self._next_id("transactions"))
        self._transactions.append(row)
        return row.id

    def get_transactions(
        self,
        *,
        limit: int | None = None,
        asset_id: str | None = None,
    ) -> Sequence[Transaction]:
        rows = self._transactions
        if asset_id:
            rows = [t for t in rows if t.asset_id == asset_id]
        rows = sorted(rows, key=lambda t: (t.timestamp, t.id), reverse=True)
        return rows[:limit] if limit else rows

    # ---- HoldingStore

    def get_holding(self, *, asset_id: str) -> Optional[Holding]:
        return self._holdings.get(asset_id)

    def get_holdings(self, *, category: AssetCategory | None = None) -> Sequence[Holding]:
        rows = [h for h in self._holdings.values() if h.total_quantity > 0]
        if category is not None:
            rows = [h for h in rows if h.category == category]
        return sorted(rows, key=lambda h: h.total_invested, reverse=True)

    def upsert_holding(self, *, holding: Holding) -> int:
        existing = self._holdings.get(holding.asset_id)
        holding_id = existing.id if existing is not None else self._next_id("holdings")
        self._holdings[holding.asset_id] = replace(holding, id=holding_id)
        return holding_id

    def delete_holding(self, *, asset_id: str) -> bool:
        return self._holdings.pop(asset_id, None) is not None

    # ---- FavouriteStore

    def add_favourite(self, *, favourite: FavouriteAsset) -> bool:
        if favourite.asset_id in self._favourites:
            return False
        self._favourites[favourite.asset_id] = replace(favourite, id=self._next_id("favourites"))
        return True

    def remove_favourite(self, *, asset_id: str) -> bool:
        return self._favourites.pop(asset_id, None) is not None

    def get_favourites(self) -> Sequence[FavouriteAsset]:
        return sorted(self._favourites.values(), key=lambda f: (f.added_at, f.id), reverse=True)

    def is_favourite(self, *, asset_id: str) -> bool:
        return asset_id in self._favourites

    # ---- SettingsStore

    def get_setting(self, *, key: str) -> Optional[str]:
        return self._settings.get(key)

    def set_setting(self, *, key: str, value: str) -> None:
        self._settings[key] = value
