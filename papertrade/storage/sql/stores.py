from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Optional, Sequence

from sqlalchemy import create_engine, delete, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from db.models import (
    Base,
    FavouriteRow,
    HoldingRow,
    SettingRow,
    TransactionRow,
    WalletRow,
    WalletTransactionRow,
)
from papertrade.persistence.interfaces import LedgerStores
from papertrade.storage.sql.config import SqlConfig
from papertrade.types import (
    AssetCategory,
    FavouriteAsset,
    Holding,
    Transaction,
    TransactionType,
    Wallet,
    WalletTransaction,
)

logger = logging.getLogger(__name__)

WALLET_ID = 1


def _as_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC (SQLite hands back naive values)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _wallet_from_row(row: WalletRow) -> Wallet:
    return Wallet(
        id=row.id,
        total_funds_added=row.total_funds_added,
        total_funds_used=row.total_funds_used,
        current_balance=row.current_balance,
        last_updated=_as_utc(row.last_updated),
    )


def _wallet_transaction_from_row(row: WalletTransactionRow) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,
        type=row.type,
        amount=row.amount,
        description=row.description,
        balance_after=row.balance_after,
        timestamp=_as_utc(row.timestamp),
    )


def _transaction_from_row(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        asset_id=row.asset_id,
        asset_symbol=row.asset_symbol,
        asset_name=row.asset_name,
        category=AssetCategory(row.category),
        type=TransactionType(row.type),
        price=row.price,
        quantity=row.quantity,
        amount=row.amount,
        timestamp=_as_utc(row.timestamp),
        notes=row.notes,
    )


def _holding_from_row(row: HoldingRow) -> Holding:
    return Holding(
        id=row.id,
        asset_id=row.asset_id,
        asset_symbol=row.asset_symbol,
        asset_name=row.asset_name,
        category=AssetCategory(row.category),
        total_quantity=row.total_quantity,
        average_entry_price=row.average_entry_price,
        total_invested=row.total_invested,
        first_purchase_date=_as_utc(row.first_purchase_date),
        last_updated=_as_utc(row.last_updated),
    )


def _favourite_from_row(row: FavouriteRow) -> FavouriteAsset:
    return FavouriteAsset(
        id=row.id,
        asset_id=row.asset_id,
        symbol=row.symbol,
        name=row.name,
        category=AssetCategory(row.category),
        added_at=_as_utc(row.added_at),
    )


class SqlStores(LedgerStores):
    """SQLAlchemy-backed ledger storage.

    Works with any SQLAlchemy URL; the default is a local SQLite file.
    Each public method runs in its own transaction unless called inside
    `atomic()`, in which case all calls share one session that commits
    when the block exits and rolls back if it raises.
    """

    def __init__(self, *, config: SqlConfig) -> None:
        self._config = config
        self._engine: Engine | None = None
        self._active_session: Session | None = None

    def _get_engine(self) -> Engine:
        if self._engine is None:
            kwargs: dict[str, Any] = {}
            if self._config.is_in_memory_sqlite:
                # An in-memory SQLite database lives inside one connection.
                kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
            # Do not log the URL (it may contain secrets).
            self._engine = create_engine(self._config.database_url, echo=False, pool_pre_ping=True, **kwargs)
        return self._engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._active_session is not None:
            yield self._active_session
            return

        with Session(self._get_engine(), expire_on_commit=False) as session:
            with session.begin():
                yield session

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._active_session is not None:
            # Nested blocks join the outer transaction.
            yield
            return

        with Session(self._get_engine(), expire_on_commit=False) as session:
            with session.begin():
                self._active_session = session
                try:
                    yield
                finally:
                    self._active_session = None

    def dispose(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    # ---- Lifecycle

    def initialize(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        engine = self._get_engine()
        Base.metadata.create_all(engine)

        with self._session() as session:
            if session.get(WalletRow, WALLET_ID) is None:
                now = datetime.now(timezone.utc)
                session.add(
                    WalletRow(
                        id=WALLET_ID,
                        total_funds_added=initial_balance,
                        total_funds_used=Decimal("0"),
                        current_balance=initial_balance,
                        last_updated=now,
                    )
                )
                session.add(
                    WalletTransactionRow(
                        type="add",
                        amount=initial_balance,
                        description="Initial virtual funds",
                        timestamp=now,
                        balance_after=initial_balance,
                    )
                )
                logger.info(f"Seeded wallet with {initial_balance} {currency}")

            if session.scalars(select(SettingRow).where(SettingRow.key == "default_currency")).first() is None:
                session.add(
                    SettingRow(key="default_currency", value=currency, updated_at=datetime.now(timezone.utc))
                )

    def reset(self, *, initial_balance: Decimal, currency: str = "USD") -> None:
        engine = self._get_engine()
        Base.metadata.drop_all(engine)
        logger.warning("Dropped all ledger tables")
        self.initialize(initial_balance=initial_balance, currency=currency)

    def ping(self) -> bool:
        try:
            with self._get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error(f"Database ping failed: {type(exc).__name__}")
            return False
        return True

    # ---- WalletStore

    def get_wallet(self) -> Optional[Wallet]:
        with self._session() as session:
            row = session.get(WalletRow, WALLET_ID)
            return None if row is None else _wallet_from_row(row)

    def save_wallet(self, *, wallet: Wallet) -> None:
        with self._session() as session:
            row = session.get(WalletRow, WALLET_ID)
            if row is None:
                row = WalletRow(id=WALLET_ID)
                session.add(row)
            row.total_funds_added = wallet.total_funds_added
            row.total_funds_used = wallet.total_funds_used
            row.current_balance = wallet.current_balance
            row.last_updated = wallet.last_updated

    def log_wallet_transaction(self, *, transaction: WalletTransaction) -> int:
        with self._session() as session:
            row = WalletTransactionRow(
                type=transaction.type,
                amount=transaction.amount,
                description=transaction.description,
                timestamp=transaction.timestamp,
                balance_after=transaction.balance_after,
            )
            session.add(row)
            session.flush()
            return row.id

    def get_wallet_transactions(self, *, limit: int | None = None) -> Sequence[WalletTransaction]:
        query = select(WalletTransactionRow).order_by(
            WalletTransactionRow.timestamp.desc(), WalletTransactionRow.id.desc()
        )
        if limit:
            query = query.limit(limit)
        with self._session() as session:
            return [_wallet_transaction_from_row(row) for row in session.scalars(query)]

    # ---- TransactionStore

    def log_transaction(self, *, transaction: Transaction) -> int:
        with self._session() as session:
            row = TransactionRow(
                asset_id=transaction.asset_id,
                asset_symbol=transaction.asset_symbol,
                asset_name=transaction.asset_name,
                category=transaction.category.value,
                type=transaction.type.value,
                price=transaction.price,
                quantity=transaction.quantity,
                amount=transaction.amount,
                timestamp=transaction.timestamp,
                notes=transaction.notes,
            )
            session.add(row)
            session.flush()
            return row.id

    def get_transactions(
        self,
        *,
        limit: int | None = None,
        asset_id: str | None = None,
    ) -> Sequence[Transaction]:
        query = select(TransactionRow)
        if asset_id:
            query = query.where(TransactionRow.asset_id == asset_id)
        query = query.order_by(TransactionRow.timestamp.desc(), TransactionRow.id.desc())
        if limit:
            query = query.limit(limit)
        with self._session() as session:
            return [_transaction_from_row(row) for row in session.scalars(query)]

    # ---- HoldingStore

    def _get_holding_row(self, session: Session, asset_id: str) -> Optional[HoldingRow]:
        return session.scalars(select(HoldingRow).where(HoldingRow.asset_id == asset_id)).first()

    def get_holding(self, *, asset_id: str) -> Optional[Holding]:
        with self._session() as session:
            row = self._get_holding_row(session, asset_id)
            return None if row is None else _holding_from_row(row)

    def get_holdings(self, *, category: AssetCategory | None = None) -> Sequence[Holding]:
        query = select(HoldingRow)
        if category is not None:
            query = query.where(HoldingRow.category == category.value)
        with self._session() as session:
            holdings = [_holding_from_row(row) for row in session.scalars(query)]

        # Amounts are stored as text on SQLite, so order in Python.
        holdings = [h for h in holdings if h.total_quantity > 0]
        return sorted(holdings, key=lambda h: h.total_invested, reverse=True)

    def upsert_holding(self, *, holding: Holding) -> int:
        with self._session() as session:
            row = self._get_holding_row(session, holding.asset_id)
            if row is None:
                row = HoldingRow(asset_id=holding.asset_id)
                session.add(row)
            row.asset_symbol = holding.asset_symbol
            row.asset_name = holding.asset_name
            row.category = holding.category.value
            row.total_quantity = holding.total_quantity
            row.average_entry_price = holding.average_entry_price
            row.total_invested = holding.total_invested
            row.first_purchase_date = holding.first_purchase_date
            row.last_updated = holding.last_updated
            session.flush()
            return row.id

    def delete_holding(self, *, asset_id: str) -> bool:
        with self._session() as session:
            result = session.execute(delete(HoldingRow).where(HoldingRow.asset_id == asset_id))
            return result.rowcount > 0

    # ---- FavouriteStore

    def add_favourite(self, *, favourite: FavouriteAsset) -> bool:
        with self._session() as session:
            existing = session.scalars(select(FavouriteRow).where(FavouriteRow.asset_id == favourite.asset_id)).first()
            if existing is not None:
                return False
            session.add(
                FavouriteRow(
                    asset_id=favourite.asset_id,
                    symbol=favourite.symbol,
                    name=favourite.name,
                    category=favourite.category.value,
                    added_at=favourite.added_at,
                )
            )
            return True

    def remove_favourite(self, *, asset_id: str) -> bool:
        with self._session() as session:
            result = session.execute(delete(FavouriteRow).where(FavouriteRow.asset_id == asset_id))
            return result.rowcount > 0

    def get_favourites(self) -> Sequence[FavouriteAsset]:
        query = select(FavouriteRow).order_by(FavouriteRow.added_at.desc(), FavouriteRow.id.desc())
        with self._session() as session:
            return [_favourite_from_row(row) for row in session.scalars(query)]

    def is_favourite(self, *, asset_id: str) -> bool:
        with self._session() as session:
            row = session.scalars(select(FavouriteRow.id).where(FavouriteRow.asset_id == asset_id)).first()
            return row is not None

    # ---- SettingsStore

    def get_setting(self, *, key: str) -> Optional[str]:
        with self._session() as session:
            row = session.scalars(select(SettingRow).where(SettingRow.key == key)).first()
            return None if row is None else row.value

    def set_setting(self, *, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        with self._session() as session:
            row = session.scalars(select(SettingRow).where(SettingRow.key == key)).first()
            if row is None:
                session.add(SettingRow(key=key, value=value, updated_at=now))
            else:
                row.value = value
                row.updated_at = now
