"""SQLAlchemy models for the paper-trading ledger.

Tables:
- wallet
- wallet_transactions
- transactions
- portfolio
- favourites
- settings
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class ExactDecimal(TypeDecorator):
    """Decimal column that round-trips without float conversion.

    SQLite has no decimal storage, so values are kept as text there. Other
    backends use NUMERIC(38, 18).
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Text())
        return dialect.type_descriptor(Numeric(38, 18, asdecimal=True))

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        value = Decimal(value)
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return value if isinstance(value, Decimal) else Decimal(value)


Amount = ExactDecimal


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class WalletRow(Base):
    """Single-row virtual wallet (id is always 1).

    Table: wallet
    """

    __tablename__ = "wallet"

    id = Column(Integer, primary_key=True)
    total_funds_added = Column(Amount, nullable=False, default=0)
    total_funds_used = Column(Amount, nullable=False, default=0)
    current_balance = Column(Amount, nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<WalletRow(balance={self.current_balance})>"


class WalletTransactionRow(Base):
    """Fund movement audit trail.

    Table: wallet_transactions
    """

    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(Text, nullable=False)  # add|deduct
    amount = Column(Amount, nullable=False)
    description = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    balance_after = Column(Amount, nullable=False)

    __table_args__ = (
        CheckConstraint("type IN ('add', 'deduct')", name="ck_wallet_transactions_type"),
        Index("idx_wallet_transactions_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<WalletTransactionRow(id={self.id}, type={self.type}, amount={self.amount})>"


class TransactionRow(Base):
    """Buy/sell history.

    Table: transactions
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Text, nullable=False)
    asset_symbol = Column(Text, nullable=False)
    asset_name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    type = Column(Text, nullable=False)  # buy|sell
    price = Column(Amount, nullable=False)
    quantity = Column(Amount, nullable=False)
    amount = Column(Amount, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("type IN ('buy', 'sell')", name="ck_transactions_type"),
        Index("idx_transactions_asset_id", "asset_id"),
        Index("idx_transactions_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<TransactionRow(id={self.id}, {self.type} {self.quantity} {self.asset_symbol} @ {self.price})>"


class HoldingRow(Base):
    """Current holdings, one row per asset.

    Table: portfolio
    """

    __tablename__ = "portfolio"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Text, nullable=False, unique=True)
    asset_symbol = Column(Text, nullable=False)
    asset_name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    total_quantity = Column(Amount, nullable=False, default=0)
    average_entry_price = Column(Amount, nullable=False, default=0)
    total_invested = Column(Amount, nullable=False, default=0)
    first_purchase_date = Column(DateTime(timezone=True), nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_portfolio_category", "category"),)

    def __repr__(self) -> str:
        return f"<HoldingRow(asset_id={self.asset_id}, qty={self.total_quantity})>"


class FavouriteRow(Base):
    """Wishlist.

    Table: favourites
    """

    __tablename__ = "favourites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Text, nullable=False, unique=True)
    symbol = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<FavouriteRow(asset_id={self.asset_id})>"


class SettingRow(Base):
    """App preferences.

    Table: settings
    """

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(Text, nullable=False, unique=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<SettingRow(key={self.key}, value={self.value})>"
