from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional


class AssetCategory(str, Enum):
    """Market segment an asset is traded in."""

    INDIAN_STOCKS = "indian_stocks"
    US_STOCKS = "us_stocks"
    EUROPEAN_STOCKS = "european_stocks"
    COMMODITIES = "commodities"
    CRYPTO = "crypto"


ASSET_CATEGORY_NAMES: dict[AssetCategory, str] = {
    AssetCategory.INDIAN_STOCKS: "Indian Stocks",
    AssetCategory.US_STOCKS: "US Stocks",
    AssetCategory.EUROPEAN_STOCKS: "European Stocks",
    AssetCategory.COMMODITIES: "Commodities",
    AssetCategory.CRYPTO: "Cryptocurrencies",
}


class TransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class SellMethod(str, Enum):
    """How the size of a sell is expressed."""

    PERCENTAGE = "percentage"
    AMOUNT = "amount"
    QUANTITY = "quantity"


class ChartTimeframe(str, Enum):
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    ONE_YEAR = "1Y"
    ALL_TIME = "ALL"


WalletTransactionType = Literal["add", "deduct"]


@dataclass(frozen=True)
class AssetRef:
    """Identity of a tradable asset as carried on holdings and transactions."""

    asset_id: str
    symbol: str
    name: str
    category: AssetCategory


@dataclass(frozen=True)
class Wallet:
    total_funds_added: Decimal
    total_funds_used: Decimal
    current_balance: Decimal
    last_updated: datetime
    id: int = 1


@dataclass(frozen=True)
class WalletTransaction:
    type: WalletTransactionType
    amount: Decimal
    description: str
    balance_after: Decimal
    timestamp: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class Transaction:
    asset_id: str
    asset_symbol: str
    asset_name: str
    category: AssetCategory
    type: TransactionType
    price: Decimal
    quantity: Decimal
    amount: Decimal
    timestamp: datetime
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Holding:
    """Aggregate of all buys of one asset."""

    asset_id: str
    asset_symbol: str
    asset_name: str
    category: AssetCategory
    total_quantity: Decimal
    average_entry_price: Decimal
    total_invested: Decimal
    first_purchase_date: datetime
    last_updated: datetime
    id: Optional[int] = None

    @property
    def asset(self) -> AssetRef:
        return AssetRef(
            asset_id=self.asset_id,
            symbol=self.asset_symbol,
            name=self.asset_name,
            category=self.category,
        )


@dataclass(frozen=True)
class ValuedHolding:
    """Holding marked to a current price."""

    holding: Holding
    current_price: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal


@dataclass(frozen=True)
class PortfolioSummary:
    total_invested: Decimal
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_percent: Decimal
    total_holdings: int


@dataclass(frozen=True)
class FavouriteAsset:
    asset_id: str
    symbol: str
    name: str
    category: AssetCategory
    added_at: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class Asset:
    id: str
    symbol: str
    name: str
    category: AssetCategory
    current_price: Decimal
    last_updated: datetime
    previous_close: Optional[Decimal] = None
    day_high: Optional[Decimal] = None
    day_low: Optional[Decimal] = None
    price_change: Optional[Decimal] = None
    price_change_percent: Optional[Decimal] = None

    @property
    def ref(self) -> AssetRef:
        return AssetRef(asset_id=self.id, symbol=self.symbol, name=self.name, category=self.category)


@dataclass(frozen=True)
class SearchResult:
    asset_id: str
    symbol: str
    name: str
    category: AssetCategory
    current_price: Optional[Decimal] = None


@dataclass(frozen=True)
class MarketDataPoint:
    timestamp: int  # epoch milliseconds
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Optional[int] = None


@dataclass(frozen=True)
class TradeReceipt:
    """Outcome of an executed buy or sell."""

    transaction: Transaction
    wallet: Wallet
    holding: Optional[Holding]  # None once a sell closes the holding
    realized_pnl: Optional[Decimal] = None


@dataclass(frozen=True)
class SellPreview:
    asset_id: str
    quantity: Decimal
    amount: Decimal
    exit_price: Decimal
    average_entry_price: Decimal
    realized_pnl: Decimal
    remaining_quantity: Decimal
