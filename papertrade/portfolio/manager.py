"""Portfolio manager - trade coordinator.

Integrates wallet, holdings, trade history and favourites. Every trade runs
inside one store transaction: the wallet movement, the holding update and
the transaction record either all persist or none do.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from papertrade.calculations import (
    ZERO,
    calculate_portfolio_summary,
    calculate_quantity,
    calculate_realized_profit_loss,
    calculate_total_realized_pnl,
    is_positive,
    resolve_exit,
    validate_buy_transaction,
    validate_sell_transaction,
    value_holding,
)
from papertrade.config import LedgerConfig
from papertrade.errors import HoldingNotFoundError, InvalidAmountError, LedgerError
from papertrade.favourites import FavouritesManager
from papertrade.market_data.interfaces import PriceProvider
from papertrade.persistence.interfaces import LedgerStores
from papertrade.types import (
    AssetCategory,
    AssetRef,
    Holding,
    PortfolioSummary,
    SellMethod,
    SellPreview,
    TradeReceipt,
    Transaction,
    TransactionType,
    ValuedHolding,
    Wallet,
    WalletTransaction,
)

from .holdings import HoldingManager
from .wallet import WalletManager

logger = logging.getLogger(__name__)


def _sell_sizing(
    percentage: Optional[Decimal],
    amount: Optional[Decimal],
    quantity: Optional[Decimal],
) -> tuple[SellMethod, Decimal]:
    given = [
        (method, value)
        for method, value in (
            (SellMethod.PERCENTAGE, percentage),
            (SellMethod.AMOUNT, amount),
            (SellMethod.QUANTITY, quantity),
        )
        if value is not None
    ]
    if len(given) != 1:
        raise InvalidAmountError("Specify exactly one of percentage, amount or quantity")

    method, value = given[0]
    if not is_positive(value):
        raise InvalidAmountError(f"Sell {method.value} must be greater than 0")
    if method == SellMethod.PERCENTAGE and value > 100:
        raise InvalidAmountError("Sell percentage cannot exceed 100")
    return method, value


class PortfolioManager:
    """Central ledger management.

    Coordinates:
    - Wallet balance (top-ups, trade settlement)
    - Holdings (average cost basis, proportional reduction)
    - Trade history and realized P&L

    Thread-safety: Not thread-safe. Use external locking if needed.
    """

    def __init__(
        self,
        stores: LedgerStores,
        config: Optional[LedgerConfig] = None,
        price_provider: Optional[PriceProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize portfolio manager.

        Args:
            stores: Ledger persistence
            config: Ledger configuration
            price_provider: Source of current prices for valuing holdings
            clock: Returns the current time (defaults to UTC now)
        """
        self._stores = stores
        self._config = config or LedgerConfig()
        self._price_provider = price_provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._wallet = WalletManager(stores, max_fund_amount=self._config.max_fund_amount, clock=self._clock)
        self._holdings = HoldingManager(stores, dust_quantity=self._config.dust_quantity, clock=self._clock)
        self._favourites = FavouritesManager(stores, clock=self._clock)

    def initialize(self) -> None:
        """Create storage and seed the wallet if needed."""
        self._stores.initialize(initial_balance=self._config.initial_balance, currency=self._config.currency)

    def reset(self) -> None:
        """Wipe all ledger data and start over with the initial balance."""
        logger.warning("Resetting ledger")
        self._stores.reset(initial_balance=self._config.initial_balance, currency=self._config.currency)

    @property
    def currency(self) -> str:
        return self._stores.get_setting(key="default_currency") or self._config.currency

    @property
    def favourites(self) -> FavouritesManager:
        return self._favourites

    # ========== Wallet Operations ==========

    def get_wallet(self) -> Wallet:
        return self._wallet.get_wallet()

    def add_funds(self, amount: Decimal) -> Wallet:
        """Top up the wallet with virtual funds.

        Raises:
            InvalidAmountError: If amount is not positive or over the limit
        """
        try:
            with self._stores.atomic():
                return self._wallet.add_funds(amount)
        except LedgerError as exc:
            logger.warning(f"Add funds rejected: {exc.message}")
            raise

    def get_wallet_transactions(self, limit: Optional[int] = None) -> Sequence[WalletTransaction]:
        return self._wallet.get_transactions(limit=limit)

    # ========== Trading ==========

    def execute_buy(
        self,
        asset: AssetRef,
        entry_price: Decimal,
        investment_amount: Decimal,
        notes: Optional[str] = None,
    ) -> TradeReceipt:
        """Buy an asset with wallet funds.

        Args:
            asset: Asset to buy
            entry_price: Fill price
            investment_amount: Cash to spend
            notes: Optional note stored on the transaction

        Returns:
            TradeReceipt with the buy transaction, wallet and holding

        Raises:
            InvalidAmountError: If price or amount is not positive
            InsufficientFundsError: If the wallet cannot cover the amount
        """
        try:
            validate_buy_transaction(entry_price, investment_amount, self._wallet.get_balance())
            quantity = calculate_quantity(investment_amount, entry_price)

            with self._stores.atomic():
                wallet = self._wallet.debit(investment_amount, f"Buy {asset.symbol}")
                holding = self._holdings.add_to_portfolio(asset, quantity, entry_price, investment_amount)
                transaction = self._record(
                    asset, TransactionType.BUY, entry_price, quantity, investment_amount, notes
                )
        except LedgerError as exc:
            logger.warning(f"Buy {asset.symbol} rejected: {exc.message}")
            raise

        logger.info(f"Bought {quantity} {asset.symbol} @ {entry_price} for {investment_amount}")
        return TradeReceipt(transaction=transaction, wallet=wallet, holding=holding)

    def execute_sell(
        self,
        asset_id: str,
        exit_price: Decimal,
        *,
        percentage: Optional[Decimal] = None,
        amount: Optional[Decimal] = None,
        quantity: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> TradeReceipt:
        """Sell part or all of a holding.

        Exactly one of percentage, amount or quantity sizes the sell.

        Args:
            asset_id: Asset to sell
            exit_price: Fill price
            percentage: Share of the holding to sell (0-100]
            amount: Cash to raise
            quantity: Quantity to sell
            notes: Optional note stored on the transaction

        Returns:
            TradeReceipt with realized P&L; holding is None if closed

        Raises:
            HoldingNotFoundError: If the asset is not held
            InvalidAmountError: If the sizing or price is invalid
            InsufficientQuantityError: If more is sold than is held
        """
        try:
            holding, exit_quantity, exit_amount = self._size_sell(asset_id, exit_price, percentage, amount, quantity)
            realized_pnl = calculate_realized_profit_loss(exit_quantity, holding.average_entry_price, exit_price)

            with self._stores.atomic():
                remaining, _ = self._holdings.remove_from_portfolio(asset_id, exit_quantity)
                wallet = self._wallet.credit(exit_amount, f"Sell {holding.asset_symbol}")
                transaction = self._record(
                    holding.asset, TransactionType.SELL, exit_price, exit_quantity, exit_amount, notes
                )
        except LedgerError as exc:
            logger.warning(f"Sell {asset_id} rejected: {exc.message}")
            raise

        logger.info(
            f"Sold {exit_quantity} {holding.asset_symbol} @ {exit_price} for {exit_amount} "
            f"(realized P&L {realized_pnl})"
        )
        return TradeReceipt(transaction=transaction, wallet=wallet, holding=remaining, realized_pnl=realized_pnl)

    def preview_sell(
        self,
        asset_id: str,
        exit_price: Decimal,
        *,
        percentage: Optional[Decimal] = None,
        amount: Optional[Decimal] = None,
        quantity: Optional[Decimal] = None,
    ) -> SellPreview:
        """Size a sell and compute its P&L without executing it."""
        holding, exit_quantity, exit_amount = self._size_sell(asset_id, exit_price, percentage, amount, quantity)
        remaining = holding.total_quantity - exit_quantity
        if remaining <= self._config.dust_quantity:
            remaining = ZERO

        return SellPreview(
            asset_id=asset_id,
            quantity=exit_quantity,
            amount=exit_amount,
            exit_price=exit_price,
            average_entry_price=holding.average_entry_price,
            realized_pnl=calculate_realized_profit_loss(exit_quantity, holding.average_entry_price, exit_price),
            remaining_quantity=remaining,
        )

    def _size_sell(
        self,
        asset_id: str,
        exit_price: Decimal,
        percentage: Optional[Decimal],
        amount: Optional[Decimal],
        quantity: Optional[Decimal],
    ) -> tuple[Holding, Decimal, Decimal]:
        method, value = _sell_sizing(percentage, amount, quantity)
        if not is_positive(exit_price):
            raise InvalidAmountError("Exit price must be greater than 0")

        holding = self._holdings.get_holding(asset_id)
        if holding is None:
            raise HoldingNotFoundError(asset_id)

        exit_quantity, exit_amount = resolve_exit(
            method, value, holding.total_quantity, exit_price, self._config.dust_quantity
        )
        validate_sell_transaction(exit_price, exit_quantity, holding.total_quantity, asset_id)
        return holding, exit_quantity, exit_amount

    def _record(
        self,
        asset: AssetRef,
        type: TransactionType,
        price: Decimal,
        quantity: Decimal,
        amount: Decimal,
        notes: Optional[str],
    ) -> Transaction:
        transaction = Transaction(
            asset_id=asset.asset_id,
            asset_symbol=asset.symbol,
            asset_name=asset.name,
            category=asset.category,
            type=type,
            price=price,
            quantity=quantity,
            amount=amount,
            timestamp=self._clock(),
            notes=notes,
        )
        transaction_id = self._stores.log_transaction(transaction=transaction)
        return replace(transaction, id=transaction_id)

    # ========== Portfolio Queries ==========

    def _current_prices(self, holdings: Sequence[Holding]) -> dict[str, Decimal]:
        if self._price_provider is None or not holdings:
            return {}
        try:
            return dict(self._price_provider.get_current_prices([h.asset_id for h in holdings]))
        except Exception as e:
            logger.error(f"Price lookup failed, valuing at entry prices: {e}")
            return {}

    def _value(self, holdings: Sequence[Holding]) -> list[ValuedHolding]:
        prices = self._current_prices(holdings)
        valued = []
        for holding in holdings:
            price = prices.get(holding.asset_id)
            if price is None or not is_positive(price):
                price = holding.average_entry_price
            valued.append(value_holding(holding, price))
        return valued

    def get_portfolio(self, category: Optional[AssetCategory] = None) -> list[ValuedHolding]:
        """Open holdings valued at current prices, largest invested first.

        Holdings without a current price are valued at their average entry
        price.
        """
        return self._value(self._holdings.get_holdings(category=category))

    def get_holding(self, asset_id: str) -> ValuedHolding:
        """Get one valued holding.

        Raises:
            HoldingNotFoundError: If the asset is not held
        """
        holding = self._holdings.get_holding(asset_id)
        if holding is None:
            raise HoldingNotFoundError(asset_id)
        return self._value([holding])[0]

    def get_portfolio_summary(self, category: Optional[AssetCategory] = None) -> PortfolioSummary:
        return calculate_portfolio_summary(self.get_portfolio(category=category))

    def get_transactions(
        self,
        limit: Optional[int] = None,
        asset_id: Optional[str] = None,
    ) -> Sequence[Transaction]:
        """Trade history, newest first."""
        return self._stores.get_transactions(limit=limit, asset_id=asset_id)

    def get_recent_transactions(self) -> Sequence[Transaction]:
        return self._stores.get_transactions(limit=self._config.recent_activity_limit)

    def get_realized_pnl(self) -> Decimal:
        """Total P&L realized by all sells in the history."""
        return calculate_total_realized_pnl(self._stores.get_transactions(), self._config.dust_quantity)

    def get_overview(self) -> dict[str, Any]:
        """Get wallet, portfolio and P&L in one summary.

        Returns:
            Dict with wallet balance, portfolio summary, realized P&L and
            net worth (balance + current portfolio value)
        """
        wallet = self._wallet.get_wallet()
        summary = self.get_portfolio_summary()
        return {
            "currency": self.currency,
            "wallet_balance": wallet.current_balance,
            "total_funds_added": wallet.total_funds_added,
            "total_funds_used": wallet.total_funds_used,
            "portfolio": summary,
            "realized_pnl": self.get_realized_pnl(),
            "net_worth": wallet.current_balance + summary.current_value,
        }
