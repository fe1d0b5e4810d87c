"""Portfolio holdings.

One holding per asset, carrying quantity, weighted-average entry price and
invested capital.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence

from papertrade.calculations import apply_buy, apply_sell, is_positive
from papertrade.errors import HoldingNotFoundError, InsufficientQuantityError, InvalidAmountError
from papertrade.persistence.interfaces import HoldingStore
from papertrade.types import AssetCategory, AssetRef, Holding


class HoldingManager:
    """Manages portfolio holdings.

    Supports:
    - Open/average into holdings
    - Reduce/close holdings with proportional invested capital
    - Holding queries
    """

    def __init__(
        self,
        store: HoldingStore,
        dust_quantity: Decimal = Decimal("0"),
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize holding manager.

        Args:
            store: Holding persistence
            dust_quantity: Remainders at or below this close the holding
            clock: Returns the current time (defaults to UTC now)
        """
        self._store = store
        self._dust_quantity = dust_quantity
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_holding(self, asset_id: str) -> Optional[Holding]:
        return self._store.get_holding(asset_id=asset_id)

    def get_holdings(self, category: Optional[AssetCategory] = None) -> Sequence[Holding]:
        """Open holdings, largest invested capital first."""
        return self._store.get_holdings(category=category)

    def add_to_portfolio(
        self,
        asset: AssetRef,
        quantity: Decimal,
        price: Decimal,
        amount: Decimal,
    ) -> Holding:
        """Open a new holding or average into an existing one.

        Args:
            asset: Asset being bought
            quantity: Quantity bought (must be > 0)
            price: Fill price (must be > 0)
            amount: Cash spent (must be > 0)

        Returns:
            Updated or new Holding

        Raises:
            InvalidAmountError: If quantity, price or amount is not positive
        """
        if not is_positive(quantity):
            raise InvalidAmountError("Quantity must be positive")
        if not is_positive(price):
            raise InvalidAmountError("Price must be positive")
        if not is_positive(amount):
            raise InvalidAmountError("Amount must be positive")

        existing = self._store.get_holding(asset_id=asset.asset_id)
        holding = apply_buy(existing, asset, quantity, price, amount, self._clock())
        holding_id = self._store.upsert_holding(holding=holding)
        return replace(holding, id=holding_id)

    def remove_from_portfolio(self, asset_id: str, quantity: Decimal) -> tuple[Optional[Holding], Decimal]:
        """Reduce or close a holding.

        Args:
            asset_id: Asset to sell
            quantity: Quantity sold (must be > 0)

        Returns:
            Tuple of (remaining holding or None if closed, invested capital released)

        Raises:
            HoldingNotFoundError: If the asset is not held
            InsufficientQuantityError: If quantity exceeds the holding
        """
        if not is_positive(quantity):
            raise InvalidAmountError("Quantity must be positive")

        existing = self._store.get_holding(asset_id=asset_id)
        if existing is None:
            raise HoldingNotFoundError(asset_id)
        if existing.total_quantity < quantity:
            raise InsufficientQuantityError(asset_id=asset_id, requested=quantity, available=existing.total_quantity)

        remaining, invested_sold = apply_sell(existing, quantity, self._clock(), self._dust_quantity)
        if remaining is None:
            self._store.delete_holding(asset_id=asset_id)
            return None, invested_sold

        self._store.upsert_holding(holding=remaining)
        return remaining, invested_sold
