"""Virtual wallet.

Every movement updates the wallet totals and appends a wallet transaction
whose balance_after matches the new balance, so that
current_balance == total_funds_added - total_funds_used always holds.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence

from papertrade.calculations import is_positive
from papertrade.errors import InsufficientFundsError, InvalidAmountError, WalletNotFoundError
from papertrade.persistence.interfaces import WalletStore
from papertrade.types import Wallet, WalletTransaction

logger = logging.getLogger(__name__)


class WalletManager:
    """Manages the virtual cash balance.

    Supports:
    - User top-ups (capped per request)
    - Credit/debit for trade settlement
    - Movement history
    """

    def __init__(
        self,
        store: WalletStore,
        max_fund_amount: Decimal = Decimal("1000000"),
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize wallet manager.

        Args:
            store: Wallet persistence
            max_fund_amount: Largest single top-up accepted by add_funds
            clock: Returns the current time (defaults to UTC now)
        """
        self._store = store
        self._max_fund_amount = max_fund_amount
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_wallet(self) -> Wallet:
        """Get the wallet.

        Raises:
            WalletNotFoundError: If the store has not been initialized
        """
        wallet = self._store.get_wallet()
        if wallet is None:
            raise WalletNotFoundError()
        return wallet

    def get_balance(self) -> Decimal:
        return self.get_wallet().current_balance

    def add_funds(self, amount: Decimal) -> Wallet:
        """Top up the wallet with virtual funds.

        Args:
            amount: Amount to add (0 < amount <= max_fund_amount)

        Returns:
            Updated wallet

        Raises:
            InvalidAmountError: If amount is not positive or over the limit
        """
        if not is_positive(amount):
            raise InvalidAmountError("Please enter a valid amount")
        if amount > self._max_fund_amount:
            raise InvalidAmountError(f"Maximum amount is {self._max_fund_amount}")
        return self.credit(amount, "Virtual funds added")

    def credit(self, amount: Decimal, description: str) -> Wallet:
        """Add funds to the balance.

        Args:
            amount: Amount to add (must be > 0)
            description: Shown in the wallet history

        Returns:
            Updated wallet

        Raises:
            InvalidAmountError: If amount is not positive
        """
        if not is_positive(amount):
            raise InvalidAmountError("Credit amount must be positive")

        wallet = self.get_wallet()
        now = self._clock()
        updated = Wallet(
            id=wallet.id,
            total_funds_added=wallet.total_funds_added + amount,
            total_funds_used=wallet.total_funds_used,
            current_balance=wallet.current_balance + amount,
            last_updated=now,
        )
        self._store.save_wallet(wallet=updated)
        self._store.log_wallet_transaction(
            transaction=WalletTransaction(
                type="add",
                amount=amount,
                description=description,
                balance_after=updated.current_balance,
                timestamp=now,
            )
        )
        logger.info(f"Wallet credit {amount} ({description}), balance {updated.current_balance}")
        return updated

    def debit(self, amount: Decimal, description: str) -> Wallet:
        """Remove funds from the balance.

        Args:
            amount: Amount to remove (must be > 0)
            description: Shown in the wallet history

        Returns:
            Updated wallet

        Raises:
            InvalidAmountError: If amount is not positive
            InsufficientFundsError: If the balance is below amount
        """
        if not is_positive(amount):
            raise InvalidAmountError("Debit amount must be positive")

        wallet = self.get_wallet()
        if wallet.current_balance < amount:
            raise InsufficientFundsError(required=amount, available=wallet.current_balance)

        now = self._clock()
        updated = Wallet(
            id=wallet.id,
            total_funds_added=wallet.total_funds_added,
            total_funds_used=wallet.total_funds_used + amount,
            current_balance=wallet.current_balance - amount,
            last_updated=now,
        )
        self._store.save_wallet(wallet=updated)
        self._store.log_wallet_transaction(
            transaction=WalletTransaction(
                type="deduct",
                amount=amount,
                description=description,
                balance_after=updated.current_balance,
                timestamp=now,
            )
        )
        logger.info(f"Wallet debit {amount} ({description}), balance {updated.current_balance}")
        return updated

    def get_transactions(self, limit: Optional[int] = None) -> Sequence[WalletTransaction]:
        """Wallet movements, newest first."""
        return self._store.get_wallet_transactions(limit=limit)
