"""Tests for the virtual wallet."""

from decimal import Decimal

import pytest

from papertrade.errors import InsufficientFundsError, InvalidAmountError, WalletNotFoundError
from papertrade.portfolio import WalletManager
from papertrade.storage import InMemoryStores


def _assert_conserved(wallet) -> None:
    assert wallet.current_balance == wallet.total_funds_added - wallet.total_funds_used


class TestWalletManager:
    """Tests for WalletManager."""

    def test_initial_wallet(self, memory_stores, clock) -> None:
        """Test the seeded wallet and its opening movement."""
        wallet = WalletManager(memory_stores, clock=clock).get_wallet()
        assert wallet.current_balance == Decimal("100000")
        assert wallet.total_funds_added == Decimal("100000")
        assert wallet.total_funds_used == Decimal("0")

        (opening,) = memory_stores.get_wallet_transactions()
        assert opening.type == "add"
        assert opening.description == "Initial virtual funds"
        assert opening.balance_after == Decimal("100000")

    def test_uninitialized_store_raises(self) -> None:
        with pytest.raises(WalletNotFoundError):
            WalletManager(InMemoryStores()).get_wallet()

    def test_add_funds(self, memory_stores, clock) -> None:
        mgr = WalletManager(memory_stores, clock=clock)
        wallet = mgr.add_funds(Decimal("5000"))
        assert wallet.current_balance == Decimal("105000")
        assert wallet.total_funds_added == Decimal("105000")
        _assert_conserved(wallet)

        latest = mgr.get_transactions(limit=1)[0]
        assert latest.type == "add"
        assert latest.amount == Decimal("5000")
        assert latest.description == "Virtual funds added"
        assert latest.balance_after == Decimal("105000")

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_add_funds_rejects_non_positive(self, memory_stores, amount: str) -> None:
        with pytest.raises(InvalidAmountError, match="valid amount"):
            WalletManager(memory_stores).add_funds(Decimal(amount))

    def test_add_funds_limit(self, memory_stores) -> None:
        """Test top-ups above the maximum are rejected and the cap itself is allowed."""
        mgr = WalletManager(memory_stores, max_fund_amount=Decimal("1000000"))
        with pytest.raises(InvalidAmountError, match="Maximum amount"):
            mgr.add_funds(Decimal("1000000.01"))
        assert mgr.add_funds(Decimal("1000000")).current_balance == Decimal("1100000")

    def test_debit(self, memory_stores, clock) -> None:
        mgr = WalletManager(memory_stores, clock=clock)
        wallet = mgr.debit(Decimal("2500"), "Buy BTC")
        assert wallet.current_balance == Decimal("97500")
        assert wallet.total_funds_used == Decimal("2500")
        _assert_conserved(wallet)

        latest = mgr.get_transactions(limit=1)[0]
        assert latest.type == "deduct"
        assert latest.description == "Buy BTC"
        assert latest.balance_after == Decimal("97500")

    def test_debit_insufficient(self, memory_stores) -> None:
        """Test an overdraft is rejected and leaves no trace."""
        mgr = WalletManager(memory_stores)
        with pytest.raises(InsufficientFundsError, match="Insufficient funds"):
            mgr.debit(Decimal("100000.01"), "Buy BTC")
        assert mgr.get_balance() == Decimal("100000")
        assert len(mgr.get_transactions()) == 1

    def test_debit_entire_balance(self, memory_stores) -> None:
        assert WalletManager(memory_stores).debit(Decimal("100000"), "Buy BTC").current_balance == 0

    def test_credit(self, memory_stores, clock) -> None:
        mgr = WalletManager(memory_stores, clock=clock)
        wallet = mgr.credit(Decimal("1234.5"), "Sell BTC")
        assert wallet.current_balance == Decimal("101234.5")
        _assert_conserved(wallet)

    def test_credit_debit_reject_non_positive(self, memory_stores) -> None:
        mgr = WalletManager(memory_stores)
        with pytest.raises(InvalidAmountError):
            mgr.credit(Decimal("0"), "x")
        with pytest.raises(InvalidAmountError):
            mgr.debit(Decimal("-1"), "x")

    @pytest.mark.parametrize("amount", ["NaN", "Infinity"])
    def test_non_finite_amounts_rejected(self, memory_stores, amount: str) -> None:
        mgr = WalletManager(memory_stores)
        with pytest.raises(InvalidAmountError, match="valid amount"):
            mgr.add_funds(Decimal(amount))
        with pytest.raises(InvalidAmountError):
            mgr.credit(Decimal(amount), "x")
        with pytest.raises(InvalidAmountError):
            mgr.debit(Decimal(amount), "x")
        assert mgr.get_balance() == Decimal("100000")
        assert len(mgr.get_transactions()) == 1

    def test_history_newest_first(self, memory_stores, clock) -> None:
        mgr = WalletManager(memory_stores, clock=clock)
        mgr.add_funds(Decimal("1"))
        mgr.debit(Decimal("2"), "Buy BTC")
        descriptions = [tx.description for tx in mgr.get_transactions()]
        assert descriptions == ["Buy BTC", "Virtual funds added", "Initial virtual funds"]

    def test_balance_after_tracks_every_movement(self, memory_stores, clock) -> None:
        """Test each movement's balance_after matches the running balance."""
        mgr = WalletManager(memory_stores, clock=clock)
        mgr.add_funds(Decimal("500"))
        mgr.debit(Decimal("300"), "Buy BTC")
        mgr.credit(Decimal("50"), "Sell BTC")

        running = Decimal("0")
        for tx in reversed(mgr.get_transactions()):
            running += tx.amount if tx.type == "add" else -tx.amount
            assert tx.balance_after == running
        assert running == mgr.get_balance()
