"""Tests for the trade coordinator.

Runs against both the in-memory and SQLite stores.
"""

from decimal import Decimal

import pytest

from papertrade.config import LedgerConfig
from papertrade.errors import (
    HoldingNotFoundError,
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidAmountError,
)
from papertrade.market_data import FixedPriceProvider
from papertrade.portfolio import PortfolioManager
from papertrade.types import AssetCategory, TransactionType


def _assert_conserved(manager: PortfolioManager) -> None:
    wallet = manager.get_wallet()
    assert wallet.current_balance == wallet.total_funds_added - wallet.total_funds_used
    assert manager.get_wallet_transactions(limit=1)[0].balance_after == wallet.current_balance


@pytest.fixture
def averaged(manager, btc) -> PortfolioManager:
    """Manager holding 200 BTC bought at 10 and 30 (average 20)."""
    manager.execute_buy(btc, Decimal("10"), Decimal("1000"))
    manager.execute_buy(btc, Decimal("30"), Decimal("3000"))
    return manager


class TestExecuteBuy:
    """Tests for buys."""

    def test_buy_records_everything(self, manager, btc) -> None:
        receipt = manager.execute_buy(btc, Decimal("10"), Decimal("1000"), notes="first")

        assert receipt.transaction.id is not None
        assert receipt.transaction.type == TransactionType.BUY
        assert receipt.transaction.quantity == Decimal("100")
        assert receipt.transaction.amount == Decimal("1000")
        assert receipt.transaction.notes == "first"
        assert receipt.wallet.current_balance == Decimal("99000")
        assert receipt.holding.total_quantity == Decimal("100")
        assert receipt.realized_pnl is None

        movement = manager.get_wallet_transactions(limit=1)[0]
        assert movement.type == "deduct"
        assert movement.description == "Buy BTC"
        _assert_conserved(manager)

    def test_buy_averages_in(self, averaged) -> None:
        holding = averaged.get_holding("BTC").holding
        assert holding.total_quantity == Decimal("200")
        assert holding.total_invested == Decimal("4000")
        assert holding.average_entry_price == holding.total_invested / holding.total_quantity
        assert holding.average_entry_price == Decimal("20")

    def test_buy_insufficient_funds_changes_nothing(self, manager, btc) -> None:
        with pytest.raises(InsufficientFundsError):
            manager.execute_buy(btc, Decimal("10"), Decimal("100000.01"))

        assert manager.get_wallet().current_balance == Decimal("100000")
        assert list(manager.get_transactions()) == []
        assert manager.get_portfolio() == []

    @pytest.mark.parametrize(("price", "amount"), [("0", "100"), ("10", "0"), ("10", "-5")])
    def test_buy_invalid_input(self, manager, btc, price: str, amount: str) -> None:
        with pytest.raises(InvalidAmountError):
            manager.execute_buy(btc, Decimal(price), Decimal(amount))

    def test_buy_whole_balance(self, manager, btc) -> None:
        receipt = manager.execute_buy(btc, Decimal("50"), Decimal("100000"))
        assert receipt.wallet.current_balance == 0
        assert receipt.holding.total_quantity == Decimal("2000")


class TestExecuteSell:
    """Tests for sells."""

    def test_sell_by_percentage(self, averaged) -> None:
        """Test a partial sell keeps the average and realizes P&L against it."""
        receipt = averaged.execute_sell("BTC", Decimal("40"), percentage=Decimal("25"))

        assert receipt.transaction.type == TransactionType.SELL
        assert receipt.transaction.quantity == Decimal("50")
        assert receipt.transaction.amount == Decimal("2000")
        assert receipt.realized_pnl == Decimal("1000")
        assert receipt.holding.total_quantity == Decimal("150")
        assert receipt.holding.total_invested == Decimal("3000")
        assert receipt.holding.average_entry_price == Decimal("20")

        wallet = receipt.wallet
        assert wallet.current_balance == Decimal("98000")
        assert wallet.total_funds_added == Decimal("102000")
        assert wallet.total_funds_used == Decimal("4000")

        movement = averaged.get_wallet_transactions(limit=1)[0]
        assert movement.type == "add"
        assert movement.description == "Sell BTC"
        _assert_conserved(averaged)

    def test_sell_by_amount(self, averaged) -> None:
        receipt = averaged.execute_sell("BTC", Decimal("40"), amount=Decimal("2000"))
        assert receipt.transaction.quantity == Decimal("50")
        assert receipt.realized_pnl == Decimal("1000")

    def test_sell_by_quantity(self, averaged) -> None:
        receipt = averaged.execute_sell("BTC", Decimal("5"), quantity=Decimal("50"))
        assert receipt.transaction.amount == Decimal("250")
        assert receipt.realized_pnl == Decimal("-750")

    def test_sell_everything_closes_holding(self, averaged) -> None:
        receipt = averaged.execute_sell("BTC", Decimal("20"), percentage=Decimal("100"))
        assert receipt.holding is None
        assert receipt.realized_pnl == 0
        assert averaged.get_portfolio() == []
        with pytest.raises(HoldingNotFoundError):
            averaged.get_holding("BTC")

    def test_amount_exit_with_division_tail_closes(self, manager, btc) -> None:
        """Test selling a whole non-terminating position by amount leaves nothing behind."""
        manager.execute_buy(btc, Decimal("3"), Decimal("100"))
        receipt = manager.execute_sell("BTC", Decimal("3"), amount=Decimal("100"))
        assert receipt.holding is None
        assert manager.get_wallet().current_balance == Decimal("100000")

    def test_sell_unknown_asset(self, manager) -> None:
        with pytest.raises(HoldingNotFoundError):
            manager.execute_sell("BTC", Decimal("40"), percentage=Decimal("10"))

    def test_sell_too_much(self, averaged) -> None:
        with pytest.raises(InsufficientQuantityError):
            averaged.execute_sell("BTC", Decimal("40"), quantity=Decimal("201"))
        assert averaged.get_holding("BTC").holding.total_quantity == Decimal("200")

    @pytest.mark.parametrize(
        "sizing",
        [
            {},
            {"percentage": Decimal("10"), "amount": Decimal("10")},
            {"percentage": Decimal("0")},
            {"percentage": Decimal("101")},
            {"quantity": Decimal("-1")},
        ],
    )
    def test_sell_invalid_sizing(self, averaged, sizing) -> None:
        with pytest.raises(InvalidAmountError):
            averaged.execute_sell("BTC", Decimal("40"), **sizing)

    def test_sell_invalid_price(self, averaged) -> None:
        with pytest.raises(InvalidAmountError, match="Exit price"):
            averaged.execute_sell("BTC", Decimal("0"), percentage=Decimal("10"))

    def test_preview_matches_sell_without_mutating(self, averaged) -> None:
        preview = averaged.preview_sell("BTC", Decimal("40"), percentage=Decimal("25"))
        assert preview.quantity == Decimal("50")
        assert preview.amount == Decimal("2000")
        assert preview.realized_pnl == Decimal("1000")
        assert preview.remaining_quantity == Decimal("150")
        assert preview.average_entry_price == Decimal("20")

        assert averaged.get_holding("BTC").holding.total_quantity == Decimal("200")
        assert averaged.get_wallet().current_balance == Decimal("96000")

    def test_preview_full_exit(self, averaged) -> None:
        preview = averaged.preview_sell("BTC", Decimal("40"), percentage=Decimal("100"))
        assert preview.remaining_quantity == 0


class TestNonFiniteInput:
    """Tests for NaN and infinite amounts reaching the coordinator."""

    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    def test_buy_rejected(self, manager, btc, value: str) -> None:
        with pytest.raises(InvalidAmountError):
            manager.execute_buy(btc, Decimal("40"), Decimal(value))
        with pytest.raises(InvalidAmountError):
            manager.execute_buy(btc, Decimal(value), Decimal("40"))
        assert manager.get_wallet().current_balance == Decimal("100000")
        assert manager.get_transactions() == []

    def test_add_funds_rejected(self, manager) -> None:
        with pytest.raises(InvalidAmountError, match="valid amount"):
            manager.add_funds(Decimal("NaN"))
        _assert_conserved(manager)

    @pytest.mark.parametrize("sizing", ["percentage", "amount", "quantity"])
    def test_sell_sizing_rejected(self, averaged, sizing: str) -> None:
        with pytest.raises(InvalidAmountError):
            averaged.execute_sell("BTC", Decimal("40"), **{sizing: Decimal("NaN")})
        with pytest.raises(InvalidAmountError, match="Exit price"):
            averaged.preview_sell("BTC", Decimal("NaN"), **{sizing: Decimal("10")})
        assert averaged.get_holding("BTC").holding.total_quantity == Decimal("200")

    def test_nan_market_price_values_at_entry(self, averaged, prices) -> None:
        prices.set_price("BTC", Decimal("NaN"))
        assert averaged.get_holding("BTC").current_price == Decimal("20")


class TestConservation:
    """Tests for wallet accounting across trade sequences."""

    def test_realized_pnl_matches_receipts_after_dust_close(self, manager, btc) -> None:
        """Test history replay agrees with the receipts when a dust remainder closes a holding."""
        manager.execute_buy(btc, Decimal("40"), Decimal("40"))
        receipts = [manager.execute_sell("BTC", Decimal("40"), quantity=Decimal("0.999995"))]
        assert receipts[0].holding is None

        manager.execute_buy(btc, Decimal("50"), Decimal("50"))
        receipts.append(manager.execute_sell("BTC", Decimal("60"), percentage=Decimal("100")))

        total = sum((r.realized_pnl for r in receipts), Decimal("0"))
        assert total == Decimal("10")
        assert manager.get_realized_pnl() == total
        assert manager.get_overview()["realized_pnl"] == total

    def test_round_trip_at_same_price(self, manager, btc, aapl) -> None:
        """Test buying and fully selling at the entry price restores the balance."""
        manager.add_funds(Decimal("2500"))
        manager.execute_buy(btc, Decimal("40"), Decimal("4000"))
        manager.execute_buy(aapl, Decimal("150"), Decimal("1500"))
        manager.execute_sell("BTC", Decimal("40"), percentage=Decimal("50"))
        manager.execute_sell("BTC", Decimal("40"), percentage=Decimal("100"))
        manager.execute_sell("AAPL", Decimal("150"), quantity=Decimal("10"))

        wallet = manager.get_wallet()
        assert wallet.current_balance == Decimal("102500")
        assert manager.get_realized_pnl() == 0
        assert manager.get_portfolio() == []
        _assert_conserved(manager)

    def test_balance_plus_invested_tracks_realized(self, averaged) -> None:
        """Test cash plus invested capital moves only by realized P&L."""
        averaged.execute_sell("BTC", Decimal("40"), percentage=Decimal("25"))
        averaged.execute_sell("BTC", Decimal("8"), quantity=Decimal("30"))

        wallet = averaged.get_wallet()
        invested = averaged.get_portfolio_summary().total_invested
        assert wallet.current_balance + invested == Decimal("100000") + averaged.get_realized_pnl()
        assert averaged.get_realized_pnl() == Decimal("640")


class TestAtomicity:
    """Tests for all-or-nothing trades."""

    def test_failed_buy_rolls_back(self, manager, ledger_stores, btc, monkeypatch) -> None:
        def boom(**_kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(ledger_stores, "log_transaction", boom)
        with pytest.raises(RuntimeError, match="disk full"):
            manager.execute_buy(btc, Decimal("10"), Decimal("1000"))
        monkeypatch.undo()

        assert manager.get_wallet().current_balance == Decimal("100000")
        assert len(manager.get_wallet_transactions()) == 1
        assert manager.get_portfolio() == []

    def test_failed_sell_rolls_back(self, averaged, ledger_stores, monkeypatch) -> None:
        def boom(**_kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(ledger_stores, "log_transaction", boom)
        with pytest.raises(RuntimeError):
            averaged.execute_sell("BTC", Decimal("40"), percentage=Decimal("100"))
        monkeypatch.undo()

        assert averaged.get_wallet().current_balance == Decimal("96000")
        assert averaged.get_holding("BTC").holding.total_quantity == Decimal("200")
        assert len(averaged.get_transactions()) == 2


class TestQueries:
    """Tests for portfolio and history queries."""

    def test_portfolio_valued_at_current_prices(self, averaged, prices) -> None:
        (valued,) = averaged.get_portfolio()
        assert valued.current_price == Decimal("40")
        assert valued.current_value == Decimal("8000")
        assert valued.profit_loss == Decimal("4000")
        assert valued.profit_loss_percent == Decimal("100")

    def test_missing_price_falls_back_to_entry(self, ledger_stores, config, clock, btc) -> None:
        manager = PortfolioManager(ledger_stores, config=config, price_provider=FixedPriceProvider(), clock=clock)
        manager.execute_buy(btc, Decimal("10"), Decimal("1000"))
        (valued,) = manager.get_portfolio()
        assert valued.current_price == Decimal("10")
        assert valued.profit_loss == 0

    def test_failing_price_provider_falls_back_to_entry(self, ledger_stores, config, clock, btc) -> None:
        class BrokenProvider:
            def get_current_price(self, asset_id):
                raise ConnectionError("offline")

            def get_current_prices(self, asset_ids):
                raise ConnectionError("offline")

        manager = PortfolioManager(ledger_stores, config=config, price_provider=BrokenProvider(), clock=clock)
        manager.execute_buy(btc, Decimal("10"), Decimal("1000"))
        assert manager.get_portfolio()[0].current_price == Decimal("10")

    def test_summary_by_category(self, averaged, aapl) -> None:
        averaged.execute_buy(aapl, Decimal("100"), Decimal("1000"))

        everything = averaged.get_portfolio_summary()
        assert everything.total_holdings == 2
        assert everything.total_invested == Decimal("5000")
        assert everything.current_value == Decimal("9500")

        crypto = averaged.get_portfolio_summary(category=AssetCategory.CRYPTO)
        assert crypto.total_holdings == 1
        assert crypto.total_invested == Decimal("4000")

    def test_transactions_newest_first_and_filtered(self, averaged, aapl) -> None:
        averaged.execute_buy(aapl, Decimal("100"), Decimal("1000"))
        transactions = averaged.get_transactions()
        assert [t.asset_id for t in transactions] == ["AAPL", "BTC", "BTC"]
        assert [t.price for t in averaged.get_transactions(asset_id="BTC")] == [Decimal("30"), Decimal("10")]
        assert len(averaged.get_transactions(limit=1)) == 1

    def test_recent_transactions_limit(self, ledger_stores, clock, prices, btc) -> None:
        manager = PortfolioManager(
            ledger_stores, config=LedgerConfig(recent_activity_limit=2), price_provider=prices, clock=clock
        )
        for _ in range(3):
            manager.execute_buy(btc, Decimal("10"), Decimal("10"))
        assert len(manager.get_recent_transactions()) == 2

    def test_overview(self, averaged) -> None:
        averaged.execute_sell("BTC", Decimal("40"), percentage=Decimal("25"))
        overview = averaged.get_overview()

        assert overview["currency"] == "USD"
        assert overview["wallet_balance"] == Decimal("98000")
        assert overview["realized_pnl"] == Decimal("1000")
        assert overview["portfolio"].current_value == Decimal("6000")
        assert overview["net_worth"] == Decimal("104000")


class TestLifecycle:
    """Tests for initialize/reset through the manager."""

    def test_initialize_is_idempotent(self, manager) -> None:
        manager.initialize()
        manager.initialize()
        assert manager.get_wallet().current_balance == Decimal("100000")
        assert len(manager.get_wallet_transactions()) == 1

    def test_reset_clears_ledger(self, averaged) -> None:
        averaged.favourites.add(averaged.get_holding("BTC").holding.asset)
        averaged.reset()

        assert averaged.get_wallet().current_balance == Decimal("100000")
        assert averaged.get_portfolio() == []
        assert list(averaged.get_transactions()) == []
        assert list(averaged.favourites.list()) == []
