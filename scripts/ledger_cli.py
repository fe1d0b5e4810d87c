#!/usr/bin/env python3
"""Command-line access to the paper-trading ledger.

Works directly against the database (no API server needed).

Usage:
    python scripts/ledger_cli.py wallet
    python scripts/ledger_cli.py add-funds 5000
    python scripts/ledger_cli.py buy BTC 1000 [--price 42000]
    python scripts/ledger_cli.py sell BTC --percentage 50 [--price 45000]
    python scripts/ledger_cli.py portfolio [--category crypto]
    python scripts/ledger_cli.py history [--limit 20] [--asset BTC] [--wallet]
    python scripts/ledger_cli.py favourites [--add ETH | --remove ETH]

Environment:
    DATABASE_URL - Optional. SQLAlchemy URL (default: sqlite:///papertrade.db)
"""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Sequence

# Add project root to path
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from papertrade.config import LedgerConfig  # noqa: E402
from papertrade.errors import LedgerError  # noqa: E402
from papertrade.formatting import (  # noqa: E402
    format_currency,
    format_date,
    format_percentage,
    format_quantity,
)
from papertrade.market_data import MockMarketData  # noqa: E402
from papertrade.portfolio import PortfolioManager  # noqa: E402
from papertrade.storage import SqlConfig, SqlStores  # noqa: E402
from papertrade.types import ASSET_CATEGORY_NAMES, AssetCategory  # noqa: E402

logger = logging.getLogger("ledger-cli")


def _decimal(value: str) -> Decimal:
    try:
        number = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if not number.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite number: {value!r}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Paper-trading ledger CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("wallet", help="Show wallet balance and totals")

    add_funds = sub.add_parser("add-funds", help="Add virtual funds")
    add_funds.add_argument("amount", type=_decimal)

    buy = sub.add_parser("buy", help="Buy an asset with wallet funds")
    buy.add_argument("asset_id")
    buy.add_argument("amount", type=_decimal, help="Cash to invest")
    buy.add_argument("--price", type=_decimal, default=None, help="Entry price (default: market price)")

    sell = sub.add_parser("sell", help="Sell part or all of a holding")
    sell.add_argument("asset_id")
    sizing = sell.add_mutually_exclusive_group(required=True)
    sizing.add_argument("--percentage", type=_decimal)
    sizing.add_argument("--amount", type=_decimal)
    sizing.add_argument("--quantity", type=_decimal)
    sell.add_argument("--price", type=_decimal, default=None, help="Exit price (default: market price)")

    portfolio = sub.add_parser("portfolio", help="Show holdings and P&L")
    portfolio.add_argument("--category", choices=[c.value for c in AssetCategory], default=None)

    history = sub.add_parser("history", help="Show trade or wallet history")
    history.add_argument("--limit", type=int, default=None)
    history.add_argument("--asset", default=None, help="Only trades for this asset")
    history.add_argument("--wallet", action="store_true", help="Show wallet movements instead of trades")

    favourites = sub.add_parser("favourites", help="List or edit the wishlist")
    edit = favourites.add_mutually_exclusive_group()
    edit.add_argument("--add", metavar="ASSET_ID")
    edit.add_argument("--remove", metavar="ASSET_ID")

    return parser


def _print_wallet(manager: PortfolioManager, currency: str) -> None:
    wallet = manager.get_wallet()
    print(f"Balance:     {format_currency(wallet.current_balance, currency)}")
    print(f"Funds added: {format_currency(wallet.total_funds_added, currency)}")
    print(f"Funds used:  {format_currency(wallet.total_funds_used, currency)}")


def _print_portfolio(manager: PortfolioManager, currency: str, category: Optional[AssetCategory]) -> None:
    holdings = manager.get_portfolio(category=category)
    if not holdings:
        print("No holdings")
        return

    for valued in holdings:
        h = valued.holding
        print(
            f"{h.asset_symbol:<10} {ASSET_CATEGORY_NAMES[h.category]:<18} "
            f"qty {format_quantity(h.total_quantity):>14}  "
            f"avg {format_currency(h.average_entry_price, currency):>14}  "
            f"value {format_currency(valued.current_value, currency):>14}  "
            f"P&L {format_currency(valued.profit_loss, currency)} ({format_percentage(valued.profit_loss_percent)})"
        )

    summary = manager.get_portfolio_summary(category=category)
    print()
    print(f"Invested: {format_currency(summary.total_invested, currency)}")
    print(f"Value:    {format_currency(summary.current_value, currency)}")
    print(f"P&L:      {format_currency(summary.profit_loss, currency)} ({format_percentage(summary.profit_loss_percent)})")


def _print_history(manager: PortfolioManager, currency: str, args: argparse.Namespace) -> None:
    if args.wallet:
        for wtx in manager.get_wallet_transactions(limit=args.limit):
            sign = "+" if wtx.type == "add" else "-"
            print(
                f"{format_date(wtx.timestamp)}  {sign}{format_currency(wtx.amount, currency):<16} "
                f"{wtx.description:<24} balance {format_currency(wtx.balance_after, currency)}"
            )
        return

    transactions = manager.get_transactions(limit=args.limit, asset_id=args.asset)
    if not transactions:
        print("No transactions")
        return
    for tx in transactions:
        print(
            f"{format_date(tx.timestamp)}  {tx.type.value.upper():<4} {tx.asset_symbol:<10} "
            f"{format_quantity(tx.quantity):>14} @ {format_currency(tx.price, currency):<14} "
            f"= {format_currency(tx.amount, currency)}"
        )


def run(args: argparse.Namespace, manager: PortfolioManager, market_data: MockMarketData) -> int:
    currency = manager.currency

    if args.command == "wallet":
        _print_wallet(manager, currency)
    elif args.command == "add-funds":
        wallet = manager.add_funds(args.amount)
        print(f"Added {format_currency(args.amount, currency)}; balance {format_currency(wallet.current_balance, currency)}")
    elif args.command == "buy":
        asset = market_data.get_asset_details(args.asset_id)
        price = args.price if args.price is not None else asset.current_price
        receipt = manager.execute_buy(asset.ref, price, args.amount)
        tx = receipt.transaction
        print(
            f"Bought {format_quantity(tx.quantity)} {tx.asset_symbol} @ {format_currency(tx.price, currency)}; "
            f"balance {format_currency(receipt.wallet.current_balance, currency)}"
        )
    elif args.command == "sell":
        price = args.price if args.price is not None else manager.get_holding(args.asset_id).current_price
        receipt = manager.execute_sell(
            args.asset_id,
            price,
            percentage=args.percentage,
            amount=args.amount,
            quantity=args.quantity,
        )
        tx = receipt.transaction
        print(
            f"Sold {format_quantity(tx.quantity)} {tx.asset_symbol} @ {format_currency(tx.price, currency)}; "
            f"realized P&L {format_currency(receipt.realized_pnl or Decimal('0'), currency)}; "
            f"balance {format_currency(receipt.wallet.current_balance, currency)}"
        )
    elif args.command == "portfolio":
        category = AssetCategory(args.category) if args.category else None
        _print_portfolio(manager, currency, category)
    elif args.command == "history":
        _print_history(manager, currency, args)
    elif args.command == "favourites":
        if args.add:
            asset = market_data.get_asset_details(args.add)
            manager.favourites.add(asset.ref)
        elif args.remove:
            manager.favourites.remove(args.remove)
        for fav in manager.favourites.list():
            print(f"{fav.symbol:<10} {fav.name:<28} {ASSET_CATEGORY_NAMES[fav.category]}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = LedgerConfig.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    stores = SqlStores(config=SqlConfig(database_url=config.database_url))
    market_data = MockMarketData()
    manager = PortfolioManager(stores, config=config, price_provider=market_data)
    try:
        manager.initialize()
        return run(args, manager, market_data)
    except LedgerError as exc:
        logger.debug(f"{args.command} failed: {exc.message}")
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        stores.dispose()


if __name__ == "__main__":
    sys.exit(main())
