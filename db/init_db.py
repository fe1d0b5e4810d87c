#!/usr/bin/env python3
"""Initialize the ledger database schema.

Creates the tables defined in db/models and seeds the wallet with the
initial virtual balance. Safe to run repeatedly; existing data is kept
unless --reset is given.

Usage:
  python -m db.init_db
  python -m db.init_db --reset

Environment:
  DATABASE_URL - Optional. SQLAlchemy URL (default: sqlite:///papertrade.db)
  PAPERTRADE_INITIAL_BALANCE, PAPERTRADE_CURRENCY - Wallet seed values
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from papertrade.config import LedgerConfig
from papertrade.storage import SqlConfig, SqlStores

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the ledger schema and seed the wallet.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop all ledger tables first (destroys existing data)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        config = LedgerConfig.from_env()
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    stores = SqlStores(config=SqlConfig(database_url=config.database_url))
    try:
        if args.reset:
            stores.reset(initial_balance=config.initial_balance, currency=config.currency)
        else:
            stores.initialize(initial_balance=config.initial_balance, currency=config.currency)
        wallet = stores.get_wallet()
    finally:
        stores.dispose()

    balance = wallet.current_balance if wallet is not None else None
    print(f"Database schema applied (wallet balance: {balance} {config.currency})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
