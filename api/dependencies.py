"""Shared dependencies for API routes.

The ledger store, config and market data source are process-wide
singletons. Routes receive them through `Depends` so tests can swap them
with `app.dependency_overrides`.
"""

from __future__ import annotations

import logging

from fastapi import Depends

from papertrade.config import LedgerConfig
from papertrade.market_data import MockMarketData
from papertrade.persistence import LedgerStores
from papertrade.portfolio import PortfolioManager
from papertrade.storage import SqlConfig, SqlStores

logger = logging.getLogger(__name__)

_config: LedgerConfig | None = None
_stores: SqlStores | None = None
_market_data: MockMarketData | None = None


def get_config() -> LedgerConfig:
    """Get or load the ledger configuration."""
    global _config
    if _config is None:
        _config = LedgerConfig.from_env()
    return _config


def get_stores(config: LedgerConfig = Depends(get_config)) -> LedgerStores:
    """Get or initialize the database stores."""
    global _stores
    if _stores is None:
        stores = SqlStores(config=SqlConfig(database_url=config.database_url))
        stores.initialize(initial_balance=config.initial_balance, currency=config.currency)
        _stores = stores
        logger.info("Ledger store initialized")
    return _stores


def get_market_data() -> MockMarketData:
    """Get or initialize the market data catalog."""
    global _market_data
    if _market_data is None:
        _market_data = MockMarketData()
    return _market_data


def get_portfolio_manager(
    stores: LedgerStores = Depends(get_stores),
    config: LedgerConfig = Depends(get_config),
    market_data: MockMarketData = Depends(get_market_data),
) -> PortfolioManager:
    return PortfolioManager(stores, config=config, price_provider=market_data)
