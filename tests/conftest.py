"""Shared test fixtures for pytest.

Provides ledger stores, price sources, a deterministic clock and sample
assets used across multiple test files.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator

import pytest

from papertrade.config import LedgerConfig
from papertrade.market_data import FixedPriceProvider
from papertrade.portfolio import PortfolioManager
from papertrade.storage import InMemoryStores, SqlConfig, SqlStores
from papertrade.types import AssetCategory, AssetRef

INITIAL_BALANCE = Decimal("100000")


class StepClock:
    """Clock that advances one second per call, so records order predictably.

    Starts at the real current time so records written by store
    initialization sort before anything the clock stamps.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig(database_url="sqlite://")


@pytest.fixture
def memory_stores() -> InMemoryStores:
    """Initialized in-memory stores with the default starting balance."""
    stores = InMemoryStores()
    stores.initialize(initial_balance=INITIAL_BALANCE)
    return stores


@pytest.fixture
def sql_stores(tmp_path) -> Iterator[SqlStores]:
    """Initialized SQLite-backed stores in a temporary file."""
    stores = SqlStores(config=SqlConfig(database_url=f"sqlite:///{tmp_path / 'ledger.db'}"))
    stores.initialize(initial_balance=INITIAL_BALANCE)
    yield stores
    stores.dispose()


@pytest.fixture(params=["memory", "sql"])
def ledger_stores(request, tmp_path):
    """Both store backends, for behaviour that must not depend on storage."""
    if request.param == "memory":
        stores = InMemoryStores()
        stores.initialize(initial_balance=INITIAL_BALANCE)
        yield stores
    else:
        stores = SqlStores(config=SqlConfig(database_url=f"sqlite:///{tmp_path / 'ledger.db'}"))
        stores.initialize(initial_balance=INITIAL_BALANCE)
        yield stores
        stores.dispose()


@pytest.fixture
def prices() -> FixedPriceProvider:
    return FixedPriceProvider({"BTC": Decimal("40"), "AAPL": Decimal("150")})


@pytest.fixture
def manager(ledger_stores, config, prices, clock) -> PortfolioManager:
    return PortfolioManager(ledger_stores, config=config, price_provider=prices, clock=clock)


@pytest.fixture
def btc() -> AssetRef:
    return AssetRef(asset_id="BTC", symbol="BTC", name="Bitcoin", category=AssetCategory.CRYPTO)


@pytest.fixture
def aapl() -> AssetRef:
    return AssetRef(asset_id="AAPL", symbol="AAPL", name="Apple Inc.", category=AssetCategory.US_STOCKS)
