"""Market data sources for valuing holdings.

Only a local mock catalog ships; real providers implement PriceProvider.
"""

from papertrade.market_data.interfaces import PriceProvider
from papertrade.market_data.mock_provider import DEFAULT_CATALOG, FixedPriceProvider, MockMarketData

__all__ = [
    "DEFAULT_CATALOG",
    "FixedPriceProvider",
    "MockMarketData",
    "PriceProvider",
]
