"""Local market data catalog.

Serves a fixed set of assets with randomly jittered prices and synthetic
OHLCV chart data. Makes no network calls.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Mapping, Optional, Sequence

from papertrade.errors import AssetNotFoundError
from papertrade.types import Asset, AssetCategory, ChartTimeframe, MarketDataPoint, SearchResult

CENT = Decimal("0.01")
MIN_PRICE = Decimal("0.01")
PRICE_PLACES = Decimal("0.00000001")

HOUR_MS = 3_600_000
DAY_MS = 86_400_000


@dataclass(frozen=True)
class ChartSpec:
    points: int
    step_ms: int


CHART_SPECS: dict[ChartTimeframe, ChartSpec] = {
    ChartTimeframe.ONE_DAY: ChartSpec(points=24, step_ms=HOUR_MS),
    ChartTimeframe.ONE_WEEK: ChartSpec(points=7, step_ms=DAY_MS),
    ChartTimeframe.ONE_MONTH: ChartSpec(points=30, step_ms=DAY_MS),
    ChartTimeframe.ONE_YEAR: ChartSpec(points=12, step_ms=30 * DAY_MS),
    ChartTimeframe.ALL_TIME: ChartSpec(points=50, step_ms=90 * DAY_MS),
}


def _asset(
    asset_id: str,
    name: str,
    category: AssetCategory,
    price: str,
    previous_close: str,
    day_high: str,
    day_low: str,
    change: str,
    change_percent: str,
) -> Asset:
    return Asset(
        id=asset_id,
        symbol=asset_id,
        name=name,
        category=category,
        current_price=Decimal(price),
        previous_close=Decimal(previous_close),
        day_high=Decimal(day_high),
        day_low=Decimal(day_low),
        price_change=Decimal(change),
        price_change_percent=Decimal(change_percent),
        last_updated=datetime.now(timezone.utc),
    )


DEFAULT_CATALOG: tuple[Asset, ...] = (
    _asset("AAPL", "Apple Inc.", AssetCategory.US_STOCKS, "175.50", "174.20", "176.80", "174.00", "1.30", "0.75"),
    _asset("GOOGL", "Alphabet Inc.", AssetCategory.US_STOCKS, "140.25", "139.50", "141.00", "139.00", "0.75", "0.54"),
    _asset("BTC", "Bitcoin", AssetCategory.CRYPTO, "42500.00", "42000.00", "43000.00", "41800.00", "500.00", "1.19"),
    _asset("ETH", "Ethereum", AssetCategory.CRYPTO, "2250.00", "2200.00", "2280.00", "2180.00", "50.00", "2.27"),
    _asset(
        "RELIANCE",
        "Reliance Industries Ltd",
        AssetCategory.INDIAN_STOCKS,
        "2450.00",
        "2430.00",
        "2465.00",
        "2425.00",
        "20.00",
        "0.82",
    ),
    _asset("GOLD", "Gold", AssetCategory.COMMODITIES, "2050.00", "2045.00", "2055.00", "2042.00", "5.00", "0.24"),
)


class MockMarketData:
    """In-process market data source.

    Prices returned by `get_asset_details` and `get_current_price` move
    up to +/- `volatility` (a fraction of the catalog price) on every call.
    Pass `seed` for reproducible output, or `volatility=0` for static
    prices.
    """

    def __init__(
        self,
        catalog: Optional[Sequence[Asset]] = None,
        volatility: Decimal = Decimal("0.02"),
        seed: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._assets: dict[str, Asset] = {a.id: a for a in (catalog or DEFAULT_CATALOG)}
        self._volatility = volatility
        self._rng = random.Random(seed)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _get(self, asset_id: str) -> Asset:
        asset = self._assets.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _jitter(self, base_price: Decimal) -> Decimal:
        if self._volatility == 0:
            return base_price
        change = base_price * self._volatility * Decimal(str(self._rng.uniform(-1, 1)))
        return max((base_price + change).quantize(CENT), MIN_PRICE)

    def _uniform(self, low: float, high: float) -> Decimal:
        return Decimal(str(self._rng.uniform(low, high)))

    def search_assets(self, query: str, category: Optional[AssetCategory] = None) -> list[SearchResult]:
        """Case-insensitive match on symbol or name."""
        needle = query.strip().lower()
        return [
            SearchResult(
                asset_id=asset.id,
                symbol=asset.symbol,
                name=asset.name,
                category=asset.category,
                current_price=asset.current_price,
            )
            for asset in self._assets.values()
            if (needle in asset.symbol.lower() or needle in asset.name.lower())
            and (category is None or asset.category == category)
        ]

    def get_asset_details(self, asset_id: str) -> Asset:
        """Get an asset with a freshly jittered price.

        Raises:
            AssetNotFoundError: If the asset is not in the catalog
        """
        asset = self._get(asset_id)
        return replace(asset, current_price=self._jitter(asset.current_price), last_updated=self._clock())

    def get_current_price(self, asset_id: str) -> Optional[Decimal]:
        asset = self._assets.get(asset_id)
        if asset is None:
            return None
        return self._jitter(asset.current_price)

    def get_current_prices(self, asset_ids: Sequence[str]) -> dict[str, Decimal]:
        prices = {}
        for asset_id in asset_ids:
            price = self.get_current_price(asset_id)
            if price is not None:
                prices[asset_id] = price
        return prices

    def get_chart_data(self, asset_id: str, timeframe: ChartTimeframe) -> list[MarketDataPoint]:
        """Generate a synthetic OHLCV series ending now.

        The walk starts 5% below the catalog price; each candle opens at the
        previous close.

        Raises:
            AssetNotFoundError: If the asset is not in the catalog
        """
        asset = self._get(asset_id)
        spec = CHART_SPECS[timeframe]
        now_ms = int(self._clock().timestamp() * 1000)

        points = []
        price = asset.current_price * Decimal("0.95")
        for i in range(spec.points):
            open_ = price
            close = open_ + open_ * Decimal("0.02") * self._uniform(-0.5, 0.5)
            high = max(open_, close) * (1 + self._uniform(0, 0.01))
            low = min(open_, close) * (1 - self._uniform(0, 0.01))
            points.append(
                MarketDataPoint(
                    timestamp=now_ms - (spec.points - i - 1) * spec.step_ms,
                    open=open_.quantize(PRICE_PLACES),
                    high=high.quantize(PRICE_PLACES),
                    low=low.quantize(PRICE_PLACES),
                    close=close.quantize(PRICE_PLACES),
                    volume=self._rng.randrange(1_000_000),
                )
            )
            price = close
        return points

    def get_trending_assets(self, limit: int = 10) -> list[Asset]:
        """Assets with the largest absolute percent change first."""
        ranked = sorted(
            self._assets.values(),
            key=lambda a: abs(a.price_change_percent or Decimal("0")),
            reverse=True,
        )
        return ranked[:limit]


class FixedPriceProvider:
    """Price provider backed by a static mapping."""

    def __init__(self, prices: Optional[Mapping[str, Decimal]] = None) -> None:
        self._prices = dict(prices or {})

    def set_price(self, asset_id: str, price: Decimal) -> None:
        self._prices[asset_id] = price

    def get_current_price(self, asset_id: str) -> Optional[Decimal]:
        return self._prices.get(asset_id)

    def get_current_prices(self, asset_ids: Sequence[str]) -> dict[str, Decimal]:
        return {asset_id: self._prices[asset_id] for asset_id in asset_ids if asset_id in self._prices}
