"""Tests for the mock market data catalog."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from papertrade.errors import AssetNotFoundError
from papertrade.market_data import DEFAULT_CATALOG, FixedPriceProvider, MockMarketData
from papertrade.types import AssetCategory, ChartTimeframe

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def market() -> MockMarketData:
    return MockMarketData(seed=42, clock=lambda: NOW)


class TestCatalog:
    """Tests for search, details and trending."""

    def test_catalog_contents(self) -> None:
        assert {a.id for a in DEFAULT_CATALOG} == {"AAPL", "GOOGL", "BTC", "ETH", "RELIANCE", "GOLD"}

    def test_search_by_symbol_and_name(self, market) -> None:
        assert [r.asset_id for r in market.search_assets("btc")] == ["BTC"]
        assert [r.asset_id for r in market.search_assets("apple")] == ["AAPL"]

    def test_search_with_category(self, market) -> None:
        results = market.search_assets("", category=AssetCategory.CRYPTO)
        assert {r.asset_id for r in results} == {"BTC", "ETH"}

    def test_search_no_match(self, market) -> None:
        assert market.search_assets("nothing-like-this") == []

    def test_details_jitter_within_volatility(self, market) -> None:
        for _ in range(50):
            asset = market.get_asset_details("BTC")
            assert Decimal("41650") <= asset.current_price <= Decimal("43350")
            assert asset.last_updated == NOW

    def test_details_unknown(self, market) -> None:
        with pytest.raises(AssetNotFoundError, match="Asset not found: XYZ"):
            market.get_asset_details("XYZ")

    def test_zero_volatility_is_static(self) -> None:
        market = MockMarketData(volatility=Decimal("0"))
        assert market.get_current_price("AAPL") == Decimal("175.50")

    def test_seed_is_reproducible(self) -> None:
        a = MockMarketData(seed=7)
        b = MockMarketData(seed=7)
        assert a.get_current_price("ETH") == b.get_current_price("ETH")

    def test_current_prices_skips_unknown(self, market) -> None:
        prices = market.get_current_prices(["BTC", "XYZ"])
        assert set(prices) == {"BTC"}
        assert market.get_current_price("XYZ") is None

    def test_trending_by_absolute_change(self, market) -> None:
        trending = market.get_trending_assets(limit=3)
        assert [a.id for a in trending] == ["ETH", "BTC", "RELIANCE"]


class TestChartData:
    """Tests for synthetic chart series."""

    @pytest.mark.parametrize(
        ("timeframe", "points", "step_ms"),
        [
            (ChartTimeframe.ONE_DAY, 24, 3_600_000),
            (ChartTimeframe.ONE_WEEK, 7, 86_400_000),
            (ChartTimeframe.ONE_MONTH, 30, 86_400_000),
            (ChartTimeframe.ONE_YEAR, 12, 30 * 86_400_000),
            (ChartTimeframe.ALL_TIME, 50, 90 * 86_400_000),
        ],
    )
    def test_point_count_and_spacing(self, market, timeframe, points: int, step_ms: int) -> None:
        series = market.get_chart_data("AAPL", timeframe)
        assert len(series) == points
        assert series[-1].timestamp == int(NOW.timestamp() * 1000)
        assert all(b.timestamp - a.timestamp == step_ms for a, b in zip(series, series[1:]))

    def test_candles_are_consistent(self, market) -> None:
        series = market.get_chart_data("BTC", ChartTimeframe.ONE_MONTH)
        for point in series:
            assert point.low <= min(point.open, point.close)
            assert point.high >= max(point.open, point.close)
            assert 0 <= point.volume < 1_000_000

    def test_series_is_continuous(self, market) -> None:
        series = market.get_chart_data("BTC", ChartTimeframe.ONE_WEEK)
        assert series[0].open == (Decimal("42500.00") * Decimal("0.95")).quantize(Decimal("0.00000001"))
        for prev, cur in zip(series, series[1:]):
            assert cur.open == prev.close

    def test_chart_unknown_asset(self, market) -> None:
        with pytest.raises(AssetNotFoundError):
            market.get_chart_data("XYZ", ChartTimeframe.ONE_DAY)


class TestFixedPriceProvider:
    def test_prices(self) -> None:
        provider = FixedPriceProvider({"BTC": Decimal("1")})
        provider.set_price("ETH", Decimal("2"))
        assert provider.get_current_price("BTC") == Decimal("1")
        assert provider.get_current_prices(["BTC", "ETH", "XYZ"]) == {"BTC": Decimal("1"), "ETH": Decimal("2")}
