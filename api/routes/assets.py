"""API routes for the market data catalog."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_market_data
from api.serializers import asset_to_response, data_point_to_response, search_result_to_response
from papertrade.market_data import MockMarketData
from papertrade.types import AssetCategory, ChartTimeframe

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("/search")
async def search_assets(
    q: str = Query("", description="Symbol or name fragment"),
    category: Optional[AssetCategory] = Query(None, description="Filter by asset category"),
    market_data: MockMarketData = Depends(get_market_data),
) -> dict[str, Any]:
    results = market_data.search_assets(q, category=category)
    return {"results": [search_result_to_response(r) for r in results], "count": len(results)}


@router.get("/trending")
async def trending_assets(
    limit: int = Query(10, ge=1, le=100),
    market_data: MockMarketData = Depends(get_market_data),
) -> dict[str, Any]:
    """Assets with the largest absolute daily move first."""
    return {"assets": [asset_to_response(a) for a in market_data.get_trending_assets(limit)]}


@router.get("/{asset_id}")
async def get_asset(asset_id: str, market_data: MockMarketData = Depends(get_market_data)) -> dict[str, Any]:
    return asset_to_response(market_data.get_asset_details(asset_id))


@router.get("/{asset_id}/chart")
async def get_chart(
    asset_id: str,
    timeframe: ChartTimeframe = Query(ChartTimeframe.ONE_DAY),
    market_data: MockMarketData = Depends(get_market_data),
) -> dict[str, Any]:
    points = market_data.get_chart_data(asset_id, timeframe)
    return {
        "asset_id": asset_id,
        "timeframe": timeframe.value,
        "points": [data_point_to_response(p) for p in points],
    }
