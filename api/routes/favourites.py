"""API routes for the asset wishlist."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.dependencies import get_market_data, get_portfolio_manager
from api.serializers import favourite_to_response
from papertrade.market_data import MockMarketData
from papertrade.portfolio import PortfolioManager

router = APIRouter(prefix="/favourites", tags=["favourites"])


class AddFavouriteRequest(BaseModel):
    asset_id: str = Field(..., min_length=1)


@router.get("")
async def list_favourites(manager: PortfolioManager = Depends(get_portfolio_manager)) -> dict[str, Any]:
    favourites = manager.favourites.list()
    return {"favourites": [favourite_to_response(f) for f in favourites], "count": len(favourites)}


@router.post("")
async def add_favourite(
    request: AddFavouriteRequest,
    manager: PortfolioManager = Depends(get_portfolio_manager),
    market_data: MockMarketData = Depends(get_market_data),
) -> dict[str, Any]:
    """Add a catalog asset to the wishlist. Adding twice is a no-op."""
    asset = market_data.get_asset_details(request.asset_id)
    added = manager.favourites.add(asset.ref)
    return {"success": True, "added": added, "asset_id": asset.id}


@router.get("/{asset_id}")
async def get_favourite_status(
    asset_id: str,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    return {"asset_id": asset_id, "is_favourite": manager.favourites.is_favourite(asset_id)}


@router.delete("/{asset_id}")
async def remove_favourite(
    asset_id: str,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    if not manager.favourites.remove(asset_id):
        raise HTTPException(
            status_code=404,
            detail={"error": "not_found", "message": f"Asset is not a favourite: {asset_id}"},
        )
    return {"success": True, "asset_id": asset_id}
