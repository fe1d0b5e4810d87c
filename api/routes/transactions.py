"""API routes for trade history."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_portfolio_manager
from api.serializers import transaction_to_response
from papertrade.portfolio import PortfolioManager

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("")
async def list_transactions(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max rows to return"),
    asset_id: Optional[str] = Query(None, description="Filter by asset"),
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    """List buys and sells, newest first."""
    transactions = manager.get_transactions(limit=limit, asset_id=asset_id)
    return {
        "transactions": [transaction_to_response(tx) for tx in transactions],
        "count": len(transactions),
    }


@router.get("/recent")
async def list_recent_transactions(manager: PortfolioManager = Depends(get_portfolio_manager)) -> dict[str, Any]:
    transactions = manager.get_recent_transactions()
    return {"transactions": [transaction_to_response(tx) for tx in transactions]}


@router.get("/realized-pnl")
async def get_realized_pnl(manager: PortfolioManager = Depends(get_portfolio_manager)) -> dict[str, Any]:
    return {"realized_pnl": str(manager.get_realized_pnl()), "currency": manager.currency}
