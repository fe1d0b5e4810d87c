"""API routes for the virtual wallet."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from api.dependencies import get_portfolio_manager
from api.serializers import wallet_to_response, wallet_transaction_to_response
from papertrade.portfolio import PortfolioManager

router = APIRouter(prefix="/wallet", tags=["wallet"])


class AddFundsRequest(BaseModel):
    """Request to top up the wallet."""

    amount: Decimal


@router.get("")
async def get_wallet(manager: PortfolioManager = Depends(get_portfolio_manager)) -> dict[str, Any]:
    return {"currency": manager.currency, **wallet_to_response(manager.get_wallet())}


@router.post("/funds")
async def add_funds(
    request: AddFundsRequest,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    """Add virtual funds to the wallet.

    Amounts must be positive and at most the configured maximum.
    """
    wallet = manager.add_funds(request.amount)
    return {"success": True, "wallet": wallet_to_response(wallet)}


@router.get("/transactions")
async def list_wallet_transactions(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max rows to return"),
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    transactions = manager.get_wallet_transactions(limit=limit)
    return {
        "transactions": [wallet_transaction_to_response(tx) for tx in transactions],
        "count": len(transactions),
    }
