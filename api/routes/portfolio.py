"""API routes for holdings and trading.

Prices default to the market data catalog when the request omits them.
Sells without an exit price use the price the holding is valued at.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.dependencies import get_market_data, get_portfolio_manager
from api.serializers import (
    preview_to_response,
    receipt_to_response,
    summary_to_response,
    transaction_to_response,
    valued_holding_to_response,
)
from papertrade.market_data import MockMarketData
from papertrade.portfolio import PortfolioManager
from papertrade.types import AssetCategory

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


class BuyRequest(BaseModel):
    """Buy an asset from the catalog with wallet funds."""

    asset_id: str = Field(..., min_length=1)
    investment_amount: Decimal
    entry_price: Optional[Decimal] = None
    notes: Optional[str] = None


class SellRequest(BaseModel):
    """Sell part of a holding.

    Exactly one of percentage, amount or quantity must be set.
    """

    asset_id: str = Field(..., min_length=1)
    exit_price: Optional[Decimal] = None
    percentage: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    notes: Optional[str] = None


def _exit_price(request: SellRequest, manager: PortfolioManager) -> Decimal:
    # Holdings are priced from market data, or at their average entry price.
    if request.exit_price is not None:
        return request.exit_price
    return manager.get_holding(request.asset_id).current_price


@router.get("")
async def get_portfolio(
    category: Optional[AssetCategory] = Query(None, description="Filter by asset category"),
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    """List open holdings valued at current prices, with a summary."""
    holdings = manager.get_portfolio(category=category)
    return {
        "holdings": [valued_holding_to_response(h) for h in holdings],
        "summary": summary_to_response(manager.get_portfolio_summary(category=category)),
    }


@router.get("/summary")
async def get_portfolio_summary(
    category: Optional[AssetCategory] = Query(None, description="Filter by asset category"),
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    return summary_to_response(manager.get_portfolio_summary(category=category))


@router.get("/overview")
async def get_overview(manager: PortfolioManager = Depends(get_portfolio_manager)) -> dict[str, Any]:
    """Wallet balance, portfolio summary, realized P&L and net worth."""
    overview = manager.get_overview()
    return {
        "currency": overview["currency"],
        "wallet_balance": str(overview["wallet_balance"]),
        "total_funds_added": str(overview["total_funds_added"]),
        "total_funds_used": str(overview["total_funds_used"]),
        "portfolio": summary_to_response(overview["portfolio"]),
        "realized_pnl": str(overview["realized_pnl"]),
        "net_worth": str(overview["net_worth"]),
        "recent_transactions": [transaction_to_response(tx) for tx in manager.get_recent_transactions()],
    }


@router.post("/buy")
async def buy(
    request: BuyRequest,
    manager: PortfolioManager = Depends(get_portfolio_manager),
    market_data: MockMarketData = Depends(get_market_data),
) -> dict[str, Any]:
    """Execute a buy.

    Raises:
        AssetNotFoundError: If the asset is not in the catalog (404)
        InvalidAmountError / InsufficientFundsError: On validation failure (400)
    """
    asset = market_data.get_asset_details(request.asset_id)
    entry_price = request.entry_price if request.entry_price is not None else asset.current_price
    receipt = manager.execute_buy(asset.ref, entry_price, request.investment_amount, notes=request.notes)
    return receipt_to_response(receipt)


@router.post("/sell")
async def sell(
    request: SellRequest,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    """Execute a sell.

    Raises:
        HoldingNotFoundError: If the asset is not held (404)
        InvalidAmountError / InsufficientQuantityError: On validation failure (400)
    """
    receipt = manager.execute_sell(
        request.asset_id,
        _exit_price(request, manager),
        percentage=request.percentage,
        amount=request.amount,
        quantity=request.quantity,
        notes=request.notes,
    )
    return receipt_to_response(receipt)


@router.post("/sell/preview")
async def preview_sell(
    request: SellRequest,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    """Size a sell and compute its realized P&L without executing it."""
    preview = manager.preview_sell(
        request.asset_id,
        _exit_price(request, manager),
        percentage=request.percentage,
        amount=request.amount,
        quantity=request.quantity,
    )
    return preview_to_response(preview)


@router.get("/{asset_id}")
async def get_holding(
    asset_id: str,
    manager: PortfolioManager = Depends(get_portfolio_manager),
) -> dict[str, Any]:
    return valued_holding_to_response(manager.get_holding(asset_id))
