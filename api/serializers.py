"""Response shaping for ledger records.

Decimal values are returned as strings so no precision is lost in JSON.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from papertrade.types import (
    Asset,
    FavouriteAsset,
    Holding,
    MarketDataPoint,
    PortfolioSummary,
    SearchResult,
    SellPreview,
    TradeReceipt,
    Transaction,
    ValuedHolding,
    Wallet,
    WalletTransaction,
)


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def wallet_to_response(wallet: Wallet) -> dict[str, Any]:
    return {
        "total_funds_added": str(wallet.total_funds_added),
        "total_funds_used": str(wallet.total_funds_used),
        "current_balance": str(wallet.current_balance),
        "last_updated": wallet.last_updated.isoformat(),
    }


def wallet_transaction_to_response(tx: WalletTransaction) -> dict[str, Any]:
    return {
        "id": tx.id,
        "type": tx.type,
        "amount": str(tx.amount),
        "description": tx.description,
        "balance_after": str(tx.balance_after),
        "timestamp": tx.timestamp.isoformat(),
    }


def transaction_to_response(tx: Transaction) -> dict[str, Any]:
    return {
        "id": tx.id,
        "asset_id": tx.asset_id,
        "asset_symbol": tx.asset_symbol,
        "asset_name": tx.asset_name,
        "category": tx.category.value,
        "type": tx.type.value,
        "price": str(tx.price),
        "quantity": str(tx.quantity),
        "amount": str(tx.amount),
        "timestamp": tx.timestamp.isoformat(),
        "notes": tx.notes,
    }


def holding_to_response(holding: Holding) -> dict[str, Any]:
    return {
        "asset_id": holding.asset_id,
        "asset_symbol": holding.asset_symbol,
        "asset_name": holding.asset_name,
        "category": holding.category.value,
        "total_quantity": str(holding.total_quantity),
        "average_entry_price": str(holding.average_entry_price),
        "total_invested": str(holding.total_invested),
        "first_purchase_date": holding.first_purchase_date.isoformat(),
        "last_updated": holding.last_updated.isoformat(),
    }


def valued_holding_to_response(valued: ValuedHolding) -> dict[str, Any]:
    return {
        **holding_to_response(valued.holding),
        "current_price": str(valued.current_price),
        "current_value": str(valued.current_value),
        "profit_loss": str(valued.profit_loss),
        "profit_loss_percent": str(valued.profit_loss_percent),
    }


def summary_to_response(summary: PortfolioSummary) -> dict[str, Any]:
    return {
        "total_invested": str(summary.total_invested),
        "current_value": str(summary.current_value),
        "profit_loss": str(summary.profit_loss),
        "profit_loss_percent": str(summary.profit_loss_percent),
        "total_holdings": summary.total_holdings,
    }


def receipt_to_response(receipt: TradeReceipt) -> dict[str, Any]:
    return {
        "success": True,
        "transaction": transaction_to_response(receipt.transaction),
        "wallet": wallet_to_response(receipt.wallet),
        "holding": None if receipt.holding is None else holding_to_response(receipt.holding),
        "realized_pnl": _dec(receipt.realized_pnl),
    }


def preview_to_response(preview: SellPreview) -> dict[str, Any]:
    return {
        "asset_id": preview.asset_id,
        "quantity": str(preview.quantity),
        "amount": str(preview.amount),
        "exit_price": str(preview.exit_price),
        "average_entry_price": str(preview.average_entry_price),
        "realized_pnl": str(preview.realized_pnl),
        "remaining_quantity": str(preview.remaining_quantity),
    }


def favourite_to_response(favourite: FavouriteAsset) -> dict[str, Any]:
    return {
        "asset_id": favourite.asset_id,
        "symbol": favourite.symbol,
        "name": favourite.name,
        "category": favourite.category.value,
        "added_at": favourite.added_at.isoformat(),
    }


def asset_to_response(asset: Asset) -> dict[str, Any]:
    return {
        "id": asset.id,
        "symbol": asset.symbol,
        "name": asset.name,
        "category": asset.category.value,
        "current_price": str(asset.current_price),
        "previous_close": _dec(asset.previous_close),
        "day_high": _dec(asset.day_high),
        "day_low": _dec(asset.day_low),
        "price_change": _dec(asset.price_change),
        "price_change_percent": _dec(asset.price_change_percent),
        "last_updated": asset.last_updated.isoformat(),
    }


def search_result_to_response(result: SearchResult) -> dict[str, Any]:
    return {
        "asset_id": result.asset_id,
        "symbol": result.symbol,
        "name": result.name,
        "category": result.category.value,
        "current_price": _dec(result.current_price),
    }


def data_point_to_response(point: MarketDataPoint) -> dict[str, Any]:
    return {
        "timestamp": point.timestamp,
        "open": str(point.open),
        "high": str(point.high),
        "low": str(point.low),
        "close": str(point.close),
        "volume": point.volume,
    }
