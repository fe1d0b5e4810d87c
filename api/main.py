"""FastAPI application for the paper-trading ledger.

This module provides the HTTP API service for:
- GET /health - Store connectivity
- /wallet - Balance, top-ups and wallet history
- /portfolio - Holdings, summaries, buys and sells
- /transactions - Trade history and realized P&L
- /favourites - Asset wishlist
- /assets - Mock market data catalog

Requirements:
- DATABASE_URL is optional (defaults to a local SQLite file)
- No authentication (local network only)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routes import assets, favourites, health, portfolio, transactions, wallet
from papertrade.errors import (
    AssetNotFoundError,
    HoldingNotFoundError,
    InsufficientFundsError,
    InsufficientQuantityError,
    LedgerError,
    WalletNotFoundError,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Papertrade API",
    description="API for a virtual wallet, paper trades and portfolio tracking",
    version="1.0.0",
)

app.include_router(health.router)
app.include_router(wallet.router)
app.include_router(portfolio.router)
app.include_router(transactions.router)
app.include_router(favourites.router)
app.include_router(assets.router)


def _error_code(exc: LedgerError) -> tuple[int, str]:
    if isinstance(exc, (HoldingNotFoundError, AssetNotFoundError, WalletNotFoundError)):
        return 404, "not_found"
    if isinstance(exc, InsufficientFundsError):
        return 400, "insufficient_funds"
    if isinstance(exc, InsufficientQuantityError):
        return 400, "insufficient_quantity"
    return 400, "validation_error"


@app.exception_handler(LedgerError)
async def ledger_exception_handler(_request: Request, exc: LedgerError):
    """Map rejected ledger operations to 4xx responses."""
    status_code, code = _error_code(exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"error": code, "message": exc.message}},
    )


@app.exception_handler(Exception)
async def global_exception_handler(_request: Request, exc: Exception):
    """Global exception handler to ensure consistent error responses."""
    logger.error(f"Unhandled error: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )
