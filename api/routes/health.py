"""Health check API endpoint."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_stores
from papertrade.persistence import LedgerStores

router = APIRouter(prefix="/health", tags=["health"])

# Track API start time
_api_start_time = time.time()


@router.get("")
async def health(stores: LedgerStores = Depends(get_stores)) -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        JSON with store connectivity and API uptime.

    Raises:
        HTTPException: 503 if the store cannot be reached.
    """
    if not stores.ping():
        raise HTTPException(
            status_code=503,
            detail={"status": "error", "database": {"connected": False}},
        )

    return {
        "status": "ok",
        "database": {"connected": True},
        "api": {"uptime_seconds": int(time.time() - _api_start_time)},
    }
