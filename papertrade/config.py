"""Runtime configuration.

Values come from environment variables. Do not log `database_url`; it may
contain credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

DEFAULT_DATABASE_URL = "sqlite:///papertrade.db"


def _env_decimal(environ: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal number, got {raw!r}") from exc


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger configuration."""

    database_url: str = DEFAULT_DATABASE_URL
    currency: str = "USD"
    initial_balance: Decimal = Decimal("100000")
    max_fund_amount: Decimal = Decimal("1000000")
    dust_quantity: Decimal = Decimal("0.00001")
    recent_activity_limit: int = 10

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> LedgerConfig:
        """Build a config from DATABASE_URL and the PAPERTRADE_* variables."""
        env = os.environ if environ is None else environ
        config = cls(
            database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
            currency=(env.get("PAPERTRADE_CURRENCY") or "USD").strip().upper(),
            initial_balance=_env_decimal(env, "PAPERTRADE_INITIAL_BALANCE", cls.initial_balance),
            max_fund_amount=_env_decimal(env, "PAPERTRADE_MAX_FUND_AMOUNT", cls.max_fund_amount),
            dust_quantity=_env_decimal(env, "PAPERTRADE_DUST_QUANTITY", cls.dust_quantity),
            recent_activity_limit=_env_int(env, "PAPERTRADE_RECENT_LIMIT", cls.recent_activity_limit),
        )
        if config.initial_balance < 0:
            raise ValueError("PAPERTRADE_INITIAL_BALANCE must not be negative")
        if config.max_fund_amount <= 0:
            raise ValueError("PAPERTRADE_MAX_FUND_AMOUNT must be positive")
        if config.dust_quantity < 0:
            raise ValueError("PAPERTRADE_DUST_QUANTITY must not be negative")
        if config.recent_activity_limit <= 0:
            raise ValueError("PAPERTRADE_RECENT_LIMIT must be positive")
        return config
