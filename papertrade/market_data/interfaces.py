from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence


class PriceProvider(Protocol):
    def get_current_price(self, asset_id: str) -> Optional[Decimal]:
        """Latest price for an asset, or None if unknown."""

    def get_current_prices(self, asset_ids: Sequence[str]) -> dict[str, Decimal]:
        """Latest prices keyed by asset id. Unknown assets are omitted."""
