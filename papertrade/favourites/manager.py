from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from papertrade.persistence.interfaces import FavouriteStore
from papertrade.types import AssetRef, FavouriteAsset

logger = logging.getLogger(__name__)


class FavouritesManager:
    """Wishlist of assets the user is watching."""

    def __init__(self, store: FavouriteStore, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def add(self, asset: AssetRef) -> bool:
        """Add an asset to the wishlist.

        Returns:
            True if added, False if it was already a favourite
        """
        added = self._store.add_favourite(
            favourite=FavouriteAsset(
                asset_id=asset.asset_id,
                symbol=asset.symbol,
                name=asset.name,
                category=asset.category,
                added_at=self._clock(),
            )
        )
        if added:
            logger.info(f"Added {asset.symbol} to favourites")
        return added

    def remove(self, asset_id: str) -> bool:
        removed = self._store.remove_favourite(asset_id=asset_id)
        if removed:
            logger.info(f"Removed {asset_id} from favourites")
        return removed

    def list(self) -> Sequence[FavouriteAsset]:
        """Favourites, most recently added first."""
        return self._store.get_favourites()

    def is_favourite(self, asset_id: str) -> bool:
        return self._store.is_favourite(asset_id=asset_id)
