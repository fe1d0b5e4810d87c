"""Asset wishlist."""

from .manager import FavouritesManager

__all__ = ["FavouritesManager"]
