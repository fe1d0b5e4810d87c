"""Wallet and portfolio ledger.

- WalletManager: virtual cash balance and its history
- HoldingManager: per-asset holdings with average cost basis
- PortfolioManager: executes trades atomically across both
"""

from .holdings import HoldingManager
from .manager import PortfolioManager
from .wallet import WalletManager

__all__ = ["HoldingManager", "PortfolioManager", "WalletManager"]
