"""Paper-trading ledger.

This package contains the building blocks of the virtual trading account:

- calculations: pure cost-basis and P&L arithmetic
- portfolio: wallet, holdings and the trade coordinator
- favourites: the asset wishlist
- market_data: local mock price catalog (no network calls)
- persistence: storage boundary (protocols)
- storage: in-memory and SQLAlchemy-backed implementations
- formatting: display helpers for amounts, percentages and quantities
"""
