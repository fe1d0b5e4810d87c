"""Storage implementations of the persistence interfaces.

Keeping implementations separate from the protocols lets the portfolio
managers run against either backend unchanged.
"""

from .memory_stores import InMemoryStores
from .sql import SqlConfig, SqlStores

__all__ = ["InMemoryStores", "SqlConfig", "SqlStores"]
