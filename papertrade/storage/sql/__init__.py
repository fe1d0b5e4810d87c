"""SQLAlchemy storage.

Notes
- We avoid logging connection URLs to prevent accidental secret leakage.
- SQLite is the default backend; any SQLAlchemy URL with an installed
  driver works (e.g. postgresql+psycopg2://...).
"""

from .config import SqlConfig
from .stores import SqlStores

__all__ = ["SqlConfig", "SqlStores"]
