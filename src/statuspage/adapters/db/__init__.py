"""Storage adapters implementing StatusStore."""

from statuspage.adapters.db.app_db import AppDatabase
from statuspage.adapters.db.memory import InMemoryStatusStore

__all__ = ["AppDatabase", "InMemoryStatusStore"]
