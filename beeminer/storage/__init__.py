"""
Storage Module
Persistence collaborators for player economy documents
"""

from beeminer.storage.base import StateStore, new_default_state
from beeminer.storage.memory import InMemoryStateStore
from beeminer.storage.sql import SQLStateStore


def build_store(database_url: str = "") -> StateStore:
    """In-memory store when no database URL is configured, SQL otherwise."""
    if not database_url:
        return InMemoryStateStore()
    return SQLStateStore(database_url)


__all__ = ["StateStore", "InMemoryStateStore", "SQLStateStore", "build_store", "new_default_state"]
