"""
Store resolution.

USE_MOCK_DB=true selects the in-memory store, otherwise Firestore.
"""

import logging
from typing import NamedTuple, Optional

from app.core.settings import settings
from app.stores.base import AssignmentStore, IncidentStore, StoreError, TeamStore
from app.stores.memory_store import MemoryStore

logger = logging.getLogger(__name__)


class Stores(NamedTuple):
    incidents: IncidentStore
    teams: TeamStore
    assignments: AssignmentStore


_stores: Optional[Stores] = None


def get_stores() -> Stores:
    """Get or create the process-wide stores."""
    global _stores
    if _stores is None:
        if settings.USE_MOCK_DB:
            store = MemoryStore()
            logger.info("[STORES] USING IN-MEMORY STORE")
        else:
            from app.stores.firestore_store import FirestoreStore
            store = FirestoreStore()
            logger.info("[STORES] USING FIRESTORE")
        _stores = Stores(incidents=store, teams=store, assignments=store)
    return _stores


def set_stores(stores: Optional[Stores]) -> None:
    """Replace the process-wide stores (None resets to lazy resolution)."""
    global _stores
    _stores = stores


__all__ = [
    "AssignmentStore",
    "IncidentStore",
    "MemoryStore",
    "StoreError",
    "Stores",
    "TeamStore",
    "get_stores",
    "set_stores",
]
