"""
Persistence for the reward ledger
"""

from .storage import MemoryStorage, OverlayStorage, SqliteStorage, Storage
from .store import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, LedgerStore, resolve_page_limit

__all__ = [
    "MemoryStorage",
    "OverlayStorage",
    "SqliteStorage",
    "Storage",
    "DEFAULT_PAGE_LIMIT",
    "MAX_PAGE_LIMIT",
    "LedgerStore",
    "resolve_page_limit",
]
