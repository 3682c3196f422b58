"""Data layer: remote source, persistent store and freshness policy."""

from investor_data.data.cache_entry import (
    HOME_POLICY,
    HOME_TTL_SECONDS,
    STOCK_LIST_POLICY,
    STOCK_LIST_TTL_SECONDS,
    CacheEntry,
    FreshnessPolicy,
)
from investor_data.data.remote import RemoteDataSource, TokenProvider
from investor_data.data.store import PersistentCacheStore

__all__ = [
    # Store
    "PersistentCacheStore",
    # Freshness
    "CacheEntry",
    "FreshnessPolicy",
    "HOME_POLICY",
    "HOME_TTL_SECONDS",
    "STOCK_LIST_POLICY",
    "STOCK_LIST_TTL_SECONDS",
    # Remote
    "RemoteDataSource",
    "TokenProvider",
]
