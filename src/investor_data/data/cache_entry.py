"""Freshness policy bound to a cache store slot."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

import pytz

from investor_data.data.store import PersistentCacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

STOCK_LIST_TTL_SECONDS = 24 * 60 * 60  # 24 hours
HOME_TTL_SECONDS = 5 * 60  # 5 minutes


@dataclass(frozen=True)
class FreshnessPolicy:
    """How long a cached value is trusted without refetching."""

    ttl_seconds: float

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ValueError(f"Invalid ttl_seconds {self.ttl_seconds}. Must be positive")


STOCK_LIST_POLICY = FreshnessPolicy(STOCK_LIST_TTL_SECONDS)
HOME_POLICY = FreshnessPolicy(HOME_TTL_SECONDS)


class CacheEntry(Generic[T]):
    """
    TTL plus codec for one resource kind.

    Keys are passed per call so one entry can serve a parameterized family of
    slots (one per country for the stock list).
    """

    def __init__(
        self,
        store: PersistentCacheStore,
        policy: FreshnessPolicy,
        encode: Callable[[T], bytes],
        decode: Callable[[bytes], T],
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.policy = policy
        self._encode = encode
        self._decode = decode
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self.policy.ttl_seconds

    def age(self, key: str) -> float | None:
        """Seconds since key was last written, or None if never written."""
        stored = self.store.timestamp(key)
        if stored is None:
            return None
        return self._clock() - stored

    def is_valid(self, key: str) -> bool:
        age = self.age(key)
        if age is None:
            return False
        valid = age < self.policy.ttl_seconds
        if valid:
            logger.debug(f"{key}: valid, expires in {(self.policy.ttl_seconds - age) / 3600:.1f}h")
        else:
            logger.debug(f"{key}: expired, last updated {age / 3600:.1f}h ago")
        return valid

    def read_if_valid(self, key: str) -> T | None:
        """Decoded value if fresh. Expired slots are never decoded."""
        if not self.is_valid(key):
            return None
        return self.store.get(key, self._decode)

    def read_best_effort(self, key: str) -> T | None:
        """Decoded value regardless of age. Only for degraded fallback."""
        return self.store.get(key, self._decode)

    def write(self, key: str, value: T) -> float:
        """
        Write-through a freshly fetched value, stamping it with the current time.

        Raises:
            StorageError: If the store cannot persist the value
        """
        return self.store.put(key, value, self._encode, stored_at=self._clock())

    def stored_at(self, key: str) -> datetime | None:
        """Timestamp of the slot as an aware UTC datetime."""
        stored = self.store.timestamp(key)
        if stored is None:
            return None
        return datetime.fromtimestamp(stored, tz=pytz.utc)

    def clear(self, key: str) -> None:
        self.store.clear(key)
