"""Home screen aggregate with a 5 minute cache."""

import time
from collections.abc import Callable
from typing import Any

from investor_data.data.cache_entry import CacheEntry
from investor_data.data.remote import RemoteDataSource
from investor_data.models import HomeResponse
from investor_data.orchestrators.base import FetchOrchestrator

HOME_KEY = "home"


class HomeOrchestrator(FetchOrchestrator[HomeResponse]):
    resource = "home"
    cache_prefix = HOME_KEY

    def __init__(
        self,
        remote: RemoteDataSource,
        entry: CacheEntry[HomeResponse],
        *,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(entry, clock=clock)
        self._remote = remote

    def normalize_param(self, param: Any) -> None:
        # Single unparameterized slot
        return None

    def cache_key(self, param: Any) -> str:
        return HOME_KEY

    async def fetch_remote(self, param: Any) -> HomeResponse:
        return await self._remote.fetch_home()

    def describe(self, value: HomeResponse) -> str:
        return (
            f"home ({len(value.portfolio)} portfolio, {len(value.watchlists)} watchlists, "
            f"{len(value.recently_viewed)} recently viewed)"
        )

    @property
    def home(self) -> HomeResponse | None:
        return self._state.data
