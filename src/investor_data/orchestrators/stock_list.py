"""Per-country stock list with a 24 hour cache."""

import time
from collections.abc import Callable

from investor_data.data.cache_entry import CacheEntry
from investor_data.data.remote import RemoteDataSource
from investor_data.models import StockListItem
from investor_data.orchestrators.base import FetchOrchestrator, OrchestratorState
from investor_data.validators import DEFAULT_COUNTRY, normalize_country

StockList = tuple[StockListItem, ...]


class StockListOrchestrator(FetchOrchestrator[StockList]):
    """Stock list for one country at a time, keyed ``stock_list:<COUNTRY>``."""

    resource = "stock_list"
    cache_prefix = "stock_list:"

    def __init__(
        self,
        remote: RemoteDataSource,
        entry: CacheEntry[StockList],
        *,
        default_country: str = DEFAULT_COUNTRY,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(entry, clock=clock)
        self._remote = remote
        self._default_country = normalize_country(default_country)

    def normalize_param(self, param: str | None) -> str:
        if param is None:
            return self._default_country
        return normalize_country(param)

    def cache_key(self, param: str) -> str:
        return f"{self.cache_prefix}{param}"

    async def fetch_remote(self, param: str) -> StockList:
        return await self._remote.fetch_stock_list(param)

    def describe(self, value: StockList) -> str:
        return f"{len(value)} stocks"

    @property
    def country(self) -> str:
        """Country of the most recent request."""
        return self._active_param or self._default_country

    @property
    def stocks(self) -> StockList:
        """Currently shown list; empty until something loads."""
        return self._state.data or ()

    async def fetch_stocks_for_country(self, country: str) -> OrchestratorState[StockList]:
        """Switch country. Always hits the network, like an explicit refresh."""
        return await self.refresh(country)
