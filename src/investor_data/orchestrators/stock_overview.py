"""Stock overview for the symbol currently on screen. Kept in memory only."""

import logging
import time
from collections.abc import Callable

from investor_data.data.remote import RemoteDataSource
from investor_data.models import StockOverview
from investor_data.orchestrators.base import FetchOrchestrator, OrchestratorState
from investor_data.validators import normalize_symbol

logger = logging.getLogger(__name__)


class StockOverviewOrchestrator(FetchOrchestrator[StockOverview]):
    """
    Overview keyed ``stock_overview:<SYMBOL>``.

    Overviews are not persisted, so there is no cache step and no stale
    fallback beyond what is already on screen.
    """

    resource = "stock_overview"

    def __init__(
        self,
        remote: RemoteDataSource,
        *,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(None, clock=clock)
        self._remote = remote

    def normalize_param(self, param: str | None) -> str:
        return normalize_symbol(param)

    def cache_key(self, param: str) -> str:
        return f"stock_overview:{param}"

    async def fetch_remote(self, param: str) -> StockOverview:
        return await self._remote.fetch_stock_overview(param)

    def describe(self, value: StockOverview) -> str:
        return f"overview of {value.symbol}"

    @property
    def symbol(self) -> str | None:
        """Symbol of the most recent request."""
        return self._active_param

    @property
    def overview(self) -> StockOverview | None:
        return self._state.data

    async def fetch_overview(self, symbol: str) -> OrchestratorState[StockOverview]:
        """Show symbol, reusing the loaded overview if it is already on screen."""
        return await self.initialize(symbol)

    async def refresh(self, param: str | None = None) -> OrchestratorState[StockOverview]:
        if param is None and self._active_param is None:
            logger.debug("stock_overview: refresh with no symbol loaded, ignoring")
            return self._state
        return await super().refresh(param)
