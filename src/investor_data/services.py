"""Composition point: one instance per resource kind, owned by the app."""

import asyncio
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass

import requests

from investor_data.auth import CredentialStore, InMemoryCredentialStore
from investor_data.config import ClientConfig
from investor_data.data.cache_entry import HOME_POLICY, STOCK_LIST_POLICY, CacheEntry
from investor_data.data.remote import RemoteDataSource
from investor_data.data.store import PersistentCacheStore
from investor_data.models import decode_home, decode_stock_list, encode_home, encode_stock_list
from investor_data.orchestrators import (
    HomeOrchestrator,
    StockListOrchestrator,
    StockOverviewOrchestrator,
)
from investor_data.search import StockSearch

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from LOG_LEVEL (default INFO). Call once at app startup."""
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))


@dataclass
class InvestorServices:
    """Everything the UI layer needs, wired together by build_services()."""

    config: ClientConfig
    credentials: CredentialStore
    store: PersistentCacheStore
    remote: RemoteDataSource
    stock_list: StockListOrchestrator
    home: HomeOrchestrator
    stock_overview: StockOverviewOrchestrator

    def new_search(self) -> StockSearch:
        """Search box state backed by the currently loaded stock list."""
        return StockSearch(lambda: self.stock_list.stocks)

    async def sign_out(self) -> None:
        """Forget credentials and every cached or displayed resource."""
        self.credentials.clear()
        await asyncio.gather(
            self.stock_list.clear(),
            self.home.clear(),
            self.stock_overview.clear(),
        )
        logger.info("Signed out: credentials and caches cleared")

    def close(self) -> None:
        self.remote.close()
        self.store.close()


def build_services(
    config: ClientConfig | None = None,
    *,
    credentials: CredentialStore | None = None,
    session: requests.Session | None = None,
    clock: Callable[[], float] = time.time,
) -> InvestorServices:
    """
    Construct the data layer.

    Args:
        config: Client settings (default: ClientConfig.from_env())
        credentials: Token store (default: in-memory, seeded from config.api_token)
        session: HTTP session to reuse (default: a new requests.Session)
        clock: Time source shared by cache freshness and state timestamps

    Returns:
        Wired InvestorServices
    """
    if config is None:
        config = ClientConfig.from_env()
    if credentials is None:
        credentials = InMemoryCredentialStore(config.api_token)

    store = PersistentCacheStore(
        config.cache_dir,
        inline_threshold_bytes=config.inline_threshold_bytes,
        clock=clock,
    )
    remote = RemoteDataSource(config, credentials.get_token, session=session)

    stock_list_entry = CacheEntry(
        store, STOCK_LIST_POLICY, encode_stock_list, decode_stock_list, clock=clock
    )
    home_entry = CacheEntry(store, HOME_POLICY, encode_home, decode_home, clock=clock)

    logger.debug(f"Data layer ready: api={config.api_root}, cache_dir={config.cache_dir}")
    return InvestorServices(
        config=config,
        credentials=credentials,
        store=store,
        remote=remote,
        stock_list=StockListOrchestrator(remote, stock_list_entry, clock=clock),
        home=HomeOrchestrator(remote, home_entry, clock=clock),
        stock_overview=StockOverviewOrchestrator(remote, clock=clock),
    )
