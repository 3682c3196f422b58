"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import Iterator
from typing import Any

import pytest

from investor_data.data.store import PersistentCacheStore
from investor_data.models import StockListItem


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemote:
    """
    Stand-in for RemoteDataSource.

    Results are configured per key; a configured Exception is raised instead
    of returned. Setting ``gates[key]`` to an asyncio.Event holds the call
    until the event is set.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.stock_lists: dict[str, Any] = {}
        self.home: Any = None
        self.overviews: dict[str, Any] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def _respond(self, key: str, value: Any) -> Any:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_stock_list(self, country: str = "US") -> Any:
        self.calls.append(("stock_list", country))
        return await self._respond(f"stock_list:{country}", self.stock_lists[country])

    async def fetch_home(self) -> Any:
        self.calls.append(("home", None))
        return await self._respond("home", self.home)

    async def fetch_stock_overview(self, symbol: str) -> Any:
        self.calls.append(("stock_overview", symbol))
        return await self._respond(f"stock_overview:{symbol}", self.overviews[symbol])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def store(tmp_path, clock) -> Iterator[PersistentCacheStore]:
    """Store with a tiny inline threshold so multi-item payloads go to files."""
    s = PersistentCacheStore(tmp_path / "cache", inline_threshold_bytes=256, clock=clock)
    yield s
    s.close()


@pytest.fixture
def us_stocks() -> tuple[StockListItem, ...]:
    return (
        StockListItem(symbol="AAPL", company_name="Apple Inc.", exchange="NASDAQ", country="US"),
        StockListItem(symbol="MSFT", company_name="Microsoft Corporation", exchange="NASDAQ"),
        StockListItem(symbol="NFLX", company_name="Netflix, Inc.", is_etf=False),
    )


@pytest.fixture
def gb_stocks() -> tuple[StockListItem, ...]:
    return (
        StockListItem(symbol="VOD.L", company_name="Vodafone Group Plc", country="GB"),
        StockListItem(symbol="BP.L", company_name="BP p.l.c.", country="GB"),
    )


def _price_changes() -> dict[str, Any]:
    return {"d1": "0.5", "w1": "-1.2", "w2": None, "m1": "3.4"}


@pytest.fixture
def home_payload() -> dict[str, Any]:
    """Home response in wire format."""
    return {
        "portfolio": [
            {
                "symbol": "AAPL",
                "company_name": "Apple Inc.",
                "image": None,
                "currency": "USD",
                "quantity": "10",
                "value": "1890.00",
                "price": "189.00",
                "score": 8,
                "price_changes": _price_changes(),
                "earnings": {"message": "Earnings in 3 days"},
            }
        ],
        "watchlists": [
            {
                "id": "wl-1",
                "name": "Tech",
                "is_default": True,
                "total_stocks": 1,
                "stocks": [
                    {
                        "symbol": "MSFT",
                        "company_name": "Microsoft Corporation",
                        "price": "410.10",
                        "score": None,
                        "price_changes": _price_changes(),
                    }
                ],
            }
        ],
        "recently_viewed": [
            {
                "symbol": "NFLX",
                "company_name": "Netflix, Inc.",
                "currency": "USD",
                "price": "600.00",
                "price_changes": _price_changes(),
            }
        ],
        "market_overview": None,
    }


def _period(base: float) -> dict[str, float | None]:
    return {"5y": base, "3y": base / 2, "2y": None, "1y": base / 4, "6m": 0.01}


@pytest.fixture
def overview_payload() -> dict[str, Any]:
    """Stock overview response in wire format."""
    return {
        "symbol": "AAPL",
        "lastUpdated": "2026-10-18T21:00:00Z",
        "profile": {
            "symbol": "AAPL",
            "companyName": "Apple Inc.",
            "price": 189.5,
            "mktCap": 2_870_000_000_000,
            "volume": 51_000_000,
            "beta": 1.2,
            "currency": "USD",
            "employees": "161000",
        },
        "score": {
            "overall": 9,
            "maxScore": 11,
            "breakdown": {
                "revenue": 1,
                "operatingIncome": 1,
                "freeCashFlow": 1,
                "bookValue": 0,
                "roce": 1,
                "fcfroce": 1,
                "profitMargin": 1,
                "debtEquity": 1,
                "liabilityEquity": 0,
                "currentRatio": 1,
                "quickRatio": 1,
            },
        },
        "growth": {
            "revenue": _period(0.4),
            "operatingIncome": _period(0.5),
            "freeCashFlow": _period(0.3),
            "bookValue": _period(-0.1),
        },
        "returns": {"roce": _period(0.6), "fcfroce": _period(0.5)},
        "ratios": {
            "profitMargin": _period(0.25),
            "debtToEquity": _period(1.5),
            "liabilityToEquity": _period(4),
            "currentRatio": _period(1),
            "quickRatio": _period(0.9),
        },
        "valuation": {"pe": {"current": 29.1, "5y": None}},
        "earnings": [{"date": "2026-07-31", "epsActual": 1.4, "revenueActual": 85_000_000_000}],
        "dividends": [{"date": "2026-08-11", "amount": 0.25, "yield": 0.005}],
        "analystRatings": {"buy": 30, "hold": 8.0},
        "momentum": {
            "score": 0.7,
            "signal": "bullish",
            "strength": "moderate",
            "date": "2026-10-17",
            "calculatedAt": "2026-10-18T00:00:00Z",
        },
        "prices": {"1y": {"price": 170.0, "date": "2025-10-17"}},
        "_metadata": {"calculationsPerformed": 42, "cacheEnabled": True, "cacheTTL": 300},
    }
