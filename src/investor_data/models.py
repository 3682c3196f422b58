"""Typed payloads returned by the investor API.

Decoding is strict: a required field that is missing or has the wrong type
raises PayloadDecodeError. Optional fields may be absent or null. Nothing is
substituted with a default, so a server contract change shows up as a decode
failure instead of silently wrong data.
"""

import json
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from investor_data.errors import PayloadDecodeError

T = TypeVar("T")


# ============================================================================
# DECODE HELPERS
# ============================================================================


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _as_object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise PayloadDecodeError(f"{where}: expected object, got {_type_name(value)}")
    return value


def _check(value: Any, kind: type, where: str) -> Any:
    # bool is an int subclass; JSON true must never pass as a number
    if kind is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PayloadDecodeError(f"{where}: expected number, got {_type_name(value)}")
        if isinstance(value, float) and math.isnan(value):
            raise PayloadDecodeError(f"{where}: NaN is not a valid number")
        return float(value)
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise PayloadDecodeError(f"{where}: expected integer, got {_type_name(value)}")
        return value
    if not isinstance(value, kind):
        raise PayloadDecodeError(f"{where}: expected {kind.__name__}, got {_type_name(value)}")
    return value


def _req(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data or data[key] is None:
        raise PayloadDecodeError(f"{where}.{key}: required field missing")
    return _check(data[key], kind, f"{where}.{key}")


def _opt(data: dict[str, Any], key: str, kind: type, where: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return _check(value, kind, f"{where}.{key}")


def _req_obj(data: dict[str, Any], key: str, parse: Callable[[Any, str], T], where: str) -> T:
    if data.get(key) is None:
        raise PayloadDecodeError(f"{where}.{key}: required field missing")
    return parse(data[key], f"{where}.{key}")


def _opt_obj(data: dict[str, Any], key: str, parse: Callable[[Any, str], T], where: str) -> T | None:
    if data.get(key) is None:
        return None
    return parse(data[key], f"{where}.{key}")


def _req_list(
    data: dict[str, Any], key: str, parse: Callable[[Any, str], T], where: str
) -> tuple[T, ...]:
    value = data.get(key)
    if not isinstance(value, list):
        raise PayloadDecodeError(f"{where}.{key}: expected array, got {_type_name(value)}")
    return tuple(parse(item, f"{where}.{key}[{i}]") for i, item in enumerate(value))


# ============================================================================
# STOCK LIST
# ============================================================================


@dataclass(frozen=True)
class StockListItem:
    """One row of the per-country stock list. Identity is the symbol."""

    symbol: str
    company_name: str | None = None
    currency: str | None = None
    exchange: str | None = None
    industry: str | None = None
    sector: str | None = None
    country: str | None = None
    image: str | None = None
    is_etf: bool | None = None
    is_actively_trading: bool | None = None
    is_adr: bool | None = None
    is_fund: bool | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "StockListItem") -> "StockListItem":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            company_name=_opt(d, "companyName", str, where),
            currency=_opt(d, "currency", str, where),
            exchange=_opt(d, "exchange", str, where),
            industry=_opt(d, "industry", str, where),
            sector=_opt(d, "sector", str, where),
            country=_opt(d, "country", str, where),
            image=_opt(d, "image", str, where),
            is_etf=_opt(d, "isEtf", bool, where),
            is_actively_trading=_opt(d, "isActivelyTrading", bool, where),
            is_adr=_opt(d, "isAdr", bool, where),
            is_fund=_opt(d, "isFund", bool, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "companyName": self.company_name,
            "currency": self.currency,
            "exchange": self.exchange,
            "industry": self.industry,
            "sector": self.sector,
            "country": self.country,
            "image": self.image,
            "isEtf": self.is_etf,
            "isActivelyTrading": self.is_actively_trading,
            "isAdr": self.is_adr,
            "isFund": self.is_fund,
        }


def parse_stock_list(payload: Any) -> tuple[StockListItem, ...]:
    """Decode the JSON array returned by the stock list endpoint."""
    if not isinstance(payload, list):
        raise PayloadDecodeError(f"stock list: expected array, got {_type_name(payload)}")
    return tuple(StockListItem.from_dict(item, f"stock list[{i}]") for i, item in enumerate(payload))


# ============================================================================
# STOCK OVERVIEW
# ============================================================================

PERIOD_LABELS = ("5y", "3y", "2y", "1y", "6m")


@dataclass(frozen=True)
class PeriodMetrics:
    """A metric sampled over the standard lookback periods."""

    five_year: float | None = None
    three_year: float | None = None
    two_year: float | None = None
    one_year: float | None = None
    six_month: float | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "PeriodMetrics") -> "PeriodMetrics":
        d = _as_object(value, where)
        return cls(*(_opt(d, label, float, where) for label in PERIOD_LABELS))

    @property
    def all_values(self) -> tuple[float | None, ...]:
        """Values in PERIOD_LABELS order."""
        return (self.five_year, self.three_year, self.two_year, self.one_year, self.six_month)


@dataclass(frozen=True)
class StockProfile:
    symbol: str
    company_name: str | None = None
    price: float | None = None
    changes: float | None = None
    change_percentage: float | None = None
    mkt_cap: int | None = None
    calculated_mkt_cap: int | None = None
    volume: int | None = None
    vol_avg: int | None = None
    beta: float | None = None
    range: str | None = None
    last_div: float | None = None
    currency: str | None = None
    exchange: str | None = None
    industry: str | None = None
    sector: str | None = None
    ceo: str | None = None
    description: str | None = None
    website: str | None = None
    employees: str | None = None
    image: str | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "StockProfile") -> "StockProfile":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            company_name=_opt(d, "companyName", str, where),
            price=_opt(d, "price", float, where),
            changes=_opt(d, "changes", float, where),
            change_percentage=_opt(d, "changePercentage", float, where),
            mkt_cap=_opt(d, "mktCap", int, where),
            calculated_mkt_cap=_opt(d, "calculatedMktCap", int, where),
            volume=_opt(d, "volume", int, where),
            vol_avg=_opt(d, "volAvg", int, where),
            beta=_opt(d, "beta", float, where),
            range=_opt(d, "range", str, where),
            last_div=_opt(d, "lastDiv", float, where),
            currency=_opt(d, "currency", str, where),
            exchange=_opt(d, "exchange", str, where),
            industry=_opt(d, "industry", str, where),
            sector=_opt(d, "sector", str, where),
            ceo=_opt(d, "ceo", str, where),
            description=_opt(d, "description", str, where),
            website=_opt(d, "website", str, where),
            employees=_opt(d, "employees", str, where),
            image=_opt(d, "image", str, where),
        )


_BREAKDOWN_FIELDS = {
    "revenue": "revenue",
    "operating_income": "operatingIncome",
    "free_cash_flow": "freeCashFlow",
    "book_value": "bookValue",
    "roce": "roce",
    "fcfroce": "fcfroce",
    "profit_margin": "profitMargin",
    "debt_equity": "debtEquity",
    "liability_equity": "liabilityEquity",
    "current_ratio": "currentRatio",
    "quick_ratio": "quickRatio",
}


@dataclass(frozen=True)
class ScoreBreakdown:
    """Points awarded per scoring criterion."""

    revenue: int
    operating_income: int
    free_cash_flow: int
    book_value: int
    roce: int
    fcfroce: int
    profit_margin: int
    debt_equity: int
    liability_equity: int
    current_ratio: int
    quick_ratio: int

    @classmethod
    def from_dict(cls, value: Any, where: str = "ScoreBreakdown") -> "ScoreBreakdown":
        d = _as_object(value, where)
        return cls(**{attr: _req(d, wire, int, where) for attr, wire in _BREAKDOWN_FIELDS.items()})


@dataclass(frozen=True)
class StockScore:
    overall: int
    max_score: int
    breakdown: ScoreBreakdown

    @classmethod
    def from_dict(cls, value: Any, where: str = "StockScore") -> "StockScore":
        d = _as_object(value, where)
        return cls(
            overall=_req(d, "overall", int, where),
            max_score=_req(d, "maxScore", int, where),
            breakdown=_req_obj(d, "breakdown", ScoreBreakdown.from_dict, where),
        )


@dataclass(frozen=True)
class GrowthMetrics:
    revenue: PeriodMetrics
    operating_income: PeriodMetrics
    free_cash_flow: PeriodMetrics
    book_value: PeriodMetrics

    @classmethod
    def from_dict(cls, value: Any, where: str = "GrowthMetrics") -> "GrowthMetrics":
        d = _as_object(value, where)
        return cls(
            revenue=_req_obj(d, "revenue", PeriodMetrics.from_dict, where),
            operating_income=_req_obj(d, "operatingIncome", PeriodMetrics.from_dict, where),
            free_cash_flow=_req_obj(d, "freeCashFlow", PeriodMetrics.from_dict, where),
            book_value=_req_obj(d, "bookValue", PeriodMetrics.from_dict, where),
        )


@dataclass(frozen=True)
class ReturnsMetrics:
    roce: PeriodMetrics
    fcfroce: PeriodMetrics

    @classmethod
    def from_dict(cls, value: Any, where: str = "ReturnsMetrics") -> "ReturnsMetrics":
        d = _as_object(value, where)
        return cls(
            roce=_req_obj(d, "roce", PeriodMetrics.from_dict, where),
            fcfroce=_req_obj(d, "fcfroce", PeriodMetrics.from_dict, where),
        )


@dataclass(frozen=True)
class Ratios:
    profit_margin: PeriodMetrics
    debt_to_equity: PeriodMetrics
    liability_to_equity: PeriodMetrics
    current_ratio: PeriodMetrics
    quick_ratio: PeriodMetrics

    @classmethod
    def from_dict(cls, value: Any, where: str = "Ratios") -> "Ratios":
        d = _as_object(value, where)
        return cls(
            profit_margin=_req_obj(d, "profitMargin", PeriodMetrics.from_dict, where),
            debt_to_equity=_req_obj(d, "debtToEquity", PeriodMetrics.from_dict, where),
            liability_to_equity=_req_obj(d, "liabilityToEquity", PeriodMetrics.from_dict, where),
            current_ratio=_req_obj(d, "currentRatio", PeriodMetrics.from_dict, where),
            quick_ratio=_req_obj(d, "quickRatio", PeriodMetrics.from_dict, where),
        )


@dataclass(frozen=True)
class Momentum:
    score: float
    signal: str
    strength: str
    date: str
    calculated_at: str

    @classmethod
    def from_dict(cls, value: Any, where: str = "Momentum") -> "Momentum":
        d = _as_object(value, where)
        return cls(
            score=_req(d, "score", float, where),
            signal=_req(d, "signal", str, where),
            strength=_req(d, "strength", str, where),
            date=_req(d, "date", str, where),
            calculated_at=_req(d, "calculatedAt", str, where),
        )


@dataclass(frozen=True)
class Earnings:
    date: str
    eps_actual: float | None = None
    eps_estimated: float | None = None
    revenue_actual: int | None = None
    revenue_estimated: int | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "Earnings") -> "Earnings":
        d = _as_object(value, where)
        return cls(
            date=_req(d, "date", str, where),
            eps_actual=_opt(d, "epsActual", float, where),
            eps_estimated=_opt(d, "epsEstimated", float, where),
            revenue_actual=_opt(d, "revenueActual", int, where),
            revenue_estimated=_opt(d, "revenueEstimated", int, where),
        )


@dataclass(frozen=True)
class Dividend:
    date: str
    amount: float | None = None
    record_date: str | None = None
    payment_date: str | None = None
    yield_: float | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "Dividend") -> "Dividend":
        d = _as_object(value, where)
        return cls(
            date=_req(d, "date", str, where),
            amount=_opt(d, "amount", float, where),
            record_date=_opt(d, "recordDate", str, where),
            payment_date=_opt(d, "paymentDate", str, where),
            yield_=_opt(d, "yield", float, where),
        )


@dataclass(frozen=True)
class PricePoint:
    price: float
    date: str

    @classmethod
    def from_dict(cls, value: Any, where: str = "PricePoint") -> "PricePoint":
        d = _as_object(value, where)
        return cls(price=_req(d, "price", float, where), date=_req(d, "date", str, where))


@dataclass(frozen=True)
class APIMetadata:
    calculations_performed: int | None = None
    cache_enabled: bool | None = None
    cache_ttl: int | None = None
    max_score: int | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "APIMetadata") -> "APIMetadata":
        d = _as_object(value, where)
        return cls(
            calculations_performed=_opt(d, "calculationsPerformed", int, where),
            cache_enabled=_opt(d, "cacheEnabled", bool, where),
            cache_ttl=_opt(d, "cacheTTL", int, where),
            max_score=_opt(d, "maxScore", int, where),
        )


def _parse_valuation(value: Any, where: str) -> dict[str, dict[str, float | None]]:
    outer = _as_object(value, where)
    return {
        name: {
            period: _opt(_as_object(periods, f"{where}.{name}"), period, float, f"{where}.{name}")
            for period in _as_object(periods, f"{where}.{name}")
        }
        for name, periods in outer.items()
    }


def _parse_ratings(value: Any, where: str) -> dict[str, float]:
    d = _as_object(value, where)
    return {name: _check(rating, float, f"{where}.{name}") for name, rating in d.items()}


def _parse_prices(value: Any, where: str) -> dict[str, PricePoint]:
    d = _as_object(value, where)
    return {label: PricePoint.from_dict(point, f"{where}.{label}") for label, point in d.items()}


@dataclass(frozen=True)
class StockOverview:
    """Full research payload for one symbol."""

    symbol: str
    profile: StockProfile
    score: StockScore
    growth: GrowthMetrics
    returns: ReturnsMetrics
    ratios: Ratios
    earnings: tuple[Earnings, ...]
    dividends: tuple[Dividend, ...]
    last_updated: str | None = None
    valuation: dict[str, dict[str, float | None]] | None = None
    analyst_ratings: dict[str, float] | None = None
    momentum: Momentum | None = None
    prices: dict[str, PricePoint] | None = None
    metadata: APIMetadata | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "StockOverview") -> "StockOverview":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            last_updated=_opt(d, "lastUpdated", str, where),
            profile=_req_obj(d, "profile", StockProfile.from_dict, where),
            score=_req_obj(d, "score", StockScore.from_dict, where),
            growth=_req_obj(d, "growth", GrowthMetrics.from_dict, where),
            returns=_req_obj(d, "returns", ReturnsMetrics.from_dict, where),
            ratios=_req_obj(d, "ratios", Ratios.from_dict, where),
            valuation=_opt_obj(d, "valuation", _parse_valuation, where),
            earnings=_req_list(d, "earnings", Earnings.from_dict, where),
            dividends=_req_list(d, "dividends", Dividend.from_dict, where),
            analyst_ratings=_opt_obj(d, "analystRatings", _parse_ratings, where),
            momentum=_opt_obj(d, "momentum", Momentum.from_dict, where),
            prices=_opt_obj(d, "prices", _parse_prices, where),
            metadata=_opt_obj(d, "_metadata", APIMetadata.from_dict, where),
        )


# ============================================================================
# HOME
# ============================================================================


@dataclass(frozen=True)
class PriceChanges:
    """Percentage changes as preformatted strings (1 day, 1 week, 2 weeks, 1 month)."""

    d1: str | None = None
    w1: str | None = None
    w2: str | None = None
    m1: str | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "PriceChanges") -> "PriceChanges":
        d = _as_object(value, where)
        return cls(
            d1=_opt(d, "d1", str, where),
            w1=_opt(d, "w1", str, where),
            w2=_opt(d, "w2", str, where),
            m1=_opt(d, "m1", str, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"d1": self.d1, "w1": self.w1, "w2": self.w2, "m1": self.m1}


@dataclass(frozen=True)
class EarningsNotification:
    message: str | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "EarningsNotification") -> "EarningsNotification":
        d = _as_object(value, where)
        return cls(message=_opt(d, "message", str, where))

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


def _earnings_dict(earnings: EarningsNotification | None) -> dict[str, Any] | None:
    return earnings.to_dict() if earnings is not None else None


@dataclass(frozen=True)
class PortfolioItem:
    symbol: str
    company_name: str
    currency: str
    quantity: str
    value: str
    price: str
    price_changes: PriceChanges
    image: str | None = None
    score: int | None = None
    earnings: EarningsNotification | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "PortfolioItem") -> "PortfolioItem":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            company_name=_req(d, "company_name", str, where),
            image=_opt(d, "image", str, where),
            currency=_req(d, "currency", str, where),
            quantity=_req(d, "quantity", str, where),
            value=_req(d, "value", str, where),
            price=_req(d, "price", str, where),
            score=_opt(d, "score", int, where),
            price_changes=_req_obj(d, "price_changes", PriceChanges.from_dict, where),
            earnings=_opt_obj(d, "earnings", EarningsNotification.from_dict, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "company_name": self.company_name,
            "image": self.image,
            "currency": self.currency,
            "quantity": self.quantity,
            "value": self.value,
            "price": self.price,
            "score": self.score,
            "price_changes": self.price_changes.to_dict(),
            "earnings": _earnings_dict(self.earnings),
        }


@dataclass(frozen=True)
class WatchlistStock:
    symbol: str
    company_name: str
    price: str
    price_changes: PriceChanges
    image: str | None = None
    score: int | None = None
    earnings: EarningsNotification | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "WatchlistStock") -> "WatchlistStock":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            company_name=_req(d, "company_name", str, where),
            image=_opt(d, "image", str, where),
            price=_req(d, "price", str, where),
            score=_opt(d, "score", int, where),
            price_changes=_req_obj(d, "price_changes", PriceChanges.from_dict, where),
            earnings=_opt_obj(d, "earnings", EarningsNotification.from_dict, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "company_name": self.company_name,
            "image": self.image,
            "price": self.price,
            "score": self.score,
            "price_changes": self.price_changes.to_dict(),
            "earnings": _earnings_dict(self.earnings),
        }


@dataclass(frozen=True)
class Watchlist:
    id: str
    name: str
    is_default: bool
    total_stocks: int
    stocks: tuple[WatchlistStock, ...]

    @classmethod
    def from_dict(cls, value: Any, where: str = "Watchlist") -> "Watchlist":
        d = _as_object(value, where)
        return cls(
            id=_req(d, "id", str, where),
            name=_req(d, "name", str, where),
            is_default=_req(d, "is_default", bool, where),
            total_stocks=_req(d, "total_stocks", int, where),
            stocks=_req_list(d, "stocks", WatchlistStock.from_dict, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "is_default": self.is_default,
            "total_stocks": self.total_stocks,
            "stocks": [stock.to_dict() for stock in self.stocks],
        }


@dataclass(frozen=True)
class RecentlyViewedItem:
    symbol: str
    company_name: str
    currency: str
    price: str
    price_changes: PriceChanges
    image: str | None = None
    score: int | None = None
    earnings: EarningsNotification | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "RecentlyViewedItem") -> "RecentlyViewedItem":
        d = _as_object(value, where)
        return cls(
            symbol=_req(d, "symbol", str, where),
            company_name=_req(d, "company_name", str, where),
            image=_opt(d, "image", str, where),
            currency=_req(d, "currency", str, where),
            price=_req(d, "price", str, where),
            score=_opt(d, "score", int, where),
            price_changes=_req_obj(d, "price_changes", PriceChanges.from_dict, where),
            earnings=_opt_obj(d, "earnings", EarningsNotification.from_dict, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "company_name": self.company_name,
            "image": self.image,
            "currency": self.currency,
            "price": self.price,
            "score": self.score,
            "price_changes": self.price_changes.to_dict(),
            "earnings": _earnings_dict(self.earnings),
        }


@dataclass(frozen=True)
class MarketOverview:
    # Always null today; reserved by the server for a future market summary
    placeholder: str | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "MarketOverview") -> "MarketOverview":
        d = _as_object(value, where)
        return cls(placeholder=_opt(d, "placeholder", str, where))

    def to_dict(self) -> dict[str, Any]:
        return {"placeholder": self.placeholder}


@dataclass(frozen=True)
class HomeResponse:
    """Home screen aggregate: portfolio, watchlists and recently viewed stocks."""

    portfolio: tuple[PortfolioItem, ...]
    watchlists: tuple[Watchlist, ...]
    recently_viewed: tuple[RecentlyViewedItem, ...]
    market_overview: MarketOverview | None = None

    @classmethod
    def from_dict(cls, value: Any, where: str = "HomeResponse") -> "HomeResponse":
        d = _as_object(value, where)
        return cls(
            portfolio=_req_list(d, "portfolio", PortfolioItem.from_dict, where),
            watchlists=_req_list(d, "watchlists", Watchlist.from_dict, where),
            recently_viewed=_req_list(d, "recently_viewed", RecentlyViewedItem.from_dict, where),
            market_overview=_opt_obj(d, "market_overview", MarketOverview.from_dict, where),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "portfolio": [item.to_dict() for item in self.portfolio],
            "watchlists": [watchlist.to_dict() for watchlist in self.watchlists],
            "recently_viewed": [item.to_dict() for item in self.recently_viewed],
            "market_overview": (
                self.market_overview.to_dict() if self.market_overview is not None else None
            ),
        }


# ============================================================================
# CACHE CODECS
# ============================================================================


def _dump(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")


def _load(blob: bytes) -> Any:
    try:
        return json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadDecodeError(f"Cached payload is not valid JSON: {e}") from e


def encode_stock_list(items: tuple[StockListItem, ...]) -> bytes:
    return _dump([item.to_dict() for item in items])


def decode_stock_list(blob: bytes) -> tuple[StockListItem, ...]:
    return parse_stock_list(_load(blob))


def encode_home(home: HomeResponse) -> bytes:
    return _dump(home.to_dict())


def decode_home(blob: bytes) -> HomeResponse:
    return HomeResponse.from_dict(_load(blob))
