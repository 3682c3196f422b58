"""Validation and normalization of request parameters used in cache keys."""

import re

DEFAULT_COUNTRY = "US"

_COUNTRY_RE = re.compile(r"^[A-Z]{2}$")
# Tickers seen in the list endpoint: BRK.B, BF-B, ^GSPC, EURUSD=X, 7203.T
_SYMBOL_RE = re.compile(r"^[A-Z0-9^][A-Z0-9.\-=^]{0,19}$")


def normalize_country(country: str | None) -> str:
    """
    Normalize an ISO 3166-1 alpha-2 country code.

    None or blank falls back to DEFAULT_COUNTRY.

    Raises:
        ValueError: If the code is not two letters
    """
    if country is None or not country.strip():
        return DEFAULT_COUNTRY
    code = country.strip().upper()
    if not _COUNTRY_RE.match(code):
        raise ValueError(f"Invalid country '{country}'. Must be an ISO 3166-1 alpha-2 code")
    return code


def normalize_symbol(symbol: str | None) -> str:
    """
    Normalize a ticker symbol: uppercase, strip whitespace.

    Raises:
        ValueError: If the symbol is missing, empty or contains unexpected characters
    """
    if not isinstance(symbol, str):
        raise ValueError(f"Invalid symbol '{symbol}'. A ticker symbol is required")
    normalized = symbol.upper().strip()
    if not _SYMBOL_RE.match(normalized):
        raise ValueError(f"Invalid symbol '{symbol}'")
    return normalized
