"""Investor research data layer: cached, freshness-aware access to the investor API."""

import os


def get_client_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("INVESTOR_CLIENT_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("investor-data")
    except Exception:
        return "dev"


CLIENT_VERSION = get_client_version()
# Bump when the cached payload layout changes; older records then decode as a miss.
# v1: Initial layout
CACHE_SCHEMA_VERSION = "1"
