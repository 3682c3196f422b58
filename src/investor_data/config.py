"""Client configuration read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://investor-api-service-production.up.railway.app"
DEFAULT_API_VERSION = "v1"
DEFAULT_CACHE_DIR = ".cache/investor"

# Payloads above this size are written to their own file instead of the record store
DEFAULT_INLINE_THRESHOLD = 64 * 1024


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} '{raw}'. Must be a number of seconds") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} '{raw}'. Must be an integer") from None


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client settings. Shared by the remote source and the cache store."""

    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    cache_dir: str = DEFAULT_CACHE_DIR
    request_timeout: float = 30.0
    resource_timeout: float = 60.0
    max_workers: int = 4
    inline_threshold_bytes: int = DEFAULT_INLINE_THRESHOLD
    api_token: str | None = None

    def __post_init__(self) -> None:
        # Normalize base URL: no trailing slash so endpoint joins stay canonical
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        object.__setattr__(self, "api_version", self.api_version.strip().strip("/"))

        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base_url '{self.base_url}'. Must be an http(s) URL")
        if self.request_timeout <= 0 or self.resource_timeout <= 0:
            raise ValueError("Timeouts must be positive")
        if self.resource_timeout < self.request_timeout:
            raise ValueError(
                f"resource_timeout ({self.resource_timeout}) must not be shorter than "
                f"request_timeout ({self.request_timeout})"
            )
        if self.max_workers < 1:
            raise ValueError(f"Invalid max_workers {self.max_workers}. Must be >= 1")
        if self.inline_threshold_bytes < 0:
            raise ValueError("inline_threshold_bytes must not be negative")

    @property
    def api_root(self) -> str:
        """Root URL every endpoint path is appended to."""
        return f"{self.base_url}/api/{self.api_version}"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build config from INVESTOR_* environment variables."""
        return cls(
            base_url=os.environ.get("INVESTOR_API_BASE_URL", DEFAULT_BASE_URL),
            api_version=os.environ.get("INVESTOR_API_VERSION", DEFAULT_API_VERSION),
            cache_dir=os.environ.get("INVESTOR_CACHE_DIR", DEFAULT_CACHE_DIR),
            request_timeout=_env_float("INVESTOR_REQUEST_TIMEOUT", 30.0),
            resource_timeout=_env_float("INVESTOR_RESOURCE_TIMEOUT", 60.0),
            max_workers=_env_int("INVESTOR_MAX_WORKERS", 4),
            inline_threshold_bytes=_env_int("INVESTOR_INLINE_THRESHOLD", DEFAULT_INLINE_THRESHOLD),
            api_token=os.environ.get("INVESTOR_API_TOKEN") or None,
        )
