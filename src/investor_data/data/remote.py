"""Async client for the investor API with bounded concurrency and typed errors."""

import asyncio
import json
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar
from urllib.parse import quote

import requests

from investor_data import CLIENT_VERSION
from investor_data.config import ClientConfig
from investor_data.errors import ErrorKind, FetchError, PayloadDecodeError
from investor_data.models import HomeResponse, StockListItem, StockOverview, parse_stock_list
from investor_data.validators import normalize_country, normalize_symbol

logger = logging.getLogger(__name__)

T = TypeVar("T")

TokenProvider = Callable[[], str | None]

# Offending payloads are logged, truncated to keep log lines bounded
_LOG_PAYLOAD_CHARS = 500


class RemoteDataSource:
    """
    Fetches typed resources from the investor API.

    The blocking requests call runs on a bounded thread pool so callers only
    suspend at the await. Every call needs a bearer token from the token
    provider; without one it fails before any network traffic.
    """

    def __init__(
        self,
        config: ClientConfig,
        token_provider: TokenProvider,
        *,
        session: requests.Session | None = None,
    ):
        self._config = config
        self._token_provider = token_provider
        self._session = session if session is not None else requests.Session()
        self._executor = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="investor-http"
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def fetch_stock_list(self, country: str = "US") -> tuple[StockListItem, ...]:
        """Fetch every listed stock for a country."""
        code = normalize_country(country)
        return await self.fetch("/stock/list", parse_stock_list, params={"country": code})

    async def fetch_stock_overview(self, symbol: str) -> StockOverview:
        """Fetch the research overview for a symbol (upper-cased before the call)."""
        normalized = normalize_symbol(symbol)
        return await self.fetch(
            f"/stock/{quote(normalized, safe='')}/overview", StockOverview.from_dict
        )

    async def fetch_home(self) -> HomeResponse:
        """Fetch the signed-in user's home aggregate."""
        return await self.fetch("/users/me/home", HomeResponse.from_dict)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def fetch(
        self,
        endpoint: str,
        decode: Callable[[Any], T],
        *,
        params: dict[str, str] | None = None,
    ) -> T:
        """
        GET an endpoint and decode its JSON body.

        Args:
            endpoint: Path below the API root (e.g., "/users/me/home")
            decode: Converts the parsed JSON into the typed result
            params: Query string parameters

        Returns:
            Decoded payload

        Raises:
            FetchError: For a missing token, transport failure, timeout,
                non-2xx status or a body that does not match the contract
        """
        token = self._token_provider()
        if not token:
            raise FetchError(ErrorKind.NO_AUTH_TOKEN)

        url = self._config.api_root + endpoint
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "User-Agent": f"investor-data/{CLIENT_VERSION}",
        }
        request_timeout = self._config.request_timeout

        def _get() -> requests.Response:
            return self._session.get(
                url,
                params=params,
                headers=headers,
                timeout=(request_timeout, request_timeout),
            )

        loop = asyncio.get_running_loop()
        try:
            response = await asyncio.wait_for(
                loop.run_in_executor(self._executor, _get),
                timeout=self._config.resource_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"GET {endpoint}: exceeded {self._config.resource_timeout}s total")
            raise FetchError(
                ErrorKind.TIMEOUT,
                f"Request exceeded {self._config.resource_timeout:.0f}s",
            ) from None
        except requests.exceptions.Timeout as e:
            logger.warning(f"GET {endpoint}: timed out ({e})")
            raise FetchError(ErrorKind.TIMEOUT) from e
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"GET {endpoint}: connection failed ({e})")
            raise FetchError(ErrorKind.NETWORK_UNREACHABLE) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"GET {endpoint}: transport error ({e})")
            raise FetchError(ErrorKind.NETWORK_UNREACHABLE, str(e)) from e

        return self._handle_response(endpoint, response, decode)

    def _handle_response(
        self,
        endpoint: str,
        response: requests.Response,
        decode: Callable[[Any], T],
    ) -> T:
        status = response.status_code

        if 200 <= status <= 299:
            try:
                payload = response.json()
            except ValueError as e:
                logger.error(
                    f"GET {endpoint}: {status} body is not JSON: "
                    f"{response.text[:_LOG_PAYLOAD_CHARS]!r}"
                )
                raise FetchError(
                    ErrorKind.DECODING_ERROR, f"Failed to decode response: {e}", status_code=status
                ) from e
            try:
                result = decode(payload)
            except PayloadDecodeError as e:
                # Contract mismatch with the server, not routine staleness
                logger.error(
                    f"GET {endpoint}: response does not match schema ({e}); payload: "
                    f"{json.dumps(payload, default=str)[:_LOG_PAYLOAD_CHARS]}"
                )
                raise FetchError(
                    ErrorKind.DECODING_ERROR, f"Failed to decode response: {e}", status_code=status
                ) from e
            logger.debug(f"GET {endpoint}: {status}")
            return result

        logger.info(f"GET {endpoint}: HTTP {status}")

        if status == 400:
            raise FetchError(
                ErrorKind.INVALID_REQUEST,
                _extract_error_message(response) or "Invalid request",
                status_code=status,
            )
        if status == 401:
            raise FetchError(ErrorKind.UNAUTHORIZED, status_code=status)
        if status == 403:
            raise FetchError(
                ErrorKind.FORBIDDEN,
                _extract_error_message(response) or "Access forbidden",
                status_code=status,
            )
        if status == 404:
            raise FetchError(ErrorKind.NOT_FOUND, status_code=status)
        if 500 <= status <= 599:
            raise FetchError(ErrorKind.SERVER_ERROR, status_code=status)
        raise FetchError(ErrorKind.HTTP_ERROR, status_code=status)

    def close(self) -> None:
        """Release the HTTP session and worker threads."""
        self._session.close()
        self._executor.shutdown(wait=False, cancel_futures=True)


def _extract_error_message(response: requests.Response) -> str | None:
    """Server message from a JSON error body: "detail", then "error"."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for field in ("detail", "error"):
        message = body.get(field)
        if isinstance(message, str) and message.strip():
            return message
    return None
