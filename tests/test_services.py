"""Tests for wiring the data layer together."""

import json
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest
import requests

from investor_data.config import ClientConfig
from investor_data.errors import ErrorKind, StorageError
from investor_data.models import HomeResponse, encode_home, encode_stock_list
from investor_data.services import InvestorServices, build_services


def _ok(body) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response._content = json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def services(tmp_path, session, clock) -> Iterator[InvestorServices]:
    config = ClientConfig(base_url="https://api.test", cache_dir=str(tmp_path / "cache"), api_token="tok")
    built = build_services(config, session=session, clock=clock)
    yield built
    built.close()


class TestBuildServices:
    """Tests for build_services() and InvestorServices."""

    def test_token_seeded_from_config(self, services) -> None:
        assert services.credentials.get_token() == "tok"

    @pytest.mark.asyncio
    async def test_stock_list_end_to_end(self, services, session) -> None:
        """Test a load goes through HTTP, lands in the cache and feeds search."""
        session.get.return_value = _ok(
            [{"symbol": "NFLX", "companyName": "Netflix, Inc."}, {"symbol": "NVDA"}]
        )

        state = await services.stock_list.initialize()

        assert [s.symbol for s in state.data] == ["NFLX", "NVDA"]
        assert services.store.exists("stock_list:US")

        search = services.new_search()
        assert [s.symbol for s in search.update("n")] == ["NFLX", "NVDA"]

    @pytest.mark.asyncio
    async def test_second_process_reads_cache(self, tmp_path, session, clock, us_stocks) -> None:
        """Test a fresh instance over the same directory skips the network."""
        config = ClientConfig(cache_dir=str(tmp_path / "shared"), api_token="tok")
        first = build_services(config, session=session, clock=clock)
        first.store.put("stock_list:US", us_stocks, encode_stock_list)
        first.close()

        second = build_services(config, session=session, clock=clock)
        try:
            state = await second.stock_list.initialize()
        finally:
            second.close()

        assert state.data == us_stocks
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_sign_out_clears_everything(self, services, session, us_stocks) -> None:
        """Test sign-out drops the token and every cached slot."""
        services.store.put("stock_list:US", us_stocks, encode_stock_list)
        services.store.put("stock_list:GB", us_stocks, encode_stock_list)
        await services.stock_list.initialize()

        await services.sign_out()

        assert services.credentials.get_token() is None
        assert not services.store.exists("stock_list:US")
        assert not services.store.exists("stock_list:GB")
        assert services.stock_list.stocks == ()

        state = await services.home.initialize()
        assert state.last_error.kind is ErrorKind.NO_AUTH_TOKEN
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_sign_out_survives_cache_failure(self, services, monkeypatch, us_stocks, home_payload) -> None:
        """Test one namespace failing to clear does not stop the rest of sign-out."""
        services.store.put("stock_list:US", us_stocks, encode_stock_list)
        services.store.put("home", HomeResponse.from_dict(home_payload), encode_home)
        await services.stock_list.initialize()
        clear_prefix = services.store.clear_prefix

        def _flaky(prefix):
            if prefix.startswith("stock_list"):
                raise StorageError(f"{prefix}*", "database is locked")
            return clear_prefix(prefix)

        monkeypatch.setattr(services.store, "clear_prefix", _flaky)

        await services.sign_out()

        assert services.credentials.get_token() is None
        assert services.stock_list.state.data is None
        assert not services.store.exists("home")
