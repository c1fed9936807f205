"""Tests for the elprisenligenu.dk API client.

HTTP is served by httpx.MockTransport, so no network access is needed.
"""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from conftest import SCENARIO_DATE, make_feed
from elpris_collector.clients.base import FetchError, FetchErrorKind
from elpris_collector.clients.elprisenligenu import ElprisenLigenuClient, build_price_path
from elpris_collector.models.price import Region

BASE_URL = "https://prices.test/api/v1/prices"


def client_for(handler) -> ElprisenLigenuClient:
    return ElprisenLigenuClient(BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))


class TestBuildPricePath:
    """Test URL construction."""

    def test_path_format(self):
        assert build_price_path(date(2025, 9, 21), Region.DK1) == "2025/09-21_DK1.json"
        assert build_price_path(date(2026, 1, 5), Region.DK2) == "2026/01-05_DK2.json"


class TestElprisenLigenuClient:
    """Test fetch and error mapping."""

    async def test_fetch_parses_samples(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json=make_feed(SCENARIO_DATE))

        async with client_for(handler) as client:
            samples = await client.fetch(SCENARIO_DATE, Region.DK1)

        assert requested == [f"{BASE_URL}/2025/09-21_DK1.json"]
        assert len(samples) == 24
        assert samples[0].local_price_per_unit == Decimal("0.5")
        assert samples[0].interval_start.isoformat() == "2025-09-21T00:00:00+02:00"

    async def test_empty_array_is_empty_result(self):
        async with client_for(lambda request: httpx.Response(200, json=[])) as client:
            samples = await client.fetch(SCENARIO_DATE, Region.DK2)

        assert samples == []

    async def test_not_found_is_non2xx(self):
        async with client_for(lambda request: httpx.Response(404, text="Not Found")) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.NON_2XX
        assert exc_info.value.status_code == 404

    async def test_timeout_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.NETWORK

    async def test_connection_error_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.NETWORK

    async def test_redirect_loop_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects", request=request)

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.NETWORK

    async def test_undecodable_body_is_malformed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")

        async with client_for(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.MALFORMED

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(302, headers={"Location": "/elsewhere"}, content=b""),
            httpx.Response(301, headers={"Location": "/elsewhere"}, json=[]),
        ],
        ids=["302-empty", "301-json-array"],
    )
    async def test_non_success_status_is_non2xx(self, response: httpx.Response):
        async with client_for(lambda request: response) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.NON_2XX
        assert exc_info.value.status_code == response.status_code

    async def test_single_request_per_fetch(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        async with client_for(handler) as client:
            with pytest.raises(FetchError):
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert calls == 1

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>maintenance</html>"),
            httpx.Response(200, json={"prices": []}),
            httpx.Response(200, json=[1, 2, 3]),
            httpx.Response(200, json=[{"time_start": "2025-09-21T00:00:00+02:00"}]),
            httpx.Response(200, json=[{"DKK_per_kWh": "abc", "time_start": "2025-09-21T00:00:00+02:00"}]),
            httpx.Response(200, json=[{"DKK_per_kWh": 0.5, "time_start": "yesterday"}]),
        ],
        ids=["not-json", "object", "scalars", "missing-price", "bad-price", "bad-timestamp"],
    )
    async def test_malformed_payloads(self, response: httpx.Response):
        async with client_for(lambda request: response) as client:
            with pytest.raises(FetchError) as exc_info:
                await client.fetch(SCENARIO_DATE, Region.DK1)

        assert exc_info.value.kind is FetchErrorKind.MALFORMED

    async def test_health_check(self):
        async with client_for(lambda request: httpx.Response(200, json=[])) as client:
            assert await client.health_check() is True

        async with client_for(lambda request: httpx.Response(500)) as client:
            assert await client.health_check() is False
