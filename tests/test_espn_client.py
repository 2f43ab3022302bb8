"""Tests for the ESPN HTTP client: retries, status handling and URLs."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from sportsoracle.core.errors import UpstreamUnavailable
from sportsoracle.providers.espn.client import ESPNClient

URL = "https://site.api.espn.com/apis/site/v2/sports/basketball/nba/teams"


def sequence(*responses):
    """Handler answering with the given responses in order."""
    pending = list(responses)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        response = pending.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    return handler, calls


def make_client(handler, retry_count=3) -> ESPNClient:
    return ESPNClient(retry_count=retry_count, transport=httpx.MockTransport(handler))


class TestGetJson:
    """Status codes map to retries or UpstreamUnavailable."""

    @pytest.mark.asyncio
    async def test_success(self):
        handler, _ = sequence(httpx.Response(200, json={"ok": True}))
        async with make_client(handler) as client:
            assert await client.get_json(URL) == {"ok": True}

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        handler, calls = sequence(httpx.Response(404))
        async with make_client(handler) as client:
            with pytest.raises(UpstreamUnavailable) as exc_info:
                await client.get_json(URL)
        assert exc_info.value.status_code == 404
        assert exc_info.value.url == URL
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        handler, calls = sequence(httpx.Response(503), httpx.Response(200, json={"ok": 1}))
        with patch("sportsoracle.providers.espn.client.asyncio.sleep", new=AsyncMock()):
            async with make_client(handler, retry_count=2) as client:
                assert await client.get_json(URL) == {"ok": 1}
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        handler, calls = sequence(httpx.Response(500), httpx.Response(502))
        with patch("sportsoracle.providers.espn.client.asyncio.sleep", new=AsyncMock()):
            async with make_client(handler, retry_count=2) as client:
                with pytest.raises(UpstreamUnavailable) as exc_info:
                    await client.get_json(URL)
        assert exc_info.value.status_code == 502
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_transport_error(self):
        handler, _ = sequence(httpx.ConnectError("connection refused"))
        async with make_client(handler, retry_count=1) as client:
            with pytest.raises(UpstreamUnavailable, match="Request failed"):
                await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        handler, _ = sequence(httpx.Response(200, content=b"<html>oops</html>"))
        async with make_client(handler) as client:
            with pytest.raises(UpstreamUnavailable, match="Invalid JSON"):
                await client.get_json(URL)

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self):
        handler, calls = sequence(
            httpx.Response(429, headers={"Retry-After": "2"}),
            httpx.Response(200, json={"ok": 1}),
        )
        sleep = AsyncMock()
        with patch("sportsoracle.providers.espn.client.asyncio.sleep", new=sleep):
            async with make_client(handler, retry_count=1) as client:
                assert await client.get_json(URL) == {"ok": 1}
        sleep.assert_awaited_once_with(2.0)
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up(self):
        handler, _ = sequence(*[httpx.Response(429) for _ in range(4)])
        with patch("sportsoracle.providers.espn.client.asyncio.sleep", new=AsyncMock()):
            async with make_client(handler, retry_count=1) as client:
                with pytest.raises(UpstreamUnavailable) as exc_info:
                    await client.get_json(URL)
        assert exc_info.value.status_code == 429


class TestUrls:
    """URL builders."""

    def test_standings_use_v2_api(self):
        assert ESPNClient().standings_url("soccer", "eng.1") == (
            "https://site.api.espn.com/apis/v2/sports/soccer/eng.1/standings"
        )

    def test_soccer_gamelog_is_league_less(self):
        assert ESPNClient().gamelog_url("soccer", "eng.1", "42") == (
            "https://site.web.api.espn.com/apis/common/v3/sports/soccer/athletes/42/gamelog"
        )

    def test_gamelog_is_league_scoped(self):
        assert ESPNClient().gamelog_url("basketball", "nba", "42") == (
            "https://site.web.api.espn.com/apis/common/v3/sports/basketball/nba/athletes/42/gamelog"
        )
