"""Shared fixtures: a controllable clock, a throwaway cache database and a
fake ESPN API served through httpx.MockTransport."""

from datetime import date

import httpx
import pytest

from sportsoracle.database.api_cache import PersistentTTLCache
from sportsoracle.providers.espn.client import ESPNClient
from sportsoracle.services.cached_fetch import CachedFetcher
from sportsoracle.services.sports_data import SportsDataService

START_TIME = 1_760_000_000.0


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeESPN:
    """Routes requests by URL path (and optionally query params) to canned
    responses. Unrouted paths answer 404. Every request is recorded.

    A route value may be a dict (JSON 200), an int (bare status code), or a
    callable taking the request and returning an httpx.Response.
    """

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, response: object, **params) -> None:
        self.routes[self._key(path, params)] = response

    @staticmethod
    def _key(path: str, params: dict) -> str:
        if not params:
            return path
        query = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return f"{path}?{query}"

    def calls(self, path_fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if path_fragment in r.url.path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = dict(request.url.params)
        route = self.routes.get(self._key(request.url.path, params))
        if route is None:
            route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(route):
            return route(request)
        if isinstance(route, int):
            return httpx.Response(route)
        return httpx.Response(200, json=route)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock) -> PersistentTTLCache:
    return PersistentTTLCache(tmp_path / "cache.db", clock=clock)


@pytest.fixture
def espn() -> FakeESPN:
    return FakeESPN()


@pytest.fixture
def client(espn) -> ESPNClient:
    # Single attempt: no backoff sleeps in tests
    return ESPNClient(retry_count=1, transport=espn.transport())


@pytest.fixture
def fetcher(client, cache) -> CachedFetcher:
    return CachedFetcher(client, cache)


@pytest.fixture
def today() -> date:
    return date(2025, 10, 15)


@pytest.fixture
def service(fetcher, today) -> SportsDataService:
    return SportsDataService(fetcher, today=lambda: today)
