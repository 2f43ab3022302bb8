"""ESPN API HTTP client.

Handles raw HTTP requests to ESPN endpoints.
No data transformation - just fetch and return JSON.

Configuration via environment variables:
    ESPN_MAX_CONNECTIONS: Max concurrent connections (default: 100)
    ESPN_TIMEOUT: Request timeout in seconds (default: 10)
    ESPN_RETRY_COUNT: Number of retry attempts (default: 3)
"""

import asyncio
import logging
import os
import random

import httpx

from sportsoracle.core.errors import UpstreamUnavailable
from sportsoracle.providers.espn.constants import (
    ESPN_BASE_URL,
    ESPN_STANDINGS_URL,
    ESPN_WEB_COMMON_URL,
)

logger = logging.getLogger(__name__)

ESPN_MAX_CONNECTIONS = int(os.environ.get("ESPN_MAX_CONNECTIONS", 100))
ESPN_TIMEOUT = float(os.environ.get("ESPN_TIMEOUT", 10.0))
ESPN_RETRY_COUNT = int(os.environ.get("ESPN_RETRY_COUNT", 3))

# Retry backoff configuration (ESPN-tuned)
# ESPN is fast and reliable, so we use short delays with jitter
RETRY_BASE_DELAY = 0.5  # Start at 500ms
RETRY_MAX_DELAY = 10.0  # Cap at 10s
RETRY_JITTER = 0.3  # ±30% randomization to prevent thundering herd

# Rate limit (429) handling
RATE_LIMIT_BASE_DELAY = 5.0
RATE_LIMIT_MAX_DELAY = 60.0
RATE_LIMIT_MAX_RETRIES = 3


class ESPNClient:
    """Low-level async ESPN API client.

    One AsyncClient (and connection pool) is shared by every request made
    through this instance. Fan-out waves reuse keepalive connections.

    Args:
        timeout: Per-request timeout in seconds
        retry_count: Attempts for transport errors and 5xx responses
        max_connections: Connection pool size
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        timeout: float | None = None,
        retry_count: int | None = None,
        max_connections: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout = timeout if timeout is not None else ESPN_TIMEOUT
        self._retry_count = max(1, retry_count if retry_count is not None else ESPN_RETRY_COUNT)
        self._max_connections = (
            max_connections if max_connections is not None else ESPN_MAX_CONNECTIONS
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        # Created lazily so the client binds to the running event loop
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(
                    max_connections=self._max_connections,
                    max_keepalive_connections=self._max_connections,
                ),
                transport=self._transport,
            )
        return self._client

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate retry delay with exponential backoff and jitter.

        Args:
            attempt: Zero-based attempt number (0, 1, 2...)

        Returns:
            Delay in seconds with jitter applied
        """
        # Exponential backoff: 0.5, 1, 2, 4... capped at 10s
        base_delay = RETRY_BASE_DELAY * (2**attempt)
        capped = min(base_delay, RETRY_MAX_DELAY)
        jitter = capped * RETRY_JITTER * (2 * random.random() - 1)
        return max(0.1, capped + jitter)  # Minimum 100ms

    def _rate_limit_delay(self, response: httpx.Response, retries: int) -> float:
        """Delay before retrying a 429, honoring Retry-After when present."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return min(float(retry_after), RATE_LIMIT_MAX_DELAY)
            except ValueError:
                pass
        return min(RATE_LIMIT_BASE_DELAY * (2 ** (retries - 1)), RATE_LIMIT_MAX_DELAY)

    async def get_json(self, url: str, params: dict | None = None) -> dict:
        """GET a URL and decode the JSON body.

        Retries transport errors and 5xx responses with backoff. 4xx
        responses other than 429 fail immediately.

        Raises:
            UpstreamUnavailable: when the request cannot be completed
        """
        rate_limit_retries = 0
        attempt = 0
        last_error: UpstreamUnavailable | None = None

        while attempt < self._retry_count:
            try:
                response = await self._get_client().get(url, params=params)

                if response.status_code == 429:
                    rate_limit_retries += 1
                    if rate_limit_retries > RATE_LIMIT_MAX_RETRIES:
                        logger.error(
                            "[ESPN] Rate limit (429) persisted after %d retries for %s",
                            RATE_LIMIT_MAX_RETRIES,
                            url,
                        )
                        raise UpstreamUnavailable("Rate limited by ESPN", url=url, status_code=429)
                    delay = self._rate_limit_delay(response, rate_limit_retries)
                    logger.warning(
                        "[ESPN] Rate limited (429). Retry %d/%d in %.1fs for %s",
                        rate_limit_retries,
                        RATE_LIMIT_MAX_RETRIES,
                        delay,
                        url,
                    )
                    await asyncio.sleep(delay)
                    continue

                response.raise_for_status()
                logger.debug("[FETCH] %s", url.split("/sports/")[-1] if "/sports/" in url else url)
                return response.json()

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning("[ESPN] HTTP %d for %s", status, url)
                last_error = UpstreamUnavailable(
                    f"API Error: {e.response.reason_phrase or status}", url=url, status_code=status
                )
                if status < 500:
                    raise last_error from e
            except httpx.RequestError as e:
                # DNS failures, connection refused, timeouts
                logger.warning("[ESPN] Request failed for %s: %s", url, e)
                last_error = UpstreamUnavailable(f"Request failed: {e}", url=url)
            except ValueError as e:
                # Body was not JSON
                logger.warning("[ESPN] Invalid JSON from %s: %s", url, e)
                raise UpstreamUnavailable("Invalid JSON response", url=url) from e

            attempt += 1
            if attempt < self._retry_count:
                await asyncio.sleep(self._calculate_delay(attempt - 1))

        raise last_error or UpstreamUnavailable("Request failed", url=url)

    # URL builders. Kept separate from fetching so callers can cache by URL.

    def scoreboard_url(self, sport: str, league: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/scoreboard"

    def standings_url(self, sport: str, league: str) -> str:
        return f"{ESPN_STANDINGS_URL}/{sport}/{league}/standings"

    def teams_url(self, sport: str, league: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/teams"

    def team_url(self, sport: str, league: str, team_id: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}"

    def team_schedule_url(self, sport: str, league: str, team_id: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}/schedule"

    def team_roster_url(self, sport: str, league: str, team_id: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}/roster"

    def summary_url(self, sport: str, league: str) -> str:
        return f"{ESPN_BASE_URL}/{sport}/{league}/summary"

    def news_url(self, sport_path: str) -> str:
        """News is scoped by a sport path such as 'basketball/nba'."""
        return f"{ESPN_BASE_URL}/{sport_path}/news"

    def gamelog_url(self, sport: str, league: str, athlete_id: str) -> str:
        """Soccer game logs are not league-scoped; other sports are."""
        if sport == "soccer":
            return f"{ESPN_WEB_COMMON_URL}/soccer/athletes/{athlete_id}/gamelog"
        return f"{ESPN_WEB_COMMON_URL}/{sport}/{league}/athletes/{athlete_id}/gamelog"

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ESPNClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
