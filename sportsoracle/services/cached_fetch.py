"""Fetch-and-cache wrapper.

Every upstream read goes through CachedFetcher.fetch:

1. Fresh cache hit -> return it, no network call
2. Otherwise fetch; on success write back with the TTL and return
3. On upstream failure, serve any cached value (even stale) with a
   warning; with nothing cached, re-raise

Once a key has been fetched successfully, callers never see a hard
failure for it again - freshness is traded for availability.
"""

import logging
from typing import Any

from sportsoracle.core.errors import UpstreamUnavailable
from sportsoracle.database.api_cache import PersistentTTLCache
from sportsoracle.providers.espn.client import ESPNClient

logger = logging.getLogger(__name__)


class CachedFetcher:
    """Cache-first reader over an ESPNClient."""

    def __init__(self, client: ESPNClient, cache: PersistentTTLCache):
        self.client = client
        self.cache = cache

    async def fetch(
        self,
        key: str,
        url: str,
        ttl_seconds: int,
        params: dict | None = None,
    ) -> Any:
        """Fetch a URL through the cache.

        Args:
            key: Cache key identifying the logical request
            url: Upstream URL
            ttl_seconds: Freshness window for the written entry
            params: Query parameters

        Raises:
            UpstreamUnavailable: upstream failed and nothing is cached
        """
        cached = self.cache.get(key)
        if cached is not None and not cached.is_stale:
            logger.debug("[CACHE] Hit: %s", key)
            return cached.value

        try:
            data = await self.client.get_json(url, params)
        except UpstreamUnavailable as e:
            if cached is not None:
                logger.warning("[CACHE] Fetch failed for %s, serving stale data: %s", key, e)
                return cached.value
            raise

        self.cache.set(key, data, ttl_seconds)
        return data
