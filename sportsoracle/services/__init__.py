"""Service layer: cache-backed data access for the dashboard."""

from sportsoracle.services.cached_fetch import CachedFetcher
from sportsoracle.services.league_advanced import LeagueAdvancedPipeline
from sportsoracle.services.sports_data import SportsDataService, create_default_service

__all__ = [
    "CachedFetcher",
    "LeagueAdvancedPipeline",
    "SportsDataService",
    "create_default_service",
]
