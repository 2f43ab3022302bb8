"""Core types, errors and sport normalization."""

from sportsoracle.core.errors import (
    EmptyRosterError,
    MalformedUpstreamPayload,
    SportsDataError,
    UpstreamUnavailable,
)
from sportsoracle.core.models import (
    AdvancedStats,
    BasketballAllowedStats,
    CornerBreakdown,
    FootballAllowedStats,
    SoccerAdvancedStats,
    SoccerPeriodBreakdown,
    TeamFormStats,
)
from sportsoracle.core.sports import normalize_sport

__all__ = [
    # Errors
    "EmptyRosterError",
    "MalformedUpstreamPayload",
    "SportsDataError",
    "UpstreamUnavailable",
    # Models
    "AdvancedStats",
    "BasketballAllowedStats",
    "CornerBreakdown",
    "FootballAllowedStats",
    "SoccerAdvancedStats",
    "SoccerPeriodBreakdown",
    "TeamFormStats",
    # Sports
    "normalize_sport",
]
