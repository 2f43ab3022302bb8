"""Scoreboard day reconciliation.

ESPN buckets scoreboard events by date in its own (US) timezone. One
display-timezone calendar day therefore straddles two upstream days: a
Manila morning game is the previous US evening. To build day D we fetch
upstream D and D-1, merge, and keep only events whose start falls on D in
the display timezone.
"""

import asyncio
import logging

from sportsoracle.database.api_cache import make_cache_key
from sportsoracle.services.cached_fetch import CachedFetcher
from sportsoracle.utilities.event_status import is_event_live
from sportsoracle.utilities.tz import (
    display_date_key,
    format_date_key,
    now_display,
    parse_date_key,
    parse_instant,
    previous_date_key,
)

logger = logging.getLogger(__name__)

# Live scores: keep the cache short
SCOREBOARD_TTL = 60


async def fetch_raw_scoreboard(
    fetcher: CachedFetcher, sport: str, league: str, date_key: str
) -> dict:
    """Fetch one upstream scoreboard day."""
    url = fetcher.client.scoreboard_url(sport, league)
    return await fetcher.fetch(
        make_cache_key("scoreboard", sport, league, date_key),
        url,
        SCOREBOARD_TTL,
        params={"dates": date_key},
    )


def reconcile_events(events: list[dict], target_key: str) -> list[dict]:
    """Reduce the union of two upstream days to one display day.

    Deduplicates by event id (the later fetch wins), keeps events whose
    display-timezone date equals ``target_key`` plus any live event, and
    sorts ascending by start instant.
    """
    unique: dict[str, dict] = {}
    for event in events:
        event_id = event.get("id")
        if event_id is not None:
            unique[event_id] = event

    kept: list[tuple] = []
    for event in unique.values():
        try:
            instant = parse_instant(event.get("date") or "")
        except (ValueError, OverflowError):
            logger.debug("[SCOREBOARD] Skipping event %s with bad date", event.get("id"))
            continue

        if is_event_live(event) or display_date_key(instant) == target_key:
            kept.append((instant, event))

    kept.sort(key=lambda pair: pair[0])
    return [event for _, event in kept]


async def get_scoreboard(
    fetcher: CachedFetcher,
    sport: str,
    league: str,
    date_key: str | None = None,
) -> dict:
    """Scoreboard for one display-timezone calendar day.

    Args:
        fetcher: Cache-backed fetcher
        sport: ESPN sport segment (e.g. 'soccer')
        league: ESPN league slug (e.g. 'eng.1', 'all')
        date_key: Target day as YYYYMMDD; defaults to today in display tz

    Returns:
        The target day's upstream payload with ``events`` replaced by the
        reconciled list

    Raises:
        ValueError: if date_key is malformed
        UpstreamUnavailable: if either day can't be fetched or served stale
    """
    target_key = date_key or format_date_key(now_display())
    parse_date_key(target_key)
    prev_key = previous_date_key(target_key)

    prev_day, day0 = await asyncio.gather(
        fetch_raw_scoreboard(fetcher, sport, league, prev_key),
        fetch_raw_scoreboard(fetcher, sport, league, target_key),
    )

    merged = list(prev_day.get("events") or []) + list(day0.get("events") or [])
    events = reconcile_events(merged, target_key)
    logger.debug(
        "[SCOREBOARD] %s/%s %s: %d events from %d upstream",
        sport,
        league,
        target_key,
        len(events),
        len(merged),
    )
    return {**day0, "events": events}


async def get_soccer_scores(fetcher: CachedFetcher, date_key: str | None = None) -> dict:
    return await get_scoreboard(fetcher, "soccer", "all", date_key)


async def get_basketball_scores(fetcher: CachedFetcher, date_key: str | None = None) -> dict:
    return await get_scoreboard(fetcher, "basketball", "nba", date_key)


async def get_nfl_scores(fetcher: CachedFetcher, date_key: str | None = None) -> dict:
    return await get_scoreboard(fetcher, "football", "nfl", date_key)


async def get_ncaaf_scores(fetcher: CachedFetcher, date_key: str | None = None) -> dict:
    return await get_scoreboard(fetcher, "football", "college-football", date_key)
