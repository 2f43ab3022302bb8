"""League standings retrieval and normalization.

ESPN nests the standings object at different depths depending on the
league: at the root, under the first child (current season table), under
some later child, or under a conference's division. Resolution is an
ordered list of strategies; the first one that finds a standings object
wins. Add a strategy here to support a new upstream shape.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sportsoracle.core.errors import MalformedUpstreamPayload, UpstreamUnavailable
from sportsoracle.database.api_cache import make_cache_key
from sportsoracle.services.cached_fetch import CachedFetcher

logger = logging.getLogger(__name__)

STANDINGS_TTL = 15 * 60

# Stat names/types that carry a table position
RANK_STAT_KEYS = {"rank", "playoffseed", "seed"}
UNRANKED = 999


def _first_child_standings(data: dict) -> dict | None:
    children = data.get("children") or []
    if children:
        return children[0].get("standings")
    return None


def _any_child_standings(data: dict) -> dict | None:
    for child in data.get("children") or []:
        if child.get("standings"):
            return child["standings"]
    return None


def _root_standings(data: dict) -> dict | None:
    return data.get("standings")


def _any_grandchild_standings(data: dict) -> dict | None:
    for child in data.get("children") or []:
        for grandchild in child.get("children") or []:
            if grandchild.get("standings"):
                return grandchild["standings"]
    return None


STANDINGS_RESOLVERS: tuple[Callable[[dict], dict | None], ...] = (
    _first_child_standings,
    _any_child_standings,
    _root_standings,
    _any_grandchild_standings,
)


def resolve_standings_root(data: dict) -> dict:
    """Find the standings object using STANDINGS_RESOLVERS in order.

    Raises:
        MalformedUpstreamPayload: if no strategy finds one
    """
    if not isinstance(data, dict):
        raise MalformedUpstreamPayload("Standings response is not a JSON object")
    for resolver in STANDINGS_RESOLVERS:
        root = resolver(data)
        if root:
            return root
    raise MalformedUpstreamPayload(
        f"No standings data found in API response (keys: {sorted(data.keys())})"
    )


def clean_team(team: dict | None) -> dict:
    """Team identity with display defaults filled in."""
    team = team or {}
    return {
        "id": team.get("id") or "unknown",
        "uid": team.get("uid") or "",
        "location": team.get("location") or "",
        "name": team.get("name") or "Unknown Team",
        "abbreviation": team.get("abbreviation") or "",
        "displayName": team.get("displayName") or "Unknown Team",
        "shortDisplayName": team.get("shortDisplayName") or "Unknown",
        "logos": team.get("logos"),
    }


def _rank_of(entry: dict) -> float:
    for stat in entry["stats"]:
        name = (stat.get("name") or "").lower()
        stat_type = (stat.get("type") or "").lower()
        if name in RANK_STAT_KEYS or stat_type in RANK_STAT_KEYS:
            try:
                return float(stat.get("value"))
            except (TypeError, ValueError):
                return UNRANKED
    return UNRANKED


def clean_entries(entries: list[dict] | None) -> list[dict]:
    """Normalize raw standings entries and sort by rank/seed when present."""
    cleaned = [
        {
            "team": clean_team(entry.get("team")),
            "note": entry.get("note"),
            "stats": [
                {
                    "name": stat.get("name"),
                    "displayName": stat.get("displayName"),
                    "shortDisplayName": stat.get("shortDisplayName"),
                    "abbreviation": stat.get("abbreviation"),
                    "displayValue": stat.get("displayValue"),
                    "value": stat.get("value"),
                    "type": stat.get("type"),
                }
                for stat in entry.get("stats") or []
            ],
        }
        for entry in entries or []
    ]
    # sorted() is stable: unranked entries keep upstream order
    return sorted(cleaned, key=_rank_of)


def collect_groups(children: list[dict] | None) -> list[dict]:
    """Flatten hierarchical groups (conference -> division) into a list.

    A child with entries becomes a group; a child without entries is
    descended into.
    """
    groups: list[dict] = []
    for child in children or []:
        entries = (child.get("standings") or {}).get("entries")
        if entries:
            groups.append({"name": child.get("name"), "entries": clean_entries(entries)})
        elif child.get("children"):
            groups.extend(collect_groups(child["children"]))
    return groups


def build_standings(data: dict) -> dict:
    """Normalize a raw standings payload.

    Raises:
        MalformedUpstreamPayload: if no standings object is found
    """
    root = resolve_standings_root(data)
    return {
        "name": data.get("name") or "League Standings",
        "abbreviation": data.get("abbreviation") or "",
        "season": root.get("season") or datetime.now().year,
        "seasonDisplayName": root.get("seasonDisplayName") or "",
        "entries": clean_entries(root.get("entries")),
        "groups": collect_groups(data.get("children")),
    }


def flatten_entries(standings: dict) -> list[dict]:
    """One ordered entry list: group entries when groups exist, else flat."""
    groups = standings.get("groups") or []
    if groups:
        return [entry for group in groups for entry in group.get("entries") or []]
    return list(standings.get("entries") or [])


def synthesize_standings(teams_payload: dict, sport: str, league: str) -> dict:
    """Minimal standings from the flat teams listing: identity only, no stats.

    The teams endpoint nests teams at sports[0].leagues[0].teams[*].team.
    """
    sports = teams_payload.get("sports") or [{}]
    leagues = (sports[0] or {}).get("leagues") or [{}]
    league_data = leagues[0] or {}
    teams = league_data.get("teams") or []
    entries = [
        {"team": clean_team(item.get("team")), "note": None, "stats": []}
        for item in teams
        if (item.get("team") or {}).get("id")
    ]
    return {
        "name": league_data.get("name") or "League Standings",
        "abbreviation": league_data.get("abbreviation") or "",
        "season": (league_data.get("season") or {}).get("year") or datetime.now().year,
        "seasonDisplayName": "",
        "entries": entries,
        "groups": [],
    }


async def get_standings(fetcher: CachedFetcher, sport: str, league: str) -> dict:
    """Normalized standings for a league, cached for 15 minutes.

    The normalized form is what gets cached, so a malformed refresh falls
    back to the last good table just like a network failure does.

    Raises:
        UpstreamUnavailable: fetch failed and nothing is cached
        MalformedUpstreamPayload: payload lacks standings and nothing is cached
    """
    cache_key = make_cache_key("standings", sport, league)
    cached = fetcher.cache.get(cache_key)
    if cached is not None and not cached.is_stale:
        return cached.value

    url = fetcher.client.standings_url(sport, league)
    try:
        data = await fetcher.client.get_json(url)
        standings = build_standings(data)
    except (UpstreamUnavailable, MalformedUpstreamPayload) as e:
        logger.error("[STANDINGS] Failed for %s/%s: %s", sport, league, e.message)
        if cached is not None:
            logger.warning("[STANDINGS] Returning stale cache data for %s/%s", sport, league)
            return cached.value
        raise

    fetcher.cache.set(cache_key, standings, STANDINGS_TTL)
    return standings
