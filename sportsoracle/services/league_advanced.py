"""League-wide advanced statistics.

Aggregates standings, every team's schedule and every completed match's
summary into per-team advanced stats:

1. Standings (fallback: identity-only entries from the teams listing)
2. Team schedules in waves of 10
3. Completed match ids per team, each attributed to its real league
   (cup matches live under their cup's slug)
4. Unique summaries in waves of 15
5. calculate_advanced_stats per team

Per-team and per-match failures are logged and skipped; the run only
fails when there are no teams at all.
"""

import logging
from typing import TYPE_CHECKING

from sportsoracle.core.errors import (
    EmptyRosterError,
    MalformedUpstreamPayload,
    UpstreamUnavailable,
)
from sportsoracle.core.sports import normalize_sport
from sportsoracle.database.api_cache import make_cache_key
from sportsoracle.services.standings import flatten_entries, synthesize_standings
from sportsoracle.stats.advanced import calculate_advanced_stats
from sportsoracle.utilities.batching import gather_in_waves
from sportsoracle.utilities.event_status import event_league_slug, is_event_completed

if TYPE_CHECKING:
    from sportsoracle.services.sports_data import SportsDataService

logger = logging.getLogger(__name__)

LEAGUE_ADVANCED_TTL = 15 * 60
SCHEDULE_WAVE_SIZE = 10
SUMMARY_WAVE_SIZE = 15


def _team_entries(standings: dict) -> list[dict]:
    return [e for e in flatten_entries(standings) if (e.get("team") or {}).get("id")]


class LeagueAdvancedPipeline:
    """One league aggregation run over a SportsDataService."""

    def __init__(self, service: "SportsDataService"):
        self._service = service

    async def _load_standings(self, sport: str, league: str) -> dict:
        try:
            standings = await self._service.get_standings(sport, league)
        except (UpstreamUnavailable, MalformedUpstreamPayload) as e:
            logger.warning(
                "[LEAGUE] Standings unavailable for %s/%s (%s), falling back to teams listing",
                sport,
                league,
                e.message,
            )
        else:
            if _team_entries(standings):
                return standings
            logger.warning(
                "[LEAGUE] Standings for %s/%s list no teams, falling back to teams listing",
                sport,
                league,
            )

        try:
            teams = await self._service.get_teams(sport, league)
        except UpstreamUnavailable as e:
            raise EmptyRosterError(
                f"No standings or teams available for {sport}/{league}: {e.message}"
            ) from e
        return synthesize_standings(teams, sport, league)

    async def run(self, sport: str, league: str) -> dict:
        """Aggregate standings and advanced stats for a league.

        Args:
            sport: Sport or alias ('nba', 'nfl', 'football' with a European
                league slug, ...)
            league: ESPN league slug

        Returns:
            {"standings": ..., "advancedStats": {team_id: stats dict}}

        Raises:
            EmptyRosterError: neither standings nor the teams listing
                yielded any team
        """
        sport = normalize_sport(sport, league)
        cache = self._service.cache
        cache_key = make_cache_key("league-advanced", sport, league)
        cached = cache.get(cache_key)
        if cached is not None and not cached.is_stale:
            return cached.value

        standings = await self._load_standings(sport, league)
        entries = _team_entries(standings)
        if not entries:
            raise EmptyRosterError(f"No teams found for {sport}/{league}")

        team_match_ids: dict[str, list[str]] = {}
        match_leagues: dict[str, str] = {}

        async def load_schedule(entry: dict) -> None:
            team_id = entry["team"]["id"]
            try:
                schedule = await self._service.get_team_schedule(sport, league, team_id)
            except (UpstreamUnavailable, MalformedUpstreamPayload) as e:
                logger.warning("[LEAGUE] Schedule failed for team %s: %s", team_id, e.message)
                return
            for event in schedule.get("events") or []:
                event_id = event.get("id")
                if event_id is None or not is_event_completed(event):
                    continue
                team_match_ids.setdefault(team_id, []).append(event_id)
                # dict keeps first-seen order, so it doubles as the unique id set
                match_leagues.setdefault(event_id, event_league_slug(event) or league)

        await gather_in_waves(entries, SCHEDULE_WAVE_SIZE, load_schedule)

        async def load_summary(event_id: str) -> dict | None:
            try:
                return await self._service.get_game_summary(
                    sport, match_leagues[event_id], event_id
                )
            except (UpstreamUnavailable, MalformedUpstreamPayload) as e:
                logger.warning("[LEAGUE] Summary failed for event %s: %s", event_id, e.message)
                return None

        summaries: dict[str, dict] = {}
        for summary in await gather_in_waves(list(match_leagues), SUMMARY_WAVE_SIZE, load_summary):
            header_id = ((summary or {}).get("header") or {}).get("id")
            if header_id:
                summaries[header_id] = summary

        advanced_stats: dict[str, dict] = {}
        for entry in entries:
            team_id = entry["team"]["id"]
            team_summaries = [
                summaries[i] for i in team_match_ids.get(team_id, []) if i in summaries
            ]
            if team_summaries:
                stats = calculate_advanced_stats(team_summaries, team_id, sport)
                advanced_stats[team_id] = stats.to_dict()

        logger.info(
            "[LEAGUE] %s/%s: %d teams, %d matches, %d summaries, stats for %d teams",
            sport,
            league,
            len(entries),
            len(match_leagues),
            len(summaries),
            len(advanced_stats),
        )
        result = {"standings": standings, "advancedStats": advanced_stats}
        cache.set(cache_key, result, LEAGUE_ADVANCED_TTL)
        return result
