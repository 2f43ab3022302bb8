"""Sports data service layer.

Entry point for every dashboard read. Consumers call this service, never
the ESPN client directly. Every upstream read goes through the
CachedFetcher, so a key that has been fetched once keeps being served
(stale if need be) when ESPN is down.

Cache TTLs:
- Scoreboards: 60 seconds - live scores
- Summaries: 60 seconds - live box scores
- News, team detail, team schedule: 5 minutes
- Standings, league aggregation: 15 minutes
- Scoreboard discovery: 30 minutes
- Season schedules, game logs: 1 hour (24 hours for finished seasons)
- Teams, rosters, player index: 24 hours
"""

import logging
from collections.abc import Callable
from datetime import date, timedelta

from sportsoracle.config import get_db_path
from sportsoracle.core.errors import MalformedUpstreamPayload, UpstreamUnavailable
from sportsoracle.core.models import TeamFormStats
from sportsoracle.core.sports import normalize_sport
from sportsoracle.database.api_cache import PersistentTTLCache, make_cache_key
from sportsoracle.providers.espn.client import ESPNClient
from sportsoracle.providers.espn.constants import (
    MULTI_SEASON_SPORTS,
    SEASON_TYPES,
    SOCCER_CUP_LEAGUES,
    SOCCER_DISCOVERY_LEAGUES,
    SOCCER_H2H_LEAGUES,
)
from sportsoracle.services import scoreboard, standings
from sportsoracle.services.cached_fetch import CachedFetcher
from sportsoracle.services.league_advanced import LeagueAdvancedPipeline
from sportsoracle.stats.form import calculate_team_form
from sportsoracle.utilities.batching import gather_in_waves
from sportsoracle.utilities.event_status import (
    event_timestamp,
    first_competition,
    has_team,
    is_event_completed,
    split_competitors,
)
from sportsoracle.utilities.tz import format_date_key, now_display

logger = logging.getLogger(__name__)

CACHE_TTL_NEWS = 300
CACHE_TTL_TEAMS = 86400
CACHE_TTL_TEAM_DETAIL = 300
CACHE_TTL_SCHEDULE = 300
CACHE_TTL_SEASON_ACTIVE = 3600
CACHE_TTL_SEASON_PAST = 86400
CACHE_TTL_SCHEDULE_VARIANT = 3600
CACHE_TTL_DISCOVERY = 1800
CACHE_TTL_SUMMARY = 60
CACHE_TTL_ROSTER = 86400
CACHE_TTL_GAMELOG = 3600
CACHE_TTL_PLAYER_INDEX = 86400

# Scoreboard discovery window around today
DISCOVERY_DAYS_BACK = 3
DISCOVERY_DAYS_AHEAD = 30

H2H_SEASONS = 6
H2H_LIMIT = 10

SUMMARY_BATCH_SIZE = 5
SUMMARY_BATCH_DELAY = 0.05
ROSTER_BATCH_SIZE = 5

ALIGNED_GAMES = 10
PLAYER_SEARCH_LIMIT = 10

DEFAULT_SEARCH_LEAGUES = {
    "basketball": "nba",
    "soccer": "eng.1",
    "football": "nfl",
}

# Months Jan-Jul (1-7): the season that started last year is still active
LAST_TRANSITION_MONTH = 7

GAMELOG_PARAMS = {"region": "us", "lang": "en", "contentorigin": "espn"}


def is_transition_month(today: date) -> bool:
    """Jan-Jul, when cross-year seasons started last calendar year."""
    return today.month <= LAST_TRANSITION_MONTH


def active_seasons(today: date) -> list[int]:
    """Season years that may hold current matches."""
    if is_transition_month(today):
        return [today.year - 1, today.year]
    return [today.year]


def default_gamelog_season(sport: str, today: date) -> int | None:
    """Season ESPN files the current game log under.

    Mid-cycle, NBA seasons are named for the year they end while NFL and
    European soccer seasons are named for the year they started.
    """
    if not is_transition_month(today):
        return None
    if sport == "basketball":
        return today.year
    if sport in ("football", "soccer"):
        return today.year - 1
    return None


def _add_missing(
    events: list[dict], seen: set[str], extra: list[dict] | None, slug: str | None = None
) -> None:
    """Append events not already present; tag a missing league slug."""
    for event in extra or []:
        event_id = event.get("id")
        if event_id is None or event_id in seen:
            continue
        if slug and not (event.get("league") or {}).get("slug"):
            event["league"] = {**(event.get("league") or {}), "slug": slug}
        events.append(event)
        seen.add(event_id)


def _roster_players(roster: dict, team: dict) -> list[dict]:
    """Flatten a roster payload into player index entries.

    Rosters come either grouped by position ({items: [...]}) or flat.
    """
    players: list[dict] = []
    for group_or_player in roster.get("athletes") or []:
        if group_or_player.get("items"):
            athletes = group_or_player["items"]
        elif group_or_player.get("id"):
            athletes = [group_or_player]
        else:
            continue
        for athlete in athletes:
            players.append(
                {
                    "id": athlete.get("id"),
                    "displayName": athlete.get("displayName"),
                    "fullName": athlete.get("fullName"),
                    "jersey": athlete.get("jersey"),
                    "headshot": (athlete.get("headshot") or {}).get("href"),
                    "position": athlete.get("position"),
                    "teamId": team.get("id"),
                    "teamName": team.get("displayName"),
                    "teamLogo": team.get("logo"),
                }
            )
    return players


def _listed_teams(teams_payload: dict) -> list[dict]:
    sports = teams_payload.get("sports") or [{}]
    leagues = (sports[0] or {}).get("leagues") or [{}]
    return [item.get("team") or {} for item in (leagues[0] or {}).get("teams") or []]


def create_default_service() -> "SportsDataService":
    """SportsDataService over the configured database and a fresh ESPN client."""
    cache = PersistentTTLCache(get_db_path())
    return SportsDataService(CachedFetcher(ESPNClient(), cache))


class SportsDataService:
    """Service layer for ESPN sports data.

    Args:
        fetcher: Cache-backed fetcher shared by every operation
        today: Returns the current display-timezone date; drives season
            selection and the discovery window (tests pin it)
    """

    def __init__(self, fetcher: CachedFetcher, today: Callable[[], date] | None = None):
        self._fetcher = fetcher
        self._today = today or (lambda: now_display().date())

    @property
    def client(self) -> ESPNClient:
        return self._fetcher.client

    @property
    def cache(self) -> PersistentTTLCache:
        return self._fetcher.cache

    async def close(self) -> None:
        await self.client.close()

    # Scoreboards and standings

    async def get_scoreboard(self, sport: str, league: str, date_key: str | None = None) -> dict:
        return await scoreboard.get_scoreboard(self._fetcher, sport, league, date_key)

    async def get_standings(self, sport: str, league: str) -> dict:
        return await standings.get_standings(self._fetcher, sport, league)

    async def get_league_advanced(self, sport: str, league: str) -> dict:
        """Standings plus per-team advanced stats for a whole league."""
        return await LeagueAdvancedPipeline(self).run(sport, league)

    # News and teams

    async def get_news(self, sport_path: str, limit: int = 5) -> dict:
        """Headlines for a sport path such as 'soccer/eng.1'."""
        return await self._fetcher.fetch(
            make_cache_key("news", sport_path, limit),
            self.client.news_url(sport_path),
            CACHE_TTL_NEWS,
            params={"limit": limit},
        )

    async def get_teams(self, sport: str, league: str) -> dict:
        """Teams listing with ``team.logo`` filled from the first logo."""
        data = await self._fetcher.fetch(
            make_cache_key("teams", sport, league),
            self.client.teams_url(sport, league),
            CACHE_TTL_TEAMS,
        )
        for sport_data in data.get("sports") or []:
            for league_data in sport_data.get("leagues") or []:
                for item in league_data.get("teams") or []:
                    team = item.get("team")
                    if team and not team.get("logo") and team.get("logos"):
                        team["logo"] = team["logos"][0].get("href")
        return data

    # Schedules

    async def get_team_schedule_for_season(
        self, sport: str, league: str, team_id: str, season: int
    ) -> dict:
        """One season of a team's schedule.

        Active seasons (this year, or last year during Jan-Jul) are cached
        for an hour; finished seasons for a day.
        """
        today = self._today()
        ttl = CACHE_TTL_SEASON_ACTIVE if season in active_seasons(today) else CACHE_TTL_SEASON_PAST
        return await self._fetcher.fetch(
            make_cache_key("schedule", sport, league, team_id, season),
            self.client.team_schedule_url(sport, league, team_id),
            ttl,
            params={"season": season},
        )

    async def get_team_next_event(self, sport: str, league: str, team_id: str) -> dict | None:
        """The team's next event from the team detail endpoint, or None."""
        try:
            data = await self._fetcher.fetch(
                make_cache_key("team-detail", sport, league, team_id),
                self.client.team_url(sport, league, team_id),
                CACHE_TTL_TEAM_DETAIL,
            )
        except UpstreamUnavailable as e:
            logger.warning(
                "[SCHEDULE] Next event lookup failed for team %s: %s", team_id, e.message
            )
            return None
        next_events = (data.get("team") or {}).get("nextEvent") or []
        return next_events[0] if next_events else None

    async def get_team_schedule(self, sport: str, league: str, team_id: str) -> dict:
        """A team's schedule merged from every source ESPN spreads it over.

        ESPN's team schedule endpoint truncates some leagues and omits cup
        matches, so the base schedule is supplemented with the team detail
        next event, scoreboard discovery (soccer), season-type variants and
        cup schedules. Supplementary failures are skipped.

        Returns:
            The base schedule payload with ``events`` merged and sorted
            ascending by date

        Raises:
            UpstreamUnavailable: the base schedule can't be fetched or
                served stale
            MalformedUpstreamPayload: the schedule is not a JSON object
        """
        data = await self._fetcher.fetch(
            make_cache_key("schedule", sport, league, team_id),
            self.client.team_schedule_url(sport, league, team_id),
            CACHE_TTL_SCHEDULE,
        )
        if not isinstance(data, dict):
            raise MalformedUpstreamPayload(f"Schedule for team {team_id} is not a JSON object")
        events: list[dict] = list(data.get("events") or [])
        seen = {e.get("id") for e in events}

        next_event = await self.get_team_next_event(sport, league, team_id)
        if next_event:
            _add_missing(events, seen, [next_event])

        if sport == "soccer":
            await self._merge_scoreboard_discovery(events, seen, sport, league, team_id)

        if sport in MULTI_SEASON_SPORTS:
            await self._merge_season_variants(events, seen, sport, league, team_id)

        if sport == "soccer":
            await self._merge_cup_schedules(events, seen, sport, league, team_id)

        events.sort(key=event_timestamp)
        return {**data, "events": events}

    async def _merge_scoreboard_discovery(
        self, events: list[dict], seen: set[str], sport: str, league: str, team_id: str
    ) -> None:
        # Some soccer leagues drop the second half of the season from team schedules
        today = self._today()
        start = format_date_key(today - timedelta(days=DISCOVERY_DAYS_BACK))
        end = format_date_key(today + timedelta(days=DISCOVERY_DAYS_AHEAD))
        date_range = f"{start}-{end}"

        for discovery_league in dict.fromkeys([league, *SOCCER_DISCOVERY_LEAGUES]):
            try:
                board = await self._fetcher.fetch(
                    make_cache_key("sb_discovery", sport, discovery_league, date_range),
                    self.client.scoreboard_url(sport, discovery_league),
                    CACHE_TTL_DISCOVERY,
                    params={"dates": date_range},
                )
            except UpstreamUnavailable as e:
                logger.debug("[SCHEDULE] Discovery skipped for %s: %s", discovery_league, e.message)
                continue
            ours = [e for e in board.get("events") or [] if has_team(e, team_id)]
            _add_missing(events, seen, ours, slug=discovery_league)

    async def _merge_season_variants(
        self, events: list[dict], seen: set[str], sport: str, league: str, team_id: str
    ) -> None:
        halves: list[int | None] = [1, 2] if sport == "soccer" else [None]
        for season in active_seasons(self._today()):
            for season_type in SEASON_TYPES[sport]:
                for half in halves:
                    params = {"seasontype": season_type, "season": season}
                    if half:
                        params["half"] = half
                    key = make_cache_key(
                        "schedule",
                        sport,
                        league,
                        team_id,
                        f"y{season}",
                        f"t{season_type}",
                        f"h{half}" if half else None,
                    )
                    try:
                        variant = await self._fetcher.fetch(
                            key,
                            self.client.team_schedule_url(sport, league, team_id),
                            CACHE_TTL_SCHEDULE_VARIANT,
                            params=params,
                        )
                    except UpstreamUnavailable as e:
                        logger.debug("[SCHEDULE] Variant %s skipped: %s", key, e.message)
                        continue
                    _add_missing(events, seen, variant.get("events"), slug=league)

    async def _merge_cup_schedules(
        self, events: list[dict], seen: set[str], sport: str, league: str, team_id: str
    ) -> None:
        for cup in SOCCER_CUP_LEAGUES:
            if cup == league:
                continue
            try:
                cup_schedule = await self._fetcher.fetch(
                    make_cache_key("schedule", sport, cup, team_id),
                    self.client.team_schedule_url(sport, cup, team_id),
                    CACHE_TTL_SCHEDULE,
                )
            except UpstreamUnavailable as e:
                logger.debug("[SCHEDULE] Cup %s skipped for team %s: %s", cup, team_id, e.message)
                continue
            _add_missing(events, seen, cup_schedule.get("events"))

    async def get_head_to_head(
        self, sport: str, league: str, team_id: str, opponent_id: str
    ) -> list[dict]:
        """Completed meetings between two teams, newest first (max 10).

        Walks back up to six seasons through both teams' schedules, since a
        cup match can be missing from one side's schedule.
        """
        leagues = [league, *SOCCER_H2H_LEAGUES] if sport == "soccer" else [league]
        current_year = self._today().year
        found: list[dict] = []
        seen: set[str] = set()

        for offset in range(H2H_SEASONS):
            season = current_year - offset
            for search_league in leagues:
                for side in (team_id, opponent_id):
                    try:
                        schedule = await self.get_team_schedule_for_season(
                            sport, search_league, side, season
                        )
                    except UpstreamUnavailable:
                        # Teams are often absent from a cup in a given year
                        continue
                    meetings = [
                        e
                        for e in schedule.get("events") or []
                        if is_event_completed(e)
                        and has_team(e, team_id)
                        and has_team(e, opponent_id)
                    ]
                    _add_missing(found, seen, meetings)
            if len(found) >= H2H_LIMIT:
                break

        found.sort(key=event_timestamp, reverse=True)
        return found[:H2H_LIMIT]

    # Summaries

    async def get_game_summary(self, sport: str, league: str, event_id: str) -> dict:
        data = await self._fetcher.fetch(
            make_cache_key("summary", sport, league, event_id),
            self.client.summary_url(sport, league),
            CACHE_TTL_SUMMARY,
            params={"event": event_id},
        )
        if not isinstance(data, dict):
            raise MalformedUpstreamPayload(f"Summary for event {event_id} is not a JSON object")
        return data

    async def get_game_summaries_batch(
        self, sport: str, league: str, event_ids: list[str]
    ) -> list[dict]:
        """Summaries for many events in waves of five; failures are dropped."""

        async def load(event_id: str) -> dict | None:
            try:
                return await self.get_game_summary(sport, league, event_id)
            except (UpstreamUnavailable, MalformedUpstreamPayload) as e:
                logger.warning("[SUMMARY] Failed for event %s: %s", event_id, e.message)
                return None

        results = await gather_in_waves(
            event_ids, SUMMARY_BATCH_SIZE, load, delay_between_waves=SUMMARY_BATCH_DELAY
        )
        return [r for r in results if r is not None]

    # Players

    async def get_team_roster(self, sport: str, league: str, team_id: str) -> dict:
        return await self._fetcher.fetch(
            make_cache_key("roster", sport, league, team_id),
            self.client.team_roster_url(sport, league, team_id),
            CACHE_TTL_ROSTER,
        )

    async def get_player_gamelog(
        self, sport: str, league: str, athlete_id: str, season: int | None = None
    ) -> dict:
        """A player's game log. Soccer logs are not league-scoped."""
        if season is None:
            season = default_gamelog_season(sport, self._today())
        params = dict(GAMELOG_PARAMS)
        if season:
            params["season"] = season
        return await self._fetcher.fetch(
            make_cache_key("gamelog", sport, league, athlete_id, season),
            self.client.gamelog_url(sport, league, athlete_id),
            CACHE_TTL_GAMELOG,
            params=params,
        )

    async def get_player_team_gamelog(
        self, sport: str, league: str, athlete_id: str, team_id: str | None = None
    ) -> dict:
        """Game log merged across active seasons.

        With ``team_id``, the log is aligned to the team's last ten
        completed games: games the player missed get an empty-stats
        placeholder (DNP) and opponent metadata from the schedule.

        Raises:
            UpstreamUnavailable: no season's game log could be fetched
        """
        today = self._today()
        seasons = [today.year, today.year - 1] if is_transition_month(today) else [today.year]
        if sport == "basketball" and not is_transition_month(today):
            # NBA seasons are named for the year they end
            seasons.append(today.year + 1)

        logs: list[dict] = []
        last_error: UpstreamUnavailable | None = None
        for season in seasons:
            try:
                logs.append(await self.get_player_gamelog(sport, league, athlete_id, season))
            except UpstreamUnavailable as e:
                logger.warning(
                    "[GAMELOG] Season %s failed for athlete %s: %s", season, athlete_id, e.message
                )
                last_error = e
        if not logs:
            raise last_error or UpstreamUnavailable(f"No game log for athlete {athlete_id}")

        metadata: dict[str, dict] = {}
        for log in logs:
            metadata.update(log.get("events") or {})

        stat_events: dict[str, dict] = {}
        for log in logs:
            for season_type in log.get("seasonTypes") or []:
                for category in season_type.get("categories") or []:
                    for entry in category.get("events") or []:
                        stat_events.setdefault(entry.get("eventId"), entry)

        base = next((log for log in logs if log.get("seasonTypes")), logs[0])
        merged = dict(base)

        if team_id:
            try:
                schedule = await self.get_team_schedule(sport, league, team_id)
            except UpstreamUnavailable as e:
                logger.warning("[GAMELOG] Alignment skipped for team %s: %s", team_id, e.message)
            else:
                merged["seasonTypes"] = [
                    self._aligned_season(base, schedule, metadata, stat_events, team_id, today.year)
                ]

        merged["events"] = metadata
        return merged

    @staticmethod
    def _aligned_season(
        base: dict,
        schedule: dict,
        metadata: dict[str, dict],
        stat_events: dict[str, dict],
        team_id: str,
        year: int,
    ) -> dict:
        completed = sorted(
            (e for e in schedule.get("events") or [] if is_event_completed(e)),
            key=event_timestamp,
            reverse=True,
        )[:ALIGNED_GAMES]

        aligned: list[dict] = []
        for game in completed:
            game_id = game.get("id")
            if game_id not in metadata:
                us, them = split_competitors(first_competition(game).get("competitors"), team_id)
                opponent = (them or {}).get("team") or {}
                logos = opponent.get("logos") or [{}]
                metadata[game_id] = {
                    "gameDate": game.get("date"),
                    "gameId": game_id,
                    "opponent": {
                        "id": opponent.get("id"),
                        "displayName": opponent.get("displayName"),
                        "logo": logos[0].get("href"),
                    },
                    "gameResult": "W" if (us or {}).get("winner") else "L",
                }
            aligned.append(
                stat_events.get(game_id)
                or {"eventId": game_id, "gameDate": game.get("date"), "stats": []}
            )

        categories = ((base.get("seasonTypes") or [{}])[0] or {}).get("categories") or [{}]
        return {
            "id": "merged",
            "year": year,
            "type": 2,
            "categories": [
                {
                    "name": "aligned",
                    "displayName": "Recent Games",
                    "shortDisplayName": "Recent",
                    "abbreviation": "REC",
                    "stats": categories[0].get("stats") or [],
                    "events": aligned,
                }
            ],
        }

    async def get_all_players(self, sport: str, league: str) -> list[dict]:
        """Player index for a league built from every team roster.

        Expensive, so the whole index is cached for a day. When the build
        fails the stale index is served, else an empty list.
        """
        cache_key = make_cache_key("all-players", sport, league)
        cached = self.cache.get(cache_key)
        if cached is not None and not cached.is_stale:
            return cached.value

        try:
            teams = [t for t in _listed_teams(await self.get_teams(sport, league)) if t.get("id")]
        except UpstreamUnavailable as e:
            logger.error(
                "[PLAYERS] Failed to build player index for %s/%s: %s", sport, league, e.message
            )
            return cached.value if cached is not None else []

        async def load(team: dict) -> list[dict]:
            try:
                roster = await self.get_team_roster(sport, league, team["id"])
            except UpstreamUnavailable as e:
                logger.warning("[PLAYERS] Roster failed for team %s: %s", team["id"], e.message)
                return []
            return _roster_players(roster, team)

        per_team = await gather_in_waves(teams, ROSTER_BATCH_SIZE, load)
        players = [player for team_players in per_team for player in team_players]
        logger.info(
            "[PLAYERS] Indexed %d players across %d teams for %s/%s",
            len(players),
            len(teams),
            sport,
            league,
        )
        self.cache.set(cache_key, players, CACHE_TTL_PLAYER_INDEX)
        return players

    async def search_players(self, sport: str, query: str, league: str | None = None) -> list[dict]:
        """Players whose name or jersey number contains ``query`` (max 10).

        Raises:
            ValueError: if query or sport is empty
        """
        if not query:
            raise ValueError("Query required")
        if not sport:
            raise ValueError("Sport required")
        target_league = league or DEFAULT_SEARCH_LEAGUES.get(sport, "nfl")
        needle = query.lower()
        matches = [
            p
            for p in await self.get_all_players(sport, target_league)
            if needle in (p.get("displayName") or "").lower()
            or (p.get("jersey") is not None and needle in str(p["jersey"]))
        ]
        return matches[:PLAYER_SEARCH_LIMIT]

    # Form

    async def get_team_form(
        self, sport: str, league: str, team_id: str, league_filter: str | None = None
    ) -> TeamFormStats:
        """Form over the team's merged schedule."""
        sport = normalize_sport(sport, league)
        schedule = await self.get_team_schedule(sport, league, team_id)
        return calculate_team_form(schedule.get("events") or [], team_id, sport, league_filter)
