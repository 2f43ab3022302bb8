"""Tests for the SportsDataService entry points."""

from datetime import date

import httpx
import pytest

from payloads import make_event, make_summary
from sportsoracle.core.errors import UpstreamUnavailable
from sportsoracle.services.sports_data import (
    SportsDataService,
    active_seasons,
    default_gamelog_season,
)

SITE = "/apis/site/v2/sports"
COMMON = "/apis/common/v3/sports"


class TestSeasonRules:
    """Cross-year seasons around the January-July transition."""

    def test_active_seasons(self):
        assert active_seasons(date(2026, 3, 1)) == [2025, 2026]
        assert active_seasons(date(2025, 10, 15)) == [2025]

    def test_default_gamelog_season(self):
        assert default_gamelog_season("basketball", date(2026, 3, 1)) == 2026
        assert default_gamelog_season("football", date(2026, 3, 1)) == 2025
        assert default_gamelog_season("soccer", date(2026, 3, 1)) == 2025
        assert default_gamelog_season("basketball", date(2025, 10, 15)) is None


class TestNewsAndTeams:
    """Simple cached reads."""

    @pytest.mark.asyncio
    async def test_news(self, service, espn, cache):
        espn.add(f"{SITE}/soccer/eng.1/news", {"articles": [{"headline": "x"}]}, limit=3)
        news = await service.get_news("soccer/eng.1", limit=3)
        assert news["articles"][0]["headline"] == "x"
        assert cache.get("news:soccer/eng.1:3") is not None

    @pytest.mark.asyncio
    async def test_teams_get_logo(self, service, espn):
        espn.add(
            f"{SITE}/soccer/eng.1/teams",
            {
                "sports": [
                    {
                        "leagues": [
                            {
                                "teams": [
                                    {"team": {"id": "1", "logos": [{"href": "a.png"}]}},
                                    {
                                        "team": {
                                            "id": "2",
                                            "logo": "keep.png",
                                            "logos": [{"href": "b.png"}],
                                        }
                                    },
                                    {"team": {"id": "3"}},
                                ]
                            }
                        ]
                    }
                ]
            },
        )
        data = await service.get_teams("soccer", "eng.1")
        teams = [t["team"] for t in data["sports"][0]["leagues"][0]["teams"]]
        assert [t.get("logo") for t in teams] == ["a.png", "keep.png", None]


class TestTeamSchedule:
    """Merged schedules from every source."""

    @pytest.mark.asyncio
    async def test_next_event(self, service, espn):
        espn.add(f"{SITE}/basketball/nba/teams/1", {"team": {"nextEvent": [{"id": "n1"}]}})
        assert await service.get_team_next_event("basketball", "nba", "1") == {"id": "n1"}

    @pytest.mark.asyncio
    async def test_next_event_failure_is_none(self, service):
        assert await service.get_team_next_event("basketball", "nba", "1") is None

    @pytest.mark.asyncio
    async def test_merges_next_event_and_variants(self, service, espn):
        base = make_event("a", "2025-10-01T00:00Z", ("1", 100), ("2", 90))
        upcoming = make_event("b", "2025-10-20T00:00Z", ("1", 0), ("3", 0), state="pre")
        playoff = make_event("c", "2025-04-01T00:00Z", ("1", 110), ("4", 101))
        path = f"{SITE}/basketball/nba/teams/1/schedule"
        espn.add(path, {"team": {"id": "1"}, "events": [base]})
        espn.add(path, {"events": [base, playoff]}, seasontype=2, season=2025)
        espn.add(f"{SITE}/basketball/nba/teams/1", {"team": {"nextEvent": [upcoming]}})

        schedule = await service.get_team_schedule("basketball", "nba", "1")

        assert [e["id"] for e in schedule["events"]] == ["c", "a", "b"]
        assert schedule["events"][0]["league"] == {"slug": "nba"}
        assert "league" not in schedule["events"][1]
        assert schedule["team"] == {"id": "1"}

    @pytest.mark.asyncio
    async def test_base_failure_raises(self, service, espn):
        espn.add(f"{SITE}/basketball/nba/teams/1/schedule", 500)
        with pytest.raises(UpstreamUnavailable):
            await service.get_team_schedule("basketball", "nba", "1")

    @pytest.mark.asyncio
    async def test_soccer_discovery_and_cups(self, service, espn, cache):
        espn.add(f"{SITE}/soccer/eng.1/teams/1/schedule", {"events": []})
        espn.add(
            f"{SITE}/soccer/eng.1/scoreboard",
            {
                "events": [
                    make_event("d1", "2025-10-20T15:00Z", ("1", 0), ("2", 0), state="pre"),
                    make_event("d2", "2025-10-20T15:00Z", ("3", 0), ("4", 0), state="pre"),
                ]
            },
            dates="20251012-20251114",
        )
        espn.add(
            f"{SITE}/soccer/uefa.champions/teams/1/schedule",
            {"events": [make_event("cl1", "2025-10-22T19:00Z", ("1", 0), ("9", 0), state="pre")]},
        )

        schedule = await service.get_team_schedule("soccer", "eng.1", "1")

        assert [e["id"] for e in schedule["events"]] == ["d1", "cl1"]
        assert schedule["events"][0]["league"] == {"slug": "eng.1"}
        assert cache.get("sb_discovery:soccer:eng.1:20251012-20251114") is not None

    @pytest.mark.asyncio
    async def test_season_schedule_ttl(self, service, espn, clock):
        path = f"{SITE}/basketball/nba/teams/1/schedule"
        espn.add(path, {"events": []}, season=2020)
        espn.add(path, {"events": []}, season=2025)

        await service.get_team_schedule_for_season("basketball", "nba", "1", 2020)
        await service.get_team_schedule_for_season("basketball", "nba", "1", 2025)
        clock.advance(3601)
        await service.get_team_schedule_for_season("basketball", "nba", "1", 2020)
        await service.get_team_schedule_for_season("basketball", "nba", "1", 2025)

        seasons = [r.url.params["season"] for r in espn.requests]
        assert seasons == ["2020", "2025", "2025"]


class TestHeadToHead:
    """Completed meetings across both teams' schedules."""

    @pytest.mark.asyncio
    async def test_meetings_newest_first(self, service, espn):
        m1 = make_event("m1", "2025-03-01T00:00Z", ("1", 100), ("2", 90))
        m2 = make_event("m2", "2025-01-10T00:00Z", ("2", 100), ("1", 98))
        m3 = make_event("m3", "2024-02-01T00:00Z", ("1", 101), ("2", 99))
        other = make_event("x", "2025-02-01T00:00Z", ("1", 100), ("3", 90))
        future = make_event("f", "2025-11-01T00:00Z", ("1", 0), ("2", 0), state="pre")

        team1 = f"{SITE}/basketball/nba/teams/1/schedule"
        team2 = f"{SITE}/basketball/nba/teams/2/schedule"
        espn.add(team1, {"events": [m1, other, future]}, season=2025)
        espn.add(team2, {"events": [m1, m2]}, season=2025)
        espn.add(team1, {"events": [m3]}, season=2024)

        meetings = await service.get_head_to_head("basketball", "nba", "1", "2")
        assert [e["id"] for e in meetings] == ["m1", "m2", "m3"]


class TestSummaries:
    """Single and batched game summaries."""

    @pytest.mark.asyncio
    async def test_batch_drops_failures(self, service, espn):
        def handler(request: httpx.Request) -> httpx.Response:
            event_id = request.url.params["event"]
            if event_id == "bad":
                return httpx.Response(500)
            return httpx.Response(200, json=make_summary(event_id, ("1", "1"), ("2", "0")))

        espn.add(f"{SITE}/soccer/eng.1/summary", handler)
        summaries = await service.get_game_summaries_batch("soccer", "eng.1", ["a", "bad", "b"])
        assert [s["header"]["id"] for s in summaries] == ["a", "b"]


class TestGamelog:
    """Player game logs."""

    @pytest.mark.asyncio
    async def test_default_season_mid_cycle(self, fetcher, espn, cache):
        service = SportsDataService(fetcher, today=lambda: date(2026, 3, 1))
        espn.add(f"{COMMON}/basketball/nba/athletes/7/gamelog", {"events": {}})
        espn.add(f"{COMMON}/football/nfl/athletes/7/gamelog", {"events": {}})

        await service.get_player_gamelog("basketball", "nba", "7")
        await service.get_player_gamelog("football", "nfl", "7")

        assert [r.url.params["season"] for r in espn.requests] == ["2026", "2025"]
        assert espn.requests[0].url.params["region"] == "us"
        assert cache.get("gamelog:basketball:nba:7:2026") is not None

    @pytest.mark.asyncio
    async def test_no_season_outside_transition(self, service, espn, cache):
        espn.add(f"{COMMON}/basketball/nba/athletes/7/gamelog", {"events": {}})
        await service.get_player_gamelog("basketball", "nba", "7")
        assert "season" not in espn.requests[0].url.params
        assert cache.get("gamelog:basketball:nba:7") is not None

    @pytest.mark.asyncio
    async def test_soccer_path_is_league_less(self, service, espn):
        espn.add(f"{COMMON}/soccer/athletes/7/gamelog", {"events": {}})
        await service.get_player_gamelog("soccer", "eng.1", "7", season=2025)
        assert espn.requests[0].url.path == f"{COMMON}/soccer/athletes/7/gamelog"

    @pytest.mark.asyncio
    async def test_team_alignment_adds_dnp(self, service, espn):
        espn.add(
            f"{COMMON}/basketball/nba/athletes/7/gamelog",
            {
                "events": {"g1": {"gameId": "g1"}},
                "seasonTypes": [
                    {
                        "categories": [
                            {"stats": ["PTS"], "events": [{"eventId": "g1", "stats": ["20"]}]}
                        ]
                    }
                ],
            },
        )
        played = make_event("g1", "2025-04-01T00:00Z", ("1", 100), ("2", 90))
        missed = make_event("g2", "2025-04-05T00:00Z", ("1", 105), ("3", 99))
        us, them = missed["competitions"][0]["competitors"]
        us["winner"] = True
        them["team"].update(displayName="Rivals", logos=[{"href": "r.png"}])
        espn.add(f"{SITE}/basketball/nba/teams/1/schedule", {"events": [played, missed]})

        log = await service.get_player_team_gamelog("basketball", "nba", "7", team_id="1")

        aligned = log["seasonTypes"][0]["categories"][0]
        assert aligned["name"] == "aligned"
        assert aligned["stats"] == ["PTS"]
        assert aligned["events"] == [
            {"eventId": "g2", "gameDate": "2025-04-05T00:00Z", "stats": []},
            {"eventId": "g1", "stats": ["20"]},
        ]
        assert log["events"]["g2"]["opponent"] == {
            "id": "3",
            "displayName": "Rivals",
            "logo": "r.png",
        }
        assert log["events"]["g2"]["gameResult"] == "W"
        assert log["events"]["g1"] == {"gameId": "g1"}

    @pytest.mark.asyncio
    async def test_all_seasons_failing_raises(self, service):
        with pytest.raises(UpstreamUnavailable):
            await service.get_player_team_gamelog("basketball", "nba", "7")


class TestPlayers:
    """Roster-built player index and search."""

    def route_rosters(self, espn):
        espn.add(
            f"{SITE}/basketball/nba/teams",
            {
                "sports": [
                    {
                        "leagues": [
                            {
                                "teams": [
                                    {
                                        "team": {
                                            "id": "1",
                                            "displayName": "Lakers",
                                            "logos": [{"href": "l.png"}],
                                        }
                                    },
                                    {"team": {"id": "2", "displayName": "Rockets"}},
                                ]
                            }
                        ]
                    }
                ]
            },
        )
        espn.add(
            f"{SITE}/basketball/nba/teams/1/roster",
            {
                "athletes": [
                    {
                        "position": "Guards",
                        "items": [
                            {"id": "p1", "displayName": "LeBron James", "jersey": "23"},
                            {"id": "p2", "displayName": "Jamal Murray", "jersey": "27"},
                        ],
                    }
                ]
            },
        )
        espn.add(
            f"{SITE}/basketball/nba/teams/2/roster",
            {"athletes": [{"id": "p3", "displayName": "James Harden", "jersey": "1"}]},
        )

    @pytest.mark.asyncio
    async def test_index_flattens_grouped_and_flat_rosters(self, service, espn):
        self.route_rosters(espn)
        players = await service.get_all_players("basketball", "nba")
        assert [p["id"] for p in players] == ["p1", "p2", "p3"]
        assert players[0]["teamName"] == "Lakers"
        assert players[0]["teamLogo"] == "l.png"
        assert players[2]["teamId"] == "2"

    @pytest.mark.asyncio
    async def test_search_by_name_and_jersey(self, service, espn):
        self.route_rosters(espn)
        by_name = await service.search_players("basketball", "jam")
        assert [p["id"] for p in by_name] == ["p1", "p2", "p3"]
        request_count = len(espn.requests)

        by_jersey = await service.search_players("basketball", "23")
        assert [p["id"] for p in by_jersey] == ["p1"]
        assert len(espn.requests) == request_count

    @pytest.mark.asyncio
    async def test_index_failure_is_empty(self, service, espn):
        espn.add(f"{SITE}/basketball/nba/teams", 500)
        assert await service.get_all_players("basketball", "nba") == []

    @pytest.mark.asyncio
    async def test_search_requires_query(self, service):
        with pytest.raises(ValueError):
            await service.search_players("basketball", "")


class TestTeamForm:
    """Form over the merged schedule."""

    @pytest.mark.asyncio
    async def test_form(self, service, espn):
        espn.add(
            f"{SITE}/basketball/nba/teams/1/schedule",
            {
                "events": [
                    make_event("a", "2025-04-01T00:00Z", ("1", 100), ("2", 90)),
                    make_event("b", "2025-04-03T00:00Z", ("3", 120), ("1", 99)),
                ]
            },
        )
        form = await service.get_team_form("nba", "nba", "1")
        assert form.results == ["L", "W"]
        assert form.win_pct == 50
