"""Advanced stats engine.

Pure computation: game summaries + team id + sport -> AdvancedStats.

Soccer gets full-time / first-half / second-half goal and corner
breakdowns. Basketball and gridiron football get "allowed" averages: the
opponent's box-score line in games against the team.

Summaries where either side's score is missing are dropped before
aggregation; ``sample_size`` counts only the summaries actually used.
Rounding follows sportsoracle.utilities.rounding.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sportsoracle.core.models import (
    AdvancedStats,
    BasketballAllowedStats,
    CornerBreakdown,
    FootballAllowedStats,
    QuarterPoints,
    SoccerAdvancedStats,
    SoccerPeriodBreakdown,
    YardageAllowed,
)
from sportsoracle.utilities.event_status import first_competition, split_competitors
from sportsoracle.utilities.rounding import average, percentage
from sportsoracle.utilities.scores import parse_made_attempted, parse_score, parse_stat

logger = logging.getLogger(__name__)

CORNER_KICK = "Corner Kick"
GOAL_LINES = (0.5, 1.5, 2.5, 3.5, 4.5)
CORNER_LINES = (6, 7, 8, 9, 10, 11, 12, 13)
TEAM_CORNER_LINES = (2.5, 3.5, 4.5)

SOCCER_PLACES = 2
US_SPORTS_PLACES = 1


@dataclass
class MatchSides:
    """One usable summary, split into the team's and opponent's records."""

    summary: dict
    us: dict
    them: dict
    my_score: float
    op_score: float


def _has_score(competitor: dict) -> bool:
    score = competitor.get("score")
    if isinstance(score, dict):
        score = score.get("value", score.get("displayValue"))
    return score is not None and score != ""


def usable_matches(summaries: list[dict], team_id: str) -> list[MatchSides]:
    """Summaries with both competitors and both scores present."""
    matches = []
    for summary in summaries or []:
        competitors = first_competition(summary.get("header") or {}).get("competitors")
        us, them = split_competitors(competitors, team_id)
        if us is None or them is None or not (_has_score(us) and _has_score(them)):
            logger.debug(
                "[STATS] Dropping malformed summary %s for team %s",
                (summary.get("header") or {}).get("id"),
                team_id,
            )
            continue
        matches.append(
            MatchSides(
                summary=summary,
                us=us,
                them=them,
                my_score=parse_score(us.get("score")),
                op_score=parse_score(them.get("score")),
            )
        )
    return matches


def _boxscore_teams(summary: dict, team_id: str) -> tuple[dict | None, dict | None]:
    """(team's, opponent's) boxscore team records."""
    teams = (summary.get("boxscore") or {}).get("teams") or []
    us = them = None
    for record in teams:
        if str((record.get("team") or {}).get("id")) == str(team_id):
            us = us or record
        else:
            them = them or record
    return us, them


def _team_stat(record: dict | None, name: str) -> float:
    for stat in (record or {}).get("statistics") or []:
        if stat.get("name") == name:
            return parse_stat(stat.get("displayValue"))
    return 0


def _linescore(competitor: dict, index: int) -> float:
    linescores = competitor.get("linescores") or []
    return parse_score(linescores[index]) if index < len(linescores) else 0


# =============================================================================
# Soccer
# =============================================================================


@dataclass
class PeriodTally:
    """Raw counts for one period before conversion to percentages."""

    matches: int = 0
    goals: float = 0
    scored: float = 0
    conceded: float = 0
    over: dict[float, int] = field(default_factory=lambda: dict.fromkeys(GOAL_LINES, 0))
    btts: int = 0
    btts_win: int = 0
    btts_draw: int = 0
    btts_over25: int = 0
    btts_no_over25: int = 0
    failed_to_score: int = 0
    clean_sheet: int = 0
    team_over15: int = 0
    opp_over15: int = 0
    corners_us: float = 0
    corners_them: float = 0
    corners_over: dict[int, int] = field(default_factory=lambda: dict.fromkeys(CORNER_LINES, 0))
    team_corners_over: dict[float, int] = field(
        default_factory=lambda: dict.fromkeys(TEAM_CORNER_LINES, 0)
    )
    opp_corners_over: dict[float, int] = field(
        default_factory=lambda: dict.fromkeys(TEAM_CORNER_LINES, 0)
    )

    def add(self, mine: float, theirs: float, my_corners: float, op_corners: float) -> None:
        total = mine + theirs
        both_scored = mine > 0 and theirs > 0

        self.matches += 1
        self.goals += total
        self.scored += mine
        self.conceded += theirs
        for line in GOAL_LINES:
            if total > line:
                self.over[line] += 1

        if both_scored:
            self.btts += 1
            if mine > theirs:
                self.btts_win += 1
            elif mine == theirs:
                self.btts_draw += 1
            if total > 2.5:
                self.btts_over25 += 1
        elif total > 2.5:
            self.btts_no_over25 += 1

        if mine == 0:
            self.failed_to_score += 1
        if theirs == 0:
            self.clean_sheet += 1
        if mine > 1.5:
            self.team_over15 += 1
        if theirs > 1.5:
            self.opp_over15 += 1

        corner_total = my_corners + op_corners
        self.corners_us += my_corners
        self.corners_them += op_corners
        for line in CORNER_LINES:
            if corner_total > line:
                self.corners_over[line] += 1
        for line in TEAM_CORNER_LINES:
            if my_corners > line:
                self.team_corners_over[line] += 1
            if op_corners > line:
                self.opp_corners_over[line] += 1

    def finalize(self) -> SoccerPeriodBreakdown:
        n = self.matches

        def pct(count: int) -> int:
            return percentage(count, n)

        corners = CornerBreakdown(
            total=average(self.corners_us + self.corners_them, n, SOCCER_PLACES),
            us=average(self.corners_us, n, SOCCER_PLACES),
            them=average(self.corners_them, n, SOCCER_PLACES),
            team_over25=pct(self.team_corners_over[2.5]),
            team_over35=pct(self.team_corners_over[3.5]),
            team_over45=pct(self.team_corners_over[4.5]),
            opp_over25=pct(self.opp_corners_over[2.5]),
            opp_over35=pct(self.opp_corners_over[3.5]),
            opp_over45=pct(self.opp_corners_over[4.5]),
            **{f"over{line}": pct(count) for line, count in self.corners_over.items()},
        )
        return SoccerPeriodBreakdown(
            over05=pct(self.over[0.5]),
            over15=pct(self.over[1.5]),
            over25=pct(self.over[2.5]),
            over35=pct(self.over[3.5]),
            over45=pct(self.over[4.5]),
            btts=pct(self.btts),
            btts_win=pct(self.btts_win),
            btts_draw=pct(self.btts_draw),
            btts_over25=pct(self.btts_over25),
            btts_no_over25=pct(self.btts_no_over25),
            failed_to_score=pct(self.failed_to_score),
            clean_sheet=pct(self.clean_sheet),
            avg_goals=average(self.goals, n, SOCCER_PLACES),
            avg_scored=average(self.scored, n, SOCCER_PLACES),
            avg_conceded=average(self.conceded, n, SOCCER_PLACES),
            team_over15=pct(self.team_over15),
            opp_over15=pct(self.opp_over15),
            corners=corners,
        )


def _corner_counts(summary: dict, team_id: str) -> dict[str, tuple[int, int]]:
    """Corner kicks per period from the play-by-play: {'ft'|'1h'|'2h': (us, them)}."""
    counts = {"ft": [0, 0], "1h": [0, 0], "2h": [0, 0]}
    for play in (summary.get("boxscore") or {}).get("plays") or []:
        if (play.get("type") or {}).get("text") != CORNER_KICK:
            continue
        side = 0 if str((play.get("team") or {}).get("id")) == str(team_id) else 1
        counts["ft"][side] += 1
        period = (play.get("period") or {}).get("number")
        if period == 1:
            counts["1h"][side] += 1
        elif period == 2:
            counts["2h"][side] += 1
    return {k: (v[0], v[1]) for k, v in counts.items()}


def _soccer_stats(matches: list[MatchSides], team_id: str) -> SoccerAdvancedStats:
    full_time = PeriodTally()
    first_half = PeriodTally()
    second_half = PeriodTally()

    for match in matches:
        corners = _corner_counts(match.summary, team_id)

        # Box-score team totals beat play-by-play counts when present
        box_us, box_them = _boxscore_teams(match.summary, team_id)
        my_corners = _team_stat(box_us, "wonCorners") or corners["ft"][0]
        op_corners = _team_stat(box_them, "wonCorners") or corners["ft"][1]

        full_time.add(match.my_score, match.op_score, my_corners, op_corners)
        first_half.add(_linescore(match.us, 0), _linescore(match.them, 0), *corners["1h"])
        second_half.add(_linescore(match.us, 1), _linescore(match.them, 1), *corners["2h"])

    return SoccerAdvancedStats(
        full_time=full_time.finalize(),
        half_time=first_half.finalize(),
        second_half=second_half.finalize(),
    )


# =============================================================================
# Basketball
# =============================================================================


def _basketball_stats(matches: list[MatchSides], team_id: str) -> BasketballAllowedStats:
    totals = dict.fromkeys(("points", "rebounds", "assists", "steals", "blocks", "threes"), 0.0)
    quarters = [0.0, 0.0, 0.0, 0.0]

    for match in matches:
        _, opp_box = _boxscore_teams(match.summary, team_id)
        totals["points"] += match.op_score
        totals["rebounds"] += _team_stat(opp_box, "totalRebounds")
        totals["assists"] += _team_stat(opp_box, "assists")
        totals["steals"] += _team_stat(opp_box, "steals")
        totals["blocks"] += _team_stat(opp_box, "blocks")
        for stat in (opp_box or {}).get("statistics") or []:
            if stat.get("name") == "threePointFieldGoalsMade-threePointFieldGoalsAttempted":
                totals["threes"] += parse_made_attempted(stat.get("displayValue"))
                break

        for i in range(4):
            quarters[i] += _linescore(match.them, i)

    n = len(matches)

    def avg(total: float) -> float:
        return average(total, n, US_SPORTS_PLACES)

    return BasketballAllowedStats(
        points=avg(totals["points"]),
        rebounds=avg(totals["rebounds"]),
        assists=avg(totals["assists"]),
        steals=avg(totals["steals"]),
        blocks=avg(totals["blocks"]),
        three_points_made=avg(totals["threes"]),
        per_quarter=QuarterPoints(points=[avg(q) for q in quarters]),
    )


# =============================================================================
# Gridiron football
# =============================================================================


def _player_stat_total(summary: dict, team_id: str, category: str, key: str) -> float:
    """Sum one athlete stat column for the opponent's players.

    boxscore.players groups athletes per team and per category; each
    category lists column ``keys`` and per-athlete ``stats`` in that order.
    """
    total = 0.0
    for group in (summary.get("boxscore") or {}).get("players") or []:
        if str((group.get("team") or {}).get("id")) == str(team_id):
            continue
        for stat_group in group.get("statistics") or []:
            if stat_group.get("name") != category:
                continue
            keys = stat_group.get("keys") or []
            if key not in keys:
                continue
            index = keys.index(key)
            for athlete in stat_group.get("athletes") or []:
                values = athlete.get("stats") or []
                if index < len(values):
                    total += parse_stat(values[index])
    return total


def _football_stats(matches: list[MatchSides], team_id: str) -> FootballAllowedStats:
    totals = dict.fromkeys(
        ("yards", "passing", "rushing", "receiving", "interceptions", "receptions", "touchdowns"),
        0.0,
    )

    for match in matches:
        summary = match.summary
        _, opp_box = _boxscore_teams(summary, team_id)
        totals["yards"] += _team_stat(opp_box, "totalYards")
        totals["passing"] += _team_stat(opp_box, "netPassingYards")
        totals["rushing"] += _team_stat(opp_box, "rushingYards")
        # Interceptions thrown by the opponent = interceptions forced by the team
        totals["interceptions"] += _team_stat(opp_box, "interceptions")

        totals["receptions"] += _player_stat_total(summary, team_id, "receiving", "receptions")
        totals["receiving"] += _player_stat_total(summary, team_id, "receiving", "receivingYards")
        # Passing TDs are the same plays as receiving TDs; count each once
        totals["touchdowns"] += _player_stat_total(
            summary, team_id, "receiving", "receivingTouchdowns"
        )
        totals["touchdowns"] += _player_stat_total(
            summary, team_id, "rushing", "rushingTouchdowns"
        )

    n = len(matches)

    def avg(total: float) -> float:
        return average(total, n, US_SPORTS_PLACES)

    return FootballAllowedStats(
        touchdowns=avg(totals["touchdowns"]),
        receptions=avg(totals["receptions"]),
        interceptions=avg(totals["interceptions"]),
        yards=YardageAllowed(
            total=avg(totals["yards"]),
            passing=avg(totals["passing"]),
            receiving=avg(totals["receiving"]),
            rushing=avg(totals["rushing"]),
        ),
    )


# sport -> (AdvancedStats field, builder)
SPORT_BUILDERS: dict[str, tuple[str, Callable]] = {
    "soccer": ("soccer", _soccer_stats),
    "basketball": ("basketball", _basketball_stats),
    "football": ("nfl", _football_stats),
}


def calculate_advanced_stats(summaries: list[dict], team_id: str, sport: str) -> AdvancedStats:
    """Aggregate advanced stats for one team over a sample of summaries.

    Args:
        summaries: ESPN game summaries (header + boxscore)
        team_id: ESPN team id
        sport: ESPN sport segment ('soccer', 'basketball', 'football')

    Returns:
        AdvancedStats with only the sport's branch populated; an unknown
        sport or an empty usable sample yields sample_size 0 and no branch
    """
    builder = SPORT_BUILDERS.get(sport)
    if builder is None:
        return AdvancedStats(sample_size=0)

    matches = usable_matches(summaries, team_id)
    if not matches:
        return AdvancedStats(sample_size=0)

    field_name, build = builder
    return AdvancedStats(sample_size=len(matches), **{field_name: build(matches, team_id)})
