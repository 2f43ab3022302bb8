"""Team form calculator.

Pure computation over a team's schedule events. Percentages and averages
cover every qualifying match; ``results`` and ``recent_games`` only the
five most recent.
"""

from sportsoracle.core.models import TeamFormStats
from sportsoracle.utilities.event_status import (
    event_timestamp,
    first_competition,
    is_event_completed,
    split_competitors,
)
from sportsoracle.utilities.rounding import average, percentage, round_half_up
from sportsoracle.utilities.scores import parse_score

RECENT_WINDOW = 5
POINTS = {"W": 3, "D": 1, "L": 0}

# Leagues whose schedule events often lack a league slug
SLUGLESS_LEAGUES = {("basketball", "nba"), ("football", "nfl")}


def _league_slug(event: dict) -> str:
    slug = (
        (event.get("league") or {}).get("slug")
        or (first_competition(event).get("league") or {}).get("slug")
        or (event.get("season") or {}).get("slug")
        or ""
    )
    return slug.lower()


def _matches_league(event: dict, sport: str, league_filter: str | None) -> bool:
    if not league_filter:
        return True
    target = league_filter.lower()
    slug = _league_slug(event)
    if slug:
        return slug == target
    return (sport, target) in SLUGLESS_LEAGUES


def calculate_team_form(
    events: list[dict],
    team_id: str,
    sport: str,
    league_filter: str | None = None,
) -> TeamFormStats:
    """Form and scoring patterns for a team.

    Args:
        events: The team's schedule events
        team_id: ESPN team id
        sport: ESPN sport segment
        league_filter: Only count matches from this league slug (e.g.
            'eng.1' for league form vs. all competitions)

    Returns:
        TeamFormStats; all zeros when nothing qualifies
    """
    qualifying = sorted(
        (
            e
            for e in events or []
            if is_event_completed(e) and _matches_league(e, sport, league_filter)
        ),
        key=event_timestamp,
        reverse=True,
    )

    results: list[str] = []
    played: list[dict] = []
    scored = conceded = 0.0
    btts = clean_sheets = failed = 0

    for match in qualifying:
        us, them = split_competitors(first_competition(match).get("competitors"), team_id)
        if us is None or them is None:
            continue

        mine = parse_score(us.get("score"))
        theirs = parse_score(them.get("score"))
        scored += mine
        conceded += theirs

        if mine > theirs:
            results.append("W")
        elif mine < theirs:
            results.append("L")
        else:
            results.append("D")

        if mine > 0 and theirs > 0:
            btts += 1
        if theirs == 0:
            clean_sheets += 1
        if mine == 0:
            failed += 1
        played.append(match)

    count = len(played)
    if count == 0:
        return TeamFormStats()

    points = sum(POINTS[r] for r in results)
    return TeamFormStats(
        results=results[:RECENT_WINDOW],
        ppg=round_half_up(points / count, 2),
        win_pct=percentage(results.count("W"), count),
        avg_points=average(scored + conceded, count),
        scored=average(scored, count),
        conceded=average(conceded, count),
        btts=percentage(btts, count),
        cs=percentage(clean_sheets, count),
        fts=percentage(failed, count),
        recent_games=played[:RECENT_WINDOW],
    )
