"""Event status utilities.

Single source of truth for reading competition state from raw ESPN
event dicts.
"""

from sportsoracle.providers.espn.constants import STATE_IN, STATE_POST
from sportsoracle.utilities.tz import parse_instant


def first_competition(event: dict) -> dict:
    """The event's first competition, or an empty dict."""
    competitions = event.get("competitions") or []
    return competitions[0] if competitions else {}


def event_state(event: dict) -> str:
    """Competition state: 'pre', 'in', 'post' or '' when unknown.

    Scoreboard events carry status on the competition and sometimes on the
    event itself; the competition wins.
    """
    status = first_competition(event).get("status") or event.get("status") or {}
    return (status.get("type") or {}).get("state") or ""


def is_event_completed(event: dict) -> bool:
    """Check if an event is final.

    ESPN sets state 'post' for finished games and also a 'completed' flag;
    either is accepted.
    """
    status = first_competition(event).get("status") or event.get("status") or {}
    status_type = status.get("type") or {}
    return status_type.get("state") == STATE_POST or status_type.get("completed") is True


def is_event_live(event: dict) -> bool:
    """Check if an event is in progress."""
    return event_state(event) == STATE_IN


def event_league_slug(event: dict) -> str | None:
    """League attribution of a match.

    Tolerates the slug at the match level or on the first competition.
    """
    slug = (event.get("league") or {}).get("slug")
    if slug:
        return slug
    return (first_competition(event).get("league") or {}).get("slug")


def _competitor_ids(competitor: dict) -> set[str]:
    ids = {str(competitor["id"])} if competitor.get("id") is not None else set()
    team_id = (competitor.get("team") or {}).get("id")
    if team_id is not None:
        ids.add(str(team_id))
    return ids


def split_competitors(
    competitors: list[dict] | None, team_id: str
) -> tuple[dict | None, dict | None]:
    """Return (team's competitor, opponent's competitor).

    Competitors identify the team either by their own ``id`` (summaries)
    or by ``team.id`` (schedules); both are checked.
    """
    team_id = str(team_id)
    us = None
    them = None
    for competitor in competitors or []:
        if team_id in _competitor_ids(competitor):
            us = us or competitor
        else:
            them = them or competitor
    return us, them


def event_timestamp(event: dict) -> float:
    """Start instant as a POSIX timestamp for sorting; unparseable dates sort first."""
    try:
        return parse_instant(event.get("date") or "").timestamp()
    except (ValueError, OverflowError):
        return float("-inf")


def has_team(event: dict, team_id: str) -> bool:
    """Whether a team is among the event's competitors."""
    competitors = first_competition(event).get("competitors") or []
    return any(str(team_id) in _competitor_ids(c) for c in competitors)
