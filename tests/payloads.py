"""ESPN payload builders for tests."""

from collections.abc import Callable


def make_event(
    event_id: str,
    date_str: str,
    home: tuple[str, object],
    away: tuple[str, object],
    state: str = "post",
    league: str | None = None,
    score_as: Callable[[object], object] = lambda s: s,
) -> dict:
    """Schedule/scoreboard event with two competitors identified by team.id."""
    event = {
        "id": event_id,
        "date": date_str,
        "competitions": [
            {
                "status": {"type": {"state": state, "completed": state == "post"}},
                "competitors": [
                    {"homeAway": "home", "team": {"id": home[0]}, "score": score_as(home[1])},
                    {"homeAway": "away", "team": {"id": away[0]}, "score": score_as(away[1])},
                ],
            }
        ],
    }
    if league:
        event["league"] = {"slug": league}
    return event


def make_summary(
    event_id: str,
    us: tuple[str, object],
    them: tuple[str, object],
    us_lines: list | None = None,
    them_lines: list | None = None,
    boxscore: dict | None = None,
) -> dict:
    """Game summary with header competitors identified by their own id."""
    return {
        "header": {
            "id": event_id,
            "competitions": [
                {
                    "competitors": [
                        {
                            "id": us[0],
                            "score": us[1],
                            "linescores": [{"value": v} for v in us_lines or []],
                        },
                        {
                            "id": them[0],
                            "score": them[1],
                            "linescores": [{"value": v} for v in them_lines or []],
                        },
                    ]
                }
            ],
        },
        "boxscore": boxscore or {},
    }


def box_team(team_id: str, **stats) -> dict:
    """Boxscore team record with named statistics."""
    return {
        "team": {"id": team_id},
        "statistics": [{"name": name, "displayValue": str(value)} for name, value in stats.items()],
    }
