"""Sport normalization utilities.

ESPN paths are scoped by a sport segment ('soccer', 'basketball',
'football') and a league slug ('eng.1', 'nba', 'nfl'). Callers pass a mix
of dashboard names ('nba', 'ncaaf', 'american-football') and API names;
this module maps them onto the sport segment the API expects.
"""

# Map external sport names to canonical ESPN sport segments
SPORT_ALIASES: dict[str, str] = {
    "soccer": "soccer",
    "association football": "soccer",
    "futbol": "soccer",
    "fútbol": "soccer",
    "basketball": "basketball",
    "nba": "basketball",
    "mens-college-basketball": "basketball",
    "womens-college-basketball": "basketball",
    "nfl": "football",
    "ncaaf": "football",
    "american-football": "football",
    "american football": "football",
    "gridiron": "football",
}

# League slug prefixes that make a bare 'football' mean soccer
SOCCER_LEAGUE_MARKERS = ("eng", "esp", "ita", "ger", "fra", "uefa", "ned", "por", "fifa")

GRIDIRON_LEAGUES = {"nfl", "college-football"}


def normalize_sport(sport: str, league: str | None = None) -> str:
    """Normalize a sport name to the ESPN sport path segment.

    'football' is ambiguous: it resolves to 'soccer' when the league slug
    looks like a soccer competition, otherwise to gridiron 'football'.

    Examples:
        >>> normalize_sport("nba")
        'basketball'
        >>> normalize_sport("football", "eng.1")
        'soccer'
        >>> normalize_sport("football", "nfl")
        'football'
    """
    if not sport:
        return "unknown"

    lower = sport.lower().strip()

    if lower == "football":
        league_lower = (league or "").lower()
        if league_lower in GRIDIRON_LEAGUES:
            return "football"
        if any(marker in league_lower for marker in SOCCER_LEAGUE_MARKERS):
            return "soccer"
        return "football"

    return SPORT_ALIASES.get(lower, lower)
