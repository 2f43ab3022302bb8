"""ESPN provider constants."""

ESPN_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"

# Standings live under /apis/v2, not /apis/site/v2
ESPN_STANDINGS_URL = "https://site.api.espn.com/apis/v2/sports"

# Player game logs (common v3 API)
ESPN_WEB_COMMON_URL = "https://site.web.api.espn.com/apis/common/v3/sports"

# Competition status states
STATE_PRE = "pre"
STATE_IN = "in"
STATE_POST = "post"

# Cup/continental competitions whose team schedules are checked in addition
# to the domestic league. ESPN's domestic schedule omits these matches.
SOCCER_CUP_LEAGUES = [
    "eng.fa",
    "eng.league_cup",
    "eng.cup",
    "uefa.champions",
    "uefa.europa",
    "uefa.europa.conf",
    "esp.super_cup",
    "esp.copa_del_rey",
]

# Scoreboard discovery also covers these domestic cups
SOCCER_DISCOVERY_LEAGUES = SOCCER_CUP_LEAGUES + ["ita.cup", "ger.cup", "fra.cup"]

# Competitions searched for head-to-head history
SOCCER_H2H_LEAGUES = ["eng.fa", "eng.cup", "uefa.champions"]

# Season types per sport: soccer main seasons use 1, US leagues use 2 (regular) and 3 (post)
SEASON_TYPES = {
    "soccer": [1, 2],
    "football": [2, 3],
    "basketball": [2, 3],
}

# Sports whose schedules are merged across season variants
MULTI_SEASON_SPORTS = {"soccer", "football", "basketball"}
