"""Pydantic models for derived statistics.

Field names are snake_case in Python; ``model_dump(by_alias=True)``
produces the camelCase shape the dashboard consumes.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StatsModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Soccer
# =============================================================================


class CornerBreakdown(StatsModel):
    """Corner averages and over-threshold percentages for one period."""

    total: float = 0
    us: float = 0
    them: float = 0
    over6: int = 0
    over7: int = 0
    over8: int = 0
    over9: int = 0
    over10: int = 0
    over11: int = 0
    over12: int = 0
    over13: int = 0
    team_over25: int = 0
    team_over35: int = 0
    team_over45: int = 0
    opp_over25: int = 0
    opp_over35: int = 0
    opp_over45: int = 0


class SoccerPeriodBreakdown(StatsModel):
    """Goal and corner breakdown for one period (full time or a half)."""

    over05: int = 0
    over15: int = 0
    over25: int = 0
    over35: int = 0
    over45: int = 0
    btts: int = 0
    btts_win: int = 0
    btts_draw: int = 0
    btts_over25: int = 0
    btts_no_over25: int = 0
    failed_to_score: int = 0
    clean_sheet: int = 0
    avg_goals: float = 0
    avg_scored: float = 0
    avg_conceded: float = 0
    team_over15: int = 0
    opp_over15: int = 0
    corners: CornerBreakdown = Field(default_factory=CornerBreakdown)


class SoccerAdvancedStats(StatsModel):
    full_time: SoccerPeriodBreakdown
    half_time: SoccerPeriodBreakdown
    second_half: SoccerPeriodBreakdown


# =============================================================================
# Basketball / gridiron football
# =============================================================================


class QuarterPoints(StatsModel):
    points: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])


class BasketballAllowedStats(StatsModel):
    """Per-game averages of the opponent's box-score line."""

    points: float = 0
    rebounds: float = 0
    assists: float = 0
    steals: float = 0
    blocks: float = 0
    three_points_made: float = 0
    per_quarter: QuarterPoints = Field(default_factory=QuarterPoints)


class YardageAllowed(StatsModel):
    total: float = 0
    passing: float = 0
    receiving: float = 0
    rushing: float = 0


class FootballAllowedStats(StatsModel):
    """Per-game averages of gridiron stats allowed to opponents."""

    touchdowns: float = 0
    receptions: float = 0
    interceptions: float = 0
    yards: YardageAllowed = Field(default_factory=YardageAllowed)


class AdvancedStats(StatsModel):
    """Sport-specific aggregate over a sample of game summaries.

    Exactly one sport branch is populated; the others stay None and are
    dropped from the serialized output.
    """

    soccer: SoccerAdvancedStats | None = None
    basketball: BasketballAllowedStats | None = None
    nfl: FootballAllowedStats | None = None
    sample_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Team form
# =============================================================================


class TeamFormStats(StatsModel):
    """Recent form and scoring patterns for one team."""

    results: list[Literal["W", "L", "D"]] = Field(default_factory=list)
    ppg: float = 0
    win_pct: int = 0
    avg_points: float = 0
    scored: float = 0
    conceded: float = 0
    btts: int = 0
    cs: int = 0
    fts: int = 0
    x_g: float = Field(default=0, alias="xG")
    x_ga: float = Field(default=0, alias="xGA")
    recent_games: list[dict[str, Any]] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
