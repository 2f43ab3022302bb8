"""Derived statistics - pure functions over raw ESPN payloads."""

from sportsoracle.stats.advanced import calculate_advanced_stats
from sportsoracle.stats.form import calculate_team_form

__all__ = ["calculate_advanced_stats", "calculate_team_form"]
