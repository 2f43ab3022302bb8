"""Utilities - timezones, event status, score parsing, batching, logging."""

from sportsoracle.utilities.batching import chunked, gather_in_waves
from sportsoracle.utilities.logging import setup_logging
from sportsoracle.utilities.scores import parse_score

__all__ = [
    "chunked",
    "gather_in_waves",
    "parse_score",
    "setup_logging",
]
