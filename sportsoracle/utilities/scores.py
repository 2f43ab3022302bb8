"""Score and stat value normalization.

ESPN reports scores as a bare number, a numeric string, or an object with
``value`` / ``displayValue`` depending on the endpoint. Everything that
reads a score goes through parse_score.
"""

import math
from typing import Any


def _to_number(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        return None if math.isnan(raw) else float(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return float(text)
        except ValueError:
            # Leading integer, e.g. '3 (4)' after penalties
            digits = ""
            for ch in text:
                if ch.isdigit():
                    digits += ch
                elif digits:
                    break
            return float(digits) if digits else None
    return None


def parse_score(score: Any, default: float = 0) -> float:
    """Normalize a score to a number.

    Accepts 2, 2.0, "2", {"value": 2.0}, {"displayValue": "2"}. Anything
    unparseable yields ``default``.

    Examples:
        >>> parse_score({"value": 3.0, "displayValue": "3"})
        3.0
        >>> parse_score("1")
        1.0
        >>> parse_score(None)
        0
    """
    if isinstance(score, dict):
        for field in ("value", "displayValue"):
            number = _to_number(score.get(field))
            if number is not None:
                return number
        return default

    number = _to_number(score)
    return default if number is None else number


def parse_stat(value: Any, default: float = 0) -> float:
    """Normalize a box-score stat display value (e.g. '45', '12.5')."""
    return parse_score(value, default)


def parse_made_attempted(display_value: Any) -> float:
    """Made count from a 'made-attempted' string such as '12-35'."""
    if not isinstance(display_value, str) or not display_value:
        return 0
    return parse_score(display_value.split("-")[0])
