"""Rounding policy for derived statistics.

Derived stats feed sorted comparison tables, so every module rounds the
same way:

- Percentages: ratio * 100 rounded half-up to an integer
- Soccer and form averages: 2 decimals, half-up
- Basketball and gridiron averages: 1 decimal, half-up

Half-up (not Python's banker's rounding) so 2.5 -> 3 and 0.125 -> 0.13.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 0) -> float:
    """Round half away from zero to a number of decimal places."""
    quantum = Decimal(1).scaleb(-places)
    # repr() keeps 0.125 as '0.125' instead of its binary expansion
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(count: int | float, total: int) -> int:
    """count/total as a whole-number percentage; 0 when total is 0."""
    if total <= 0:
        return 0
    return int(round_half_up(count / total * 100))


def average(total: float, count: int, places: int = 2) -> float:
    """total/count rounded to ``places``; 0 when count is 0."""
    if count <= 0:
        return 0
    return round_half_up(total / count, places)
