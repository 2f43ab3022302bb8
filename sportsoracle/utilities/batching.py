"""Bounded concurrent fan-out.

Requests run in fixed-size waves: every item in a wave runs concurrently
and the next wave starts only after the whole wave finishes. Peak in-flight
requests never exceed the wave size.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> Iterable[Sequence[T]]:
    """Split a sequence into consecutive chunks of at most ``size``."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield items[i : i + size]


async def gather_in_waves(
    items: Sequence[T],
    wave_size: int,
    worker: Callable[[T], Awaitable[R]],
    delay_between_waves: float = 0,
) -> list[R]:
    """Run ``worker`` over ``items`` in waves of ``wave_size``.

    Results keep item order. The worker owns its error handling: an
    exception escaping it propagates and stops the remaining waves.

    Args:
        items: Inputs to process
        wave_size: Max concurrent workers per wave
        worker: Coroutine function applied to each item
        delay_between_waves: Optional pause between waves (seconds)
    """
    results: list[R] = []
    waves = list(chunked(items, wave_size))
    for index, wave in enumerate(waves):
        results.extend(await asyncio.gather(*(worker(item) for item in wave)))
        if delay_between_waves and index < len(waves) - 1:
            await asyncio.sleep(delay_between_waves)
    return results
