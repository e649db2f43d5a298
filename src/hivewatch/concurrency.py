"""Bounded-concurrency fan-out for batched upstream calls.

Public nodes throttle aggressive clients, so account lookups are split into
fixed-size batches and run through a small semaphore-limited worker pool
with a politeness delay between batch starts.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError("size must be >= 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int = 4,
    delay: float = 0.0,
) -> list[R | BaseException]:
    """Run ``worker`` over ``items`` with at most ``limit`` in flight.

    Results are returned in input order. A worker exception is returned in
    its slot instead of being raised, so one failed batch does not discard
    the others; callers decide how to treat failures. CancelledError still
    propagates.

    Args:
        items: Inputs, one worker call each.
        worker: Coroutine function applied to each item.
        limit: Maximum concurrent worker calls.
        delay: Seconds between consecutive worker starts.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")

    semaphore = asyncio.Semaphore(limit)
    start_gate = asyncio.Lock()
    started = 0

    async def _run(item: T) -> R:
        nonlocal started
        async with semaphore:
            if delay > 0:
                # Serialise starts so consecutive calls are spaced by ``delay``
                async with start_gate:
                    if started:
                        await asyncio.sleep(delay)
                    started += 1
            return await worker(item)

    results = await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)
    for result in results:
        if isinstance(result, asyncio.CancelledError):
            raise result
    return list(results)
