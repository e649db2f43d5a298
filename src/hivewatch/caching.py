"""In-memory expiring values for slow-changing upstream data.

Holds the best node, the node list and the VESTS to HP ratio. Each cache is
an explicit object created in the composition root and injected into the
component that owns the data, so staleness can be tested with a fake clock
and invalidated on demand.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class ExpiringValue(Generic[T]):
    """A single cached value with an optional time-to-live.

    Uses asyncio.Lock so concurrent coroutines asking for a missing value
    share one load instead of each hitting the upstream.

    Args:
        ttl_seconds: Lifetime of a stored value. None keeps it until invalidated.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: T | None = None
        self._stored_at: float | None = None
        self._lock = asyncio.Lock()

    def get(self) -> T | None:
        """Return the cached value, or None if empty or expired."""
        if self._stored_at is None:
            return None
        if self._ttl is not None and self._clock() - self._stored_at >= self._ttl:
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None

    async def get_or_load(self, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, calling ``loader`` once when it is missing.

        Exceptions from the loader propagate and nothing is cached.
        """
        cached = self.get()
        if cached is not None:
            return cached
        async with self._lock:
            cached = self.get()
            if cached is not None:
                return cached
            value = await loader()
            self.set(value)
            return value
