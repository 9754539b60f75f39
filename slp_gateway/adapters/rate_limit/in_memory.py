"""In-memory rolling-window rate limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: read-increment-compare happens under a single lock.
- Bounded: least recently used windows are evicted past ``max_keys`` and
  expired windows are swept periodically.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from slp_gateway.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    RateLimitKey,
    RateLimitResult,
)

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    """Request count for one key since ``window_start``."""

    count: int
    window_start: float


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Counter store with one rolling window per (client, route) key.

    A key's window opens with its first request and lasts ``window_seconds``.
    Once expired, the next request opens a fresh window with a count of 1.
    """

    def __init__(
        self,
        *,
        limit: int = 60,
        window_seconds: int = 60,
        max_keys: int | None = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            limit: Default ceiling per window.
            window_seconds: Window length in seconds.
            max_keys: Maximum number of tracked windows (None for unbounded).
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If any bound is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_keys is not None and max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._max_keys = max_keys
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: OrderedDict[RateLimitKey, RateLimitWindow] = OrderedDict()
        self._last_sweep = clock()
        self._evictions = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def admit(self, key: RateLimitKey, *, limit: int | None = None) -> RateLimitResult:
        """Count one request against ``key``.

        Args:
            key: Client and route being admitted.
            limit: Ceiling for this key; the store default when omitted.

        Returns:
            RateLimitResult with the decision and window metadata.

        Raises:
            ValueError: If the limit override is invalid.
        """
        ceiling = self._limit if limit is None else limit
        if ceiling < 1:
            raise ValueError("limit must be >= 1")

        now = self._clock()

        with self._lock:
            self._maybe_sweep_locked(now)

            window = self._windows.get(key)
            if window is None or now >= window.window_start + self._window_seconds:
                window = RateLimitWindow(count=0, window_start=now)
                self._windows[key] = window
            self._windows.move_to_end(key)
            self._evict_if_over_capacity_locked()

            reset_at = window.window_start + self._window_seconds

            if window.count < ceiling:
                window.count += 1
                return RateLimitResult(
                    allowed=True,
                    limit=ceiling,
                    remaining=ceiling - window.count,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=ceiling,
                remaining=0,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )

    def sweep(self) -> int:
        """Drop every expired window.

        Returns:
            Number of windows removed.
        """
        with self._lock:
            return self._sweep_locked(self._clock())

    def stats(self) -> dict[str, int | None]:
        """Return store size and eviction counters."""

        with self._lock:
            return {
                "keys": len(self._windows),
                "max_keys": self._max_keys,
                "evictions": self._evictions,
            }

    def _maybe_sweep_locked(self, now: float) -> None:
        if now - self._last_sweep >= self._window_seconds:
            self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [
            key
            for key, window in self._windows.items()
            if now >= window.window_start + self._window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now
        if expired:
            logger.debug("rate_limit.swept", extra={"removed": len(expired)})
        return len(expired)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_keys is None:
            return

        while len(self._windows) > self._max_keys:
            # popitem(last=False) removes the least recently used window
            self._windows.popitem(last=False)
            self._evictions += 1
