"""
Per-client request rate limiter.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class ClientRateLimiter:
    """
    Allows at most ``max_requests`` per client in each fixed window.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max(1, max_requests)
        self._window_seconds = max(0.001, window_seconds)
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, client: str) -> RateLimitDecision:
        """
        Count one request for ``client`` and report whether it may proceed.
        """

        key = client or "unknown"
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            window_start, count = self._windows.get(key, (now, 0))
            if now - window_start >= self._window_seconds:
                window_start, count = now, 0

            retry_after = max(1, math.ceil(self._window_seconds - (now - window_start)))
            if count >= self._max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )

            count += 1
            self._windows[key] = (window_start, count)
            return RateLimitDecision(
                allowed=True,
                limit=self._max_requests,
                remaining=self._max_requests - count,
                retry_after_seconds=retry_after,
            )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, (window_start, _) in self._windows.items()
            if now - window_start >= self._window_seconds * 2
        ]
        for key in expired:
            del self._windows[key]
