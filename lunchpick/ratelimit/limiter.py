from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

from .config import DEFAULT_RATE_LIMIT_CONFIG, RateLimitConfig


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: float):
        super().__init__("Too many requests, please try again later")
        self.retry_after = retry_after


class SlidingWindowRateLimiter:
    """Per-identifier request log; a hit is refused once the window is full.

    Identifiers with no hits left in the window are forgotten, at most once
    per window, so the log only holds recently active clients.

    Usage:
        limiter = SlidingWindowRateLimiter(RateLimitConfig(max_requests=5))
        limiter.hit("203.0.113.7")  # raises RateLimitExceeded on the sixth call
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config or DEFAULT_RATE_LIMIT_CONFIG
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def _trim(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self._config.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._config.window_seconds:
            return
        self._last_sweep = now
        for identifier in list(self._hits):
            self._trim(self._hits[identifier], now)
            if not self._hits[identifier]:
                del self._hits[identifier]

    def hit(self, identifier: str) -> int:
        """Record one request and return how many remain in the window."""
        with self._lock:
            now = self._clock()
            self._sweep(now)
            hits = self._hits.setdefault(identifier, deque())
            self._trim(hits, now)
            if len(hits) >= self._config.max_requests:
                raise RateLimitExceeded(
                    retry_after=self._config.window_seconds - (now - hits[0])
                )
            hits.append(now)
            return self._config.max_requests - len(hits)

    def remaining(self, identifier: str) -> int:
        with self._lock:
            hits = self._hits.get(identifier)
            if hits is None:
                return self._config.max_requests
            self._trim(hits, self._clock())
            if not hits:
                del self._hits[identifier]
                return self._config.max_requests
            return self._config.max_requests - len(hits)

    def tracked(self) -> int:
        """Number of identifiers currently holding hits."""
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
