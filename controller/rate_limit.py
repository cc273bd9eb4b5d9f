"""Fixed-window request rate limiting keyed by client address."""

import threading
import time
from typing import Callable, Dict, Tuple

from fastapi import Request

from common.exceptions import RateLimitExceededError


class RateLimiter:
    """
    Allows at most max_requests per client within each window of window_seconds.

    The window for a client starts with its first request and resets once it
    has elapsed.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per window (0 or less disables limiting)
            window_seconds: Window length in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def hit(self, key: str) -> bool:
        """
        Record one request for key.

        Returns:
            True if the request is allowed, False if the limit is exceeded
        """
        if not self.enabled:
            return True

        now = self.clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            self._prune(now)
            return count <= self.max_requests

    def retry_after(self, key: str) -> float:
        """Seconds until the current window for key resets."""
        with self._lock:
            started, _ = self._windows.get(key, (self.clock(), 0))
        return max(0.0, self.window_seconds - (self.clock() - started))

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]


async def enforce_rate_limit(request: Request) -> None:
    """
    FastAPI dependency rejecting requests over the configured rate.

    Raises:
        RateLimitExceededError: If the client exceeded its allowance
    """
    from controller.service_locator import get_rate_limiter

    limiter = get_rate_limiter()
    if limiter is None:
        return

    key = request.client.host if request.client else "unknown"
    if not limiter.hit(key):
        wait = limiter.retry_after(key)
        raise RateLimitExceededError(
            "Too many requests",
            f"limit of {limiter.max_requests} requests per {limiter.window_seconds:g}s exceeded, "
            f"retry in {wait:.1f}s",
            retry_after=wait
        )
