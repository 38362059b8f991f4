# ABOUTME: Client-side request pacing for the management APIs
# ABOUTME: Blocks callers until the per-API sliding window has a free slot

"""Client-side rate limiting per API family."""

from __future__ import annotations

import time
from collections import defaultdict
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

logger = structlog.get_logger(__name__)

INTEGRATIONS_API = "integrations"
CONNECTORS_API = "connectors"

# Published per-second request quotas of each API.
DEFAULT_LIMITS: dict[str, int] = {
    INTEGRATIONS_API: 6,
    CONNECTORS_API: 1,
}


def api_family(url: str) -> str:
    """Return which API family a request URL belongs to."""
    host = urlsplit(url).hostname or ""
    if "connectors" in host:
        return CONNECTORS_API
    return INTEGRATIONS_API


class RateLimiter:
    """Sliding-window limiter that waits instead of rejecting."""

    def __init__(
        self,
        limits: dict[str, int] | None = None,
        window_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize rate limiter.

        Args:
            limits: Maximum calls per window for each key
            window_seconds: Window size in seconds
            clock: Monotonic time source
            sleep: Function used to wait for a free slot
        """
        self._limits = dict(DEFAULT_LIMITS if limits is None else limits)
        self._window = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._calls: dict[str, list[float]] = defaultdict(list)

    def acquire(self, key: str) -> float:
        """Block until a call under ``key`` is allowed, then record it.

        Keys without a configured limit are never delayed.

        Returns:
            Seconds spent waiting.
        """
        max_calls = self._limits.get(key)
        if not max_calls:
            return 0.0

        waited = 0.0
        while True:
            now = self._clock()
            self._calls[key] = [t for t in self._calls[key] if now - t < self._window]
            if len(self._calls[key]) < max_calls:
                self._calls[key].append(now)
                return waited

            delay = self._window - (now - self._calls[key][0])
            logger.debug("Rate limit reached, waiting", key=key, delay=round(delay, 3))
            self._sleep(delay)
            waited += delay

    def reset(self, key: str | None = None) -> None:
        """Reset recorded calls for one key, or all keys."""
        if key:
            self._calls.pop(key, None)
        else:
            self._calls.clear()
