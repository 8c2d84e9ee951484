"""In-memory sliding-window rate limiter (contact form, keyed by client IP)."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    max_requests: int = 5  # Requests allowed per window
    window_seconds: int = 60  # Time window in seconds
    max_keys: int = 10_000  # Prune idle keys once storage grows past this

    @classmethod
    def from_settings(cls) -> "RateLimitConfig":
        """Create config from application settings."""
        from src.core.config import get_settings
        settings = get_settings()
        return cls(
            max_requests=settings.contact_rate_limit_requests,
            window_seconds=settings.contact_rate_limit_window_seconds,
        )


@dataclass
class RequestRecord:
    """Record of requests for one key."""

    timestamps: list[float] = field(default_factory=list)

    def prune_old(self, window_seconds: int) -> None:
        """Remove timestamps older than the window."""
        cutoff = time.time() - window_seconds
        self.timestamps = [ts for ts in self.timestamps if ts > cutoff]

    def add_request(self) -> None:
        """Record a new request."""
        self.timestamps.append(time.time())

    def seconds_until_available(self, window_seconds: int, max_requests: int) -> int:
        """Calculate seconds until a new request slot is available."""
        if len(self.timestamps) < max_requests:
            return 0

        # The slot frees up when the oldest request still counted leaves the window
        sorted_ts = sorted(self.timestamps)
        oldest_in_window = sorted_ts[-max_requests]
        return max(0, int(oldest_in_window + window_seconds - time.time()) + 1)


class InMemoryRateLimitStorage:
    """Thread-safe in-memory rate limit storage.

    Idle keys are pruned inline when the table grows large; there is no
    background task.
    """

    def __init__(self, config: RateLimitConfig | None = None) -> None:
        self.config = config or RateLimitConfig()
        self._storage: dict[str, RequestRecord] = defaultdict(RequestRecord)
        self._lock = Lock()

    async def check_and_increment(
        self,
        key: str,
        max_requests: int | None = None,
        window_seconds: int | None = None,
    ) -> tuple[bool, int, int]:
        """Check rate limit and increment if allowed.

        Args:
            key: Unique identifier (e.g. "contact:<ip>").
            max_requests: Override max requests (uses config default).
            window_seconds: Override window (uses config default).

        Returns:
            Tuple of (allowed, remaining_requests, retry_after_seconds).
        """
        max_req = max_requests or self.config.max_requests
        window = window_seconds or self.config.window_seconds

        with self._lock:
            if len(self._storage) > self.config.max_keys:
                self._prune_idle(window)

            record = self._storage[key]
            record.prune_old(window)
            current_count = len(record.timestamps)

            if current_count >= max_req:
                retry_after = record.seconds_until_available(window, max_req)
                return (False, 0, retry_after)

            record.add_request()
            remaining = max_req - current_count - 1
            return (True, remaining, 0)

    def _prune_idle(self, window: int) -> int:
        removed = 0
        for key in list(self._storage):
            record = self._storage[key]
            record.prune_old(window)
            if not record.timestamps:
                del self._storage[key]
                removed += 1
        if removed:
            logger.debug("Rate limiter pruned %d idle keys", removed)
        return removed

    async def cleanup(self) -> int:
        """Remove keys with no recent requests."""
        with self._lock:
            return self._prune_idle(self.config.window_seconds)

    def reset(self) -> None:
        """Forget every key."""
        with self._lock:
            self._storage.clear()

    def get_stats(self) -> dict:
        """Get storage statistics for monitoring."""
        with self._lock:
            return {
                "active_keys": len(self._storage),
                "config": {
                    "max_requests": self.config.max_requests,
                    "window_seconds": self.config.window_seconds,
                },
            }


# Global singleton instance
_rate_limiter: InMemoryRateLimitStorage | None = None


def get_rate_limiter() -> InMemoryRateLimitStorage:
    """Get or create the global rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = InMemoryRateLimitStorage(RateLimitConfig.from_settings())
    return _rate_limiter
