"""
Fixed-window rate limiting kept in process memory.

Windows are aligned to multiples of their length, so every key with the
same limit resets at the same instant.
"""

import time
import logging
from typing import Optional, Dict, Callable
from dataclasses import dataclass

from fastapi import Request

from app.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    """Allow `requests` calls per `window` seconds."""
    requests: int
    window: int


@dataclass
class RateLimitStatus:
    limit: int
    remaining: int
    reset_time: int
    retry_after: Optional[int] = None

    def to_headers(self) -> Dict[str, str]:
        headers = {
            'X-RateLimit-Limit': str(self.limit),
            'X-RateLimit-Remaining': str(self.remaining),
            'X-RateLimit-Reset': str(self.reset_time)
        }
        if self.retry_after:
            headers['Retry-After'] = str(self.retry_after)
        return headers


@dataclass
class _Window:
    count: int
    resets_at: int


class InMemoryRateLimiter:
    """Counts hits per key for the current window of each key."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._windows: Dict[str, _Window] = {}

    def is_allowed(self, key: str, rate_limit: RateLimit) -> RateLimitStatus:
        now = int(self.clock())
        self._prune(now)

        window = self._windows.get(key)
        if window is None:
            window = _Window(count=0, resets_at=now - now % rate_limit.window + rate_limit.window)
            self._windows[key] = window

        if window.count >= rate_limit.requests:
            return RateLimitStatus(
                limit=rate_limit.requests,
                remaining=0,
                reset_time=window.resets_at,
                retry_after=max(1, window.resets_at - now)
            )

        window.count += 1
        return RateLimitStatus(
            limit=rate_limit.requests,
            remaining=rate_limit.requests - window.count,
            reset_time=window.resets_at
        )

    def _prune(self, now: int) -> None:
        expired = [key for key, window in self._windows.items() if window.resets_at <= now]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        self._windows.clear()


class RateLimiter:
    """Entry point used by the FastAPI dependencies."""

    def __init__(self, enabled: bool = True, limiter: Optional[InMemoryRateLimiter] = None):
        self.enabled = enabled
        self.limiter = limiter or InMemoryRateLimiter()
        logger.info(f"Using in-memory rate limiter (enabled={enabled})")

    def check_rate_limit(self, request: Request, rate_limit: RateLimit,
                         key_func: Optional[Callable[[Request], str]] = None) -> RateLimitStatus:
        if not self.enabled:
            return RateLimitStatus(
                limit=rate_limit.requests,
                remaining=rate_limit.requests,
                reset_time=0
            )

        key = key_func(request) if key_func else self._default_key(request)
        status = self.limiter.is_allowed(key, rate_limit)
        if status.retry_after:
            logger.warning(f"Rate limit hit for {key} (retry in {status.retry_after}s)")
        return status

    def _default_key(self, request: Request) -> str:
        client_ip = request.client.host if request.client else 'unknown'
        return f"rate_limit:{client_ip}:{request.url.path}"


# Limits per endpoint group; init_rate_limiter overrides them from settings
RATE_LIMITS: Dict[str, RateLimit] = {
    'default': RateLimit(requests=100, window=60),
    'auth': RateLimit(requests=10, window=60),
    'payment': RateLimit(requests=30, window=60),
    'webhook': RateLimit(requests=120, window=60),
}


rate_limiter = None


def init_rate_limiter(enabled: Optional[bool] = None) -> RateLimiter:
    """(Re)build the global limiter and the configured limits."""
    global rate_limiter
    settings = get_settings()
    if enabled is None:
        enabled = settings.rate_limit_enabled

    period = settings.rate_limit_period
    RATE_LIMITS.update({
        'auth': RateLimit(requests=settings.rate_limit_auth_requests, window=period),
        'payment': RateLimit(requests=settings.rate_limit_payment_requests, window=period),
        'webhook': RateLimit(requests=settings.rate_limit_webhook_requests, window=period),
    })
    rate_limiter = RateLimiter(enabled=enabled)
    return rate_limiter


def get_rate_limiter() -> RateLimiter:
    global rate_limiter
    if rate_limiter is None:
        rate_limiter = init_rate_limiter()
    return rate_limiter
