"""
Unit tests for the in-memory rate limiter.
"""

from starlette.requests import Request

from app.infrastructure.rate_limiting.limiter import (
    RateLimit,
    RateLimiter,
    InMemoryRateLimiter
)
from app.infrastructure.rate_limiting.decorators import ip_key, session_key


class FakeClock:
    def __init__(self, now=1_000):
        self.now = now

    def __call__(self):
        return self.now


def make_request(headers=None, path="/api/v1/wallet/deposit", client=("10.0.0.1", 5000)):
    return Request({
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "query_string": b"",
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
    })


class TestInMemoryRateLimiter:

    def test_blocks_after_limit_until_window_resets(self):
        clock = FakeClock(now=1_000)
        limiter = InMemoryRateLimiter(clock=clock)
        limit = RateLimit(requests=2, window=60)

        first = limiter.is_allowed("key", limit)
        second = limiter.is_allowed("key", limit)
        blocked = limiter.is_allowed("key", limit)

        assert (first.remaining, second.remaining) == (1, 0)
        assert blocked.retry_after == 20
        assert blocked.to_headers()["Retry-After"] == "20"

        clock.now = 1_020
        assert limiter.is_allowed("key", limit).remaining == 1

    def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter(clock=FakeClock())
        limit = RateLimit(requests=1, window=60)

        limiter.is_allowed("a", limit)

        assert limiter.is_allowed("b", limit).retry_after is None
        assert limiter.is_allowed("a", limit).retry_after is not None


class TestRateLimiter:

    def test_disabled_limiter_never_blocks(self):
        limiter = RateLimiter(enabled=False)
        limit = RateLimit(requests=1, window=60)

        for _ in range(5):
            status = limiter.check_rate_limit(make_request(), limit)
            assert status.remaining == 1
            assert status.retry_after is None

    def test_uses_key_function(self):
        limiter = RateLimiter(enabled=True, limiter=InMemoryRateLimiter(clock=FakeClock()))
        limit = RateLimit(requests=1, window=60)

        limiter.check_rate_limit(make_request({"Authorization": "Bearer a"}), limit, session_key)
        other = limiter.check_rate_limit(make_request({"Authorization": "Bearer b"}), limit, session_key)

        assert other.retry_after is None


class TestKeyFunctions:

    def test_ip_key(self):
        assert ip_key(make_request()) == "rate_limit:ip:10.0.0.1:/api/v1/wallet/deposit"

    def test_session_key_falls_back_to_ip(self):
        assert session_key(make_request()) == ip_key(make_request())

    def test_session_key_uses_cookie(self):
        request = make_request({"Cookie": "session=abc"})

        assert session_key(request).startswith("rate_limit:credential:")
