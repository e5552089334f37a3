"""
Rate limiting package for FastAPI applications.
"""

from .limiter import (
    RateLimit, RateLimitStatus, InMemoryRateLimiter,
    RateLimiter, get_rate_limiter, init_rate_limiter, RATE_LIMITS
)
from .decorators import (
    create_rate_limit_dependency,
    auth_rate_limit, payment_rate_limit, webhook_rate_limit,
    ip_key, session_key
)

__all__ = [
    # Core classes
    'RateLimit',
    'RateLimitStatus',
    'InMemoryRateLimiter',
    'RateLimiter',

    # Functions
    'get_rate_limiter',
    'init_rate_limiter',

    # Predefined limits
    'RATE_LIMITS',

    # Dependencies
    'create_rate_limit_dependency',
    'auth_rate_limit',
    'payment_rate_limit',
    'webhook_rate_limit',

    # Key functions
    'ip_key',
    'session_key',
]
