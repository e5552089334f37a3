"""
Rate limiting FastAPI dependencies.
"""

import hashlib
from typing import Optional, Callable
from fastapi import Request, HTTPException, status

from app.config import settings
from .limiter import RateLimit, get_rate_limiter, RATE_LIMITS


def create_rate_limit_dependency(
    limit_name: str = 'default',
    rate_limit: Optional[RateLimit] = None,
    key_func: Optional[Callable[[Request], str]] = None,
    error_message: str = "Rate limit exceeded"
):
    """
    Build a dependency that answers 429 once the named limit is spent.

    The limit is looked up on every call so that init_rate_limiter can
    reconfigure it after the routers are imported.
    """
    async def rate_limit_dependency(request: Request):
        limit_config = rate_limit or RATE_LIMITS.get(limit_name, RATE_LIMITS['default'])
        result = get_rate_limiter().check_rate_limit(request, limit_config, key_func)

        if result.retry_after:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"code": "RATE_LIMITED", "message": error_message},
                headers=result.to_headers()
            )

        return result

    return rate_limit_dependency


def ip_key(request: Request) -> str:
    client_ip = request.client.host if request.client else 'unknown'
    return f"rate_limit:ip:{client_ip}:{request.url.path}"


def session_key(request: Request) -> str:
    """Key on the presented credential, falling back to the client IP."""
    credential = (
        request.headers.get('authorization')
        or request.headers.get(settings.session_header_name)
        or request.cookies.get(settings.session_cookie_name)
    )
    if not credential:
        return ip_key(request)
    digest = hashlib.sha256(credential.encode()).hexdigest()[:16]
    return f"rate_limit:credential:{digest}:{request.url.path}"


auth_rate_limit = create_rate_limit_dependency(
    'auth',
    key_func=ip_key,
    error_message="Too many authentication attempts. Please try again later."
)

payment_rate_limit = create_rate_limit_dependency(
    'payment',
    key_func=session_key,
    error_message="Too many payment operations. Please slow down."
)

webhook_rate_limit = create_rate_limit_dependency(
    'webhook',
    key_func=ip_key,
    error_message="Too many notifications."
)
