"""Rate limiting for credential endpoints"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from gqlauth.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Requests carrying a refresh cookie are bucketed per cookie; everything
    else is keyed by client address.
    """
    refresh_cookie = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if refresh_cookie:
        return f"refresh:{refresh_cookie[:16]}"
    return get_remote_address(request)


# Create limiter instance
limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    "authenticate": "10/minute",
    "refresh": "30/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
