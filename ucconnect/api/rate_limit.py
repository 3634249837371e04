"""
Request throttling for UCalgaryConnect.

Signed-in students are throttled by their Supabase user id, which the session
guard puts on request.state. Anything else (login, signup) is keyed by
client IP. Counters live in Redis when REDIS_URL is set.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from ucconnect.config import get_settings

PARTNER_SEARCH_RATE = "60/minute"
WRITE_RATE = "30/minute"
AUTH_RATES = ("10/minute", "50/hour")


def get_identifier(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user and user.get("id"):
        return f"user:{user['id']}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    storage_uri=get_settings().redis_url or "memory://",
    default_limits=["200/minute"],
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Try again shortly.",
            "limit": exc.detail,
        },
        headers={"Retry-After": "60"},
    )


def search_limit(func):
    """Partner search scans every profile."""
    return limiter.limit(PARTNER_SEARCH_RATE)(func)


def write_limit(func):
    """Profile saves, connection requests and responses, event creation."""
    return limiter.limit(WRITE_RATE)(func)


def auth_limit(func):
    """Login and signup: slows password guessing against Supabase."""
    per_minute, per_hour = AUTH_RATES
    return limiter.limit(per_minute)(limiter.limit(per_hour)(func))
