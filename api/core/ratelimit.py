"""Rate limiting configuration using slowapi.

SCALABILITY NOTES:
- Production should use Redis: set RATELIMIT_STORAGE_URI="redis://host:port/db"
- memory:// storage keeps separate counters per worker/replica
"""

import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

if not settings.debug and settings.ratelimit_storage_uri == "memory://":
    logger.warning(
        "ratelimit.memory_storage",
        extra={"hint": "Set RATELIMIT_STORAGE_URI to a Redis URL in production"},
    )


def _get_request_identifier(request: Request) -> str:
    """Key requests by authenticated user id, falling back to client IP.

    user_id is only on request.state after require_auth has run.
    """
    if getattr(request.state, "user_id", None):
        return f"user:{request.state.user_id}"

    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_get_request_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.ratelimit_storage_uri,
    # Degrade to in-memory counters if Redis is temporarily unavailable
    in_memory_fallback_enabled=_using_redis,
    key_prefix="habits:",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        "ratelimit.exceeded",
        extra={"key": _get_request_identifier(request), "limit": exc.detail},
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Rate limit exceeded. Please slow down.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


READ_LIMIT = "60/minute"

WRITE_LIMIT = "30/minute"

# Analytics folds iterate every habit over every day in range
ANALYTICS_LIMIT = "30/minute"
