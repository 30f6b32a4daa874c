"""Rate limiting configuration using slowapi.

Security: Limits request frequency on upload endpoints so object storage
cannot be flooded.

When auth is enabled, rate limiting keys on the access-token subject
(per-identity) so users behind a shared IP do not throttle each other.
Unauthenticated requests fall back to IP-based keying.

Usage in routers:
    from portal.core.rate_limiting import limiter

    @router.post("/resume")
    @limiter.limit(settings.rate_limit_uploads)
    async def upload_resume(request: Request, ...):
        ...
"""

import jwt
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from portal.core.auth import decode_access_token, extract_access_token
from portal.core.config import settings

# Identity subjects are UUIDs; anything longer is not a real subject
_MAX_SUBJECT_LENGTH = 36


def _rate_limit_key_func(request: Request) -> str:
    """Get rate limit key from request.

    Key format:
    - Auth disabled: "{ip}" (local dev mode)
    - Auth enabled + valid token: "user:{sub}"
    - Auth enabled + no/invalid token: "unauth:{ip}"

    Args:
        request: The incoming request.

    Returns:
        Rate limit key string.
    """
    if not settings.auth_enabled:
        return get_remote_address(request)

    token = extract_access_token(request)
    if token:
        try:
            identity = decode_access_token(token)
            if len(identity.id) <= _MAX_SUBJECT_LENGTH:
                return f"user:{identity.id}"
        except (jwt.InvalidTokenError, KeyError):
            pass

    return f"unauth:{get_remote_address(request)}"


# Global limiter instance
# Configured with in-memory storage (suitable for single-instance deployment)
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Security: Returns 429 Too Many Requests with standard error envelope.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # Parse retry-after from exception detail (e.g., "5 per 1 minute")
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
