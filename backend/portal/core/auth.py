"""Access-token helpers shared by auth dependencies and rate limiting.

Pipeline:
- extract_access_token: Bearer header first, then the session cookie
- decode_access_token: Verify the identity service's HS256 JWT and build
  an Identity from its claims
- set_auth_cookie / clear_auth_cookie: Session cookie management for the
  sign-in and sign-out endpoints
"""

import jwt
from fastapi import Request, Response

from portal.core.config import settings
from portal.providers.identity.base import Identity

_BEARER_PREFIX = "bearer "

# Refresh cookie is only sent to the auth endpoints
_AUTH_COOKIE_PATH = "/api/v1/auth"


def extract_access_token(request: Request) -> str | None:
    """Read the access token from the request.

    Args:
        request: Incoming HTTP request.

    Returns:
        Raw token string, or None when the request carries no credentials.
    """
    header = request.headers.get("Authorization", "")
    if header.lower().startswith(_BEARER_PREFIX):
        token = header[len(_BEARER_PREFIX) :].strip()
        if token:
            return token
    return request.cookies.get(settings.auth_cookie_name) or None


def decode_access_token(token: str) -> Identity:
    """Verify an access token and return the identity it was issued to.

    Args:
        token: Encoded JWT issued by the identity service.

    Returns:
        Identity built from the sub, email and metadata claims.

    Raises:
        jwt.InvalidTokenError: Bad signature, expired, or wrong audience.
        KeyError: Token has no sub claim.
    """
    payload = jwt.decode(
        token,
        settings.supabase_jwt_secret.get_secret_value(),
        algorithms=["HS256"],
        audience=settings.supabase_jwt_audience,
    )
    return Identity(
        id=str(payload["sub"]),
        email=payload.get("email") or "",
        metadata=payload.get("user_metadata") or {},
        app_metadata=payload.get("app_metadata") or {},
    )


def set_auth_cookie(response: Response, token: str, max_age: int | None = None) -> None:
    """Set httpOnly access-token cookie on response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.

    Args:
        response: FastAPI response object.
        token: Access token string.
        max_age: Cookie lifetime in seconds (token expiry when known).
    """
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
    )


def set_refresh_cookie(response: Response, token: str) -> None:
    """Set the httpOnly refresh-token cookie, scoped to the auth endpoints."""
    response.set_cookie(
        key=settings.auth_refresh_cookie_name,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path=_AUTH_COOKIE_PATH,
    )


def clear_auth_cookie(response: Response) -> None:
    """Delete the access-token and refresh-token cookies.

    Args:
        response: FastAPI response object.
    """
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
    )
    response.delete_cookie(
        key=settings.auth_refresh_cookie_name,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path=_AUTH_COOKIE_PATH,
    )
