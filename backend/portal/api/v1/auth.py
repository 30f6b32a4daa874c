"""Authentication endpoints: sign in, sign up, sign out, refresh.

Each request drives a fresh identity provider. A SessionManager subscribes
to it, so the auth events a call produces (SIGNED_IN, SIGNED_OUT, ...) go
through the serialized event queue, which creates the profile row, assigns
the default role and discards per-identity state on sign-out.

Security considerations:
- Access token in an httpOnly cookie; refresh token in a second httpOnly
  cookie scoped to /api/v1/auth
- Failure messages never say whether the email exists
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import jwt
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from portal.api.deps import AuthProvider, Registry
from portal.core.auth import (
    clear_auth_cookie,
    decode_access_token,
    extract_access_token,
    set_auth_cookie,
    set_refresh_cookie,
)
from portal.core.config import settings
from portal.core.errors import ConflictError, ServiceUnavailableError, UnauthorizedError
from portal.core.rate_limiting import limiter
from portal.core.responses import DataResponse, ErrorDetail, ErrorResponse
from portal.providers.errors import AuthenticationError, TransientError
from portal.providers.identity.base import AuthSession, IdentityProvider
from portal.services.experience_registry import ExperienceRegistry
from portal.services.navigation import DASHBOARD_PATH, ONBOARDING_PATH, SIGN_IN_PATH
from portal.services.session import SessionManager

_INVALID_CREDENTIALS_MSG = "Invalid email or password"
_USER_EXISTS_CODE = "user_already_exists"

T = TypeVar("T")

router = APIRouter()


# ===================================================================
# Request models
# ===================================================================


class SignInRequest(BaseModel):
    """Request body for POST /auth/signin."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class SignUpRequest(BaseModel):
    """Request body for POST /auth/signup."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    full_name: str | None = Field(None, max_length=255)


class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh (cookie is used when omitted)."""

    model_config = ConfigDict(extra="forbid")

    refresh_token: str | None = Field(None, max_length=2048)


# ===================================================================
# Helpers
# ===================================================================


async def run_with_session(
    provider: IdentityProvider,
    registry: ExperienceRegistry,
    action: Callable[[], Awaitable[T]],
) -> tuple[T, SessionManager]:
    """Run ``action`` with a SessionManager attached and wait for its events."""
    manager = SessionManager(provider, registry.data_store, on_signed_out=registry.discard)
    await manager.start()
    try:
        result = await action()
        await manager.wait_idle()
        return result, manager
    except TransientError as e:
        raise ServiceUnavailableError() from e
    finally:
        await manager.close()
        await provider.aclose()


async def session_payload(
    response: Response,
    session: AuthSession,
    registry: ExperienceRegistry,
    manager: SessionManager,
) -> dict:
    set_auth_cookie(response, session.access_token, max_age=session.expires_in or None)
    if session.refresh_token:
        set_refresh_cookie(response, session.refresh_token)

    experience = await registry.get(session.identity, session.access_token)
    complete = experience.store.is_onboarding_complete
    authorization = manager.authorization or experience.authorization
    return {
        "id": session.identity.id,
        "email": session.identity.email,
        "expires_in": session.expires_in,
        "redirect_to": DASHBOARD_PATH if complete else ONBOARDING_PATH,
        **(authorization.to_dict() if authorization else {}),
    }


# ===================================================================
# POST /auth/signin
# ===================================================================


@router.post("/signin")
@limiter.limit(settings.rate_limit_auth)
async def sign_in(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: SignInRequest,
    response: Response,
    provider: AuthProvider,
    registry: Registry,
) -> DataResponse[dict]:
    """Exchange email + password for a session cookie.

    The response names where the client should go next: the dashboard when
    onboarding is complete, onboarding otherwise.
    """

    async def action() -> AuthSession:
        try:
            return await provider.sign_in_with_password(body.email, body.password)
        except AuthenticationError as e:
            raise UnauthorizedError(_INVALID_CREDENTIALS_MSG) from e

    session, manager = await run_with_session(provider, registry, action)
    return DataResponse(data=await session_payload(response, session, registry, manager))


# ===================================================================
# POST /auth/signup
# ===================================================================


@router.post("/signup", status_code=201)
@limiter.limit(settings.rate_limit_auth)
async def sign_up(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    body: SignUpRequest,
    response: Response,
    provider: AuthProvider,
    registry: Registry,
) -> DataResponse[dict]:
    """Register an account.

    When the identity service requires email confirmation no session is
    issued and the response says so.
    """
    metadata = {"full_name": body.full_name} if body.full_name else {}

    async def action() -> AuthSession | None:
        try:
            return await provider.sign_up(body.email, body.password, metadata)
        except AuthenticationError as e:
            if e.code == _USER_EXISTS_CODE:
                raise ConflictError(
                    code="USER_EXISTS",
                    message="An account with this email already exists",
                ) from e
            raise UnauthorizedError("Sign up failed") from e

    session, manager = await run_with_session(provider, registry, action)
    if session is None:
        return DataResponse(data={"confirmation_required": True, "redirect_to": SIGN_IN_PATH})
    payload = await session_payload(response, session, registry, manager)
    return DataResponse(data={"confirmation_required": False, **payload})


# ===================================================================
# POST /auth/refresh
# ===================================================================


@router.post("/refresh", response_model=None)
@limiter.limit(settings.rate_limit_auth)
async def refresh(
    request: Request,
    response: Response,
    provider: AuthProvider,
    registry: Registry,
    body: RefreshRequest | None = None,
) -> DataResponse[dict] | JSONResponse:
    """Exchange the refresh token for a new access token.

    An unknown refresh token signs the session out and clears the cookies.
    """
    token = (body.refresh_token if body else None) or request.cookies.get(
        settings.auth_refresh_cookie_name
    )
    if not token:
        raise UnauthorizedError()

    async def action() -> AuthSession | None:
        try:
            return await provider.refresh_session(token)
        except AuthenticationError:
            return None

    session, manager = await run_with_session(provider, registry, action)
    if session is None:
        expired = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="UNAUTHORIZED", message="Session expired")
            ).model_dump(),
        )
        clear_auth_cookie(expired)
        return expired
    return DataResponse(data=await session_payload(response, session, registry, manager))


# ===================================================================
# POST /auth/signout
# ===================================================================


@router.post("/signout")
async def sign_out(
    request: Request,
    response: Response,
    provider: AuthProvider,
    registry: Registry,
) -> DataResponse[dict]:
    """End the session. Always clears the cookies, even if the remote call fails."""
    clear_auth_cookie(response)

    if not settings.auth_enabled:
        if settings.default_user_id is not None:
            await registry.discard(str(settings.default_user_id))
        return DataResponse(data={"redirect_to": SIGN_IN_PATH})

    token = extract_access_token(request)
    identity = None
    if token:
        try:
            identity = decode_access_token(token)
        except (jwt.InvalidTokenError, KeyError):
            identity = None

    if identity is not None:
        provider.restore_session(
            AuthSession(
                access_token=token,
                refresh_token=request.cookies.get(settings.auth_refresh_cookie_name, ""),
                expires_in=0,
                identity=identity,
            )
        )
        await run_with_session(provider, registry, provider.sign_out)
    else:
        await provider.aclose()

    return DataResponse(data={"redirect_to": SIGN_IN_PATH})
