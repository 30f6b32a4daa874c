"""OAuth sign-in endpoints.

GET /auth/oauth/{provider} starts a PKCE authorization code flow through
the identity service and GET /auth/callback finishes it. The callback runs
the same SessionManager flow as password sign-in, so the profile row and
default role are in place before the browser is sent on to the dashboard
or to onboarding.
"""

from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from starlette.responses import Response

from portal.api.deps import AuthProvider, Registry
from portal.api.v1.auth import run_with_session, session_payload
from portal.core.config import settings
from portal.core.errors import ValidationError
from portal.core.oauth import (
    OAUTH_STATE_COOKIE,
    OAUTH_STATE_TTL,
    OAuthState,
    create_oauth_state_cookie,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
    validate_oauth_state_cookie,
)
from portal.core.rate_limiting import limiter
from portal.providers.errors import AuthenticationError
from portal.providers.identity.base import AuthSession

logger = structlog.get_logger()

router = APIRouter()

_CALLBACK_PATH = "/api/v1/auth/callback"


def _state_secret() -> str:
    secret = (
        settings.oauth_state_secret.get_secret_value()
        or settings.supabase_jwt_secret.get_secret_value()
    )
    if not secret:
        raise ValidationError("OAuth sign-in is not configured")
    return secret


def _callback_url(request: Request, state: str) -> str:
    base = str(request.base_url).rstrip("/")
    return f"{base}{_CALLBACK_PATH}?{urlencode({'state': state})}"


def _validated_state(
    request: Request,
    code: str | None,
    state: str | None,
    error: str | None,
) -> OAuthState:
    if error:
        logger.info("oauth_denied", error=error)
        raise ValidationError("OAuth sign-in was cancelled or failed")
    if not code:
        raise ValidationError("Missing authorization code")
    if not state:
        raise ValidationError("Missing state parameter")

    cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not cookie:
        raise ValidationError("Missing OAuth state cookie")

    oauth_state = validate_oauth_state_cookie(
        cookie_value=cookie,
        expected_state=state,
        secret=_state_secret(),
    )
    if oauth_state is None:
        raise ValidationError("Invalid or expired OAuth state")
    return oauth_state


# ===================================================================
# GET /auth/oauth/{provider}: initiation
# ===================================================================


@router.get("/oauth/{provider}")
@limiter.limit(settings.rate_limit_auth)
async def oauth_initiate(
    provider: str,
    request: Request,
    identity_provider: AuthProvider,
) -> Response:
    """Redirect to the identity service's authorize URL for ``provider``.

    The PKCE verifier and a CSRF state go into a signed cookie scoped to
    the callback path; only the challenge leaves the server.
    """
    try:
        if provider not in settings.oauth_providers:
            raise ValidationError(f"Unsupported OAuth provider: {provider}")

        oauth_state = OAuthState(
            state=generate_state(),
            code_verifier=generate_code_verifier(),
            provider=provider,
        )
        cookie = create_oauth_state_cookie(oauth_state, secret=_state_secret())
        auth_url = identity_provider.oauth_authorize_url(
            provider,
            _callback_url(request, oauth_state.state),
            generate_code_challenge(oauth_state.code_verifier),
        )
    finally:
        await identity_provider.aclose()

    redirect = RedirectResponse(url=auth_url, status_code=307)
    redirect.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=cookie,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        max_age=OAUTH_STATE_TTL,
        path=_CALLBACK_PATH,
    )
    logger.info("oauth_started", provider=provider)
    return redirect


# ===================================================================
# GET /auth/callback: code exchange
# ===================================================================


@router.get("/callback")
@limiter.limit(settings.rate_limit_auth)
async def oauth_callback(
    request: Request,
    identity_provider: AuthProvider,
    registry: Registry,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> Response:
    """Finish an OAuth sign-in.

    Sets the session cookies and redirects to the frontend: the dashboard
    when onboarding is complete, onboarding otherwise.
    """
    try:
        oauth_state = _validated_state(request, code, state, error)
    except ValidationError:
        await identity_provider.aclose()
        raise

    async def action() -> AuthSession:
        try:
            return await identity_provider.exchange_code_for_session(
                code or "", oauth_state.code_verifier
            )
        except AuthenticationError as e:
            logger.warning("oauth_exchange_failed", provider=oauth_state.provider, code=e.code)
            raise ValidationError("OAuth authentication failed") from e

    session, manager = await run_with_session(identity_provider, registry, action)

    redirect = RedirectResponse(url=settings.frontend_url, status_code=307)
    payload = await session_payload(redirect, session, registry, manager)
    redirect.headers["location"] = f"{settings.frontend_url.rstrip('/')}{payload['redirect_to']}"
    redirect.delete_cookie(key=OAUTH_STATE_COOKIE, path=_CALLBACK_PATH)

    logger.info(
        "oauth_signed_in",
        provider=oauth_state.provider,
        user_id=session.identity.id,
        redirect_to=payload["redirect_to"],
    )
    return redirect
