"""Supabase (GoTrue) identity adapter.

Talks to the auth REST endpoints over httpx:
- POST /token?grant_type=password      sign in
- POST /signup                         sign up
- POST /token?grant_type=refresh_token refresh
- GET  /authorize                      OAuth sign-in (browser redirect)
- POST /token?grant_type=pkce          OAuth auth code exchange
- GET  /user                           current identity
- POST /logout                         sign out
"""

from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
import structlog

from portal.providers.errors import AuthenticationError, ProviderError
from portal.providers.http import build_client, error_payload, send
from portal.providers.identity.base import (
    AuthEvent,
    AuthSession,
    Identity,
    IdentityProvider,
)

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig

logger = structlog.get_logger()

_PROVIDER = "supabase_auth"

# GoTrue answers bad grants with 400 rather than 401
_BAD_GRANT_STATUSES = (400, 422)

REFRESH_TOKEN_NOT_FOUND = "refresh_token_not_found"


def _identity_from_user(user: dict[str, Any]) -> Identity:
    return Identity(
        id=str(user["id"]),
        email=user.get("email") or "",
        metadata=user.get("user_metadata") or {},
        app_metadata=user.get("app_metadata") or {},
    )


def _session_from_payload(payload: dict[str, Any]) -> AuthSession:
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token") or "",
        expires_in=int(payload.get("expires_in") or 0),
        identity=_identity_from_user(payload["user"]),
    )


def _bad_grant_error(response: httpx.Response) -> AuthenticationError:
    body = error_payload(response)
    code = body.get("error_code") or body.get("error")
    message = (
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or "Invalid credentials"
    )
    # Older GoTrue versions only say it in the description
    if code != REFRESH_TOKEN_NOT_FOUND and "refresh token not found" in str(
        message
    ).lower():
        code = REFRESH_TOKEN_NOT_FOUND
    return AuthenticationError(str(message), code=str(code) if code else None)


class SupabaseIdentityAdapter(IdentityProvider):
    """Identity adapter backed by the Supabase auth API."""

    def __init__(
        self,
        config: "ProviderConfig",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Provider configuration with the project URL and anon key.
            client: Optional shared client (tests inject one with a
                MockTransport).
        """
        super().__init__(config)
        self.config: "ProviderConfig" = config
        self._owns_client = client is None
        self.client = client or build_client(config)

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.config.supabase_anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _token_grant(self, grant_type: str, body: dict[str, Any]) -> AuthSession:
        response = await send(
            self.client,
            "POST",
            f"{self.config.auth_url}/token",
            provider=_PROVIDER,
            passthrough_statuses=_BAD_GRANT_STATUSES,
            params={"grant_type": grant_type},
            json=body,
            headers=self._headers(),
        )
        if response.status_code in _BAD_GRANT_STATUSES:
            raise _bad_grant_error(response)
        return _session_from_payload(response.json())

    async def get_session(self) -> AuthSession | None:
        return self._session

    async def get_current_identity(self) -> Identity | None:
        """Fetch the user behind the current access token.

        Returns:
            Identity, or None when there is no session or the token is no
            longer accepted.
        """
        if self._session is None:
            return None
        try:
            response = await send(
                self.client,
                "GET",
                f"{self.config.auth_url}/user",
                provider=_PROVIDER,
                headers=self._headers(self._session.access_token),
            )
        except AuthenticationError:
            return None
        return _identity_from_user(response.json())

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        session = await self._token_grant(
            "password", {"email": email, "password": password}
        )
        self._session = session
        logger.info("auth_signed_in", provider=_PROVIDER, user_id=session.identity.id)
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        """Register a new account.

        When the project requires email confirmation the service returns the
        bare user object and no session is started.
        """
        response = await send(
            self.client,
            "POST",
            f"{self.config.auth_url}/signup",
            provider=_PROVIDER,
            passthrough_statuses=_BAD_GRANT_STATUSES,
            json={"email": email, "password": password, "data": metadata or {}},
            headers=self._headers(),
        )
        if response.status_code in _BAD_GRANT_STATUSES:
            raise _bad_grant_error(response)

        payload = response.json()
        if not payload.get("access_token"):
            logger.info("auth_signup_pending_confirmation", provider=_PROVIDER)
            return None

        session = _session_from_payload(payload)
        self._session = session
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def oauth_authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        params = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        return f"{self.config.auth_url}/authorize?{urlencode(params)}"

    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> AuthSession:
        session = await self._token_grant(
            "pkce", {"auth_code": auth_code, "code_verifier": code_verifier}
        )
        self._session = session
        logger.info(
            "auth_signed_in",
            provider=_PROVIDER,
            user_id=session.identity.id,
            method=session.identity.auth_provider,
        )
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def refresh_session(self, refresh_token: str | None = None) -> AuthSession:
        token = refresh_token or (self._session.refresh_token if self._session else "")
        if not token:
            raise AuthenticationError("No refresh token", code=REFRESH_TOKEN_NOT_FOUND)

        try:
            session = await self._token_grant("refresh_token", {"refresh_token": token})
        except AuthenticationError as e:
            if e.code == REFRESH_TOKEN_NOT_FOUND:
                logger.warning("auth_refresh_token_not_found", provider=_PROVIDER)
                await self.sign_out()
            raise

        self._session = session
        await self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        session = self._session
        self._session = None
        if session is not None:
            try:
                await send(
                    self.client,
                    "POST",
                    f"{self.config.auth_url}/logout",
                    provider=_PROVIDER,
                    headers=self._headers(session.access_token),
                )
            except ProviderError as e:
                # Local state is cleared regardless of the remote outcome
                logger.warning(
                    "auth_sign_out_failed",
                    provider=_PROVIDER,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        await self._emit(AuthEvent.SIGNED_OUT, None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
