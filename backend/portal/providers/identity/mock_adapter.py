"""Mock identity provider for testing and local-first mode."""

import uuid
from typing import Any
from urllib.parse import urlencode

from portal.core.oauth import generate_code_challenge
from portal.providers.errors import AuthenticationError
from portal.providers.identity.base import (
    AuthEvent,
    AuthSession,
    Identity,
    IdentityProvider,
)


class MockIdentityProvider(IdentityProvider):
    """In-memory identity provider.

    Accounts live in a dict keyed by email. Tests drive auth state changes
    directly with ``emit``.

    Attributes:
        accounts: email -> (password, Identity).
        issued: refresh token -> Identity, for every session handed out.
        oauth_codes: auth code -> (Identity, code challenge) for OAuth
            sign-ins the "provider" has approved.
        calls: Record of all method invocations for test assertions.
        fail_sign_out: When True, the "remote" sign-out fails (recorded in
            ``calls``); local state is still cleared.
    """

    def __init__(self, identity: Identity | None = None) -> None:
        """Initialize the mock.

        Args:
            identity: Optional identity to start signed in as.
        """
        super().__init__(None)
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.issued: dict[str, Identity] = {}
        self.oauth_codes: dict[str, tuple[Identity, str]] = {}
        self.calls: list[dict[str, Any]] = []
        self.fail_sign_out = False
        if identity is not None:
            self._session = self._new_session(identity)

    def add_account(self, email: str, password: str, **metadata: Any) -> Identity:
        """Register an account that ``sign_in_with_password`` accepts."""
        identity = Identity(id=str(uuid.uuid4()), email=email, metadata=metadata)
        self.accounts[email] = (password, identity)
        return identity

    def _new_session(self, identity: Identity) -> AuthSession:
        session = AuthSession(
            access_token=f"mock-access-{uuid.uuid4().hex}",
            refresh_token=f"mock-refresh-{uuid.uuid4().hex}",
            expires_in=3600,
            identity=identity,
        )
        self.issued[session.refresh_token] = identity
        return session

    async def emit(self, event: AuthEvent, session: AuthSession | None = None) -> None:
        """Push an auth event to subscribers (test hook)."""
        await self._emit(event, session)

    async def get_session(self) -> AuthSession | None:
        self.calls.append({"method": "get_session"})
        return self._session

    async def get_current_identity(self) -> Identity | None:
        self.calls.append({"method": "get_current_identity"})
        return self._session.identity if self._session else None

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self.calls.append({"method": "sign_in_with_password", "email": email})
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials", code="invalid_grant")
        self._session = self._new_session(account[1])
        await self._emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        self.calls.append({"method": "sign_up", "email": email})
        if email in self.accounts:
            raise AuthenticationError("User already registered", code="user_already_exists")
        identity = self.add_account(email, password, **(metadata or {}))
        self._session = self._new_session(identity)
        await self._emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    def issue_oauth_code(self, email: str, code_challenge: str, **metadata: Any) -> str:
        """Approve an OAuth sign-in (test hook).

        Creates the account on first use, as the identity service does for a
        new Google user.
        """
        account = self.accounts.get(email)
        identity = account[1] if account else self.add_account(email, uuid.uuid4().hex, **metadata)
        code = uuid.uuid4().hex
        self.oauth_codes[code] = (identity, code_challenge)
        return code

    def oauth_authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        params = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        return f"https://identity.mock/authorize?{urlencode(params)}"

    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> AuthSession:
        self.calls.append({"method": "exchange_code_for_session"})
        grant = self.oauth_codes.pop(auth_code, None)
        if grant is None or generate_code_challenge(code_verifier) != grant[1]:
            raise AuthenticationError("invalid flow state", code="bad_code_verifier")
        self._session = self._new_session(grant[0])
        await self._emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def refresh_session(self, refresh_token: str | None = None) -> AuthSession:
        self.calls.append({"method": "refresh_session"})
        token = refresh_token or (self._session.refresh_token if self._session else None)
        identity = self.issued.pop(token, None) if token else None
        if identity is None:
            await self.sign_out()
            raise AuthenticationError(
                "Invalid Refresh Token: Refresh Token Not Found",
                code="refresh_token_not_found",
            )
        self._session = self._new_session(identity)
        await self._emit(AuthEvent.TOKEN_REFRESHED, self._session)
        return self._session

    async def sign_out(self) -> None:
        self.calls.append({"method": "sign_out"})
        if self._session is not None:
            self.issued.pop(self._session.refresh_token, None)
        self._session = None
        if self.fail_sign_out:
            # Remote failure is swallowed after local state is cleared
            self.calls.append({"method": "sign_out", "failed": True})
        await self._emit(AuthEvent.SIGNED_OUT, None)
