"""Abstract base class and types for identity providers.

The portal does not implement authentication itself. It reads the current
identity, listens for auth state changes, and asks the provider to sign out.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig

logger = structlog.get_logger()


class AuthEvent(str, Enum):
    """Auth state notifications emitted by the identity provider."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"


@dataclass(frozen=True)
class Identity:
    """Authenticated identity as reported by the identity service.

    Attributes:
        id: Opaque, stable subject identifier.
        email: Primary email address (may be empty for phone/OAuth-only users).
        metadata: User-editable metadata (full_name, avatar_url, ...).
        app_metadata: Service-managed metadata (provider, ...).
    """

    id: str
    email: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    app_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Full name from metadata, falling back to given + family name."""
        full_name = self.metadata.get("full_name")
        if full_name:
            return str(full_name)
        parts = [
            str(self.metadata.get("given_name") or ""),
            str(self.metadata.get("family_name") or ""),
        ]
        return " ".join(parts).strip()

    @property
    def avatar_url(self) -> str:
        """Avatar URL from metadata (OAuth providers use ``picture``)."""
        return str(
            self.metadata.get("avatar_url") or self.metadata.get("picture") or ""
        )

    @property
    def auth_provider(self) -> str:
        """Sign-in method recorded by the identity service."""
        return str(self.app_metadata.get("provider") or "email")


@dataclass(frozen=True)
class AuthSession:
    """An active session.

    Attributes:
        access_token: Short-lived JWT presented to the REST and storage APIs.
        refresh_token: Long-lived token exchanged for a new access token.
        expires_in: Access token lifetime in seconds.
        identity: The identity the session belongs to.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    identity: Identity


AuthListener = Callable[[AuthEvent, AuthSession | None], Awaitable[None] | None]


class Subscription:
    """Handle returned by ``IdentityProvider.subscribe``."""

    def __init__(self, provider: "IdentityProvider", listener: AuthListener) -> None:
        self._provider = provider
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving auth events. Safe to call more than once."""
        if self.active:
            self._provider._remove_listener(self._listener)
            self.active = False


class IdentityProvider(ABC):
    """Abstract identity provider.

    Adapters call ``_emit`` whenever auth state changes; subscribers receive
    every event in emission order. Listener failures are logged and never
    propagate into the adapter.
    """

    def __init__(self, config: "ProviderConfig | None" = None) -> None:
        """Initialize with provider configuration.

        Args:
            config: Provider configuration (URLs, keys, timeouts).
        """
        self.config = config
        self._listeners: list[AuthListener] = []
        self._session: AuthSession | None = None

    def restore_session(self, session: AuthSession | None) -> None:
        """Adopt a session issued earlier (e.g. read back from a cookie).

        No event is emitted; the session was already announced when issued.
        """
        self._session = session

    def subscribe(self, listener: AuthListener) -> Subscription:
        """Register a listener for auth events.

        Args:
            listener: Sync or async callable taking (event, session).

        Returns:
            Subscription whose ``unsubscribe()`` removes the listener.
        """
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event, session)
                if result is not None:
                    await result
            except Exception as e:
                logger.error(
                    "auth_listener_failed",
                    auth_event=event.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    @abstractmethod
    async def get_session(self) -> AuthSession | None:
        """Return the current session, or None when signed out."""
        ...

    @abstractmethod
    async def get_current_identity(self) -> Identity | None:
        """Return the identity behind the current session, or None."""
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange email + password for a session. Emits SIGNED_IN.

        Raises:
            AuthenticationError: Credentials rejected.
            TransientError: Identity service unreachable.
        """
        ...

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        """Register a new account.

        Returns:
            The new session, or None when email confirmation is pending.
        """
        ...

    @abstractmethod
    def oauth_authorize_url(self, provider: str, redirect_to: str, code_challenge: str) -> str:
        """URL that starts an OAuth sign-in with ``provider`` (PKCE, S256).

        The browser comes back to ``redirect_to`` with a ``code`` query
        parameter once the user has consented.
        """
        ...

    @abstractmethod
    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> AuthSession:
        """Trade an OAuth auth code and its PKCE verifier for a session.
        Emits SIGNED_IN.

        Raises:
            AuthenticationError: Code unknown, expired or verifier mismatch.
            TransientError: Identity service unreachable.
        """
        ...

    @abstractmethod
    async def refresh_session(self, refresh_token: str | None = None) -> AuthSession:
        """Exchange a refresh token for a new session. Emits TOKEN_REFRESHED.

        Uses ``refresh_token`` when given, otherwise the current session's.

        A refresh token the service no longer knows signs the user out
        locally before the error propagates.
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """End the session. Local state is always cleared and SIGNED_OUT
        emitted, even when the remote call fails."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None
