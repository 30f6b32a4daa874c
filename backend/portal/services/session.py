"""Session manager - keeps identity, profile row and roles in step with auth events.

Auth notifications from the identity provider go through an AuthEventQueue,
so a sign-in that is still loading roles is never interleaved with the
sign-out that follows it.
"""

import logging
from collections.abc import Awaitable, Callable

from portal.providers.errors import DuplicateRecordError, ProviderError, RecordNotFoundError
from portal.providers.identity.base import (
    AuthEvent,
    AuthSession,
    Identity,
    IdentityProvider,
    Subscription,
)
from portal.providers.store.base import Collection, DataStore, Row
from portal.services.auth_events import AuthEventQueue, QueuedAuthEvent
from portal.services.authorization import Authorization, load_authorization

logger = logging.getLogger(__name__)

SignedOutCallback = Callable[[str], Awaitable[None] | None]


def new_profile_row(identity: Identity) -> Row:
    """Initial profiles row for an identity signing in for the first time."""
    return {
        "id": identity.id,
        "email": identity.email,
        "full_name": identity.display_name,
        "avatar_url": identity.avatar_url,
        "provider": identity.auth_provider,
    }


async def ensure_profile(store: DataStore, identity: Identity) -> Row | None:
    """Return the identity's profiles row, creating it when missing.

    Returns:
        The row, or None when it could neither be read nor created.
    """
    try:
        return await store.select_one(Collection.PROFILES, identity.id)
    except RecordNotFoundError:
        logger.info("Creating profile for %s", identity.id)
    except ProviderError as e:
        logger.error("Error fetching profile for %s: %s", identity.id, e)
        return None

    try:
        return await store.insert(Collection.PROFILES, new_profile_row(identity))
    except DuplicateRecordError:
        # Created concurrently by another session
        try:
            return await store.select_one(Collection.PROFILES, identity.id)
        except ProviderError as e:
            logger.error("Error re-reading profile for %s: %s", identity.id, e)
            return None
    except ProviderError as e:
        logger.error("Error creating profile for %s: %s", identity.id, e)
        return None


class SessionManager:
    """Tracks one identity provider's auth state.

    Args:
        provider: Identity provider to subscribe to.
        data_store: Unbound data store; bound to the session token per event.
        on_signed_out: Called with the previous identity id after a sign-out
            or account deletion has been processed.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        data_store: DataStore,
        on_signed_out: SignedOutCallback | None = None,
    ) -> None:
        self.provider = provider
        self.data_store = data_store
        self.on_signed_out = on_signed_out
        self.queue = AuthEventQueue(self._handle)

        self.session: AuthSession | None = None
        self.identity: Identity | None = None
        self.profile: Row | None = None
        self.authorization: Authorization | None = None

        self._subscription: Subscription | None = None
        self._mounted = False

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    def has_role(self, name: str) -> bool:
        return self.authorization is not None and self.authorization.has_role(name)

    def has_permission(self, name: str) -> bool:
        return self.authorization is not None and self.authorization.has_permission(name)

    async def start(self) -> None:
        """Subscribe to the provider and process any session it already has."""
        if self._mounted:
            return
        self._mounted = True
        self._subscription = self.provider.subscribe(self._on_auth_event)
        session = await self.provider.get_session()
        if session is not None:
            self.queue.enqueue(AuthEvent.SIGNED_IN, session)
        else:
            logger.info("No initial session")

    def _on_auth_event(self, event: AuthEvent, session: AuthSession | None) -> None:
        self.queue.enqueue(event, session)

    async def wait_idle(self) -> None:
        """Wait for every queued auth event to be processed."""
        await self.queue.join()

    async def refresh(self) -> None:
        """Reload the profile row and roles for the current session."""
        if self.session is not None:
            await self._signed_in(self.session)

    async def _handle(self, item: QueuedAuthEvent) -> None:
        if not self._mounted:
            return
        logger.info("Processing auth event %s", item.event.value)
        if item.event in (AuthEvent.SIGNED_IN, AuthEvent.USER_UPDATED):
            if item.session is not None:
                await self._signed_in(item.session)
        elif item.event in (AuthEvent.SIGNED_OUT, AuthEvent.USER_DELETED):
            await self._signed_out()
        elif item.event is AuthEvent.TOKEN_REFRESHED:
            self.session = item.session

    async def _signed_in(self, session: AuthSession) -> None:
        self.session = session
        self.identity = session.identity
        store = self.data_store.bind(session.access_token)
        self.profile = await ensure_profile(store, session.identity)
        if not self._mounted:
            return
        self.authorization = await load_authorization(store, session.identity.id)

    async def _signed_out(self) -> None:
        previous = self.identity
        self.session = None
        self.identity = None
        self.profile = None
        self.authorization = None
        if previous is not None and self.on_signed_out is not None:
            result = self.on_signed_out(previous.id)
            if result is not None:
                await result

    async def close(self) -> None:
        """Unsubscribe and drop pending events."""
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.queue.close()
