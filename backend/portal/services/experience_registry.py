"""Per-identity experience state held by the API process.

Each signed-in identity gets one ProfileStore, one SectionOrchestrator, a
navigator and a job match board. Request handlers receive them from the
registry by reference; nothing about an identity lives in module globals.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from portal.providers.identity.base import Identity
from portal.providers.storage.base import ObjectStorage
from portal.providers.store.base import DataStore
from portal.services.authorization import Authorization, load_authorization
from portal.services.completion import CompletionPolicy
from portal.services.job_matches import JobMatchBoard
from portal.services.navigation import HistoryNavigator
from portal.services.profile_store import ProfileStore
from portal.services.section_orchestrator import SectionOrchestrator
from portal.services.session import ensure_profile

logger = logging.getLogger(__name__)


@dataclass
class Experience:
    identity: Identity
    store: ProfileStore
    orchestrator: SectionOrchestrator
    navigator: HistoryNavigator
    matches: JobMatchBoard = field(default_factory=JobMatchBoard)
    authorization: Authorization | None = None
    started: bool = False


class ExperienceRegistry:
    """Creates, caches and discards Experiences keyed by identity id.

    First loads for different identities run concurrently; concurrent first
    requests for the same identity share one load. Entries idle for longer
    than ``idle_seconds``, and the least recently used ones beyond
    ``max_entries``, are dropped and their stores closed.

    Args:
        data_store: Unbound data store shared by every identity.
        storage: Unbound object storage shared by every identity.
        policy: Completion policy for new profile stores.
        idle_seconds: Idle time after which an entry is dropped. None keeps
            entries until sign-out.
        max_entries: Cap on cached identities. None means unbounded.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        data_store: DataStore,
        storage: ObjectStorage,
        policy: CompletionPolicy | str = CompletionPolicy.EXPLICIT_OR_HEURISTIC,
        *,
        idle_seconds: float | None = 1800,
        max_entries: int | None = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.data_store = data_store
        self.storage = storage
        self.policy = CompletionPolicy(policy)
        self.idle_seconds = idle_seconds
        self.max_entries = max_entries
        self._clock = clock
        # Least recently used first
        self._experiences: OrderedDict[str, Experience] = OrderedDict()
        self._last_used: dict[str, float] = {}
        self._loading: dict[str, asyncio.Task[Experience]] = {}

    def __len__(self) -> int:
        return len(self._experiences)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._experiences

    def peek(self, user_id: str) -> Experience | None:
        return self._experiences.get(user_id)

    async def get(self, identity: Identity, access_token: str | None = None) -> Experience:
        """Return the identity's experience, creating and loading it on first use.

        The store is rebound to ``access_token`` on every call so refreshed
        tokens take effect.
        """
        experience = self._experiences.get(identity.id)
        if experience is None:
            task = self._loading.get(identity.id)
            if task is None:
                task = asyncio.get_running_loop().create_task(
                    self._create_and_install(identity, access_token)
                )
                self._loading[identity.id] = task
            # A cancelled request must not cancel a load other requests share
            experience = await asyncio.shield(task)
        if identity.id in self._experiences:
            self._touch(identity.id)
        self.evict()
        experience.store.data_store = self.data_store.bind(access_token)
        return experience

    async def _create_and_install(
        self, identity: Identity, access_token: str | None
    ) -> Experience:
        task = asyncio.current_task()
        try:
            experience = await self._create(identity, access_token)
        finally:
            discarded = self._loading.get(identity.id) is not task
            if not discarded:
                del self._loading[identity.id]
        if discarded:
            experience.store.close()
            logger.info("Experience for %s discarded while loading", identity.id)
        else:
            self._experiences[identity.id] = experience
            self._touch(identity.id)
        return experience

    async def _create(self, identity: Identity, access_token: str | None) -> Experience:
        bound = self.data_store.bind(access_token)
        await ensure_profile(bound, identity)
        authorization = await load_authorization(bound, identity.id)

        store = ProfileStore(bound, identity, self.policy)
        navigator = HistoryNavigator()
        experience = Experience(
            identity=identity,
            store=store,
            orchestrator=SectionOrchestrator(store, navigator),
            navigator=navigator,
            authorization=authorization,
        )
        await store.load()
        logger.info("Created experience for %s", identity.id)
        return experience

    def _touch(self, user_id: str) -> None:
        self._experiences.move_to_end(user_id)
        self._last_used[user_id] = self._clock()

    def _drop(self, user_id: str) -> Experience | None:
        experience = self._experiences.pop(user_id, None)
        self._last_used.pop(user_id, None)
        if experience is not None:
            experience.store.close()
        return experience

    def evict(self) -> list[str]:
        """Drop idle entries and the least recently used beyond the cap.

        Returns:
            Ids of the identities dropped.
        """
        now = self._clock()
        evicted = []
        while self._experiences:
            user_id = next(iter(self._experiences))
            idle = (
                self.idle_seconds is not None
                and now - self._last_used[user_id] > self.idle_seconds
            )
            over_cap = self.max_entries is not None and len(self._experiences) > self.max_entries
            if not (idle or over_cap):
                break
            self._drop(user_id)
            evicted.append(user_id)
        if evicted:
            logger.info("Evicted %d idle experiences", len(evicted))
        return evicted

    def storage_for(self, access_token: str | None) -> ObjectStorage:
        return self.storage.bind(access_token)

    async def discard(self, user_id: str) -> None:
        """Drop an identity's experience (sign-out). In-flight loads are discarded."""
        loading = self._loading.pop(user_id, None)
        experience = self._drop(user_id)
        if experience is None and loading is None:
            return
        logger.info("Discarded experience for %s", user_id)

    async def clear(self) -> None:
        for user_id in list(self._loading):
            await self.discard(user_id)
        for user_id in list(self._experiences):
            await self.discard(user_id)
