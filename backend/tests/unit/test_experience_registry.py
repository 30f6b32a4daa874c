"""Tests for per-identity experience caching."""

import asyncio

import pytest

from portal.providers.identity.base import Identity
from portal.providers.store.base import Collection
from portal.providers.store.mock_adapter import MockDataStore
from portal.services.experience_registry import ExperienceRegistry

from tests.conftest import TEST_USER_ID

OTHER_USER_ID = "00000000-0000-0000-0000-000000000002"


class _TokenRecordingStore(MockDataStore):
    def __init__(self) -> None:
        super().__init__()
        self.bound_tokens: list[str | None] = []

    def bind(self, access_token):
        self.bound_tokens.append(access_token)
        return self


async def test_first_get_bootstraps_and_loads(registry, data_store, identity):
    experience = await registry.get(identity)

    assert experience.identity == identity
    assert experience.store.is_loaded
    assert experience.authorization.has_role("user")
    assert data_store.rows(Collection.PROFILES)[0]["id"] == TEST_USER_ID
    assert TEST_USER_ID in registry
    assert not experience.started


async def test_experience_is_cached(registry, identity):
    first = await registry.get(identity)
    second = await registry.get(identity)

    assert first is second
    assert len(registry) == 1


async def test_each_identity_gets_its_own(registry, identity):
    other = Identity(id=OTHER_USER_ID, email="other@example.com")

    mine = await registry.get(identity)
    theirs = await registry.get(other)

    assert mine is not theirs
    assert mine.matches is not theirs.matches
    assert theirs.store.aggregate.email == "other@example.com"


async def test_concurrent_first_gets_create_once(registry, data_store, identity):
    results = await asyncio.gather(*(registry.get(identity) for _ in range(3)))

    assert all(result is results[0] for result in results)
    assert len(data_store.rows(Collection.PROFILES)) == 1


async def test_store_is_rebound_on_every_get(storage, identity):
    data_store = _TokenRecordingStore()
    registry = ExperienceRegistry(data_store, storage)

    await registry.get(identity, "token-1")
    await registry.get(identity, "token-2")

    assert data_store.bound_tokens[0] == "token-1"
    assert data_store.bound_tokens[-1] == "token-2"


async def test_discard_closes_store(registry, identity):
    experience = await registry.get(identity)

    await registry.discard(identity.id)

    assert identity.id not in registry
    assert registry.peek(identity.id) is None
    assert not experience.store.is_mounted


async def test_discard_unknown_is_noop(registry):
    await registry.discard("nobody")
    assert len(registry) == 0


async def test_clear(registry, identity):
    await registry.get(identity)
    await registry.get(Identity(id=OTHER_USER_ID))

    await registry.clear()

    assert len(registry) == 0


class _SlowProfileStore(MockDataStore):
    """Blocks profile reads for one identity until ``release`` is set."""

    def __init__(self, slow_id: str) -> None:
        super().__init__()
        self.slow_id = slow_id
        self.reached = asyncio.Event()
        self.release = asyncio.Event()

    async def select_one(self, collection, key):
        if collection is Collection.PROFILES and key == self.slow_id:
            self.reached.set()
            await self.release.wait()
        return await super().select_one(collection, key)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


async def test_slow_first_load_does_not_block_other_identities(storage, identity):
    data_store = _SlowProfileStore(TEST_USER_ID)
    registry = ExperienceRegistry(data_store, storage)
    slow = asyncio.create_task(registry.get(identity))
    await data_store.reached.wait()

    other = await asyncio.wait_for(registry.get(Identity(id=OTHER_USER_ID)), timeout=1)

    assert other.identity.id == OTHER_USER_ID
    assert not slow.done()
    data_store.release.set()
    assert (await slow).identity == identity


async def test_cancelled_request_does_not_cancel_shared_load(storage, identity):
    data_store = _SlowProfileStore(TEST_USER_ID)
    registry = ExperienceRegistry(data_store, storage)
    first = asyncio.create_task(registry.get(identity))
    await data_store.reached.wait()
    second = asyncio.create_task(registry.get(identity))
    await asyncio.sleep(0)

    first.cancel()
    data_store.release.set()

    experience = await second
    assert registry.peek(TEST_USER_ID) is experience


async def test_failed_first_load_is_retried(registry, identity, monkeypatch):
    async def broken(store, identity):
        raise RuntimeError("boom")

    monkeypatch.setattr("portal.services.experience_registry.ensure_profile", broken)
    with pytest.raises(RuntimeError):
        await registry.get(identity)
    assert TEST_USER_ID not in registry

    monkeypatch.undo()
    experience = await registry.get(identity)
    assert experience.store.is_loaded


async def test_discard_while_loading_closes_new_store(storage, identity):
    data_store = _SlowProfileStore(TEST_USER_ID)
    registry = ExperienceRegistry(data_store, storage)
    pending = asyncio.create_task(registry.get(identity))
    await data_store.reached.wait()

    await registry.discard(TEST_USER_ID)
    data_store.release.set()

    experience = await pending
    assert not experience.store.is_mounted
    assert TEST_USER_ID not in registry


async def test_idle_experiences_are_evicted(data_store, storage, identity):
    clock = _Clock()
    registry = ExperienceRegistry(data_store, storage, idle_seconds=60, clock=clock)
    stale = await registry.get(Identity(id=OTHER_USER_ID))

    clock.now = 61
    await registry.get(identity)

    assert OTHER_USER_ID not in registry
    assert TEST_USER_ID in registry
    assert not stale.store.is_mounted


async def test_recent_use_keeps_experience(data_store, storage, identity):
    clock = _Clock()
    registry = ExperienceRegistry(data_store, storage, idle_seconds=60, clock=clock)
    other = Identity(id=OTHER_USER_ID)
    await registry.get(other)

    clock.now = 50
    await registry.get(other)
    clock.now = 100
    await registry.get(identity)

    assert OTHER_USER_ID in registry
    assert len(registry) == 2


async def test_least_recently_used_beyond_cap_is_evicted(data_store, storage):
    registry = ExperienceRegistry(data_store, storage, idle_seconds=None, max_entries=3)
    ids = [f"00000000-0000-0000-0000-0000000001{n:02d}" for n in range(5)]
    for user_id in ids[:3]:
        await registry.get(Identity(id=user_id))
    await registry.get(Identity(id=ids[0]))

    for user_id in ids[3:]:
        await registry.get(Identity(id=user_id))

    assert len(registry) == 3
    assert ids[0] in registry
    assert ids[1] not in registry
    assert ids[2] not in registry


async def test_evicted_identity_is_reloaded(data_store, storage, identity):
    clock = _Clock()
    registry = ExperienceRegistry(data_store, storage, idle_seconds=60, clock=clock)
    first = await registry.get(identity)
    first.store.update(full_name="Unsaved Edit")

    clock.now = 120
    registry.evict()
    second = await registry.get(identity)

    assert second is not first
    assert second.store.aggregate.full_name == "Test User"
