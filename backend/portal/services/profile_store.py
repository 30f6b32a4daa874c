"""Profile aggregate store.

Single in-process owner of one identity's ProfileAggregate. Reads and
writes the three remote collections; every other component goes through
``update`` / ``complete_step`` / ``save``.

Failure model:
- A missing row is normal for a new identity and falls back to defaults
- Any other read failure is logged; the profile read failing leaves the
  in-memory aggregate as it was
- ``save`` issues three independent upserts and reports each one; nothing
  is rolled back and nothing is retried
"""

import asyncio
import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from portal.providers.errors import ProviderError, RecordNotFoundError
from portal.providers.identity.base import Identity
from portal.providers.store.base import Collection, DataStore, Row
from portal.services.completion import (
    CompletionPolicy,
    CompletionStatus,
    completion_status,
    is_onboarding_complete,
)
from portal.services.field_validation import SectionValidator
from portal.services.profile_aggregate import (
    ProfileAggregate,
    coerce_attribute,
    merge_rows,
    onboarding_row,
    preferences_row,
    profile_row,
)

logger = logging.getLogger(__name__)

ChangeListener = Callable[[ProfileAggregate | None], None]


@dataclass(frozen=True)
class TableSaveResult:
    """Outcome of one upsert within a save."""

    collection: Collection
    ok: bool
    error: str | None = None


@dataclass(frozen=True)
class SaveResult:
    """Outcome of ``ProfileStore.save``: one entry per table."""

    tables: tuple[TableSaveResult, ...] = ()

    @property
    def ok(self) -> bool:
        """True only when every table was written."""
        return bool(self.tables) and all(t.ok for t in self.tables)

    @property
    def failed(self) -> tuple[Collection, ...]:
        return tuple(t.collection for t in self.tables if not t.ok)


class ProfileStore:
    """Owns one identity's aggregate and reconciles it with the data store.

    Args:
        data_store: Keyed data store (already bound to the identity's token
            where the store enforces per-user access).
        identity: The signed-in identity, or None when signed out.
        policy: Completion policy for ``is_onboarding_complete``.
    """

    def __init__(
        self,
        data_store: DataStore,
        identity: Identity | None,
        policy: CompletionPolicy | str = CompletionPolicy.EXPLICIT_OR_HEURISTIC,
    ) -> None:
        self.data_store = data_store
        self.identity = identity
        self.policy = CompletionPolicy(policy)
        self.validator = SectionValidator()
        self.last_load_error: str | None = None

        self._aggregate: ProfileAggregate | None = None
        self._loading = False
        self._saving = False
        self._mounted = True
        self._load_task: asyncio.Task[ProfileAggregate | None] | None = None
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def aggregate(self) -> ProfileAggregate | None:
        """Snapshot of the aggregate; mutating it has no effect on the store."""
        return copy.deepcopy(self._aggregate)

    @property
    def is_loaded(self) -> bool:
        return self._aggregate is not None

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def is_onboarding_complete(self) -> bool:
        if self._loading:
            return False
        return is_onboarding_complete(self._aggregate, self.policy)

    @property
    def completion_status(self) -> CompletionStatus:
        return completion_status(self._aggregate)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _changed(self) -> None:
        self.validator.recompute(self._aggregate)
        snapshot = self.aggregate
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Profile change listener failed")

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load(self) -> ProfileAggregate | None:
        """Fetch and merge the three rows for the current identity.

        Calls made while a load is in flight share that load instead of
        starting another.

        Returns:
            Snapshot of the new aggregate, or None when nothing was loaded.
        """
        task = self._load_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._load())
            self._load_task = task
        return await asyncio.shield(task)

    async def _read(self, collection: Collection, key: str) -> Row | None:
        try:
            return await self.data_store.select_one(collection, key)
        except RecordNotFoundError:
            return None

    async def _read_optional(self, collection: Collection, key: str) -> Row | None:
        try:
            return await self._read(collection, key)
        except ProviderError as e:
            logger.error("Error loading %s for %s: %s", collection.value, key, e)
            return None

    async def _load(self) -> ProfileAggregate | None:
        identity = self.identity
        if identity is None:
            logger.info("No identity, skipping profile load")
            return None
        if not self._mounted:
            return None

        self._loading = True
        self.last_load_error = None
        try:
            try:
                profile = await self._read(Collection.PROFILES, identity.id)
            except ProviderError as e:
                logger.error("Error loading profile for %s: %s", identity.id, e)
                self.last_load_error = str(e)
                return None
            preferences = await self._read_optional(Collection.USER_PREFERENCES, identity.id)
            onboarding = await self._read_optional(Collection.USER_ONBOARDING, identity.id)

            if not self._mounted:
                logger.info("Store closed during load for %s, discarding result", identity.id)
                return None

            self._aggregate = merge_rows(identity, profile, preferences, onboarding)
            logger.info(
                "Profile loaded for %s (profile=%s preferences=%s onboarding=%s)",
                identity.id,
                profile is not None,
                preferences is not None,
                onboarding is not None,
            )
        finally:
            self._loading = False

        self._changed()
        return self.aggregate

    # ------------------------------------------------------------------
    # Local mutation
    # ------------------------------------------------------------------

    def update(self, fields: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
        """Shallow-merge attributes into the aggregate. Local only.

        Args:
            fields: attribute -> value mapping.
            **kwargs: More attributes, merged after ``fields``.

        Raises:
            ValueError: Unknown attribute or malformed value; nothing is
                applied in that case.
        """
        changes = {**(fields or {}), **kwargs}
        coerced = {name: coerce_attribute(name, value) for name, value in changes.items()}

        if self._aggregate is None:
            logger.warning("update called with no profile loaded, ignoring")
            return

        for name, value in coerced.items():
            setattr(self._aggregate, name, value)
        self._changed()

    def complete_step(self, section_id: str) -> None:
        """Record ``section_id`` as completed (once). Local only."""
        if self._aggregate is None:
            return
        if section_id in self._aggregate.completed_steps:
            return
        self._aggregate.completed_steps.append(section_id)
        self._changed()

    def reset(self) -> None:
        """Drop the aggregate (sign-out)."""
        self._aggregate = None
        self._changed()

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def _upsert(self, collection: Collection, row: Row) -> TableSaveResult:
        try:
            await self.data_store.upsert(collection, row)
        except ProviderError as e:
            logger.error("Error updating %s: %s", collection.value, e)
            return TableSaveResult(collection=collection, ok=False, error=str(e))
        return TableSaveResult(collection=collection, ok=True)

    async def save(self) -> SaveResult:
        """Persist the aggregate with three independent upserts.

        The onboarding row's ``completed`` column stores the completion
        evaluator's output, not the raw flag.

        Returns:
            SaveResult with one entry per table. Empty (not ok) when nothing
            is loaded.
        """
        if self._aggregate is None:
            logger.error("save called with no profile loaded")
            return SaveResult()

        snapshot = copy.deepcopy(self._aggregate)
        completed = is_onboarding_complete(snapshot, self.policy)

        self._saving = True
        try:
            results = (
                await self._upsert(Collection.PROFILES, profile_row(snapshot)),
                await self._upsert(Collection.USER_PREFERENCES, preferences_row(snapshot)),
                await self._upsert(
                    Collection.USER_ONBOARDING, onboarding_row(snapshot, completed)
                ),
            )
        finally:
            self._saving = False

        result = SaveResult(tables=results)
        if not result.ok:
            logger.warning(
                "Profile save for %s partially failed: %s",
                snapshot.id,
                ", ".join(c.value for c in result.failed),
            )
        return result

    async def verify(self) -> dict[str, tuple[Any, Any]]:
        """Re-read the profile row and report drift from the aggregate.

        Returns:
            attribute -> (in-memory value, stored value) for every profile
            column that differs. Empty when in sync or when the read fails.
        """
        if self._aggregate is None:
            return {}
        expected = profile_row(self._aggregate)
        try:
            stored = await self.data_store.select_one(Collection.PROFILES, self._aggregate.id)
        except ProviderError as e:
            logger.error("Error verifying saved profile: %s", e)
            return {}

        drift: dict[str, tuple[Any, Any]] = {}
        for column, value in expected.items():
            saved = stored.get(column)
            if (value or "") != (saved or ""):
                drift[column] = (value, saved)
        if drift:
            logger.warning("Saved profile drifted on %s", ", ".join(sorted(drift)))
        return drift

    def close(self) -> None:
        """Mark the store unmounted. In-flight loads finish but are discarded."""
        self._mounted = False
        self._listeners.clear()
