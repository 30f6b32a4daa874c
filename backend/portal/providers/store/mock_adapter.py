"""Mock data store for testing and local-first mode."""

import copy
import uuid
from typing import Any

from portal.providers.errors import (
    DuplicateRecordError,
    ProviderError,
    RecordNotFoundError,
)
from portal.providers.store.base import Collection, DataStore, Row


class MockDataStore(DataStore):
    """In-memory keyed tables.

    Rows are deep-copied on the way in and out so callers can never alias
    stored state.

    Attributes:
        tables: collection -> list of rows.
        calls: Record of all method invocations for test assertions.
        fail_on: (method, collection) -> exception raised instead of
            touching the table, e.g. ``{("upsert", Collection.USER_PREFERENCES):
            TransientError("boom")}``.
    """

    def __init__(self) -> None:
        super().__init__(None)
        self.tables: dict[Collection, list[Row]] = {c: [] for c in Collection}
        self.calls: list[dict[str, Any]] = []
        self.fail_on: dict[tuple[str, Collection], ProviderError] = {}

    def seed(self, collection: Collection, *rows: Row) -> None:
        """Put rows straight into a table (test setup)."""
        self.tables[collection].extend(copy.deepcopy(row) for row in rows)

    def rows(self, collection: Collection) -> list[Row]:
        """Snapshot of a table."""
        return copy.deepcopy(self.tables[collection])

    def _record(self, method: str, collection: Collection, **details: Any) -> None:
        self.calls.append({"method": method, "collection": collection, **details})
        error = self.fail_on.get((method, collection))
        if error is not None:
            raise error

    @staticmethod
    def _matches(row: Row, conflict_columns: tuple[str, ...], values: Row) -> bool:
        return all(row.get(column) == values.get(column) for column in conflict_columns)

    async def select_one(self, collection: Collection, key: str) -> Row:
        self._record("select_one", collection, key=key)
        for row in self.tables[collection]:
            if row.get(collection.key_column) == key:
                return copy.deepcopy(row)
        raise RecordNotFoundError(collection.value, key)

    async def select_many(
        self,
        collection: Collection,
        filters: dict[str, Any] | None = None,
    ) -> list[Row]:
        self._record("select_many", collection, filters=filters)
        return [
            copy.deepcopy(row)
            for row in self.tables[collection]
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]

    async def upsert(self, collection: Collection, row: Row) -> Row:
        self._record("upsert", collection, row=copy.deepcopy(row))
        table = self.tables[collection]
        conflict = collection.conflict_columns
        for existing in table:
            if self._matches(existing, conflict, row):
                existing.update(copy.deepcopy(row))
                return copy.deepcopy(existing)
        table.append(copy.deepcopy(row))
        return copy.deepcopy(row)

    async def insert(self, collection: Collection, row: Row) -> Row:
        self._record("insert", collection, row=copy.deepcopy(row))
        stored = copy.deepcopy(row)
        if collection == Collection.ROLES:
            stored.setdefault("id", str(uuid.uuid4()))
        table = self.tables[collection]
        if any(self._matches(existing, collection.conflict_columns, stored) for existing in table):
            raise DuplicateRecordError(
                collection.value, "duplicate key value violates unique constraint"
            )
        table.append(stored)
        return copy.deepcopy(stored)
