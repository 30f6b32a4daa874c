"""Direct Postgres data store adapter (SQLAlchemy async + asyncpg).

Used when the portal owns its database instead of going through the REST
API. Upserts are ``INSERT ... ON CONFLICT DO UPDATE`` on the collection's
conflict columns.
"""

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import DateTime, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal.models import Profile, Role, UserOnboarding, UserPreferences, UserRole
from portal.models.base import Base
from portal.providers.errors import (
    DuplicateRecordError,
    ProviderError,
    RecordNotFoundError,
    TransientError,
)
from portal.providers.store.base import Collection, DataStore, Row

logger = structlog.get_logger()

_PROVIDER = "postgres"

_MODELS: dict[Collection, type[Base]] = {
    Collection.PROFILES: Profile,
    Collection.USER_PREFERENCES: UserPreferences,
    Collection.USER_ONBOARDING: UserOnboarding,
    Collection.ROLES: Role,
    Collection.USER_ROLES: UserRole,
}

# Managed by the database
_SERVER_COLUMNS = frozenset({"created_at", "updated_at"})


def _classify_db_error(error: SQLAlchemyError, collection: Collection) -> ProviderError:
    """Map SQLAlchemy exceptions to internal error taxonomy.

    Returns a ProviderError subclass instance (does not raise).
    """
    if isinstance(error, IntegrityError):
        return DuplicateRecordError(collection.value, str(error.orig))
    if isinstance(error, OperationalError | InterfaceError):
        return TransientError(str(error))
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return TransientError(str(error))
    return ProviderError(str(error))


def _to_row(instance: Base) -> Row:
    return {
        column.key: getattr(instance, column.key)
        for column in instance.__table__.columns
    }


def _coerce_row(model: type[Base], row: Row) -> Row:
    """Keep known columns and parse ISO timestamps for DateTime columns."""
    columns = model.__table__.columns
    values: Row = {}
    for key, value in row.items():
        if key not in columns or key in _SERVER_COLUMNS:
            continue
        if isinstance(value, str) and isinstance(columns[key].type, DateTime):
            value = datetime.fromisoformat(value)
        values[key] = value
    return values


class SqlAlchemyDataStore(DataStore):
    """Data store writing straight to Postgres."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            session_factory: Session factory; defaults to the application's
                engine-bound factory.
        """
        super().__init__(None)
        if session_factory is None:
            from portal.core.database import get_session_factory

            session_factory = get_session_factory()
        self.session_factory = session_factory

    async def select_one(self, collection: Collection, key: str) -> Row:
        model = _MODELS[collection]
        key_column = model.__table__.columns[collection.key_column]
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(model).where(key_column == key))
                instance = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(
                "store_select_failed",
                provider=_PROVIDER,
                collection=collection.value,
                error_type=type(e).__name__,
            )
            raise _classify_db_error(e, collection) from e

        if instance is None:
            raise RecordNotFoundError(collection.value, key)
        return _to_row(instance)

    async def select_many(
        self,
        collection: Collection,
        filters: dict[str, Any] | None = None,
    ) -> list[Row]:
        model = _MODELS[collection]
        columns = model.__table__.columns
        stmt = select(model)
        for column, value in (filters or {}).items():
            stmt = stmt.where(columns[column] == value)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [_to_row(instance) for instance in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(
                "store_select_failed",
                provider=_PROVIDER,
                collection=collection.value,
                error_type=type(e).__name__,
            )
            raise _classify_db_error(e, collection) from e

    async def upsert(self, collection: Collection, row: Row) -> Row:
        model = _MODELS[collection]
        values = _coerce_row(model, row)
        conflict = list(collection.conflict_columns)
        updates = {key: value for key, value in values.items() if key not in conflict}

        stmt = pg_insert(model).values(**values)
        if updates:
            stmt = stmt.on_conflict_do_update(index_elements=conflict, set_=updates)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict)

        try:
            async with self.session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(
                "store_upsert_failed",
                provider=_PROVIDER,
                collection=collection.value,
                error_type=type(e).__name__,
            )
            raise _classify_db_error(e, collection) from e
        return values

    async def insert(self, collection: Collection, row: Row) -> Row:
        model = _MODELS[collection]
        values = _coerce_row(model, row)
        try:
            async with self.session_factory() as session:
                instance = model(**values)
                session.add(instance)
                await session.flush()
                await session.refresh(instance)
                stored = _to_row(instance)
                await session.commit()
                return stored
        except SQLAlchemyError as e:
            logger.warning(
                "store_insert_failed",
                provider=_PROVIDER,
                collection=collection.value,
                error_type=type(e).__name__,
            )
            raise _classify_db_error(e, collection) from e
