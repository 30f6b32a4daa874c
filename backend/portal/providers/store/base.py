"""Abstract base class and types for keyed data stores.

The portal only ever reads rows by key and writes them with upserts; there
are no transactions spanning collections.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig

Row = dict[str, Any]


class Collection(str, Enum):
    """Remote collections (tables) the portal reads and writes."""

    PROFILES = "profiles"
    USER_PREFERENCES = "user_preferences"
    USER_ONBOARDING = "user_onboarding"
    ROLES = "roles"
    USER_ROLES = "user_roles"

    @property
    def key_column(self) -> str:
        """Column that ``select_one`` matches and ``upsert`` conflicts on."""
        return _KEY_COLUMNS[self]

    @property
    def conflict_columns(self) -> tuple[str, ...]:
        """Columns forming the upsert conflict target."""
        return _CONFLICT_COLUMNS.get(self, (self.key_column,))


_KEY_COLUMNS: dict[Collection, str] = {
    Collection.PROFILES: "id",
    Collection.USER_PREFERENCES: "user_id",
    Collection.USER_ONBOARDING: "user_id",
    Collection.ROLES: "id",
    Collection.USER_ROLES: "user_id",
}

_CONFLICT_COLUMNS: dict[Collection, tuple[str, ...]] = {
    Collection.USER_ROLES: ("user_id", "role_id"),
}


class DataStore(ABC):
    """Abstract keyed data store.

    Adapters map their native failures onto the provider error taxonomy:
    RecordNotFoundError for an empty keyed select, TransientError for
    connectivity problems, AuthenticationError for access denials.
    """

    def __init__(self, config: "ProviderConfig | None" = None) -> None:
        self.config = config

    def bind(self, access_token: str | None) -> "DataStore":
        """Return a store that acts on behalf of ``access_token``.

        Stores without per-user access control return themselves.
        """
        return self

    @abstractmethod
    async def select_one(self, collection: Collection, key: str) -> Row:
        """Fetch the row whose key column equals ``key``.

        Raises:
            RecordNotFoundError: No row matches.
        """
        ...

    @abstractmethod
    async def select_many(
        self,
        collection: Collection,
        filters: dict[str, Any] | None = None,
    ) -> list[Row]:
        """Fetch every row whose columns equal the given filter values."""
        ...

    @abstractmethod
    async def upsert(self, collection: Collection, row: Row) -> Row:
        """Insert ``row`` or update the existing row with the same key.

        Returns:
            The row as stored.
        """
        ...

    @abstractmethod
    async def insert(self, collection: Collection, row: Row) -> Row:
        """Insert a new row.

        Raises:
            DuplicateRecordError: A row with the same key already exists.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None
