"""Provider factory functions.

Singleton pattern for the data store and object storage adapters; the
identity provider is created per sign-in flow because it carries session
state.
"""

from portal.providers.config import ProviderConfig
from portal.providers.identity.base import IdentityProvider
from portal.providers.identity.mock_adapter import MockIdentityProvider
from portal.providers.identity.supabase_adapter import SupabaseIdentityAdapter
from portal.providers.storage.base import ObjectStorage
from portal.providers.storage.mock_adapter import MockObjectStorage
from portal.providers.storage.supabase_adapter import SupabaseObjectStorage
from portal.providers.store.base import DataStore
from portal.providers.store.mock_adapter import MockDataStore
from portal.providers.store.supabase_adapter import SupabaseDataStore

_data_store: DataStore | None = None
_object_storage: ObjectStorage | None = None


def create_identity_provider(config: ProviderConfig | None = None) -> IdentityProvider:
    """Create a new identity provider instance.

    WHY NOT SINGLETON:
    - An identity provider holds one session; the API serves many identities
    - Each sign-in/sign-out request gets its own instance

    Args:
        config: Optional provider configuration. Loads from environment
            when None.

    Returns:
        IdentityProvider instance.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    if config is None:
        config = ProviderConfig.from_env()

    if config.identity_provider == "supabase":
        return SupabaseIdentityAdapter(config)
    if config.identity_provider == "mock":
        return MockIdentityProvider()
    raise ValueError(f"Unknown identity provider: {config.identity_provider}")


def get_data_store(config: ProviderConfig | None = None) -> DataStore:
    """Get or create the data store singleton.

    WHY SINGLETON:
    - Reuses HTTP connections / the database pool
    - Consistent configuration across app

    Per-user access is layered on with ``DataStore.bind(access_token)``.

    Args:
        config: Optional provider configuration. If None and no store
            exists, loads from environment.

    Returns:
        DataStore instance.

    Raises:
        ValueError: If the configured store is unknown.
    """
    global _data_store

    if _data_store is None:
        if config is None:
            config = ProviderConfig.from_env()

        if config.data_store == "supabase":
            _data_store = SupabaseDataStore(config)
        elif config.data_store == "postgres":
            from portal.providers.store.sqlalchemy_adapter import SqlAlchemyDataStore

            _data_store = SqlAlchemyDataStore()
        elif config.data_store == "mock":
            _data_store = MockDataStore()
        else:
            raise ValueError(f"Unknown data store: {config.data_store}")

    return _data_store


def get_object_storage(config: ProviderConfig | None = None) -> ObjectStorage:
    """Get or create the object storage singleton.

    Args:
        config: Optional provider configuration. If None and no storage
            exists, loads from environment.

    Returns:
        ObjectStorage instance.

    Raises:
        ValueError: If the configured storage is unknown.
    """
    global _object_storage

    if _object_storage is None:
        if config is None:
            config = ProviderConfig.from_env()

        if config.object_storage == "supabase":
            _object_storage = SupabaseObjectStorage(config)
        elif config.object_storage == "mock":
            _object_storage = MockObjectStorage()
        else:
            raise ValueError(f"Unknown object storage: {config.object_storage}")

    return _object_storage


async def close_providers() -> None:
    """Close network resources held by the singletons (application shutdown)."""
    for provider in (_data_store, _object_storage):
        if provider is not None:
            await provider.aclose()
    reset_providers()


def reset_providers() -> None:
    """Reset provider singletons.

    Used in tests to ensure isolation between test cases.
    """
    global _data_store, _object_storage
    _data_store = None
    _object_storage = None
