"""Data store module.

Keyed data store interface and adapters.
"""

from portal.providers.store.base import Collection, DataStore, Row
from portal.providers.store.mock_adapter import MockDataStore
from portal.providers.store.supabase_adapter import SupabaseDataStore

__all__ = [
    # Base types
    "Collection",
    "DataStore",
    "Row",
    # Adapters
    "MockDataStore",
    "SupabaseDataStore",
]
