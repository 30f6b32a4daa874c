"""Object storage module.

Object storage interface and adapters.
"""

from portal.providers.storage.base import ObjectStorage
from portal.providers.storage.mock_adapter import MockObjectStorage
from portal.providers.storage.supabase_adapter import SupabaseObjectStorage

__all__ = [
    "ObjectStorage",
    "MockObjectStorage",
    "SupabaseObjectStorage",
]
