"""Provider abstraction layer.

Exports:
    Error classes for provider error handling
    ProviderConfig for configuration
    Factory functions for provider instances
"""

from portal.providers.config import ProviderConfig
from portal.providers.errors import (
    AuthenticationError,
    DuplicateRecordError,
    ProviderError,
    RecordNotFoundError,
    StorageError,
    TransientError,
)
from portal.providers.factory import (
    create_identity_provider,
    get_data_store,
    get_object_storage,
)

__all__ = [
    # Config
    "ProviderConfig",
    # Errors
    "ProviderError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "TransientError",
    "AuthenticationError",
    "StorageError",
    # Factory
    "create_identity_provider",
    "get_data_store",
    "get_object_storage",
]
