"""Provider error taxonomy.

Error classes for the identity, data store and object storage adapters.

WHY SEPARATE ERROR CLASSES:
- Callers handle "row does not exist yet" differently from outages
- Provider-agnostic handling (each adapter maps its failures to these)
- Nothing in the core retries automatically; the type tells the caller
  whether retrying could ever help
"""


__all__ = [
    "ProviderError",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "TransientError",
    "AuthenticationError",
    "StorageError",
]


class ProviderError(Exception):
    """Base class for all provider errors.

    All adapter-specific exceptions should inherit from this class,
    allowing callers to catch all provider errors with a single handler.
    """

    pass


class RecordNotFoundError(ProviderError):
    """Keyed select matched no row.

    Expected for a brand-new identity: the profile store falls back to
    defaults instead of surfacing an error.
    """

    def __init__(self, collection: str, key: str) -> None:
        """Initialize RecordNotFoundError.

        Args:
            collection: Collection (table) that was queried.
            key: Key value that matched nothing.
        """
        super().__init__(f"No row in {collection} for key {key}")
        self.collection = collection
        self.key = key


class DuplicateRecordError(ProviderError):
    """Insert collided with an existing row (unique constraint)."""

    def __init__(self, collection: str, message: str = "") -> None:
        super().__init__(message or f"Duplicate row in {collection}")
        self.collection = collection


class TransientError(ProviderError):
    """Temporary failure (network, timeout, 5xx).

    Includes: connection errors, timeouts, server errors, database
    connectivity errors.
    """

    pass


class AuthenticationError(ProviderError):
    """Credentials rejected or session no longer valid.

    Covers bad passwords, expired or revoked refresh tokens, and row-level
    access denials from the data store.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize AuthenticationError.

        Args:
            message: Error description from the provider.
            code: Provider error code when available
                (e.g. "refresh_token_not_found").
        """
        super().__init__(message)
        self.code = code


class StorageError(ProviderError):
    """Object storage rejected an upload."""

    pass
