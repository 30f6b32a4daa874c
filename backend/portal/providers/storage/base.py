"""Abstract base class for object storage providers."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig


class ObjectStorage(ABC):
    """Abstract object storage.

    Size and type constraints are enforced by callers before ``upload``;
    the storage layer stores whatever it is given.
    """

    def __init__(self, config: "ProviderConfig | None" = None) -> None:
        self.config = config

    def bind(self, access_token: str | None) -> "ObjectStorage":
        """Return a storage client acting on behalf of ``access_token``."""
        return self

    @abstractmethod
    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` at ``path`` (overwriting) and return its public URL.

        Raises:
            StorageError: The upload was rejected.
            TransientError: Storage unreachable.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
        return None
