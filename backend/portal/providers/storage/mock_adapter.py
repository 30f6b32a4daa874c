"""Mock object storage for testing and local-first mode."""

from typing import Any

from portal.providers.errors import ProviderError
from portal.providers.storage.base import ObjectStorage


class MockObjectStorage(ObjectStorage):
    """In-memory bucket.

    Attributes:
        objects: path -> (content, content_type).
        calls: Record of all method invocations for test assertions.
        fail_with: When set, ``upload`` raises it.
    """

    def __init__(self, base_url: str = "http://storage.local/resumes") -> None:
        super().__init__(None)
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.calls: list[dict[str, Any]] = []
        self.fail_with: ProviderError | None = None

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.calls.append(
            {
                "method": "upload",
                "path": path,
                "size": len(content),
                "content_type": content_type,
            }
        )
        if self.fail_with is not None:
            raise self.fail_with
        self.objects[path] = (content, content_type)
        return f"{self.base_url}/{path}"
