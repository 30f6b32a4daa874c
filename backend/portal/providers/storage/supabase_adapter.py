"""Supabase Storage adapter.

Uploads go to ``POST /object/{bucket}/{path}`` with ``x-upsert`` so a
re-upload replaces the previous object; public URLs follow
``/object/public/{bucket}/{path}``.
"""

from typing import TYPE_CHECKING

import httpx
import structlog

from portal.providers.errors import StorageError
from portal.providers.http import build_client, error_payload, send
from portal.providers.storage.base import ObjectStorage

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig

logger = structlog.get_logger()

_PROVIDER = "supabase_storage"

# Seconds browsers and the CDN may cache an object
_CACHE_CONTROL = "3600"

# Bucket-level rejections (bad path, object too large, mime not allowed)
_REJECTED_STATUSES = (400, 404, 409, 413, 415)


class SupabaseObjectStorage(ObjectStorage):
    """Object storage backed by a Supabase Storage bucket."""

    def __init__(
        self,
        config: "ProviderConfig",
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
    ) -> None:
        super().__init__(config)
        self.config: "ProviderConfig" = config
        self.bucket = config.resume_bucket
        self._owns_client = client is None
        self.client = client or build_client(config)
        self.access_token = access_token

    def bind(self, access_token: str | None) -> "SupabaseObjectStorage":
        bound = SupabaseObjectStorage(
            self.config, client=self.client, access_token=access_token
        )
        bound._owns_client = False
        return bound

    def public_url(self, path: str) -> str:
        """Public URL of an object in the bucket."""
        return f"{self.config.storage_url}/object/public/{self.bucket}/{path}"

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        bearer = self.access_token or self.config.supabase_anon_key
        response = await send(
            self.client,
            "POST",
            f"{self.config.storage_url}/object/{self.bucket}/{path}",
            provider=_PROVIDER,
            passthrough_statuses=_REJECTED_STATUSES,
            content=content,
            headers={
                "apikey": self.config.supabase_anon_key,
                "Authorization": f"Bearer {bearer}",
                "Content-Type": content_type,
                "cache-control": f"max-age={_CACHE_CONTROL}",
                "x-upsert": "true",
            },
        )
        if response.is_error:
            message = error_payload(response).get("message") or f"HTTP {response.status_code}"
            logger.warning(
                "storage_upload_rejected",
                provider=_PROVIDER,
                path=path,
                status_code=response.status_code,
            )
            raise StorageError(str(message))

        logger.info("storage_object_uploaded", provider=_PROVIDER, path=path, size=len(content))
        return self.public_url(path)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
