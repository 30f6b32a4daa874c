"""Supabase (PostgREST) data store adapter.

Keyed reads use ``?col=eq.value`` filters; a single-row read asks for the
object representation so an empty result comes back as 406 / PGRST116.
Upserts use ``Prefer: resolution=merge-duplicates``.
"""

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from portal.providers.errors import DuplicateRecordError, RecordNotFoundError
from portal.providers.http import build_client, error_payload, send
from portal.providers.store.base import Collection, DataStore, Row

if TYPE_CHECKING:
    from portal.providers.config import ProviderConfig

logger = structlog.get_logger()

_PROVIDER = "supabase_rest"

_SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class SupabaseDataStore(DataStore):
    """Data store backed by the Supabase REST API."""

    def __init__(
        self,
        config: "ProviderConfig",
        client: httpx.AsyncClient | None = None,
        access_token: str | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Provider configuration with the project URL and anon key.
            client: Optional shared client.
            access_token: User JWT; row-level policies evaluate against it.
                Falls back to the anon key.
        """
        super().__init__(config)
        self.config: "ProviderConfig" = config
        self._owns_client = client is None
        self.client = client or build_client(config)
        self.access_token = access_token

    def bind(self, access_token: str | None) -> "SupabaseDataStore":
        bound = SupabaseDataStore(self.config, client=self.client, access_token=access_token)
        bound._owns_client = False
        return bound

    def _headers(self, **extra: str) -> dict[str, str]:
        bearer = self.access_token or self.config.supabase_anon_key
        headers = {
            "apikey": self.config.supabase_anon_key,
            "Authorization": f"Bearer {bearer}",
        }
        headers.update(extra)
        return headers

    def _url(self, collection: Collection) -> str:
        return f"{self.config.rest_url}/{collection.value}"

    async def select_one(self, collection: Collection, key: str) -> Row:
        response = await send(
            self.client,
            "GET",
            self._url(collection),
            provider=_PROVIDER,
            passthrough_statuses=(406,),
            params={"select": "*", collection.key_column: _eq(key)},
            headers=self._headers(Accept=_SINGLE_OBJECT),
        )
        if response.status_code == 406:
            # PGRST116: the object representation needs exactly one row
            logger.debug(
                "record_not_found",
                provider=_PROVIDER,
                collection=collection.value,
                code=error_payload(response).get("code"),
            )
            raise RecordNotFoundError(collection.value, key)
        row: Row = response.json()
        return row

    async def select_many(
        self,
        collection: Collection,
        filters: dict[str, Any] | None = None,
    ) -> list[Row]:
        params = {"select": "*"}
        params.update({column: _eq(value) for column, value in (filters or {}).items()})
        response = await send(
            self.client,
            "GET",
            self._url(collection),
            provider=_PROVIDER,
            params=params,
            headers=self._headers(),
        )
        rows: list[Row] = response.json()
        return rows

    async def upsert(self, collection: Collection, row: Row) -> Row:
        response = await send(
            self.client,
            "POST",
            self._url(collection),
            provider=_PROVIDER,
            params={"on_conflict": ",".join(collection.conflict_columns)},
            json=row,
            headers=self._headers(
                Prefer="resolution=merge-duplicates,return=representation"
            ),
        )
        return _first_row(response, row)

    async def insert(self, collection: Collection, row: Row) -> Row:
        response = await send(
            self.client,
            "POST",
            self._url(collection),
            provider=_PROVIDER,
            passthrough_statuses=(409,),
            json=row,
            headers=self._headers(Prefer="return=representation"),
        )
        if response.status_code == 409:
            # 23505 unique_violation; PostgREST reports every conflict as 409
            body = error_payload(response)
            raise DuplicateRecordError(collection.value, str(body.get("message") or ""))
        return _first_row(response, row)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _first_row(response: httpx.Response, fallback: Row) -> Row:
    """Unwrap ``return=representation`` (a one-element list)."""
    if not response.content:
        return dict(fallback)
    body = response.json()
    if isinstance(body, list):
        return body[0] if body else dict(fallback)
    return body if isinstance(body, dict) else dict(fallback)
