"""Shared HTTP plumbing for the Supabase-style adapters.

Every remote call goes through ``send`` so transport failures and error
statuses map onto the provider error taxonomy in one place.
"""

from typing import Any

import httpx
import structlog

from portal.providers.config import ProviderConfig
from portal.providers.errors import (
    AuthenticationError,
    ProviderError,
    TransientError,
)

logger = structlog.get_logger()

_SERVER_ERROR_THRESHOLD = 500


def build_client(config: ProviderConfig) -> httpx.AsyncClient:
    """Create the shared async client for an adapter.

    Args:
        config: Provider configuration (timeout).

    Returns:
        httpx.AsyncClient with the configured timeout.
    """
    return httpx.AsyncClient(timeout=config.request_timeout_seconds)


def error_payload(response: httpx.Response) -> dict[str, Any]:
    """Best-effort decode of an error body.

    Args:
        response: Response with an error status.

    Returns:
        Decoded JSON object, or an empty dict when the body is not JSON.
    """
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def classify_response_error(response: httpx.Response) -> ProviderError:
    """Map an error response to the internal error taxonomy.

    Returns a ProviderError subclass instance (does not raise).
    The caller is responsible for raising it.
    """
    body = error_payload(response)
    code = body.get("error_code") or body.get("code") or body.get("error")
    message = (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or f"HTTP {response.status_code}"
    )

    if response.status_code in (401, 403):
        return AuthenticationError(
            str(message), code=str(code) if code is not None else None
        )
    if response.status_code >= _SERVER_ERROR_THRESHOLD:
        return TransientError(str(message))
    return ProviderError(str(message))


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    provider: str,
    passthrough_statuses: tuple[int, ...] = (),
    **kwargs: Any,
) -> httpx.Response:
    """Issue a request and map failures onto ProviderError subclasses.

    Args:
        client: Shared async client.
        method: HTTP method.
        url: Absolute URL.
        provider: Adapter name for log context.
        passthrough_statuses: Error statuses returned to the caller instead
            of raised (e.g. 406 for an empty single-row select).
        **kwargs: Passed through to ``client.request``.

    Returns:
        The response, for any status below 400 or in passthrough_statuses.

    Raises:
        TransientError: Timeouts, connection failures, 5xx.
        AuthenticationError: 401/403.
        ProviderError: Any other error status.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TransportError as e:
        logger.error(
            "provider_request_failed",
            provider=provider,
            method=method,
            url=url,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TransientError(str(e) or type(e).__name__) from e

    if response.is_error and response.status_code not in passthrough_statuses:
        error = classify_response_error(response)
        logger.warning(
            "provider_request_rejected",
            provider=provider,
            method=method,
            url=url,
            status_code=response.status_code,
            error_type=type(error).__name__,
        )
        raise error

    return response
