"""Shared helpers for Helix endpoint modules.

This module centralizes the repeated patterns:
- attaching the bearer token and client id headers
- mapping HTTP status codes to exceptions
- splitting long id/login lists into Helix-sized batches

It is internal to livewatch and may change at any time.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Protocol, TypeVar

from livewatch._constants import HELIX_BASE_URL, HELIX_BATCH_SIZE
from livewatch._transport import Transport
from livewatch.exceptions import ProviderApiError, TokenRejectedError, TransportError

T = TypeVar("T")


class TokenSource(Protocol):
    async def get_token(self) -> str:
        ...


def chunked(items: Sequence[T], size: int = HELIX_BATCH_SIZE) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most *size* items."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


async def helix_get(
    *,
    endpoint: str,
    params: Sequence[tuple[str, str]],
    client_id: str,
    tokens: TokenSource,
    transport: Transport,
) -> list[dict[str, Any]]:
    """GET a Helix collection endpoint and return its ``data`` list.

    The token is fetched from *tokens* on every call so a refreshed
    credential is picked up without any local caching.

    Raises
    ------
    TokenRejectedError
        On HTTP 401.
    ProviderApiError
        On any other non-2xx status or a malformed body.
    """
    token = await tokens.get_token()
    url = f"{HELIX_BASE_URL}/{endpoint}"
    response = await transport.request(
        "GET",
        url,
        params=list(params),
        headers={"Client-ID": client_id, "Authorization": f"Bearer {token}"},
    )

    if response.status == 401:
        raise TokenRejectedError(f"{endpoint} rejected the app token: {response.text[:200]}")
    if not response.ok:
        raise ProviderApiError(
            f"{endpoint} failed: HTTP {response.status}: {response.text[:200]}",
            status_code=response.status,
            endpoint=endpoint,
        )

    try:
        body = response.json()
    except TransportError as exc:
        raise ProviderApiError(
            f"{endpoint} returned invalid JSON",
            status_code=response.status,
            endpoint=endpoint,
        ) from exc

    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, list):
        raise ProviderApiError(
            f"{endpoint} response missing data list",
            status_code=response.status,
            endpoint=endpoint,
        )
    return [item for item in data if isinstance(item, dict)]
