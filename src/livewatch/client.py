"""Async client for the Twitch Helix endpoints the watcher needs."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from livewatch._api.streams import fetch_streams_by_user_ids
from livewatch._api.users import fetch_users_by_login
from livewatch._transport import Transport
from livewatch.credentials import CredentialCache
from livewatch.exceptions import TokenRejectedError
from livewatch.models.entity import MonitoredEntity
from livewatch.models.stream import LiveSnapshot

_logger = logging.getLogger(__name__)

T = TypeVar("T")


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class TwitchClient:
    """Maps channel logins to Helix users and fetches live snapshots.

    Usage::

        client = TwitchClient(client_id, credentials, transport)
        entities = await client.resolve_entities(["foo", "bar"])
        live = await client.fetch_live_snapshots(e.provider_id for e in entities.values())
    """

    def __init__(
        self,
        client_id: str,
        credentials: CredentialCache,
        transport: Transport,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._client_id = client_id
        self._credentials = credentials
        self._transport = transport
        self._clock = clock

    async def _call_with_reauth(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run an API call, retrying once with a fresh token on HTTP 401."""
        try:
            return await fn()
        except TokenRejectedError:
            _logger.info("Twitch rejected the cached token; requesting a new one.")
            self._credentials.invalidate()
            return await fn()

    async def resolve_entities(self, names: Iterable[str]) -> dict[str, MonitoredEntity]:
        """Resolve logins; unknown logins are omitted from the result."""
        logins = list(dict.fromkeys(name.strip().lower() for name in names if name.strip()))
        if not logins:
            return {}

        async def _fetch() -> dict[str, MonitoredEntity]:
            return await fetch_users_by_login(
                logins,
                client_id=self._client_id,
                tokens=self._credentials,
                transport=self._transport,
            )

        entities = await self._call_with_reauth(_fetch)
        _logger.debug("Resolved %d of %d logins", len(entities), len(logins))
        return entities

    async def fetch_live_snapshots(self, provider_ids: Iterable[str]) -> dict[str, LiveSnapshot]:
        """Return snapshots for live ids only; absence means offline."""
        ids = list(dict.fromkeys(str(provider_id) for provider_id in provider_ids))
        if not ids:
            return {}

        async def _fetch() -> dict[str, LiveSnapshot]:
            return await fetch_streams_by_user_ids(
                ids,
                client_id=self._client_id,
                tokens=self._credentials,
                transport=self._transport,
                now_ms=self._clock(),
            )

        snapshots = await self._call_with_reauth(_fetch)
        _logger.debug("%d of %d channels live", len(snapshots), len(ids))
        return snapshots
