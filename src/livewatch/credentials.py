"""App access token lifecycle: cache, refresh and persistence."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from livewatch._api.oauth import request_app_token
from livewatch._constants import TOKEN_SKEW_MARGIN_MS
from livewatch._storage import JsonBackend
from livewatch._transport import Transport
from livewatch.models.credential import EMPTY_CREDENTIAL, Credential

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class CredentialCache:
    """Owns the app access token and its backing file.

    Usage::

        cache = CredentialCache(client_id, client_secret, transport, JsonFile(path))
        token = await cache.get_token()

    The persisted credential is loaded once at construction. A cached token
    is returned without any network call while
    ``now < expires_at - skew_ms``; otherwise a single client-credentials
    grant is performed and the result replaces the cache and the file.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        transport: Transport,
        backend: JsonBackend,
        *,
        clock: Callable[[], int] = _now_ms,
        skew_ms: int = TOKEN_SKEW_MARGIN_MS,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._transport = transport
        self._backend = backend
        self._clock = clock
        self._skew_ms = skew_ms
        self._credential = Credential.from_file_data(backend.read())

    @property
    def credential(self) -> Credential:
        return self._credential

    async def get_token(self) -> str:
        """Return a usable bearer token, refreshing it when needed.

        Raises
        ------
        AuthError
            If the token request fails or its reply is incomplete.
        """
        now = self._clock()
        if self._credential.is_valid(now, self._skew_ms):
            assert self._credential.access_token is not None  # noqa: S101
            return self._credential.access_token

        credential = await request_app_token(self._transport, self._client_id, self._client_secret, now)
        self._credential = credential
        self._backend.write(credential.to_file_data())
        _logger.info("Obtained new Twitch token.")
        assert credential.access_token is not None  # noqa: S101
        return credential.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next :meth:`get_token` refreshes."""
        self._credential = EMPTY_CREDENTIAL
        self._backend.write(EMPTY_CREDENTIAL.to_file_data())
