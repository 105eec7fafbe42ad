"""HTTP transport shared by the provider client, credential cache and dispatcher."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from livewatch._constants import USER_AGENT
from livewatch._redact import redact_for_log
from livewatch.exceptions import TransportError

_logger = logging.getLogger(__name__)

Params = Mapping[str, Any] | Sequence[tuple[str, str]]


@dataclass(frozen=True)
class HttpResponse:
    """Status and body of a completed HTTP exchange."""

    status: int
    text: str
    url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises
        ------
        TransportError
            If the body is not valid JSON.
        """
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as exc:
            raise TransportError(
                f"Invalid JSON from {self.url}: {self.text[:200]}",
                status_code=self.status,
                url=self.url,
            ) from exc


class Transport(Protocol):
    """Structural transport interface used by the API modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`AiohttpTransport`) concrete.
    Implementations return a response for every status code and raise
    :class:`TransportError` only when no response was received.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> HttpResponse:
        ...


class AiohttpTransport:
    """:class:`Transport` backed by an ``aiohttp.ClientSession``."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 12.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Params | None = None,
        headers: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> HttpResponse:
        merged_headers: dict[str, str] = {"user-agent": USER_AGENT}
        if headers:
            merged_headers.update(headers)

        _logger.debug(
            "%s %s params=%s headers=%s", method, url, redact_for_log(params), redact_for_log(merged_headers)
        )

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                headers=merged_headers,
                json=json_body,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                response = HttpResponse(
                    status=resp.status,
                    text=text,
                    url=url,
                    headers=dict(resp.headers),
                )
        except aiohttp.ClientError as exc:
            raise TransportError(f"{method} {url} failed: {exc}", url=url) from exc
        except TimeoutError as exc:
            raise TransportError(f"{method} {url} timed out", url=url) from exc

        _logger.debug("%s %s -> HTTP %s", method, url, response.status)
        return response
