"""Webhook delivery of rendered notification payloads."""

from __future__ import annotations

import logging
from typing import Any

from livewatch._transport import Transport
from livewatch.exceptions import DispatchError, TransportError

_logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """POSTs payloads to a single Discord-compatible webhook.

    Any 2xx reply counts as delivered. Nothing is retried here; failures
    propagate so the scheduler can back off.
    """

    def __init__(self, webhook_url: str, transport: Transport) -> None:
        self._webhook_url = webhook_url
        self._transport = transport

    async def dispatch(self, payload: dict[str, Any]) -> None:
        """Deliver *payload*.

        Raises
        ------
        DispatchError
            On a non-2xx reply or when the webhook is unreachable.
        """
        try:
            response = await self._transport.request("POST", self._webhook_url, json_body=payload)
        except TransportError as exc:
            raise DispatchError(f"Webhook unreachable: {exc}") from exc

        if not response.ok:
            raise DispatchError(
                f"Webhook rejected payload: HTTP {response.status}: {response.text[:200]}",
                status_code=response.status,
            )
        _logger.debug("Webhook accepted payload with HTTP %s", response.status)
