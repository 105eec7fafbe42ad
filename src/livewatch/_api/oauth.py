"""Client-credentials grant.

Endpoint:
  - POST https://id.twitch.tv/oauth2/token
"""

from __future__ import annotations

import logging
from typing import Any

from livewatch._constants import TOKEN_URL
from livewatch._redact import redact_for_log
from livewatch._transport import HttpResponse, Transport
from livewatch.exceptions import AuthError, TransportError
from livewatch.models.credential import Credential

_logger = logging.getLogger(__name__)


def build_token_params(client_id: str, client_secret: str) -> dict[str, str]:
    """Query parameters for an app access token request."""
    return {
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": "client_credentials",
    }


def parse_token_response(response: HttpResponse, now_ms: int) -> Credential:
    """Turn the token endpoint reply into a :class:`Credential`.

    Parameters
    ----------
    response : HttpResponse
        Reply from the token endpoint.
    now_ms : int
        Epoch milliseconds at which the request was issued; ``expires_in``
        is counted from here.

    Raises
    ------
    AuthError
        If the grant was refused or the reply lacks ``access_token`` or
        ``expires_in``.
    """
    if not response.ok:
        raise AuthError(f"Token request failed: HTTP {response.status}: {response.text[:200]}")

    try:
        body: Any = response.json()
    except TransportError as exc:
        raise AuthError(f"Token response is not JSON: {response.text[:200]}") from exc

    _logger.debug("Token response parsed=%s", redact_for_log(body))

    if not isinstance(body, dict):
        raise AuthError("Token response is not an object")

    token = body.get("access_token")
    expires_in = body.get("expires_in")
    if not isinstance(token, str) or not token:
        raise AuthError("Token response missing access_token")
    if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool):
        raise AuthError("Token response missing expires_in")

    return Credential(access_token=token, expires_at=now_ms + int(expires_in * 1000))


async def request_app_token(
    transport: Transport,
    client_id: str,
    client_secret: str,
    now_ms: int,
) -> Credential:
    """POST a client-credentials grant and return the new credential."""
    try:
        response = await transport.request(
            "POST",
            TOKEN_URL,
            params=build_token_params(client_id, client_secret),
        )
    except TransportError as exc:
        raise AuthError(f"Token request failed: {exc}") from exc
    return parse_token_response(response, now_ms)
