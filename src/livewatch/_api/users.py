"""User lookup endpoint: GET /helix/users?login=..."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from livewatch._api._common import TokenSource, chunked, helix_get
from livewatch._transport import Transport
from livewatch.models.entity import MonitoredEntity

_logger = logging.getLogger(__name__)


async def fetch_users_by_login(
    logins: Sequence[str],
    *,
    client_id: str,
    tokens: TokenSource,
    transport: Transport,
) -> dict[str, MonitoredEntity]:
    """Resolve logins to :class:`MonitoredEntity`, keyed by lowercase login.

    Logins Helix does not know are simply absent from the result.
    """
    entities: dict[str, MonitoredEntity] = {}
    for batch in chunked(list(logins)):
        items = await helix_get(
            endpoint="users",
            params=[("login", login) for login in batch],
            client_id=client_id,
            tokens=tokens,
            transport=transport,
        )
        for item in items:
            try:
                entity = MonitoredEntity.model_validate(item)
            except ValidationError:
                _logger.warning("Skipping malformed user item: %s", item)
                continue
            entities[entity.name] = entity
    return entities
