"""Stream status endpoint: GET /helix/streams?user_id=..."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from livewatch._api._common import TokenSource, chunked, helix_get
from livewatch._transport import Transport
from livewatch.models.stream import LiveSnapshot, sized_thumbnail_url

_logger = logging.getLogger(__name__)


async def fetch_streams_by_user_ids(
    user_ids: Sequence[str],
    *,
    client_id: str,
    tokens: TokenSource,
    transport: Transport,
    now_ms: int,
) -> dict[str, LiveSnapshot]:
    """Return a snapshot for every live user id, keyed by user id.

    Offline users are absent. Thumbnails are sized to 1280x720 and
    stamped with *now_ms*.
    """
    snapshots: dict[str, LiveSnapshot] = {}
    for batch in chunked(list(user_ids)):
        params = [("user_id", user_id) for user_id in batch]
        params.append(("first", str(len(batch))))
        items = await helix_get(
            endpoint="streams",
            params=params,
            client_id=client_id,
            tokens=tokens,
            transport=transport,
        )
        for item in items:
            try:
                snapshot = LiveSnapshot.model_validate(item)
            except ValidationError:
                _logger.warning("Skipping malformed stream item: %s", item)
                continue
            snapshots[snapshot.provider_id] = snapshot.model_copy(
                update={"thumbnail_url": sized_thumbnail_url(snapshot.thumbnail_url, now_ms)}
            )
    return snapshots
