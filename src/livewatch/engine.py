"""Reconciliation: diff live snapshots against stored state and notify.

One call to :meth:`ReconciliationEngine.run_cycle` resolves the configured
channels, fetches their live status in one batch, and for every channel
that went from offline to live renders and dispatches exactly one
notification. The engine never persists; it returns the new state and
leaves committing it to the caller.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from livewatch._constants import CHANNEL_BASE_URL
from livewatch.exceptions import CycleInterruptedError, LiveWatchError
from livewatch.models.entity import MonitoredEntity
from livewatch.models.stream import LiveSnapshot
from livewatch.state.store import LiveState

_logger = logging.getLogger(__name__)


class EntityProvider(Protocol):
    async def resolve_entities(self, names: Iterable[str]) -> dict[str, MonitoredEntity]:
        ...

    async def fetch_live_snapshots(self, provider_ids: Iterable[str]) -> dict[str, LiveSnapshot]:
        ...


class PayloadRenderer(Protocol):
    def render(self, context: Mapping[str, Any]) -> dict[str, Any]:
        ...


class PayloadDispatcher(Protocol):
    async def dispatch(self, payload: dict[str, Any]) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclasses.dataclass(frozen=True)
class NotificationContext:
    """Template variables for one offline→live transition."""

    login: str
    display_name: str
    url: str
    title: str
    game_name: str
    started_at: str
    thumbnail_url: str
    profile_image_url: str
    mention_prefix: str
    now_iso: str

    @classmethod
    def for_transition(
        cls,
        entity: MonitoredEntity,
        snapshot: LiveSnapshot,
        *,
        mention_prefix: str,
        now: datetime,
    ) -> NotificationContext:
        return cls(
            login=entity.name,
            display_name=entity.display_name or entity.name,
            url=f"{CHANNEL_BASE_URL}/{entity.name}",
            title=snapshot.title or "Live",
            game_name=snapshot.category_name,
            started_at=snapshot.started_at,
            thumbnail_url=snapshot.thumbnail_url,
            profile_image_url=entity.avatar_url,
            mention_prefix=mention_prefix,
            now_iso=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        )

    def as_dict(self) -> dict[str, str]:
        return dataclasses.asdict(self)


class ReconciliationEngine:
    """Detects offline→live transitions and emits one notification each."""

    def __init__(
        self,
        provider: EntityProvider,
        renderer: PayloadRenderer,
        dispatcher: PayloadDispatcher,
        *,
        mention_prefix: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._provider = provider
        self._renderer = renderer
        self._dispatcher = dispatcher
        self._mention_prefix = mention_prefix
        self._clock = clock
        self._in_flight: LiveState | None = None

    @property
    def progress(self) -> LiveState:
        """Channels the running cycle has already handled; empty between cycles."""
        return dict(self._in_flight or {})

    async def notify(self, entity: MonitoredEntity, snapshot: LiveSnapshot) -> None:
        """Render and dispatch the notification for one transition."""
        context = NotificationContext.for_transition(
            entity,
            snapshot,
            mention_prefix=self._mention_prefix,
            now=self._clock(),
        )
        payload = self._renderer.render(context.as_dict())
        await self._dispatcher.dispatch(payload)
        _logger.info("Notification sent for %s.", entity.name)

    async def run_cycle(self, configured_names: Sequence[str], prior_state: Mapping[str, bool]) -> LiveState:
        """Run one reconciliation pass and return the new state.

        Channels that cannot be resolved keep their prior value. Errors
        before the per-channel loop propagate unchanged; an error inside
        it is raised as :class:`CycleInterruptedError` carrying the state
        of the channels already processed.
        """
        names = [name.strip().lower() for name in configured_names if name.strip()]
        entities = await self._provider.resolve_entities(names)
        live_by_id = await self._provider.fetch_live_snapshots(entity.provider_id for entity in entities.values())

        new_state: LiveState = dict(prior_state)
        processed: LiveState = {}
        self._in_flight = processed
        try:
            for name in names:
                entity = entities.get(name)
                if entity is None:
                    _logger.error("Unknown streamer: %s", name)
                    continue

                snapshot = live_by_id.get(entity.provider_id)
                is_live = snapshot is not None
                was_live = bool(prior_state.get(name, False))

                if snapshot is not None and not was_live:
                    try:
                        await self.notify(entity, snapshot)
                    except LiveWatchError as exc:
                        raise CycleInterruptedError(
                            f"Notification for {name} failed: {exc}",
                            entity=name,
                            partial_state=dict(processed),
                        ) from exc

                new_state[name] = is_live
                processed[name] = is_live
        finally:
            self._in_flight = None

        return new_state
