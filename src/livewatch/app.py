"""Wires configuration, persistence, HTTP and the poll loop together."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

import aiohttp

from livewatch._storage import JsonFile
from livewatch._transport import AiohttpTransport, Transport
from livewatch.client import TwitchClient
from livewatch.config import WatchConfig
from livewatch.credentials import CredentialCache
from livewatch.dispatcher import NotificationDispatcher
from livewatch.engine import ReconciliationEngine
from livewatch.exceptions import LiveWatchError
from livewatch.scheduler import SchedulerLoop
from livewatch.state.store import StateStore
from livewatch.template import TemplateRenderer

_logger = logging.getLogger(__name__)


class LiveWatchApp:
    """Long-running Twitch → webhook notifier.

    Usage::

        async with LiveWatchApp(config) as app:
            await app.run()
    """

    def __init__(
        self,
        config: WatchConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config.validate()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self.store = StateStore(JsonFile(config.state_file))
        self.scheduler: SchedulerLoop | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LiveWatchApp:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = AiohttpTransport(self._http_session, timeout=self._config.http_timeout)

        credentials = CredentialCache(
            self._config.client_id,
            self._config.client_secret,
            self._transport,
            JsonFile(self._config.oauth_file),
        )
        engine = ReconciliationEngine(
            TwitchClient(self._config.client_id, credentials, self._transport),
            TemplateRenderer(self._config.template_path),
            NotificationDispatcher(self._config.webhook_url, self._transport),
            mention_prefix=self._config.mention_prefix(),
        )
        state = self.store.load()
        _logger.debug("Starting with state %s", state)
        self.scheduler = SchedulerLoop(
            engine,
            self.store,
            self._config.streamers,
            interval_ms=self._config.check_interval_ms,
            persist_partial_progress=self._config.persist_partial_progress,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_scheduler(self) -> SchedulerLoop:
        if self.scheduler is None:
            raise LiveWatchError("App not initialized. Use 'async with LiveWatchApp(...) as app:'")
        return self.scheduler

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to :meth:`SchedulerLoop.shutdown`."""
        scheduler = self._require_scheduler()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, scheduler.shutdown)

    async def run_once(self) -> bool:
        """Run a single cycle; ``True`` when it succeeded."""
        scheduler = self._require_scheduler()
        await scheduler.run_once()
        return scheduler.backoff_ms == 0

    async def run(self) -> None:
        scheduler = self._require_scheduler()
        _logger.info(
            "Twitch → Discord webhook notifier started for %d channel(s).",
            len(self._config.streamers),
        )
        await scheduler.run()
