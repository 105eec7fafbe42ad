"""Poll loop driving the reconciliation engine.

The loop is a small state machine::

    IDLE -> RUNNING -> AWAITING_DELAY -> RUNNING -> ...
    (any state) -> TERMINATED   on shutdown, after flushing the state

Cycles never overlap: the delay before the next cycle starts only after
the previous one settled. A failed cycle doubles the backoff (floor 5 s,
cap 300 s); a successful one resets it so the configured interval applies.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Protocol

from livewatch._constants import BACKOFF_CAP_MS, BACKOFF_FLOOR_MS
from livewatch.exceptions import CycleInterruptedError, LiveWatchError
from livewatch.state.store import LiveState, StateStore

_logger = logging.getLogger(__name__)


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_DELAY = "awaiting_delay"
    TERMINATED = "terminated"


class CycleRunner(Protocol):
    @property
    def progress(self) -> LiveState:
        ...

    async def run_cycle(self, configured_names: Sequence[str], prior_state: Mapping[str, bool]) -> LiveState:
        ...


def next_backoff_ms(current_ms: int) -> int:
    """Double *current_ms*, clamped to ``[BACKOFF_FLOOR_MS, BACKOFF_CAP_MS]``."""
    return min(max(current_ms * 2, BACKOFF_FLOOR_MS), BACKOFF_CAP_MS)


class SchedulerLoop:
    """Runs one cycle at a time and persists the state after each success.

    Parameters
    ----------
    engine : CycleRunner
        Usually a :class:`~livewatch.engine.ReconciliationEngine`.
    store : StateStore
        Loaded state store; the scheduler is its only writer.
    names : Sequence[str]
        Configured channel logins, in processing order.
    interval_ms : int
        Delay after a successful cycle.
    persist_partial_progress : bool
        When a cycle fails part-way, save the channels it had already
        processed so their notifications are not sent twice.
    """

    def __init__(
        self,
        engine: CycleRunner,
        store: StateStore,
        names: Sequence[str],
        *,
        interval_ms: int,
        persist_partial_progress: bool = True,
    ) -> None:
        self._engine = engine
        self._store = store
        self._names = tuple(names)
        self._interval_ms = interval_ms
        self._persist_partial = persist_partial_progress
        self._state = SchedulerState.IDLE
        self._backoff_ms = 0
        self._stop = asyncio.Event()
        self._cycle_task: asyncio.Task[int] | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def backoff_ms(self) -> int:
        return self._backoff_ms

    @property
    def next_delay_ms(self) -> int:
        return self._backoff_ms or self._interval_ms

    def _on_failure(self) -> None:
        self._backoff_ms = next_backoff_ms(self._backoff_ms)
        _logger.info("Retrying in %.1fs", self._backoff_ms / 1000)

    async def run_once(self) -> int:
        """Run a single cycle and return the delay in ms before the next one."""
        if self._state is SchedulerState.TERMINATED:
            return 0

        self._state = SchedulerState.RUNNING
        try:
            new_state = await self._engine.run_cycle(self._names, self._store.state)
            self._store.save(new_state)
        except CycleInterruptedError as exc:
            _logger.error("Loop error at %s: %s", exc.entity, exc.__cause__ or exc)
            if self._persist_partial and exc.partial_state:
                try:
                    self._store.update(exc.partial_state)
                except OSError:
                    _logger.exception("Failed to save partial progress")
                else:
                    _logger.debug("Saved partial progress for %s", ", ".join(exc.partial_state))
            self._on_failure()
        except LiveWatchError as exc:
            _logger.error("Loop error: %s", exc)
            self._on_failure()
        except Exception:
            _logger.exception("Unexpected loop error")
            self._on_failure()
        else:
            self._backoff_ms = 0

        if self._state is not SchedulerState.TERMINATED:
            self._state = SchedulerState.AWAITING_DELAY
        return self.next_delay_ms

    async def run(self) -> None:
        """Loop until :meth:`shutdown` is called."""
        while self._state is not SchedulerState.TERMINATED:
            self._cycle_task = asyncio.ensure_future(self.run_once())
            try:
                delay_ms = await self._cycle_task
            except asyncio.CancelledError:
                if self._state is SchedulerState.TERMINATED:
                    break
                raise
            finally:
                self._cycle_task = None

            if self._state is SchedulerState.TERMINATED:
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay_ms / 1000)
            except TimeoutError:
                pass

    def shutdown(self) -> None:
        """Persist the in-memory state, stop the timer and cancel any cycle.

        An in-flight cycle is not awaited. With partial progress enabled
        the channels it already handled are saved too; the rest are
        re-evaluated on the next start.
        """
        if self._state is SchedulerState.TERMINATED:
            return
        _logger.info("Shutting down, saving state...")
        self._state = SchedulerState.TERMINATED
        self._stop.set()
        in_flight = self._cycle_task is not None and not self._cycle_task.done()
        state = self._store.state
        if in_flight and self._persist_partial:
            state.update(self._engine.progress)
        try:
            self._store.save(state)
        except OSError:
            _logger.exception("Failed to save state during shutdown")
        if in_flight and self._cycle_task is not None:
            self._cycle_task.cancel()
