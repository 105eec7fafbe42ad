from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

import pytest

from livewatch._storage import MemoryBackend
from livewatch.exceptions import AuthError, CycleInterruptedError, DispatchError
from livewatch.scheduler import SchedulerLoop, SchedulerState, next_backoff_ms
from livewatch.state.store import LiveState, StateStore


class _ScriptedEngine:
    """Returns or raises the queued outcomes in order."""

    def __init__(self, *outcomes: LiveState | BaseException) -> None:
        self._outcomes = list(outcomes)
        self.priors: list[dict[str, bool]] = []
        self.progress: LiveState = {}

    async def run_cycle(self, configured_names: Sequence[str], prior_state: Mapping[str, bool]) -> LiveState:
        self.priors.append(dict(prior_state))
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return dict(outcome)


class _BlockingEngine:
    """Reports *progress* and then hangs until cancelled."""

    def __init__(self, progress: LiveState | None = None) -> None:
        self.started = asyncio.Event()
        self.cancelled = False
        self.progress: LiveState = dict(progress or {})

    async def run_cycle(self, configured_names: Sequence[str], prior_state: Mapping[str, bool]) -> LiveState:
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return {}


def _store(data: dict[str, bool] | None = None) -> tuple[StateStore, MemoryBackend]:
    backend = MemoryBackend(data)
    store = StateStore(backend)
    store.load()
    return store, backend


def test_next_backoff_doubles_with_floor_and_cap() -> None:
    assert next_backoff_ms(0) == 5_000
    assert next_backoff_ms(5_000) == 10_000
    assert next_backoff_ms(10_000) == 20_000
    assert next_backoff_ms(200_000) == 300_000
    assert next_backoff_ms(300_000) == 300_000


@pytest.mark.asyncio
async def test_three_failures_then_success_resets_delay() -> None:
    engine = _ScriptedEngine(
        AuthError("token endpoint down"),
        AuthError("token endpoint down"),
        DispatchError("HTTP 500"),
        {"a": True},
    )
    store, backend = _store()
    loop = SchedulerLoop(engine, store, ["a"], interval_ms=90_000)

    delays = [await loop.run_once() for _ in range(4)]

    assert delays == [5_000, 10_000, 20_000, 90_000]
    assert loop.backoff_ms == 0
    assert backend.data == {"a": True}
    assert backend.writes == 1


@pytest.mark.asyncio
async def test_success_persists_state_and_feeds_next_cycle() -> None:
    engine = _ScriptedEngine({"a": True, "b": False}, {"a": True, "b": False})
    store, backend = _store({"a": False, "b": True})
    loop = SchedulerLoop(engine, store, ["a", "b"], interval_ms=1_000)

    await loop.run_once()
    await loop.run_once()

    assert engine.priors == [{"a": False, "b": True}, {"a": True, "b": False}]
    assert backend.data == {"a": True, "b": False}
    assert loop.state is SchedulerState.AWAITING_DELAY


@pytest.mark.asyncio
async def test_failed_cycle_does_not_persist() -> None:
    engine = _ScriptedEngine(AuthError("nope"))
    store, backend = _store({"a": False})
    loop = SchedulerLoop(engine, store, ["a"], interval_ms=1_000)

    await loop.run_once()

    assert backend.writes == 0
    assert store.state == {"a": False}


@pytest.mark.asyncio
async def test_interrupted_cycle_persists_partial_progress() -> None:
    interrupted = CycleInterruptedError("b failed", entity="b", partial_state={"a": True})
    engine = _ScriptedEngine(interrupted)
    store, backend = _store({"a": False, "b": False})
    loop = SchedulerLoop(engine, store, ["a", "b"], interval_ms=1_000)

    delay = await loop.run_once()

    assert delay == 5_000
    assert backend.data == {"a": True, "b": False}


@pytest.mark.asyncio
async def test_interrupted_cycle_discards_progress_when_disabled() -> None:
    interrupted = CycleInterruptedError("b failed", entity="b", partial_state={"a": True})
    engine = _ScriptedEngine(interrupted)
    store, backend = _store({"a": False, "b": False})
    loop = SchedulerLoop(engine, store, ["a", "b"], interval_ms=1_000, persist_partial_progress=False)

    await loop.run_once()

    assert backend.writes == 0
    assert store.state == {"a": False, "b": False}


@pytest.mark.asyncio
async def test_unexpected_exception_is_contained() -> None:
    engine = _ScriptedEngine(KeyError("boom"), {"a": False})
    store, _ = _store()
    loop = SchedulerLoop(engine, store, ["a"], interval_ms=1_000)

    assert await loop.run_once() == 5_000
    assert await loop.run_once() == 1_000


@pytest.mark.asyncio
async def test_shutdown_during_cycle_saves_state_and_cancels() -> None:
    engine = _BlockingEngine()
    store, backend = _store({"a": True})
    loop = SchedulerLoop(engine, store, ["a"], interval_ms=1_000)

    runner = asyncio.create_task(loop.run())
    await asyncio.wait_for(engine.started.wait(), timeout=1.0)
    assert loop.state is SchedulerState.RUNNING

    loop.shutdown()
    await asyncio.wait_for(runner, timeout=1.0)

    assert loop.state is SchedulerState.TERMINATED
    assert engine.cancelled
    assert backend.data == {"a": True}
    assert backend.writes == 1


@pytest.mark.asyncio
async def test_shutdown_during_cycle_keeps_handled_channels() -> None:
    engine = _BlockingEngine(progress={"a": True})
    store, backend = _store({"a": False, "b": False})
    loop = SchedulerLoop(engine, store, ["a", "b"], interval_ms=1_000)

    runner = asyncio.create_task(loop.run())
    await asyncio.wait_for(engine.started.wait(), timeout=1.0)
    loop.shutdown()
    await asyncio.wait_for(runner, timeout=1.0)

    assert backend.data == {"a": True, "b": False}


@pytest.mark.asyncio
async def test_shutdown_during_cycle_drops_progress_when_disabled() -> None:
    engine = _BlockingEngine(progress={"a": True})
    store, backend = _store({"a": False, "b": False})
    loop = SchedulerLoop(engine, store, ["a", "b"], interval_ms=1_000, persist_partial_progress=False)

    runner = asyncio.create_task(loop.run())
    await asyncio.wait_for(engine.started.wait(), timeout=1.0)
    loop.shutdown()
    await asyncio.wait_for(runner, timeout=1.0)

    assert backend.data == {"a": False, "b": False}


@pytest.mark.asyncio
async def test_shutdown_while_waiting_stops_timer() -> None:
    engine = _ScriptedEngine({"a": True})
    store, backend = _store()
    loop = SchedulerLoop(engine, store, ["a"], interval_ms=60_000)

    runner = asyncio.create_task(loop.run())
    for _ in range(100):
        if loop.state is SchedulerState.AWAITING_DELAY:
            break
        await asyncio.sleep(0)
    assert loop.state is SchedulerState.AWAITING_DELAY

    loop.shutdown()
    await asyncio.wait_for(runner, timeout=1.0)

    # one save after the cycle, one on shutdown; no second cycle ran
    assert backend.writes == 2
    assert len(engine.priors) == 1
    assert await loop.run_once() == 0
