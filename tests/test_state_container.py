import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Optional

from jobboard.client.state import StateContainer
from jobboard.shared.errors import RemoteFailure

from conftest import drain


@dataclass(frozen=True)
class CounterState:
    count: int = 0
    loading: bool = False
    error: Optional[str] = None


def test_update_applies_reducers_to_freshest_state() -> None:
    container = StateContainer(CounterState())
    container.update(lambda s: replace(s, count=s.count + 1))
    container.update(lambda s: replace(s, count=s.count * 10))
    assert container.current.count == 10


def test_observers_see_changes_only() -> None:
    container = StateContainer(CounterState())
    seen = []
    loading_seen = []
    container.observe(seen.append)
    container.observe_loading(loading_seen.append)

    container.update(lambda s: s)
    container.update(lambda s: replace(s, count=1))
    container.set_loading(True)
    container.set_loading(True)
    container.update(lambda s: replace(s, count=2))

    assert [s.count for s in seen] == [1, 1, 2]
    assert loading_seen == [True]


def test_unsubscribe_stops_notifications() -> None:
    container = StateContainer(CounterState())
    seen = []
    unsubscribe = container.observe(seen.append)
    container.update(lambda s: replace(s, count=1))
    unsubscribe()
    container.update(lambda s: replace(s, count=2))
    assert len(seen) == 1


def test_run_supervised_folds_failure_into_error() -> None:
    async def scenario() -> CounterState:
        container = StateContainer(CounterState(loading=True))
        errors = []
        container.observe_error(errors.append)

        async def boom() -> None:
            raise RemoteFailure("network down")

        task = container.run_supervised(boom)
        await task
        assert errors == ["network down"]
        return container.current

    state = asyncio.run(scenario())
    assert state.error == "network down"
    assert state.loading is False


def test_run_supervised_uses_fallback_message() -> None:
    async def scenario() -> CounterState:
        container = StateContainer(CounterState())

        async def silent() -> None:
            raise RuntimeError()

        await container.run_supervised(silent)
        return container.current

    assert asyncio.run(scenario()).error == "Unknown error occurred"


def test_failure_in_one_container_does_not_touch_another() -> None:
    async def scenario():
        failing = StateContainer(CounterState(), name="a")
        healthy = StateContainer(CounterState(), name="b")

        async def boom() -> None:
            raise ValueError("bad")

        async def work() -> None:
            await asyncio.sleep(0)
            healthy.update(lambda s: replace(s, count=5))

        await asyncio.gather(failing.run_supervised(boom), healthy.run_supervised(work))
        return failing.current, healthy.current

    failing, healthy = asyncio.run(scenario())
    assert failing.error == "bad"
    assert healthy == CounterState(count=5)


def test_clear_error_is_noop_when_already_clear() -> None:
    container = StateContainer(CounterState())
    before = container.current
    seen = []
    container.observe(seen.append)
    container.clear_error()
    assert container.current is before
    assert seen == []


def test_close_cancels_owned_tasks() -> None:
    async def scenario():
        container = StateContainer(CounterState())
        started = asyncio.Event()

        async def forever() -> None:
            started.set()
            await asyncio.Event().wait()

        task = container.run_supervised(forever)
        await started.wait()
        assert container.active_tasks == 1
        await container.close()
        await drain()
        return task, container

    task, container = asyncio.run(scenario())
    assert task.cancelled()
    assert container.active_tasks == 0
    assert container.error is None


def test_supervised_failure_log_names_failure_kind(caplog) -> None:
    async def scenario() -> None:
        container = StateContainer(CounterState(), name="chat")

        async def boom() -> None:
            raise RemoteFailure("permission denied")

        async def crash() -> None:
            raise KeyError("rooms")

        await container.run_supervised(boom)
        await container.run_supervised(crash)

    with caplog.at_level(logging.WARNING, logger="jobboard.client.state"):
        asyncio.run(scenario())
    assert "chat: supervised task failed [remote]: permission denied" in caplog.text
    assert "[unexpected]" in caplog.text
