"""Reactive per-screen state holder.

A ``StateContainer`` owns exactly one session state value.  The state is a
dataclass carrying ``loading`` and ``error`` fields; every change goes through
``update`` with a pure reducer, and listeners registered through ``observe``
see each new value.  Asynchronous work is launched with ``run_supervised`` so a
failing task ends up in ``error`` instead of propagating.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, Protocol, Set, TypeVar

from ..shared.errors import UNKNOWN_ERROR, error_message, failure_kind


class StatusState(Protocol):
    loading: bool
    error: Optional[str]


S = TypeVar("S", bound=StatusState)
V = TypeVar("V")

Listener = Callable[[Any], None]
Unsubscribe = Callable[[], None]

logger = logging.getLogger(__name__)


class StateContainer(Generic[S]):
    """Holds ``{current, loading, error}`` for one session."""

    def __init__(self, initial: S, name: str = "state"):
        self.name = name
        self._current: S = initial
        self._listeners: List[Listener] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def current(self) -> S:
        return self._current

    @property
    def loading(self) -> bool:
        return self._current.loading

    @property
    def error(self) -> Optional[str]:
        return self._current.error

    def update(self, reducer: Callable[[S], S]) -> S:
        """Apply ``reducer`` to the freshest state and notify on change."""
        previous = self._current
        new_state = reducer(previous)
        if new_state == previous:
            return previous
        self._current = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def set_loading(self, loading: bool) -> S:
        return self.update(lambda s: dataclasses.replace(s, loading=loading))

    def fail(self, message: Optional[str]) -> S:
        """Surface ``message`` and clear loading in a single update."""
        text = message or UNKNOWN_ERROR
        return self.update(lambda s: dataclasses.replace(s, loading=False, error=text))

    def clear_error(self) -> S:
        return self.update(lambda s: s if s.error is None else dataclasses.replace(s, error=None))

    def run_supervised(self, operation: Callable[[], Awaitable[None]], name: Optional[str] = None) -> asyncio.Task:
        """Run ``operation`` as a task owned by this container.

        Any exception it raises is logged and folded into ``error``; it is
        never re-raised to the caller or the event loop.
        """
        task = asyncio.get_running_loop().create_task(self._supervise(operation), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _supervise(self, operation: Callable[[], Awaitable[None]]) -> None:
        try:
            await operation()
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s: supervised task failed [%s]: %s", self.name, failure_kind(exc), exc)
            self.fail(error_message(exc))

    @property
    def active_tasks(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    async def close(self) -> None:
        """Cancel every task still owned by the container and wait for them."""
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def observe(self, listener: Callable[[S], None]) -> Unsubscribe:
        """Call ``listener`` with every new state value."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def watch(self, selector: Callable[[S], V], listener: Callable[[V], None]) -> Unsubscribe:
        """Call ``listener`` only when ``selector(state)`` changes."""
        last = [selector(self._current)]

        def on_state(state: S) -> None:
            value = selector(state)
            if value != last[0]:
                last[0] = value
                listener(value)

        return self.observe(on_state)

    def observe_loading(self, listener: Callable[[bool], None]) -> Unsubscribe:
        return self.watch(lambda s: s.loading, listener)

    def observe_error(self, listener: Callable[[Optional[str]], None]) -> Unsubscribe:
        return self.watch(lambda s: s.error, listener)
