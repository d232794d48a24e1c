"""Cancellable deferred callbacks for paced opponent moves."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay and cancel it again."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ScheduledTask:
    """A deferred callback that is a no-op once cancelled, even if it still fires."""

    def __init__(self, callback: Callable[[], None], owner: object | None = None, name: str = "task") -> None:
        self._callback = callback
        self._handle: Cancellable | None = None
        self.owner = owner
        self.name = name
        self.cancelled = False
        self.done = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.done)

    def schedule(self, scheduler: Scheduler, delay: float) -> ScheduledTask:
        if self._handle is not None:
            raise RuntimeError(f"{self.name} is already scheduled.")
        self._handle = scheduler.call_later(delay, self._run)
        return self

    def cancel(self) -> bool:
        """Cancel the task; returns False if it had already run or been cancelled."""
        if not self.pending:
            return False
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
        logger.debug("task_cancelled", extra={"task": self.name})
        return True

    def _run(self) -> None:
        if not self.pending:
            return
        self.done = True
        self._callback()


class AsyncioScheduler:
    """Runs callbacks on an asyncio event loop via ``loop.call_later``.

    Without an explicit ``loop`` the running loop is bound at construction,
    so building one outside a loop raises ``RuntimeError`` straight away.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(delay, callback)


class ManualHandle:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock; callbacks only run when :meth:`advance` moves time past them."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._sequence = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.due, next(self._sequence), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def next_due(self) -> float | None:
        live = [due for due, _, handle in self._queue if not handle.cancelled]
        return min(live) if live else None

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running due callbacks in order. Returns how many ran."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        self.now = target
        return fired

    def run_all(self) -> int:
        """Run everything queued, including callbacks scheduled along the way."""
        fired = 0
        while (due := self.next_due()) is not None:
            fired += self.advance(due - self.now)
        return fired
