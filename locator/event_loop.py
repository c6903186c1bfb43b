"""Single-threaded cooperative scheduler with a virtual clock.

Every asynchronous step of the locator (fetch completion, geolocation,
camera transitions, layout-settle timers) is a callback scheduled here, so
the whole application can be driven deterministically from tests or the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(order=True)
class TimerHandle:
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple[Any, ...] = field(compare=False, default=())
    cancelled: bool = field(compare=False, default=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventLoop:
    def __init__(self, start_time: float = 0.0) -> None:
        self._time = start_time
        self._queue: list[TimerHandle] = []
        self._counter = itertools.count()

    @property
    def time(self) -> float:
        return self._time

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.call_later(0.0, callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = TimerHandle(self._time + max(0.0, delay), next(self._counter), callback, args)
        heapq.heappush(self._queue, handle)
        return handle

    def pending(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """Run every callback due within the next ``seconds`` and move the clock."""
        deadline = self._time + max(0.0, seconds)
        ran = 0
        while self._queue and self._queue[0].when <= deadline:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._time = max(self._time, handle.when)
            handle.callback(*handle.args)
            ran += 1
        self._time = deadline
        return ran

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        ran = 0
        while self._queue:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._time = max(self._time, handle.when)
            handle.callback(*handle.args)
            ran += 1
            if ran >= max_callbacks:
                logger.warning("Event loop stopped after %s callbacks with work still queued", ran)
                break
        return ran
