"""Timer hosts that drive the step scheduler.

A timer host offers ``call_later(delay_seconds, callback)`` returning a handle
with ``cancel()``, plus ``now()`` in seconds. ``asyncio`` event loops fit the
contract through :class:`AsyncioTimerHost`; tests and offline bounces use
:class:`ManualClock`, which only moves when told to.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import heapq
import itertools
from typing import Any, Callable, List, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerHost(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def now(self) -> float: ...


@dataclass(order=True)
class ManualTimer:
    """Pending callback registered on a :class:`ManualClock`."""

    due: float
    sequence: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(default=(), compare=False)
    cancelled: bool = field(default=False, compare=False)
    clock: "ManualClock | None" = field(default=None, compare=False, repr=False)

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self.clock is not None:
            self.clock.cancelled_count += 1


class ManualClock:
    """Virtual clock for deterministic scheduling."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._timers: List[ManualTimer] = []
        self._sequence = itertools.count()
        self.cancelled_count = 0

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(
            due=self._now + max(0.0, float(delay)),
            sequence=next(self._sequence),
            callback=callback,
            args=args,
            clock=self,
        )
        heapq.heappush(self._timers, timer)
        return timer

    def pending(self) -> List[ManualTimer]:
        """Return live timers ordered by due time."""

        return sorted(timer for timer in self._timers if not timer.cancelled)

    def next_due(self) -> float | None:
        live = self.pending()
        return live[0].due if live else None

    def advance(self, seconds: float) -> int:
        """Move time forward, firing due timers in order; returns how many fired."""

        target = self._now + max(0.0, float(seconds))
        fired = 0
        while self._timers and self._timers[0].due <= target + 1e-12:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self._now = max(self._now, timer.due)
            timer.callback(*timer.args)
            fired += 1
        self._now = target
        return fired

    def advance_ms(self, milliseconds: float) -> int:
        return self.advance(milliseconds / 1000.0)


class AsyncioTimerHost:
    """Adapter scheduling callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback, *args)

    def now(self) -> float:
        return self.loop.time()


__all__ = [
    "AsyncioTimerHost",
    "ManualClock",
    "ManualTimer",
    "TimerHandle",
    "TimerHost",
]
