"""Scheduled callbacks on the panel's single event queue."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from ..logger import get_logger

logger = get_logger(__name__)

Callback = Callable[[], None]


class ScheduledCall:
    """Handle for a pending callback."""

    def __init__(self, when: float, callback: Callback):
        self.when = when
        self._callback = callback
        self._cancelled = False
        self._fired = False
        self._native: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True
        if self._native is not None:
            self._native.cancel()

    def _run(self) -> None:
        if not self.pending:
            return
        self._fired = True
        self._callback()


class Scheduler:
    """Base class: run a callback after a delay on the panel event queue."""

    def now(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callback) -> ScheduledCall:
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callback) -> ScheduledCall:
        loop = self._get_loop()
        call = ScheduledCall(loop.time() + max(delay, 0.0), callback)
        call._native = loop.call_later(max(delay, 0.0), call._run)
        return call


class ManualScheduler(Scheduler):
    """Deterministic clock advanced explicitly; callbacks run inside ``advance``."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> ScheduledCall:
        call = ScheduledCall(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (call.when, next(self._counter), call))
        return call

    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if call.pending)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns the count run."""

        deadline = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            when, _, call = heapq.heappop(self._queue)
            if not call.pending:
                continue
            self._now = max(self._now, when)
            call._run()
            ran += 1
        self._now = deadline
        return ran


class Ticker:
    """Repeat a callback at a fixed interval until stopped."""

    def __init__(self, scheduler: Scheduler, callback: Callback, name: str = "ticker"):
        self._scheduler = scheduler
        self._callback = callback
        self._name = name
        self._interval = 0.0
        self._handle: Optional[ScheduledCall] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, interval: float) -> None:
        self.stop()
        self._interval = max(interval, 0.0)
        self._handle = self._scheduler.call_later(self._interval, self._tick)
        logger.debug("Ticker %s started (interval=%.3fs)", self._name, self._interval)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Ticker %s stopped", self._name)

    def _tick(self) -> None:
        # Re-arm before the callback so the callback may stop the ticker.
        self._handle = self._scheduler.call_later(self._interval, self._tick)
        self._callback()
