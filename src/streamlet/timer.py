"""Timers and tick publishers.

Time comes from a :class:`Timer`. Two implementations are provided:

1. **Scaled** (:class:`ScaledTimer`): wall clock, optionally sped up or
   slowed down.
2. **Fast-forward** (:class:`FastForwardTimer`): a :class:`VirtualClock`
   that jumps straight to the next wake-up, so periodic work runs
   instantly. The playground selects it with a speed of ``inf``.

:func:`create_timer` picks one of the two from a speed multiplier.

On top of a timer:

- :class:`TimerPublisher` is a connectable publisher of tick timestamps.
- :func:`schedule_repeating` and :func:`schedule_once` run plain callbacks
  and return an :class:`~streamlet.pubsub.AnyCancellable`.

All of these run as tasks on the running asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from heapq import heappop, heappush
from time import time_ns
from typing import Protocol, runtime_checkable

from .multicast import ConnectablePublisher
from .pubsub import AnyCancellable, Subscriber
from .subjects import PassthroughSubject

logger = logging.getLogger(__name__)


# =============================================================================
# Timer Protocol
# =============================================================================


@runtime_checkable
class Timer(Protocol):
    """Protocol for time access.

    Example:
        >>> async for t in timer.periodic(1.0):
        ...     print(f"Tick at {t}")
    """

    def time_ns(self) -> int:
        """Get current time in nanoseconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Sleep for the specified duration."""
        ...

    async def sleep_until(self, target_ns: int) -> None:
        """Sleep until the specified timestamp (no-op if already past)."""
        ...

    def periodic(self, period: float) -> AsyncIterator[int]:
        """Return an async iterator that yields timestamps at regular intervals.

        The first yield happens after one period has elapsed.
        """
        ...


class TimerBase(ABC):
    """Base class for Timer implementations with shared periodic logic."""

    @abstractmethod
    def time_ns(self) -> int:
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        ...

    @abstractmethod
    async def sleep_until(self, target_ns: int) -> None:
        ...

    async def periodic(self, period: float) -> AsyncIterator[int]:
        """Yield timestamps every ``period`` seconds without drifting.

        Each tick is scheduled relative to the previous target, not to the
        time the previous tick was handled.
        """
        period_ns = int(period * 1_000_000_000)
        next_tick = self.time_ns() + period_ns

        while True:
            await self.sleep_until(next_tick)
            yield self.time_ns()
            next_tick += period_ns


# =============================================================================
# Virtual Clock
# =============================================================================


@dataclass(order=True)
class _ScheduledEvent:
    """A pending event in the virtual clock's priority queue."""

    timestamp: int
    seq: int = field(compare=True)
    future: asyncio.Future = field(compare=False)


class VirtualClock:
    """Clock for fast-forwarded runs: time jumps to the earliest pending wake-up.

    Every sleeper registers a wake-up time with :meth:`schedule`, gives the
    other tasks one loop iteration to register theirs, then releases the
    earliest live wake-up. Wake-ups whose sleeper was cancelled are dropped
    without moving the clock.

    Example:
        >>> clock = VirtualClock(start_time=0)
        >>> timer = FastForwardTimer(clock)
        >>> await timer.sleep(60.0)  # returns immediately
        >>> clock.now()
        60000000000
    """

    def __init__(self, start_time: int = 0):
        self._time: int = start_time
        self._events: list[_ScheduledEvent] = []
        self._seq: int = 0

    def now(self) -> int:
        """Current virtual time in nanoseconds."""
        return self._time

    async def schedule(self, timestamp: int) -> None:
        """Wait until virtual time reaches ``timestamp``."""
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heappush(self._events, _ScheduledEvent(timestamp=timestamp, seq=self._seq, future=future))
        self._seq += 1
        try:
            await asyncio.sleep(0)
            self._release_next()
            await future
        finally:
            if not future.done():
                future.cancel()

    def _release_next(self) -> bool:
        while self._events:
            event = heappop(self._events)
            if event.future.done():
                continue
            self._time = max(self._time, event.timestamp)
            event.future.set_result(None)
            return True
        return False

    def pending_count(self) -> int:
        """Number of wake-ups still queued, including cancelled ones."""
        return len(self._events)

    async def flush(self) -> None:
        """Release every pending wake-up in timestamp order."""
        while self._release_next():
            await asyncio.sleep(0)


# =============================================================================
# Timer Implementations
# =============================================================================


class ScaledTimer(TimerBase):
    """Wall-clock timer with optional speed scaling.

    Args:
        speed: Multiplier applied to elapsed time. 1.0 is real time, 2.0
            halves every sleep.
        start_time: Initial time in nanoseconds. Defaults to now.
    """

    def __init__(self, speed: float = 1.0, start_time: int | None = None):
        if speed <= 0:
            raise ValueError(f"Speed must be positive, got {speed}")
        self._speed = speed
        self._start_real = time_ns()
        self._start_virtual = start_time if start_time is not None else self._start_real

    def time_ns(self) -> int:
        elapsed_real = time_ns() - self._start_real
        return self._start_virtual + int(elapsed_real * self._speed)

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        await asyncio.sleep(seconds / self._speed)

    async def sleep_until(self, target_ns: int) -> None:
        current = self.time_ns()
        if target_ns > current:
            await asyncio.sleep((target_ns - current) / self._speed / 1_000_000_000)


class FastForwardTimer(TimerBase):
    """Timer whose sleeps are events on a :class:`VirtualClock`."""

    def __init__(self, clock: VirtualClock):
        self._clock = clock

    @property
    def clock(self) -> VirtualClock:
        return self._clock

    def time_ns(self) -> int:
        return self._clock.now()

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        await self._clock.schedule(self._clock.now() + int(seconds * 1_000_000_000))

    async def sleep_until(self, target_ns: int) -> None:
        if target_ns <= self._clock.now():
            return
        await self._clock.schedule(target_ns)


def create_timer(
    speed: float = 1.0,
    clock: VirtualClock | None = None,
    start_time: int | None = None,
) -> TimerBase:
    """Pick the time source for a speed multiplier.

    A finite ``speed`` gives a :class:`ScaledTimer`. ``speed=float("inf")``
    fast-forwards on ``clock``, or on a new :class:`VirtualClock` starting at
    ``start_time`` (default 0) when no clock is passed.

    Raises:
        ValueError: If speed is not positive, or a clock is passed with a
            finite speed.
    """
    if speed == float("inf"):
        if clock is None:
            clock = VirtualClock(start_time or 0)
        return FastForwardTimer(clock)
    if clock is not None:
        raise ValueError(f"A VirtualClock only applies to speed=inf, got speed={speed}")
    return ScaledTimer(speed, start_time)


# =============================================================================
# Scheduling
# =============================================================================


def _validate(interval: float, tolerance: float) -> None:
    if interval <= 0:
        raise ValueError(f"Interval must be positive, got {interval}")
    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")


def _spawn(coro, name: str) -> asyncio.Task[None]:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise RuntimeError(f"{name} needs a running asyncio event loop") from None
    return loop.create_task(coro, name=name)


def _task_cancellable(task: asyncio.Task[None]) -> AnyCancellable:
    def cancel() -> None:
        if not task.done():
            task.cancel()

    return AnyCancellable(cancel)


def schedule_repeating(
    interval: float,
    action: Callable[[], None],
    *,
    after: float = 0.0,
    tolerance: float = 0.0,
    timer: TimerBase | None = None,
) -> AnyCancellable:
    """Call ``action`` every ``interval`` seconds, first after ``after`` seconds.

    ``tolerance`` is advisory: it is validated and kept for callers but the
    asyncio loop fires as close to the target time as it can.

    Example:
        >>> cancellable = schedule_repeating(1.0, lambda: print("Timer fired"))
        >>> schedule_once(3.0, cancellable.cancel)
    """
    _validate(interval, tolerance)
    timer = timer or ScaledTimer()

    async def run() -> None:
        await timer.sleep(after)
        action()
        async for _ in timer.periodic(interval):
            action()

    return _task_cancellable(_spawn(run(), "schedule_repeating"))


def schedule_once(
    delay: float,
    action: Callable[[], None],
    *,
    timer: TimerBase | None = None,
) -> AnyCancellable:
    """Call ``action`` once after ``delay`` seconds."""
    timer = timer or ScaledTimer()

    async def run() -> None:
        await timer.sleep(delay)
        action()

    return _task_cancellable(_spawn(run(), "schedule_once"))


# =============================================================================
# Tick publisher
# =============================================================================


class TimerPublisher(ConnectablePublisher[int]):
    """Publishes a timestamp (nanoseconds) every ``interval`` seconds.

    Nothing ticks until :meth:`connect` (or the first subscriber of
    :meth:`autoconnect`). Subscribers without demand miss ticks.

    Example:
        >>> ticks = TimerPublisher(1.0).autoconnect()
        >>> ticks.scan(0, lambda count, _: count + 1).sink(print)
    """

    def __init__(self, interval: float, timer: TimerBase | None = None, tolerance: float = 0.0) -> None:
        _validate(interval, tolerance)
        self.interval = interval
        self.tolerance = tolerance
        self.timer = timer or ScaledTimer()
        self._subject: PassthroughSubject[int] = PassthroughSubject()
        self._connection: AnyCancellable | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_cancelled

    def subscribe(self, subscriber: Subscriber[int]) -> None:
        self._subject.subscribe(subscriber)

    def connect(self) -> AnyCancellable:
        if self.is_connected:
            assert self._connection is not None
            return self._connection
        logger.debug("Starting timer every %ss (tolerance %ss)", self.interval, self.tolerance)
        task = _spawn(self._tick(), f"timer every {self.interval}s")
        self._connection = _task_cancellable(task)
        return self._connection

    async def _tick(self) -> None:
        async for timestamp in self.timer.periodic(self.interval):
            self._subject.send(timestamp)
