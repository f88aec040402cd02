"""
Scheduler - Cooperative delayed callbacks.

The engine never blocks. Every suspension (timer tick, show/settle
delay, power-up reveal, asset timeout) is a callback scheduled on a
Scheduler:

- ManualScheduler: virtual clock advanced explicitly (tests, replays)
- AsyncioScheduler: the running asyncio event loop (API server)

ScheduledTasks is the set of callbacks owned by one controller. It
carries a generation token; cancel_all() cancels every pending handle
and bumps the token, and any callback that still fires with an older
token is dropped instead of touching the new game.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable
import asyncio
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)


class Handle(ABC):
    """A cancellable scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        ...

    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Interface for scheduling delayed callbacks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> Handle:
        """Run callback after delay seconds."""
        ...

    @abstractmethod
    def time(self) -> float:
        """Current scheduler time in seconds."""
        ...


# =============================================================================
# Manual (virtual clock)
# =============================================================================

@dataclass(order=True)
class _ManualEntry:
    when: float
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    _cancelled: bool = field(default=False, compare=False)


class ManualHandle(Handle):
    def __init__(self, entry: _ManualEntry):
        self._entry = entry

    def cancel(self) -> None:
        self._entry._cancelled = True

    def cancelled(self) -> bool:
        return self._entry._cancelled


class ManualScheduler(Scheduler):
    """
    Scheduler driven by an explicit virtual clock.

    Usage:
        scheduler = ManualScheduler()
        scheduler.call_later(1.0, callback)
        scheduler.advance(1.0)   # runs callback
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[_ManualEntry] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], Any]) -> Handle:
        entry = _ManualEntry(
            when=self._now + max(0.0, delay),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._queue, entry)
        return ManualHandle(entry)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running every callback that comes due.

        Callbacks scheduled while advancing run too if they fall inside
        the window. Returns the number of callbacks run.
        """
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0].when <= target + 1e-9:
            entry = heapq.heappop(self._queue)
            if entry._cancelled:
                continue
            self._now = max(self._now, entry.when)
            entry.callback()
            ran += 1
        self._now = target
        return ran

    def run_until_idle(self, limit: float = 3600.0) -> int:
        """Advance until no callbacks remain (bounded by limit seconds)."""
        ran = 0
        deadline = self._now + limit
        while self.pending() and self._now < deadline:
            next_when = min(e.when for e in self._queue if not e._cancelled)
            ran += self.advance(max(0.0, next_when - self._now))
        return ran

    def pending(self) -> int:
        """Number of live (non-cancelled) callbacks."""
        return sum(1 for e in self._queue if not e._cancelled)


# =============================================================================
# asyncio
# =============================================================================

class AsyncioHandle(Handle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    The loop is resolved lazily so the scheduler can be created outside
    a running loop (e.g. at app construction) and used inside it.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> Handle:
        return AsyncioHandle(self.loop.call_later(max(0.0, delay), callback))


# =============================================================================
# Owned task set with generation guard
# =============================================================================

class ScheduledTasks:
    """
    The delayed callbacks owned by one game controller.

    Every callback is bound to the generation current when it was
    scheduled. cancel_all() moves to a new generation, so anything that
    escapes cancellation (an asset load finishing late, a handle that
    already fired into the loop queue) is discarded at fire time.
    """

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self.generation = 0
        self._handles: set[Handle] = set()

    def schedule(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle:
        """Schedule callback(*args) after delay, guarded by the current generation."""
        generation = self.generation
        handle: Handle | None = None

        def _fire():
            self._handles.discard(handle)
            if generation != self.generation:
                logger.debug(f"Dropping stale callback {getattr(callback, '__name__', callback)} "
                             f"(generation {generation}, current {self.generation})")
                return
            callback(*args)

        handle = self.scheduler.call_later(delay, _fire)
        self._handles.add(handle)
        return handle

    def guard(self, callback: Callable[..., Any]) -> Callable[..., None]:
        """
        Wrap a callback invoked by someone else (e.g. an asset loader)
        so it only runs if the generation is unchanged.
        """
        generation = self.generation

        def _guarded(*args: Any, **kwargs: Any) -> None:
            if generation != self.generation:
                logger.debug(f"Dropping stale completion for generation {generation}")
                return
            callback(*args, **kwargs)

        return _guarded

    def cancel(self, handle: Handle | None):
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self) -> int:
        """Cancel every pending callback and start a new generation."""
        count = len(self._handles)
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()
        self.generation += 1
        return count

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled())
