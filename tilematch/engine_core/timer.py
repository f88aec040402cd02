"""
Timer Controller - One countdown per game.

Ticks once per `Timings.tick` seconds through the owning ScheduledTasks,
so cancelling the task set on reset also silences the timer. Expiry is
signalled exactly once; after that the timer stays stopped.
"""

from __future__ import annotations
from typing import Callable
import logging

from .state import GameSession
from .scheduler import Handle, ScheduledTasks
from ..config import Timings

logger = logging.getLogger(__name__)


class TimerController:
    """
    Countdown clock.

    Attributes:
        on_tick:   called with the new time_left after every tick
        on_expire: called once when time_left reaches 0 in an active game
    """

    def __init__(
        self,
        tasks: ScheduledTasks,
        on_expire: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
        timings: Timings | None = None,
    ):
        self.tasks = tasks
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.timings = timings or Timings()
        self._handle: Handle | None = None
        self._session: GameSession | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, session: GameSession, total_seconds: int):
        """Set the remaining time and start ticking (restarts if running)."""
        self.stop()
        self._session = session
        session.time_left = int(total_seconds)
        self._schedule_tick()

    def stop(self):
        """Cancel ticking. Safe to call any number of times."""
        if self._handle is not None:
            self.tasks.cancel(self._handle)
            self._handle = None

    def tick(self) -> int:
        """
        Advance the clock by one tick.

        Returns the new time_left. Fires on_expire when it reaches 0
        while the game is active.
        """
        session = self._session
        if session is None:
            return 0

        self.stop()
        if not session.active:
            return session.time_left

        session.time_left = max(0, session.time_left - 1)
        if self.on_tick:
            self.on_tick(session.time_left)

        if session.time_left <= 0:
            self.stop()
            if session.active:
                logger.info(f"Timer expired (generation {session.generation})")
                self.on_expire()
        else:
            self._schedule_tick()
        return session.time_left

    def _schedule_tick(self):
        self._handle = self.tasks.schedule(self.timings.tick, self.tick)
