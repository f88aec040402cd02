"""
Session Manager - Creates and manages player sessions.

A session is one player's seat at the table:
- Created when a client connects
- Owns a GameController, its renderer and its asset loader
- Plays any number of games (start / reset)
- Destroyed when the client leaves or goes stale

Sessions are EPHEMERAL:
- No persistence to database
- No leaderboards
- The only shared state is the process-wide catalog cache
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging
import random
import time
import uuid

from ..config import Timings, get_difficulty
from ..engine_core.events import RecordingRenderer
from ..engine_core.scheduler import Scheduler, AsyncioScheduler
from ..catalog.cache import CatalogCache, get_default_cache
from ..catalog.assets import ClientAssetLoader
from .controller import GameController

logger = logging.getLogger(__name__)

EVENT_HISTORY = 500


@dataclass
class ManagedSession:
    """
    One player's session.

    Contains:
    - The game controller (engine)
    - The renderer that records and fans out events
    - The client-side asset loader
    """
    session_id: str
    controller: GameController
    renderer: RecordingRenderer
    asset_loader: ClientAssetLoader
    created_at: float
    last_seen: float = 0.0

    # Session metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if a game is in progress."""
        return self.controller.active

    def touch(self):
        self.last_seen = time.time()


class SessionManager:
    """
    Manages player sessions.

    Responsibilities:
    - Create sessions wired to a scheduler and the catalog cache
    - Track sessions by id
    - Clean up abandoned sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(
        self,
        catalog: CatalogCache | None = None,
        scheduler_factory: Callable[[], Scheduler] = AsyncioScheduler,
        timings: Timings | None = None,
        rng_factory: Callable[[], random.Random] = random.Random,
        fetch_catalog: bool = True,
    ):
        self.catalog = catalog or get_default_cache()
        self.scheduler_factory = scheduler_factory
        self.timings = timings or Timings.from_env()
        self.rng_factory = rng_factory
        self.fetch_catalog = fetch_catalog
        self._sessions: dict[str, ManagedSession] = {}

    def create_session(self, difficulty: str | None = None) -> ManagedSession:
        """
        Create a new player session. No game is started yet.

        Raises:
            ValueError: unknown difficulty name
        """
        session_id = str(uuid.uuid4())
        scheduler = self.scheduler_factory()
        renderer = RecordingRenderer(history=EVENT_HISTORY)
        asset_loader = ClientAssetLoader(
            scheduler,
            on_request=renderer.asset_requested,
            timeout=self.timings.asset_timeout,
        )
        controller = GameController(
            renderer=renderer,
            scheduler=scheduler,
            catalog=self.catalog,
            asset_loader=asset_loader,
            timings=self.timings,
            rng=self.rng_factory(),
            fetch_catalog=self.fetch_catalog,
        )
        if difficulty is not None:
            controller.difficulty = get_difficulty(difficulty)

        now = time.time()
        session = ManagedSession(
            session_id=session_id,
            controller=controller,
            renderer=renderer,
            asset_loader=asset_loader,
            created_at=now,
            last_seen=now,
        )
        self._sessions[session_id] = session
        logger.info(f"Session created: {session_id}")
        return session

    def get_session(self, session_id: str) -> ManagedSession | None:
        """Get a session by ID."""
        session = self._sessions.get(session_id)
        if session:
            session.touch()
        return session

    def end_session(self, session_id: str) -> bool:
        """
        End a session and clean up.

        Any game in progress is abandoned: its timer and delayed
        callbacks are cancelled so nothing fires after removal.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False

        controller = session.controller
        controller.timer.stop()
        controller.tasks.cancel_all()
        if controller.session is not None:
            controller.session.active = False
            controller.session.locked = True
        logger.info(f"Session ended: {session_id}")
        return True

    def list_sessions(self) -> list[str]:
        """List IDs of every session."""
        return list(self._sessions)

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions with a game in progress."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove sessions idle for longer than max_age with no game running.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.last_seen > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id)
        return len(to_remove)
