"""
Power-Up Controller - One "reveal all" per game.

Activation flow:
1. Guard: game active, board unlocked, not yet used this game
2. Mark used, lock the board
3. Request any image that has not loaded yet; wait for all of them
   (failures count) through a ReadinessGate
4. Reveal every tile that is still unmatched
5. After the reveal duration, conceal again, except matched tiles and
   the pending first selection, then unlock unless a pair is being
   evaluated or the game has ended
"""

from __future__ import annotations
import logging

from .state import GameSession, Tile, TileState
from .events import Renderer
from .scheduler import ScheduledTasks
from .assets import AssetTracker, ReadinessGate
from ..config import Timings

logger = logging.getLogger(__name__)


class PowerUpController:
    """Temporarily reveals the whole board once per game."""

    def __init__(
        self,
        renderer: Renderer,
        tasks: ScheduledTasks,
        assets: AssetTracker,
        timings: Timings | None = None,
    ):
        self.renderer = renderer
        self.tasks = tasks
        self.assets = assets
        self.timings = timings or Timings()

    def activate(self, session: GameSession) -> bool:
        """
        Use the power-up.

        Returns False (and does nothing) if the game is inactive, the
        board is locked, or the power-up was already used.
        """
        if not session.active or session.locked or session.power_up_used:
            logger.debug(
                f"Power-up ignored: active={session.active} locked={session.locked} "
                f"used={session.power_up_used}"
            )
            return False

        session.power_up_used = True
        session.locked = True
        self.renderer.power_up_changed(False)

        targets = session.board.unmatched()
        gate = ReadinessGate(on_ready=self.tasks.guard(lambda: self._reveal(session, targets)))
        for tile in targets:
            if not tile.asset.settled:
                gate.hold()
                self.assets.ensure(tile, on_settled=lambda ok: gate.release())
        if gate.pending:
            logger.debug(f"Power-up waiting on {gate.pending} image loads")
        gate.arm()
        return True

    def _reveal(self, session: GameSession, targets: list[Tile]):
        if not session.active:
            return
        for tile in targets:
            if tile.state == TileState.FACE_DOWN:
                tile.state = TileState.FACE_UP
                self.renderer.tile_state_changed(tile)
        self.tasks.schedule(self.timings.reveal, self._conceal, session, targets)

    def _conceal(self, session: GameSession, targets: list[Tile]):
        if not session.active:
            return
        pending = session.first_selected
        for tile in targets:
            if tile.is_matched or tile is pending:
                continue
            if tile.state == TileState.FACE_UP:
                tile.state = TileState.FACE_DOWN
                self.renderer.tile_state_changed(tile)

        # A pending first selection stays face up and must still be able to
        # receive its second click, so only an in-flight evaluation keeps the lock.
        session.locked = session.second_selected is not None
