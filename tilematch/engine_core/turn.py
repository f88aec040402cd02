"""
Turn State Machine - Selection, locking and match evaluation.

States:
    IDLE          no tile selected
    ONE_SELECTED  first tile face up, waiting for the second
    EVALUATING    board locked, pair being resolved

The board lock is the only mutual exclusion. It is set in the same call
that records the second selection, before any delayed callback is
scheduled, so no click can slip in between.

Timeline of a mismatch:
    t=0            second tile flips up, board locks
    t=show         both tiles flip down
    t=show+settle  turn slots cleared, board unlocks

Timeline of a match:
    t=0            both tiles MATCHED, pairs_matched += 1
    t=settle       turn slots cleared, board unlocks, win check
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING
import logging

from .state import GameSession, Tile, TileState
from .events import Renderer
from .scheduler import ScheduledTasks
from ..config import Timings

if TYPE_CHECKING:
    from .assets import AssetTracker

logger = logging.getLogger(__name__)


class TurnStateMachine:
    """
    Applies tile selections to a GameSession.

    Usage:
        turn = TurnStateMachine(renderer, tasks, on_win=controller.win)
        turn.select_tile(session, "25-a")
        turn.select_tile(session, "25-b")   # match, win check after settle
    """

    def __init__(
        self,
        renderer: Renderer,
        tasks: ScheduledTasks,
        on_win: Callable[[], None],
        timings: Timings | None = None,
        assets: AssetTracker | None = None,
    ):
        self.renderer = renderer
        self.tasks = tasks
        self.on_win = on_win
        self.timings = timings or Timings()
        self.assets = assets

    def select_tile(self, session: GameSession, tile_id: str) -> bool:
        """
        Handle a click on a tile.

        Returns True if the click was applied, False if it was ignored
        (inactive game, locked board, unknown tile, tile not face down,
        or a re-click on the pending first tile).
        """
        if not session.active or session.locked:
            logger.debug(f"Ignoring click on {tile_id}: active={session.active} locked={session.locked}")
            return False

        tile = session.board.get(tile_id)
        if tile is None:
            logger.debug(f"Ignoring click on unknown tile {tile_id}")
            return False

        first = session.first_selected
        if first is not None and first.tile_id == tile_id:
            # Accidental double click: no flip, no click counted, no self-match
            logger.debug(f"Ignoring re-click on pending tile {tile_id}")
            return False

        if tile.state != TileState.FACE_DOWN:
            return False

        session.clicks += 1
        self._flip(tile, TileState.FACE_UP)
        if self.assets is not None:
            self.assets.ensure(tile)
        self.renderer.stats_changed(session.stats())

        if first is None:
            session.first_selected = tile
            return True

        session.second_selected = tile
        session.locked = True
        self._evaluate(session)
        return True

    def _evaluate(self, session: GameSession):
        first, second = session.first_selected, session.second_selected
        if first.item_id == second.item_id:
            self._process_match(session, first, second)
        else:
            self._process_mismatch(session)

    def _process_match(self, session: GameSession, first: Tile, second: Tile):
        self._flip(first, TileState.MATCHED)
        self._flip(second, TileState.MATCHED)
        session.pairs_matched += 1
        self.renderer.stats_changed(session.stats())
        logger.debug(f"Matched item {first.item_id} ({session.pairs_matched}/{session.pair_count})")
        self.tasks.schedule(self.timings.settle, self._finish_turn, session)

    def _process_mismatch(self, session: GameSession):
        self.tasks.schedule(self.timings.mismatch_show, self._conceal_mismatch, session)

    def _conceal_mismatch(self, session: GameSession):
        if not session.active:
            return
        for tile in (session.first_selected, session.second_selected):
            if tile is not None and tile.state == TileState.FACE_UP:
                self._flip(tile, TileState.FACE_DOWN)
        self.tasks.schedule(self.timings.settle, self._finish_turn, session)

    def _finish_turn(self, session: GameSession):
        if not session.active:
            return
        session.clear_turn()
        session.locked = False
        if session.pairs_matched == session.pair_count:
            self.on_win()

    def _flip(self, tile: Tile, state: TileState):
        tile.state = state
        self.renderer.tile_state_changed(tile)
