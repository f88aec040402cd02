"""
Game Controller - Wires deck, turn, timer and power-up into one game.

LIFECYCLE:
1. start(difficulty) -> cancel everything from the previous game,
   build a deck, deal the board, start the timer, re-arm the power-up
2. select_tile / activate_power_up while the game is active
3. end(WIN) when the last pair settles, end(TIMEOUT) when the clock
   runs out; whichever comes first wins, the other is a no-op
4. reset() / start() again for a fresh game

A failed deck build (catalog down, empty catalog) is reported to the
renderer and leaves the game inactive; it never raises to the caller.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging
import random

from ..config import DEFAULT_DIFFICULTY, Difficulty, Timings, get_difficulty, format_time
from ..engine_core.state import GameSession, Board, EndReason, Stats
from ..engine_core.errors import TileMatchError, CatalogUnavailable, EmptyDeck
from ..engine_core.events import Renderer, MessageKind
from ..engine_core.scheduler import Scheduler, ScheduledTasks
from ..engine_core.assets import AssetLoader, AssetTracker
from ..engine_core.deck import DeckBuilder
from ..engine_core.turn import TurnStateMachine
from ..engine_core.timer import TimerController
from ..engine_core.power_up import PowerUpController
from ..catalog.assets import PreloadedAssetLoader

if TYPE_CHECKING:
    from ..catalog.cache import CatalogCache

logger = logging.getLogger(__name__)

WIN_MESSAGE = "You Won!"
WIN_DETAIL = "Congratulations! You matched all the pairs! You WIN!"
TIMEOUT_MESSAGE = "Game Over!"
TIMEOUT_DETAIL = "Time's up! You LOST! Better luck next time!"


class GameController:
    """
    Top-level orchestrator for one player's games.

    Usage:
        controller = GameController(renderer, scheduler, catalog)
        controller.start("easy")
        controller.select_tile("25-a")
        controller.activate_power_up()
    """

    def __init__(
        self,
        renderer: Renderer,
        scheduler: Scheduler,
        catalog: CatalogCache,
        asset_loader: AssetLoader | None = None,
        timings: Timings | None = None,
        rng: random.Random | None = None,
        fetch_catalog: bool = True,
    ):
        self.renderer = renderer
        self.timings = timings or Timings()
        self.tasks = ScheduledTasks(scheduler)
        self.assets = AssetTracker(asset_loader or PreloadedAssetLoader())
        self.deck_builder = DeckBuilder(
            catalog=catalog, rng=rng or random.Random(), fetch=fetch_catalog
        )

        self.turn = TurnStateMachine(
            renderer, self.tasks, on_win=self._on_win, timings=self.timings, assets=self.assets
        )
        self.timer = TimerController(
            self.tasks, on_expire=self._on_expire, on_tick=self._on_tick, timings=self.timings
        )
        self.power_up = PowerUpController(renderer, self.tasks, self.assets, timings=self.timings)

        self.difficulty: Difficulty = get_difficulty(DEFAULT_DIFFICULTY)
        self.session: GameSession | None = None
        self.theme = "light"
        self.last_error: TileMatchError | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def active(self) -> bool:
        return self.session is not None and self.session.active

    def start(self, difficulty: str | Difficulty | None = None) -> bool:
        """
        Start a new game. Any game in progress is abandoned.

        Returns True if the game is running, False if the deck could
        not be built (the reason is reported as an error message).

        Raises:
            ValueError: unknown difficulty name
        """
        if difficulty is not None:
            self.difficulty = get_difficulty(difficulty)
        preset = self.difficulty

        self.timer.stop()
        self.tasks.cancel_all()
        self.assets.reset()

        session = GameSession(
            generation=self.tasks.generation,
            difficulty=preset.name,
            pair_count=preset.pairs,
            time_left=preset.seconds,
        )
        self.session = session

        self.renderer.message("Loading Tiles...")

        try:
            deck = self.deck_builder.build_deck(preset.pairs)
        except (CatalogUnavailable, EmptyDeck) as e:
            logger.error(f"Could not start {preset.name} game: {e}")
            self.last_error = e
            session.locked = True
            self.renderer.power_up_changed(False)
            self.renderer.message(_failure_message(e), MessageKind.ERROR)
            return False

        self.last_error = None
        session.pair_count = deck.pair_count
        session.board = Board(deck.tiles)
        session.active = True

        self.renderer.board_layout(deck.pair_count)
        self.renderer.tiles_dealt(session.board)
        self.timer.start(session, preset.seconds)
        self.renderer.stats_changed(session.stats())
        self.renderer.power_up_changed(True)
        if deck.notice:
            self.renderer.message(deck.notice)
        self.renderer.message("Match 'em All!")

        logger.info(
            f"Started {preset.name} game: {deck.pair_count} pairs, {preset.seconds}s "
            f"(generation {session.generation})"
        )
        return True

    def reset(self) -> bool:
        """Start over with the current difficulty."""
        return self.start()

    def end(self, reason: EndReason) -> bool:
        """
        End the current game. Idempotent: returns False and changes
        nothing if there is no active game.
        """
        session = self.session
        if session is None or not session.active:
            return False

        session.active = False
        session.end_reason = reason
        self.timer.stop()
        self.tasks.cancel_all()
        session.locked = True
        self.renderer.power_up_changed(False)

        # Matched tiles stay face up on the final board
        for tile in session.board.matched():
            self.renderer.tile_state_changed(tile)

        if reason == EndReason.WIN:
            self.renderer.message(WIN_MESSAGE, MessageKind.SUCCESS)
            self.renderer.message(WIN_DETAIL, MessageKind.SUCCESS)
        else:
            session.time_left = 0
            self.renderer.stats_changed(session.stats())
            self.renderer.message(TIMEOUT_MESSAGE, MessageKind.ERROR)
            self.renderer.message(TIMEOUT_DETAIL, MessageKind.ERROR)

        self.renderer.game_over(reason, session.stats())
        logger.info(
            f"Game over ({reason.value}): {session.pairs_matched}/{session.pair_count} pairs, "
            f"{session.clicks} clicks, {format_time(session.time_left)} left"
        )
        return True

    # =========================================================================
    # Input surface
    # =========================================================================

    def select_tile(self, tile_id: str) -> bool:
        if self.session is None:
            return False
        return self.turn.select_tile(self.session, tile_id)

    def activate_power_up(self) -> bool:
        if self.session is None:
            return False
        return self.power_up.activate(self.session)

    def select_difficulty(self, difficulty: str | Difficulty) -> Difficulty:
        """
        Choose the difficulty for the next start.

        Outside a game the stats preview switches to the new preset.

        Raises:
            ValueError: unknown difficulty name
        """
        self.difficulty = get_difficulty(difficulty)
        if not self.active:
            self.renderer.stats_changed(self._preview_stats())
            self.renderer.message("Mode Set. Start!")
        return self.difficulty

    def toggle_theme(self) -> str:
        """Presentation only; the engine state is untouched."""
        self.theme = "dark" if self.theme == "light" else "light"
        return self.theme

    def stats(self) -> Stats:
        if self.session is None:
            return self._preview_stats()
        return self.session.stats()

    # =========================================================================
    # Callbacks
    # =========================================================================

    def _on_win(self):
        self.end(EndReason.WIN)

    def _on_expire(self):
        self.end(EndReason.TIMEOUT)

    def _on_tick(self, time_left: int):
        if self.session is not None:
            self.renderer.stats_changed(self.session.stats())

    def _preview_stats(self) -> Stats:
        return Stats(
            clicks=0,
            pairs_matched=0,
            pairs_left=self.difficulty.pairs,
            total_pairs=self.difficulty.pairs,
            time_left=self.difficulty.seconds,
        )


def _failure_message(error: Exception) -> str:
    if isinstance(error, CatalogUnavailable):
        return "API Error! Could not load items."
    return "No Item Data!"
