"""
Engine Core - The match-game engine.

The engine:
1. Builds a shuffled deck from the item catalog
2. Applies tile selections through the turn state machine
3. Runs one countdown timer per game
4. Handles the one-shot reveal power-up
5. Reports every visible change to a Renderer

All delays are cooperative callbacks on a Scheduler; nothing blocks.
"""

from .state import (
    Item,
    Tile,
    TileState,
    AssetStatus,
    Board,
    GameSession,
    Stats,
    TurnPhase,
    EndReason,
)
from .errors import TileMatchError, CatalogUnavailable, EmptyDeck
from .scheduler import Scheduler, ManualScheduler, AsyncioScheduler, ScheduledTasks
from .events import Renderer, RecordingRenderer, GameEvent, EventType, MessageKind
from .assets import AssetLoader, AssetTracker, ReadinessGate
from .deck import DeckBuilder, DeckResult
from .turn import TurnStateMachine
from .timer import TimerController
from .power_up import PowerUpController

__all__ = [
    "Item",
    "Tile",
    "TileState",
    "AssetStatus",
    "Board",
    "GameSession",
    "Stats",
    "TurnPhase",
    "EndReason",
    "TileMatchError",
    "CatalogUnavailable",
    "EmptyDeck",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "ScheduledTasks",
    "Renderer",
    "RecordingRenderer",
    "GameEvent",
    "EventType",
    "MessageKind",
    "AssetLoader",
    "AssetTracker",
    "ReadinessGate",
    "DeckBuilder",
    "DeckResult",
    "TurnStateMachine",
    "TimerController",
    "PowerUpController",
]
