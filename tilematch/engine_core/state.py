"""
Game State - Tiles, board and the per-game session record.

Design principles:
- Single owner: one GameSession per game, passed into every operation
- Explicit turn slots instead of ambient "current card" globals
- The generation token identifies which game a scheduled callback belongs to
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from ..config import format_time


class TileState(Enum):
    """Visible state of a tile."""
    FACE_DOWN = "face_down"
    FACE_UP = "face_up"
    MATCHED = "matched"  # Terminal for the rest of the game


class AssetStatus(Enum):
    """Load status of a tile's image."""
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"  # Rendered with the fallback visual

    @property
    def settled(self) -> bool:
        return self in (AssetStatus.LOADED, AssetStatus.FAILED)


class TurnPhase(Enum):
    """Where the current turn is."""
    IDLE = "idle"
    ONE_SELECTED = "one_selected"
    EVALUATING = "evaluating"


class EndReason(Enum):
    """Why a game ended."""
    WIN = "win"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Item:
    """A matchable kind from the catalog."""
    item_id: int
    display_ref: str  # Image URL
    name: str = ""


@dataclass
class Tile:
    """
    One board position.

    Two tiles share an item_id and form a pair. tile_id is unique per
    tile instance so each copy can be addressed independently.
    """
    tile_id: str
    item_id: int
    image_ref: str
    name: str = ""
    state: TileState = TileState.FACE_DOWN
    asset: AssetStatus = AssetStatus.NOT_LOADED

    @property
    def is_face_down(self) -> bool:
        return self.state == TileState.FACE_DOWN

    @property
    def is_matched(self) -> bool:
        return self.state == TileState.MATCHED

    @property
    def visible_image(self) -> str | None:
        """Image the renderer should show, None for the fallback visual."""
        if self.asset == AssetStatus.FAILED:
            return None
        return self.image_ref

    @classmethod
    def pair_for(cls, item: Item) -> tuple[Tile, Tile]:
        """Create the two tiles for an item."""
        return (
            cls(tile_id=f"{item.item_id}-a", item_id=item.item_id,
                image_ref=item.display_ref, name=item.name),
            cls(tile_id=f"{item.item_id}-b", item_id=item.item_id,
                image_ref=item.display_ref, name=item.name),
        )


@dataclass
class Board:
    """The dealt deck, in display order."""
    tiles: list[Tile] = field(default_factory=list)

    def __post_init__(self):
        self._by_id = {t.tile_id: t for t in self.tiles}

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def __len__(self) -> int:
        return len(self.tiles)

    def get(self, tile_id: str) -> Tile | None:
        return self._by_id.get(tile_id)

    def unmatched(self) -> list[Tile]:
        return [t for t in self.tiles if not t.is_matched]

    def matched(self) -> list[Tile]:
        return [t for t in self.tiles if t.is_matched]


@dataclass(frozen=True)
class Stats:
    """Aggregate numbers shown next to the board."""
    clicks: int
    pairs_matched: int
    pairs_left: int
    total_pairs: int
    time_left: int

    @property
    def time_display(self) -> str:
        return format_time(self.time_left)

    def to_dict(self) -> dict:
        return {
            "clicks": self.clicks,
            "pairs_matched": self.pairs_matched,
            "pairs_left": self.pairs_left,
            "total_pairs": self.total_pairs,
            "time_left": self.time_left,
            "time_display": self.time_display,
        }


@dataclass
class GameSession:
    """
    Mutable state for one game.

    Created on start/reset, becomes inactive exactly once (win or
    timeout) and is never revived; a new game gets a new session.
    """
    generation: int
    difficulty: str
    pair_count: int
    time_left: int

    active: bool = False
    locked: bool = False
    clicks: int = 0
    pairs_matched: int = 0
    power_up_used: bool = False
    end_reason: EndReason | None = None

    board: Board = field(default_factory=Board)

    # Turn slots
    first_selected: Tile | None = None
    second_selected: Tile | None = None

    @property
    def pairs_left(self) -> int:
        return max(0, self.pair_count - self.pairs_matched)

    @property
    def turn_phase(self) -> TurnPhase:
        if self.second_selected is not None:
            return TurnPhase.EVALUATING
        if self.first_selected is not None:
            return TurnPhase.ONE_SELECTED
        return TurnPhase.IDLE

    @property
    def power_up_available(self) -> bool:
        return self.active and not self.power_up_used

    def clear_turn(self):
        """Clear both turn slots together."""
        self.first_selected = None
        self.second_selected = None

    def stats(self) -> Stats:
        return Stats(
            clicks=self.clicks,
            pairs_matched=self.pairs_matched,
            pairs_left=self.pairs_left,
            total_pairs=self.pair_count,
            time_left=self.time_left,
        )
