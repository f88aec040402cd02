"""
Renderer Events - What the engine tells the outside world.

The engine never draws anything. It calls a Renderer, which may be a
browser behind a WebSocket, a terminal, or a test recorder.

Events:
- tile_state_changed: a tile flipped, matched, or was re-shown
- stats_changed: clicks / pairs / time changed
- message: status text (info, success, error)
- board_layout: grid sizing for the dealt pair count
- tiles_dealt: a new board in display order
- power_up_changed: power-up became available / unavailable
- asset_requested: the renderer should load an image and report back
- game_over: the game ended (win or timeout)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable
import itertools

from .state import Tile, Stats, EndReason
from ..config import grid_columns


class MessageKind(Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class EventType(Enum):
    TILE_STATE_CHANGED = "tile_state_changed"
    STATS_CHANGED = "stats_changed"
    MESSAGE = "message"
    BOARD_LAYOUT = "board_layout"
    TILES_DEALT = "tiles_dealt"
    POWER_UP_CHANGED = "power_up_changed"
    ASSET_REQUESTED = "asset_requested"
    GAME_OVER = "game_over"


@dataclass
class GameEvent:
    """A single renderer event, serializable to JSON."""
    event_type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.event_type.value,
            "sequence": self.sequence,
            "payload": self.payload,
        }


def tile_payload(tile: Tile) -> dict[str, Any]:
    """Renderer view of a tile. Face-down tiles do not leak their item."""
    payload: dict[str, Any] = {
        "tile_id": tile.tile_id,
        "state": tile.state.value,
    }
    if not tile.is_face_down:
        payload["item_id"] = tile.item_id
        payload["image_ref"] = tile.visible_image
        payload["name"] = tile.name
    return payload


class Renderer(ABC):
    """Consumer of engine events."""

    @abstractmethod
    def tile_state_changed(self, tile: Tile) -> None:
        ...

    @abstractmethod
    def stats_changed(self, stats: Stats) -> None:
        ...

    @abstractmethod
    def message(self, text: str, kind: MessageKind = MessageKind.INFO) -> None:
        ...

    @abstractmethod
    def board_layout(self, pair_count: int) -> None:
        ...

    def tiles_dealt(self, tiles: Iterable[Tile]) -> None:
        pass

    def power_up_changed(self, available: bool) -> None:
        pass

    def asset_requested(self, image_ref: str) -> None:
        pass

    def game_over(self, reason: EndReason, stats: Stats) -> None:
        pass


class RecordingRenderer(Renderer):
    """
    Renderer that keeps an event log and notifies listeners.

    Used by tests to assert on what was shown, and by the API to fan
    events out to WebSocket connections.

    Usage:
        renderer = RecordingRenderer()
        unsubscribe = renderer.subscribe(lambda event: print(event.to_dict()))
    """

    def __init__(self, history: int | None = None):
        self.events: deque[GameEvent] = deque(maxlen=history)
        self.last_message: tuple[str, MessageKind] | None = None
        self._listeners: list[Callable[[GameEvent], None]] = []
        self._seq = itertools.count(1)

    def subscribe(self, listener: Callable[[GameEvent], None]) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def events_since(self, sequence: int) -> list[GameEvent]:
        return [e for e in self.events if e.sequence > sequence]

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self):
        self.events.clear()

    def _emit(self, event_type: EventType, payload: dict[str, Any]):
        event = GameEvent(event_type=event_type, payload=payload, sequence=next(self._seq))
        self.events.append(event)
        for listener in list(self._listeners):
            listener(event)

    # Renderer interface

    def tile_state_changed(self, tile: Tile) -> None:
        self._emit(EventType.TILE_STATE_CHANGED, tile_payload(tile))

    def stats_changed(self, stats: Stats) -> None:
        self._emit(EventType.STATS_CHANGED, stats.to_dict())

    def message(self, text: str, kind: MessageKind = MessageKind.INFO) -> None:
        self.last_message = (text, kind)
        self._emit(EventType.MESSAGE, {"text": text, "kind": kind.value})

    def board_layout(self, pair_count: int) -> None:
        self._emit(EventType.BOARD_LAYOUT, {
            "pair_count": pair_count,
            "columns": grid_columns(pair_count),
        })

    def tiles_dealt(self, tiles: Iterable[Tile]) -> None:
        self._emit(EventType.TILES_DEALT, {"tiles": [tile_payload(t) for t in tiles]})

    def power_up_changed(self, available: bool) -> None:
        self._emit(EventType.POWER_UP_CHANGED, {"available": available})

    def asset_requested(self, image_ref: str) -> None:
        self._emit(EventType.ASSET_REQUESTED, {"image_ref": image_ref})

    def game_over(self, reason: EndReason, stats: Stats) -> None:
        self._emit(EventType.GAME_OVER, {"reason": reason.value, "stats": stats.to_dict()})
