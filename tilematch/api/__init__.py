"""
API Module - Renderer interface.

Exposes the engine over REST and WebSocket so a browser (or any other
client) can act as the renderer:
1. Creates a player session
2. Starts games and sends tile clicks
3. Receives tile, stats and message events
4. Reports back when tile images have loaded

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    StartGameRequest,
    SelectDifficultyRequest,
    AssetSettledRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    ActionResponse,
    StartGameResponse,
    EventListResponse,
    ErrorResponse,
    # Shared
    TileInfo,
    StatsInfo,
    MessageInfo,
    EventInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "StartGameRequest",
    "SelectDifficultyRequest",
    "AssetSettledRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "ActionResponse",
    "StartGameResponse",
    "EventListResponse",
    "ErrorResponse",
    # Shared
    "TileInfo",
    "StatsInfo",
    "MessageInfo",
    "EventInfo",
    # Service
    "APIService",
    "create_app",
]
