"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a renderer (browser, app)
and the engine. Face-down tiles never expose their item or image.

Error Codes:
- CATALOG_UNAVAILABLE: the item catalog could not be loaded
- EMPTY_DECK: no items to build a deck from
- INVALID_DIFFICULTY: difficulty is not one of the presets
- SESSION_NOT_FOUND: session does not exist or has expired
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Where the session's current game stands."""
    IDLE = "idle"  # No game yet, or the last start failed
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class DifficultyName(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TileStateName(str, Enum):
    FACE_DOWN = "face_down"
    FACE_UP = "face_up"
    MATCHED = "matched"


class MessageKindName(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Structured error codes."""
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"
    EMPTY_DECK = "EMPTY_DECK"
    INVALID_DIFFICULTY = "INVALID_DIFFICULTY"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class TileInfo(BaseModel):
    """A tile as the renderer may see it."""
    tile_id: str
    state: TileStateName
    item_id: Optional[int] = Field(None, description="Only present when the tile is not face down")
    image_ref: Optional[str] = Field(None, description="None means fallback visual")
    name: Optional[str] = None


class StatsInfo(BaseModel):
    """Stats panel."""
    clicks: int = 0
    pairs_matched: int = 0
    pairs_left: int = 0
    total_pairs: int = 0
    time_left: int = 0
    time_display: str = Field("0:00", description="M:SS")


class MessageInfo(BaseModel):
    text: str
    kind: MessageKindName = MessageKindName.INFO


class DifficultyInfo(BaseModel):
    name: DifficultyName
    pairs: int
    seconds: int
    time_display: str
    columns: int = Field(..., description="Grid columns for this pair count")


class EventInfo(BaseModel):
    """A renderer event."""
    type: str
    sequence: int
    payload: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Create a player session, optionally choosing the difficulty."""
    difficulty: Optional[DifficultyName] = None


class StartGameRequest(BaseModel):
    """Start (or restart) a game. Omitting difficulty reuses the current one."""
    difficulty: Optional[DifficultyName] = None


class SelectDifficultyRequest(BaseModel):
    difficulty: DifficultyName


class AssetSettledRequest(BaseModel):
    """Client report that an image finished loading (or failed)."""
    image_ref: str
    ok: bool = True


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Session summary."""
    session_id: str
    status: SessionStatus
    difficulty: DifficultyName
    theme: str = "light"
    created_at: float
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete game state for rendering."""
    session_id: str
    status: SessionStatus
    difficulty: DifficultyName
    active: bool = False
    locked: bool = False
    turn_phase: str = "idle"
    power_up_used: bool = False
    power_up_available: bool = False
    stats: StatsInfo = Field(default_factory=StatsInfo)
    tiles: list[TileInfo] = Field(default_factory=list)
    columns: int = 3
    last_message: Optional[MessageInfo] = None
    end_reason: Optional[str] = None
    theme: str = "light"
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of an input event. accepted=false means it was ignored."""
    session_id: str
    accepted: bool
    state: GameStateResponse


class StartGameResponse(BaseModel):
    session_id: str
    started: bool
    error_code: Optional[ErrorCode] = None
    state: GameStateResponse


class ThemeResponse(BaseModel):
    session_id: str
    theme: str


class AssetSettledResponse(BaseModel):
    session_id: str
    image_ref: str
    settled: int = Field(..., description="Number of waiting loads released")


class DifficultyListResponse(BaseModel):
    difficulties: list[DifficultyInfo]


class EventListResponse(BaseModel):
    session_id: str
    events: list[EventInfo]
    last_sequence: int = 0


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class SessionListResponse(BaseModel):
    """Response listing sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    catalog_loaded: bool = False
