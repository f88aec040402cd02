"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages player sessions
3. Formats engine state for renderers

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Nothing here touches the network: the catalog is warmed separately
through warm_catalog(), which the app runs in a worker thread.
"""

from __future__ import annotations
from dataclasses import dataclass, field

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
    ThemeResponse,
    AssetSettledResponse,
    DifficultyListResponse,
    EventListResponse,
    ErrorResponse,
    # Shared
    TileInfo,
    StatsInfo,
    MessageInfo,
    DifficultyInfo,
    EventInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from ..config import DIFFICULTIES, format_time, grid_columns
from ..engine_core.events import tile_payload
from ..engine_core.state import EndReason
from ..session import SessionManager, ManagedSession


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(difficulty="easy"))
        service.warm_catalog()
        service.start_game(session.session_id, StartGameRequest())
        service.select_tile(session.session_id, "25-a")
    """
    session_manager: SessionManager = field(default_factory=lambda: SessionManager(fetch_catalog=False))

    @property
    def catalog(self):
        return self.session_manager.catalog

    def warm_catalog(self) -> bool:
        """Fetch the catalog if it is not cached yet. Blocking."""
        return self.catalog.warm()

    def list_difficulties(self) -> DifficultyListResponse:
        return DifficultyListResponse(difficulties=[
            DifficultyInfo(
                name=preset.name,
                pairs=preset.pairs,
                seconds=preset.seconds,
                time_display=format_time(preset.seconds),
                columns=grid_columns(preset.pairs),
            )
            for preset in DIFFICULTIES.values()
        ])

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a new player session (no game started yet)."""
        difficulty = request.difficulty.value if request.difficulty else None
        session = self.session_manager.create_session(difficulty=difficulty)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    # =========================================================================
    # Input surface
    # =========================================================================

    def start_game(
        self,
        session_id: str,
        request: StartGameRequest | None = None,
    ) -> StartGameResponse | ErrorResponse:
        """Start a game. Catalog failures are reported, not raised."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)

        difficulty = request.difficulty.value if request and request.difficulty else None
        controller = session.controller
        started = controller.start(difficulty)

        error_code = None
        if not started and controller.last_error is not None:
            error_code = ErrorCode(controller.last_error.error_code)

        return StartGameResponse(
            session_id=session_id,
            started=started,
            error_code=error_code,
            state=self._game_state(session),
        )

    def reset_game(self, session_id: str) -> StartGameResponse | ErrorResponse:
        return self.start_game(session_id, None)

    def select_tile(self, session_id: str, tile_id: str) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        accepted = session.controller.select_tile(tile_id)
        return ActionResponse(
            session_id=session_id, accepted=accepted, state=self._game_state(session)
        )

    def activate_power_up(self, session_id: str) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        accepted = session.controller.activate_power_up()
        return ActionResponse(
            session_id=session_id, accepted=accepted, state=self._game_state(session)
        )

    def select_difficulty(
        self,
        session_id: str,
        request: SelectDifficultyRequest,
    ) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        session.controller.select_difficulty(request.difficulty.value)
        return self._game_state(session)

    def toggle_theme(self, session_id: str) -> ThemeResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        theme = session.controller.toggle_theme()
        return ThemeResponse(session_id=session_id, theme=theme)

    def settle_asset(
        self,
        session_id: str,
        request: AssetSettledRequest,
    ) -> AssetSettledResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        settled = session.asset_loader.settle(request.image_ref, request.ok)
        return AssetSettledResponse(
            session_id=session_id, image_ref=request.image_ref, settled=settled
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._game_state(session)

    def get_events(self, session_id: str, since: int = 0) -> EventListResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        events = session.renderer.events_since(since)
        return EventListResponse(
            session_id=session_id,
            events=[EventInfo(**event.to_dict()) for event in events],
            last_sequence=events[-1].sequence if events else since,
        )

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _session_to_response(self, session: ManagedSession) -> SessionResponse:
        controller = session.controller
        return SessionResponse(
            session_id=session.session_id,
            status=_status(session),
            difficulty=controller.difficulty.name,
            theme=controller.theme,
            created_at=session.created_at,
        )

    def _game_state(self, session: ManagedSession) -> GameStateResponse:
        controller = session.controller
        game = controller.session
        stats = controller.stats()

        last_message = None
        if session.renderer.last_message:
            text, kind = session.renderer.last_message
            last_message = MessageInfo(text=text, kind=kind.value)

        response = GameStateResponse(
            session_id=session.session_id,
            status=_status(session),
            difficulty=controller.difficulty.name,
            stats=StatsInfo(**stats.to_dict()),
            columns=grid_columns(stats.total_pairs),
            last_message=last_message,
            theme=controller.theme,
        )
        if game is not None:
            response.active = game.active
            response.locked = game.locked
            response.turn_phase = game.turn_phase.value
            response.power_up_used = game.power_up_used
            response.power_up_available = game.power_up_available
            response.tiles = [TileInfo(**tile_payload(t)) for t in game.board]
            response.end_reason = game.end_reason.value if game.end_reason else None
        return response


def _status(session: ManagedSession) -> SessionStatus:
    game = session.controller.session
    if game is None:
        return SessionStatus.IDLE
    if game.active:
        return SessionStatus.PLAYING
    if game.end_reason == EndReason.WIN:
        return SessionStatus.WON
    if game.end_reason == EndReason.TIMEOUT:
        return SessionStatus.LOST
    return SessionStatus.IDLE


def _not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"Session {session_id} not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
    )
