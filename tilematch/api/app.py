"""
FastAPI Application - REST + WebSocket API for renderers.

Endpoints:
    GET    /api/v1/difficulties                       Difficulty presets
    POST   /api/v1/sessions                           Create player session
    GET    /api/v1/sessions                           List sessions
    GET    /api/v1/sessions/{id}                      Session status
    DELETE /api/v1/sessions/{id}                      End session
    POST   /api/v1/sessions/{id}/start                Start a game
    POST   /api/v1/sessions/{id}/reset                Restart the game
    POST   /api/v1/sessions/{id}/difficulty           Choose difficulty
    POST   /api/v1/sessions/{id}/tiles/{tile}/select  Click a tile
    POST   /api/v1/sessions/{id}/power-up             Reveal all (once)
    POST   /api/v1/sessions/{id}/theme                Toggle light/dark
    POST   /api/v1/sessions/{id}/assets/settle        Report image load
    GET    /api/v1/sessions/{id}/state                Full game state
    GET    /api/v1/sessions/{id}/events               Event log (polling)
    WS     /api/v1/sessions/{id}/ws                   Live events + input

Engine timers run on the server's event loop, so every engine call is
made from the loop thread. The only blocking call, the catalog fetch,
runs in a worker thread before a game starts.
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional, Union
import asyncio
import json
import logging

from ..config import ALLOWED_ORIGINS, TILEMATCH_ENV
from .. import __version__

logger = logging.getLogger(__name__)


def create_app(service=None, prefetch_catalog: bool = True):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        prefetch_catalog: warm the catalog cache at startup

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from starlette.concurrency import run_in_threadpool
    from pydantic import ValidationError

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        StartGameRequest,
        SelectDifficultyRequest,
        AssetSettledRequest,
        # Response models
        SessionResponse,
        GameStateResponse,
        ActionResponse,
        StartGameResponse,
        ThemeResponse,
        AssetSettledResponse,
        DifficultyListResponse,
        EventListResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    api_service = service or APIService()

    @asynccontextmanager
    async def lifespan(app):
        if prefetch_catalog:
            # Failure is logged by the cache and retried on game start
            await run_in_threadpool(api_service.warm_catalog)
        yield

    app = FastAPI(
        title="TileMatch API",
        description="""
Timed tile-matching game engine.

## Flow

1. `POST /sessions` to get a `session_id`
2. Open `WS /sessions/{id}/ws` to receive renderer events
3. `POST /sessions/{id}/start` with a difficulty
4. Send tile clicks; watch `tile_state_changed` / `stats_changed`
5. `game_over` arrives on win or timeout

## Error Codes

| Code | Description |
|------|-------------|
| `CATALOG_UNAVAILABLE` | Item catalog could not be loaded |
| `EMPTY_DECK` | No items to build a deck |
| `INVALID_DIFFICULTY` | Unknown difficulty |
| `SESSION_NOT_FOUND` | Session does not exist |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def respond(response, status_code: int = 404):
        """Pass through a schema, or turn an ErrorResponse into JSON."""
        if isinstance(response, ErrorResponse):
            return make_error_response(response.error_code, response.error, status_code=status_code)
        return response

    async def start_game(session_id: str, request: Optional[StartGameRequest]):
        if api_service.session_manager.get_session(session_id) is None:
            return api_service.start_game(session_id, request)
        await run_in_threadpool(api_service.warm_catalog)
        return api_service.start_game(session_id, request)

    # =========================================================================
    # System
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"], summary="Health check")
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="tilematch-engine",
            version=__version__,
            catalog_loaded=api_service.catalog.loaded,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "TileMatch API",
            "version": __version__,
            "env": TILEMATCH_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    @app.get(
        "/api/v1/difficulties",
        response_model=DifficultyListResponse,
        tags=["System"],
        summary="List difficulty presets",
    )
    async def list_difficulties() -> DifficultyListResponse:
        return api_service.list_difficulties()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a player session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        return api_service.create_session(body or CreateSessionRequest())

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=StartGameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Start a new game",
    )
    async def start(
        session_id: str,
        body: Optional[StartGameRequest] = None,
    ) -> Union[StartGameResponse, JSONResponse]:
        """
        Start a game with the given difficulty.

        A catalog failure does not raise: `started=false` and `error_code`
        explain why, and the game stays inactive.
        """
        return respond(await start_game(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=StartGameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Restart with the current difficulty",
    )
    async def reset(session_id: str) -> Union[StartGameResponse, JSONResponse]:
        return respond(await start_game(session_id, None))

    @app.post(
        "/api/v1/sessions/{session_id}/difficulty",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Choose the difficulty for the next game",
    )
    async def select_difficulty(
        session_id: str,
        body: SelectDifficultyRequest,
    ) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.select_difficulty(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/tiles/{tile_id}/select",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Select a tile",
    )
    async def select_tile(session_id: str, tile_id: str) -> Union[ActionResponse, JSONResponse]:
        """Ignored clicks return `accepted=false`; they are not errors."""
        return respond(api_service.select_tile(session_id, tile_id))

    @app.post(
        "/api/v1/sessions/{session_id}/power-up",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Reveal all tiles (once per game)",
    )
    async def power_up(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.activate_power_up(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/theme",
        response_model=ThemeResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Toggle light/dark theme",
    )
    async def toggle_theme(session_id: str) -> Union[ThemeResponse, JSONResponse]:
        return respond(api_service.toggle_theme(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/assets/settle",
        response_model=AssetSettledResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Report that an image finished loading",
    )
    async def settle_asset(
        session_id: str,
        body: AssetSettledRequest,
    ) -> Union[AssetSettledResponse, JSONResponse]:
        return respond(api_service.settle_asset(session_id, body))

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game_state(session_id))

    @app.get(
        "/api/v1/sessions/{session_id}/events",
        response_model=EventListResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get renderer events after a sequence number",
    )
    async def get_events(
        session_id: str,
        since: Annotated[int, Query(description="Last sequence already seen", ge=0)] = 0,
    ) -> Union[EventListResponse, JSONResponse]:
        return respond(api_service.get_events(session_id, since))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time play.

        Messages from server:
        - state: full game state (on connect)
        - tile_state_changed, stats_changed, message, board_layout,
          tiles_dealt, power_up_changed, asset_requested, game_over
        - ack: result of a client action
        - pong, error

        Messages from client:
        - {"type": "select_tile", "tile_id": "25-a"}
        - {"type": "start_game", "difficulty": "easy"}
        - {"type": "reset_game"}
        - {"type": "activate_power_up"}
        - {"type": "toggle_theme"}
        - {"type": "asset_settled", "image_ref": "...", "ok": true}
        - {"type": "ping"}
        """
        await websocket.accept()

        session = api_service.session_manager.get_session(session_id)
        if session is None:
            await websocket.send_json({
                "type": "error",
                "payload": {"error_code": ErrorCode.SESSION_NOT_FOUND.value},
            })
            await websocket.close()
            return

        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = session.renderer.subscribe(lambda event: queue.put_nowait(event.to_dict()))

        async def pump():
            while True:
                await websocket.send_json(await queue.get())

        sender = asyncio.create_task(pump())
        try:
            state = api_service.get_game_state(session_id)
            await websocket.send_json({"type": "state", "payload": state.model_dump(mode="json")})

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({"type": "error", "payload": {"message": "Invalid JSON"}})
                    continue
                reply = await handle_client_message(session_id, message)
                if reply is not None:
                    await websocket.send_json(reply)
        except WebSocketDisconnect:
            logger.info(f"WebSocket closed for session {session_id}")
        finally:
            unsubscribe()
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)

    async def handle_client_message(session_id: str, message: dict) -> Optional[dict]:
        kind = message.get("type") if isinstance(message, dict) else None

        if kind == "ping":
            return {"type": "pong"}

        if kind == "select_tile":
            result = api_service.select_tile(session_id, str(message.get("tile_id", "")))
        elif kind == "activate_power_up":
            result = api_service.activate_power_up(session_id)
        elif kind == "toggle_theme":
            result = api_service.toggle_theme(session_id)
        elif kind == "reset_game":
            result = await start_game(session_id, None)
        elif kind == "start_game":
            try:
                request = StartGameRequest.model_validate(message)
            except ValidationError:
                return {
                    "type": "error",
                    "payload": {"error_code": ErrorCode.INVALID_DIFFICULTY.value},
                }
            result = await start_game(session_id, request)
        elif kind == "asset_settled":
            try:
                request = AssetSettledRequest.model_validate(message)
            except ValidationError as e:
                return {
                    "type": "error",
                    "payload": {"error_code": ErrorCode.VALIDATION_ERROR.value, "message": str(e)},
                }
            result = api_service.settle_asset(session_id, request)
        else:
            return {"type": "error", "payload": {"message": f"Unknown message type: {kind}"}}

        return {"type": "ack", "action": kind, "payload": result.model_dump(mode="json")}

    return app


# For running directly: uvicorn tilematch.api.app:app
app = create_app()
