"""
FastAPI Application - REST and WebSocket API for the rules engine.

Endpoints:
    POST   /api/v1/sessions                 Create game session (runs SETUP_GAME)
    GET    /api/v1/sessions                 List active sessions
    GET    /api/v1/sessions/{id}            Get session status
    DELETE /api/v1/sessions/{id}            End session
    POST   /api/v1/sessions/{id}/actions    Submit one action
    GET    /api/v1/sessions/{id}/state      Get game state
    GET    /api/v1/sessions/{id}/log        Get the action log
    GET    /api/v1/sessions/{id}/missions/{index}/gap  What a group still lacks
    GET    /api/v1/cards                    List card definitions
    WS     /api/v1/sessions/{id}/ws         Actions in, events out

Event Flow:
    1. A client sends an action (REST or WebSocket)
    2. The engine applies or rejects it
    3. The caller gets STATE_UPDATE or ACTION_REJECTED
    4. Every WebSocket observer of the session gets the STATE_UPDATE
    5. GAME_OVER follows the update that ended the game

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import json
import logging
import os

from pydantic import ValidationError

# Environment configuration
QUADRANT_ENV = os.getenv("QUADRANT_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
QUADRANT_RNG_SEED = os.getenv("QUADRANT_RNG_SEED", None)
QUADRANT_LOG_LEVEL = os.getenv("QUADRANT_LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService, SessionNotFound
    from .schemas import (
        # Request models
        ActionRequest,
        CreateSessionRequest,
        # Response models
        ActionResponse,
        CardListResponse,
        EndSessionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        LogResponse,
        MissionGapResponse,
        SessionListResponse,
        SessionResponse,
        # Enums
        ErrorCode,
        EventType,
    )
    from ..session import SessionManager

    logging.basicConfig(
        level=QUADRANT_LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Quadrant Engine API",
        description="""
Single-player mission and dilemma rules engine.

## Event Flow

After submitting an action via `POST /actions` or the WebSocket:

1. **Accepted**: the response carries a `STATE_UPDATE` with the new state
   and the log entries the action appended; observers receive it too.
   A `GAME_OVER` event follows when the action ended the game.

2. **Rejected**: the response carries `ACTION_REJECTED` with the reason.
   State and log are unchanged.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `ACTION_REJECTED` | The engine refused the action |
| `INVALID_DECK` | The deck list failed validation |
| `VALIDATION_ERROR` | Malformed request |
| `INTERNAL_ERROR` | Unexpected server failure |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    rng_seed = int(QUADRANT_RNG_SEED) if QUADRANT_RNG_SEED else None
    api_service = service or APIService(session_manager=SessionManager(rng_seed=rng_seed))

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}

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

    def error_to_json(response: ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code == ErrorCode.SESSION_NOT_FOUND else 400
        return make_error_response(response.error_code, response.error, status_code=status_code)

    async def broadcast_to_session(session_id: str, message: dict, exclude=None):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[session_id]:
                if ws is exclude:
                    continue
                try:
                    await ws.send_json(message)
                except Exception:
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[session_id].remove(ws)

    async def broadcast_events(session_id: str, events, exclude=None):
        """Observers see accepted actions; rejections stay with the caller."""
        for event in events:
            if event.type == EventType.ACTION_REJECTED:
                continue
            await broadcast_to_session(session_id, event.model_dump(mode="json"), exclude=exclude)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid deck list"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        body: Optional[CreateSessionRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """
        Create a new game session and set up the game.

        Omit `deck_card_ids` to play the built-in Borg starter deck.
        """
        response = api_service.create_session(body or CreateSessionRequest())
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
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
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse, "description": "Session not found"}},
        tags=["Game"],
        summary="Submit one action",
    )
    async def submit_action(
        session_id: str,
        body: ActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Submit one action to the engine.

        A rejected action still answers 200 with `success=false` and an
        `ACTION_REJECTED` event; only unknown sessions are HTTP errors.

        **Request Body:**
        ```json
        {"type": "ATTEMPT_MISSION", "mission_index": 1, "group_index": 0}
        ```
        """
        try:
            outcome = api_service.submit_action(session_id, body)
        except SessionNotFound as e:
            return make_error_response(ErrorCode.SESSION_NOT_FOUND, str(e), status_code=404)

        await broadcast_events(session_id, outcome.events)
        return api_service.action_response(body, outcome)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Get the complete current game state for display."""
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/log",
        response_model=LogResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the action log",
    )
    async def get_log(
        session_id: str,
        since: Annotated[int, Query(description="Only entries with a greater id", ge=0)] = 0,
    ) -> Union[LogResponse, JSONResponse]:
        response = api_service.get_log(session_id, since)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}/missions/{mission_index}/gap",
        response_model=MissionGapResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid mission or group"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Game"],
        summary="Show what a group still lacks for a mission",
    )
    async def get_mission_gap(
        session_id: str,
        mission_index: int,
        group_index: Annotated[int, Query(description="Group at the mission", ge=0)] = 0,
    ) -> Union[MissionGapResponse, JSONResponse]:
        response = api_service.get_mission_gap(session_id, mission_index, group_index)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.get(
        "/api/v1/cards",
        response_model=CardListResponse,
        tags=["Cards"],
        summary="List card definitions",
    )
    async def list_cards() -> CardListResponse:
        return api_service.list_cards()

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for actions and real-time events.

        Messages from server:
        - STATE_SYNC: Full state, sent on connect and on request
        - STATE_UPDATE: An action was applied
        - ACTION_REJECTED: Your action was refused
        - GAME_OVER: Game ended
        - error: Malformed message

        Messages from client:
        - any action object, e.g. {"type": "DRAW", "count": 1}
        - {"type": "sync"}: request a STATE_SYNC
        - {"type": "ping"}: Keep-alive
        """
        await websocket.accept()

        try:
            sync = api_service.state_sync(session_id)
        except SessionNotFound as e:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": str(e), "error_code": ErrorCode.SESSION_NOT_FOUND.value},
            })
            await websocket.close()
            return

        if session_id not in ws_connections:
            ws_connections[session_id] = []
        ws_connections[session_id].append(websocket)

        try:
            await websocket.send_json(sync.model_dump(mode="json"))

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue

                message_type = message.get("type") if isinstance(message, dict) else None
                if message_type == "ping":
                    await websocket.send_json({"type": "pong"})
                    continue
                if message_type == "sync":
                    try:
                        sync = api_service.state_sync(session_id)
                    except SessionNotFound as e:
                        await websocket.send_json({
                            "type": "error",
                            "payload": {"message": str(e), "error_code": ErrorCode.SESSION_NOT_FOUND.value},
                        })
                        await websocket.close()
                        break
                    await websocket.send_json(sync.model_dump(mode="json"))
                    continue

                try:
                    request = ActionRequest.model_validate(message)
                except ValidationError as e:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {
                            "message": "Invalid action",
                            "error_code": ErrorCode.VALIDATION_ERROR.value,
                            "details": e.errors(include_url=False),
                        },
                    })
                    continue

                try:
                    outcome = api_service.submit_action(session_id, request)
                except SessionNotFound as e:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": str(e), "error_code": ErrorCode.SESSION_NOT_FOUND.value},
                    })
                    await websocket.close()
                    break

                for event in outcome.events:
                    await websocket.send_json(event.model_dump(mode="json"))
                await broadcast_events(session_id, outcome.events, exclude=websocket)

        except WebSocketDisconnect:
            logger.debug("WebSocket for session %s disconnected", session_id)
        finally:
            if session_id in ws_connections:
                if websocket in ws_connections[session_id]:
                    ws_connections[session_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="quadrant-engine",
            version="1.0.0",
        )

    @app.get("/", tags=["System"])
    async def root():
        """API root with links."""
        return {
            "service": "Quadrant Engine API",
            "version": "1.0.0",
            "environment": QUADRANT_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn quadrant.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
