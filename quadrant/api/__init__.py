"""
API Module - Client interface to the engine.

Exposes the engine via REST and WebSocket. A client:
1. Creates a game session (optionally with its own deck list)
2. Sends actions
3. Receives STATE_UPDATE / ACTION_REJECTED / GAME_OVER events
4. Reads state and log at any time

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    # Responses
    ActionResponse,
    SessionResponse,
    GameStateResponse,
    LogResponse,
    ErrorResponse,
    # Events
    StateSyncEvent,
    StateUpdateEvent,
    ActionRejectedEvent,
    GameOverEvent,
    # Enums
    ErrorCode,
    EventType,
)
from .service import APIService, ActionOutcome, SessionNotFound
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateSessionRequest",
    # Responses
    "ActionResponse",
    "SessionResponse",
    "GameStateResponse",
    "LogResponse",
    "ErrorResponse",
    # Events
    "StateSyncEvent",
    "StateUpdateEvent",
    "ActionRejectedEvent",
    "GameOverEvent",
    # Enums
    "ErrorCode",
    "EventType",
    # Service
    "APIService",
    "ActionOutcome",
    "SessionNotFound",
    "create_app",
]
