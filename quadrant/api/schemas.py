"""
Pydantic Schemas for API - Request, response and event models.

These models define the exact contract between clients and the engine.
Clients send actions; the engine answers with events.

Events:
- STATE_SYNC: full state, sent when a client connects or asks for it
- STATE_UPDATE: state after a successful action, with the new log entries
- ACTION_REJECTED: the action was illegal; nothing changed
- GAME_OVER: the game ended (victory or defeat) with the final score

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has expired
- ACTION_REJECTED: The engine refused the action
- INVALID_DECK: The deck list failed validation
- VALIDATION_ERROR: Malformed request
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional, Any, Union
import uuid

from pydantic import BaseModel, Field

from ..engine_core.action import Action, ActionPayload, ActionType


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class EventType(str, Enum):
    """Engine to client events."""
    STATE_SYNC = "STATE_SYNC"
    STATE_UPDATE = "STATE_UPDATE"
    ACTION_REJECTED = "ACTION_REJECTED"
    GAME_OVER = "GAME_OVER"


class ActionKind(str, Enum):
    """Client to engine actions."""
    SETUP_GAME = "SETUP_GAME"
    RESET_GAME = "RESET_GAME"
    DRAW = "DRAW"
    DEPLOY = "DEPLOY"
    NEXT_PHASE = "NEXT_PHASE"
    DISCARD_CARD = "DISCARD_CARD"
    MOVE_SHIP = "MOVE_SHIP"
    BEAM_TO_SHIP = "BEAM_TO_SHIP"
    BEAM_TO_PLANET = "BEAM_TO_PLANET"
    BEAM_ALL_TO_SHIP = "BEAM_ALL_TO_SHIP"
    BEAM_ALL_TO_PLANET = "BEAM_ALL_TO_PLANET"
    ATTEMPT_MISSION = "ATTEMPT_MISSION"
    SELECT_PERSONNEL_FOR_DILEMMA = "SELECT_PERSONNEL_FOR_DILEMMA"
    ADVANCE_DILEMMA = "ADVANCE_DILEMMA"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    ACTION_REJECTED = "ACTION_REJECTED"
    INVALID_DECK = "INVALID_DECK"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card instance as seen by the client."""
    unique_id: str
    card_id: str
    name: str
    card_type: str

    # Personnel
    status: Optional[str] = None

    # Ships
    range: Optional[int] = None
    range_remaining: Optional[int] = None

    # Dilemmas
    where: Optional[str] = None
    cost: Optional[int] = None
    overcome: Optional[bool] = None
    faceup: Optional[bool] = None

    # Missions
    mission_type: Optional[str] = None
    quadrant: Optional[str] = None
    score: Optional[int] = None
    completed: Optional[bool] = None

    model_config = {"from_attributes": True}


class GroupInfo(BaseModel):
    """Cards co-located at a mission. Group 0 is planetside."""
    cards: list[CardInfo] = Field(default_factory=list)


class MissionInfo(BaseModel):
    mission: CardInfo
    groups: list[GroupInfo] = Field(default_factory=list)
    dilemmas: list[CardInfo] = Field(default_factory=list, description="Dilemmas beneath the mission")


class DilemmaResultInfo(BaseModel):
    overcome: bool
    stopped_ids: list[str] = Field(default_factory=list)
    killed_ids: list[str] = Field(default_factory=list)
    requires_selection: bool = False
    selectable_ids: list[str] = Field(default_factory=list)
    returns_to_pile: bool = False
    message: str = ""
    failure_reason: Optional[str] = None


class EncounterInfo(BaseModel):
    """An in-progress mission attempt."""
    mission_index: int
    group_index: int
    selected: list[CardInfo] = Field(default_factory=list)
    cursor: int = 0
    draw_budget: int = 0
    cost_budget: int = 0
    cost_spent: int = 0
    current: Optional[CardInfo] = None
    pending: Optional[DilemmaResultInfo] = None


class LogEntryInfo(BaseModel):
    id: int
    timestamp: float
    type: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class GameStateSnapshot(BaseModel):
    """Serializable game state. Deck order and pool contents stay hidden."""
    game_id: str
    status: str
    phase: str
    turn: int
    counters: int
    score: int
    headquarters_index: int
    missions: list[MissionInfo] = Field(default_factory=list)
    dilemma_pool_size: int = 0
    dilemma_pool_faceup: int = 0
    deck_size: int = 0
    hand: list[CardInfo] = Field(default_factory=list)
    discard: list[CardInfo] = Field(default_factory=list)
    completed_planet_missions: int = 0
    completed_space_missions: int = 0
    encounter: Optional[EncounterInfo] = None
    victory: Optional[bool] = None
    log_size: int = 0


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Start a new game."""
    deck_card_ids: Optional[list[str]] = Field(
        None, description="Deck list of card ids; the built-in Borg deck when omitted"
    )


class ActionRequest(BaseModel):
    """
    One protocol action.

    Only the fields used by `type` need to be set; the engine validates the rest.
    """
    type: ActionKind
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Correlation id")
    deck_card_ids: Optional[list[str]] = None
    count: Optional[int] = Field(None, ge=1)
    card_id: Optional[str] = Field(None, description="Unique id of a card in hand")
    personnel_id: Optional[str] = None
    mission_index: Optional[int] = Field(None, ge=0)
    group_index: Optional[int] = Field(None, ge=0)
    dest_mission_index: Optional[int] = Field(None, ge=0)
    from_group: Optional[int] = Field(None, ge=0)
    to_group: Optional[int] = Field(None, ge=0)

    def to_action(self) -> Action:
        return Action(
            action_type=ActionType(self.type.value),
            payload=ActionPayload(
                deck_card_ids=self.deck_card_ids,
                count=self.count,
                card_id=self.card_id,
                personnel_id=self.personnel_id,
                mission_index=self.mission_index,
                group_index=self.group_index,
                dest_mission_index=self.dest_mission_index,
                from_group=self.from_group,
                to_group=self.to_group,
            ),
            request_id=self.request_id,
        )


# =============================================================================
# Events
# =============================================================================

class StateSyncEvent(BaseModel):
    type: EventType = EventType.STATE_SYNC
    state: GameStateSnapshot
    log: list[LogEntryInfo] = Field(default_factory=list)


class StateUpdateEvent(BaseModel):
    type: EventType = EventType.STATE_UPDATE
    request_id: Optional[str] = None
    state: GameStateSnapshot
    new_log_entries: list[LogEntryInfo] = Field(default_factory=list)


class ActionRejectedEvent(BaseModel):
    type: EventType = EventType.ACTION_REJECTED
    request_id: Optional[str] = None
    reason: str
    error_code: Optional[str] = None


class GameOverEvent(BaseModel):
    type: EventType = EventType.GAME_OVER
    victory: bool
    score: int


GameEvent = Union[StateSyncEvent, StateUpdateEvent, ActionRejectedEvent, GameOverEvent]


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    turn: int = 0
    phase: Optional[str] = None
    score: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    sessions: list[str] = Field(default_factory=list)
    count: int = 0


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class ActionResponse(BaseModel):
    """Result of one action plus the events it produced."""
    success: bool
    request_id: Optional[str] = None
    reason: Optional[str] = None
    error_code: Optional[str] = None
    events: list[GameEvent] = Field(default_factory=list)
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    session_id: str
    state: GameStateSnapshot
    api_version: str = "v1"


class LogResponse(BaseModel):
    session_id: str
    entries: list[LogEntryInfo] = Field(default_factory=list)


class MissionGapResponse(BaseModel):
    """What a group still lacks to complete a mission."""
    session_id: str
    mission_index: int
    group_index: int
    can_complete: bool
    hint: Optional[str] = None
    gap: Optional[dict[str, Any]] = None


class CardDefinitionInfo(BaseModel):
    card_id: str
    name: str
    card_type: str
    unique: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class CardListResponse(BaseModel):
    database: str
    cards: list[CardDefinitionInfo] = Field(default_factory=list)
    count: int = 0


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "quadrant-engine"
    version: str = "1.0.0"
