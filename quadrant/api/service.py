"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions
3. Turns action results into protocol events
4. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging

from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    # Responses
    ActionResponse,
    CardDefinitionInfo,
    CardListResponse,
    ErrorResponse,
    GameStateResponse,
    LogResponse,
    MissionGapResponse,
    SessionResponse,
    # Events
    ActionRejectedEvent,
    GameEvent,
    GameOverEvent,
    StateSyncEvent,
    StateUpdateEvent,
    # Shared
    GameStateSnapshot,
    LogEntryInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..card_schema.definitions import CardDefinition, DilemmaDefinition, MissionDefinition
from ..card_schema.dilemma_dsl import format_requirements
from ..engine_core.action import ActionResult
from ..session import Session, SessionManager, SessionState

logger = logging.getLogger(__name__)


class SessionNotFound(LookupError):
    """Raised when a session id does not resolve to a live session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


@dataclass
class ActionOutcome:
    """Engine result plus the events to deliver to the caller and to observers."""
    result: ActionResult
    events: list[GameEvent] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.result.success


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a game with the built-in deck
        session_response = service.create_session(CreateSessionRequest())

        # Play
        outcome = service.submit_action(session_id, ActionRequest(type="DRAW"))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """Create a new game session; the deck is validated by SETUP_GAME."""
        session, result = self.session_manager.create_session(deck_card_ids=request.deck_card_ids)
        if not result.success:
            code = ErrorCode.INVALID_DECK if result.error_code == "INVALID_DECK" else ErrorCode.ACTION_REJECTED
            return ErrorResponse(error=result.error or "Setup failed", error_code=code)
        logger.info("Created session %s", session.session_id)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        ended = self.session_manager.end_session(session_id, reason)
        if ended:
            logger.info("Ended session %s (%s)", session_id, reason)
        return ended

    def list_sessions(self) -> list[str]:
        """List active session IDs."""
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Gameplay
    # =========================================================================

    def submit_action(self, session_id: str, request: ActionRequest) -> ActionOutcome:
        """
        Apply one action to a session's engine.

        Raises:
            SessionNotFound: if the session does not exist
        """
        session = self._require_session(session_id)
        was_over = session.engine.state.is_over
        result = session.submit(request.to_action())

        if not result.success:
            return ActionOutcome(
                result=result,
                events=[
                    ActionRejectedEvent(
                        request_id=request.request_id,
                        reason=result.reason or "Action rejected",
                        error_code=result.error_code,
                    )
                ],
            )

        events: list[GameEvent] = [
            StateUpdateEvent(
                request_id=request.request_id,
                state=GameStateSnapshot.model_validate(result.new_state),
                new_log_entries=[
                    LogEntryInfo.model_validate(entry.to_snapshot())
                    for entry in result.new_log_entries
                ],
            )
        ]
        state = session.engine.state
        if state.is_over and not was_over:
            logger.info("Session %s finished: victory=%s score=%d", session_id, state.victory, state.score)
            events.append(GameOverEvent(victory=bool(state.victory), score=state.score))
        return ActionOutcome(result=result, events=events)

    def action_response(self, request: ActionRequest, outcome: ActionOutcome) -> ActionResponse:
        return ActionResponse(
            success=outcome.success,
            request_id=request.request_id,
            reason=outcome.result.reason,
            error_code=outcome.result.error_code,
            events=outcome.events,
        )

    def state_sync(self, session_id: str) -> StateSyncEvent:
        """Full state plus the whole log, for a newly connected client."""
        session = self._require_session(session_id)
        return StateSyncEvent(
            state=GameStateSnapshot.model_validate(session.engine.snapshot()),
            log=[LogEntryInfo.model_validate(entry.to_snapshot()) for entry in session.engine.log],
        )

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return GameStateResponse(
            session_id=session_id,
            state=GameStateSnapshot.model_validate(session.engine.snapshot()),
        )

    def get_log(self, session_id: str, since: int = 0) -> LogResponse | ErrorResponse:
        """Log entries with an id greater than `since`."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        return LogResponse(
            session_id=session_id,
            entries=[
                LogEntryInfo.model_validate(entry.to_snapshot())
                for entry in session.engine.log
                if entry.entry_id > since
            ],
        )

    def get_mission_gap(
        self,
        session_id: str,
        mission_index: int,
        group_index: int = 0,
    ) -> MissionGapResponse | ErrorResponse:
        """Report what a group still lacks for a mission's requirements."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return ErrorResponse(
                error="Session not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )
        state = session.engine.state
        if not 0 <= mission_index < len(state.missions):
            return ErrorResponse(
                error=f"Invalid mission index: {mission_index}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        deployment = state.missions[mission_index]
        if not deployment.has_group(group_index):
            return ErrorResponse(
                error=f"Invalid group index: {group_index}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        group = deployment.groups[group_index]
        requirements = session.engine.requirements
        mission = deployment.mission.definition
        gap = requirements.mission_gap(group.personnel, mission, group.cards)
        return MissionGapResponse(
            session_id=session_id,
            mission_index=mission_index,
            group_index=group_index,
            can_complete=requirements.check_mission(group.personnel, mission, group.cards),
            hint=gap.describe() if gap else None,
            gap=gap.to_dict() if gap else None,
        )

    # =========================================================================
    # Cards
    # =========================================================================

    def list_cards(self) -> CardListResponse:
        database = self.session_manager.database
        cards = [self._definition_to_info(d) for d in database.cards.values()]
        return CardListResponse(database=database.name, cards=cards, count=len(cards))

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _require_session(self, session_id: str) -> Session:
        session = self.session_manager.get_session(session_id)
        if not session:
            raise SessionNotFound(session_id)
        return session

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.engine.state
        return SessionResponse(
            session_id=session.session_id,
            status=self._session_state_to_status(session),
            turn=state.turn,
            phase=state.phase.value,
            score=state.score,
            created_at=session.created_at,
        )

    def _session_state_to_status(self, session: Session) -> SessionStatus:
        mapping = {
            SessionState.ACTIVE: SessionStatus.ACTIVE,
            SessionState.GAME_OVER: SessionStatus.GAME_OVER,
            SessionState.ABANDONED: SessionStatus.ABANDONED,
        }
        return mapping.get(session.state, SessionStatus.ACTIVE)

    def _definition_to_info(self, definition: CardDefinition) -> CardDefinitionInfo:
        details: dict[str, Any] = {}
        for name, value in vars(definition).items():
            if name in ("card_id", "name", "unique", "rule"):
                continue
            details[name] = _plain(value)
        if isinstance(definition, MissionDefinition) and definition.requirements:
            details["requirements"] = format_requirements(definition.requirements)
        if isinstance(definition, DilemmaDefinition) and definition.rule is not None:
            details["rule"] = definition.rule.rule_type.value

        return CardDefinitionInfo(
            card_id=definition.card_id,
            name=definition.name,
            card_type=definition.card_type.value,
            unique=definition.unique,
            details=details,
        )


def _plain(value: Any) -> Any:
    """Convert enums and tuples in a definition field to JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return value
