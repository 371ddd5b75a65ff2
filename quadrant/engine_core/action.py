"""
Action System - Actions, payloads, and results.

Actions represent:
1. Turn actions (draw, deploy, next phase, discard)
2. Orders (move ship, beam, attempt mission)
3. Encounter responses (select personnel, advance dilemma)
4. System actions (setup game, reset game)

All state changes flow through actions. Every action carries a
correlation id so clients can match results and events to requests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the protocol."""
    # System actions
    SETUP_GAME = "SETUP_GAME"
    RESET_GAME = "RESET_GAME"

    # Turn actions
    DRAW = "DRAW"
    DEPLOY = "DEPLOY"
    NEXT_PHASE = "NEXT_PHASE"
    DISCARD_CARD = "DISCARD_CARD"

    # Orders
    MOVE_SHIP = "MOVE_SHIP"
    BEAM_TO_SHIP = "BEAM_TO_SHIP"
    BEAM_TO_PLANET = "BEAM_TO_PLANET"
    BEAM_ALL_TO_SHIP = "BEAM_ALL_TO_SHIP"
    BEAM_ALL_TO_PLANET = "BEAM_ALL_TO_PLANET"
    ATTEMPT_MISSION = "ATTEMPT_MISSION"

    # Encounter responses
    SELECT_PERSONNEL_FOR_DILEMMA = "SELECT_PERSONNEL_FOR_DILEMMA"
    ADVANCE_DILEMMA = "ADVANCE_DILEMMA"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    This is a generic container; validation happens in the engine.
    """
    deck_card_ids: list[str] | None = None
    count: int | None = None

    # Cards are addressed by unique instance id
    card_id: str | None = None
    personnel_id: str | None = None

    # Locations
    mission_index: int | None = None
    group_index: int | None = None
    dest_mission_index: int | None = None
    from_group: int | None = None
    to_group: int | None = None


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the engine
    - Recorded in the engine's history when they succeed
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    request_id: str | None = None

    @classmethod
    def setup_game(cls, deck_card_ids: list[str], request_id: str | None = None) -> Action:
        return cls(ActionType.SETUP_GAME, ActionPayload(deck_card_ids=list(deck_card_ids)), request_id)

    @classmethod
    def reset_game(cls, request_id: str | None = None) -> Action:
        return cls(ActionType.RESET_GAME, ActionPayload(), request_id)

    @classmethod
    def draw(cls, count: int = 1, request_id: str | None = None) -> Action:
        return cls(ActionType.DRAW, ActionPayload(count=count), request_id)

    @classmethod
    def deploy(
        cls,
        card_id: str,
        mission_index: int | None = None,
        request_id: str | None = None,
    ) -> Action:
        """Factory for deploy; mission_index defaults to headquarters."""
        return cls(
            ActionType.DEPLOY,
            ActionPayload(card_id=card_id, mission_index=mission_index),
            request_id,
        )

    @classmethod
    def next_phase(cls, request_id: str | None = None) -> Action:
        return cls(ActionType.NEXT_PHASE, ActionPayload(), request_id)

    @classmethod
    def discard(cls, card_id: str, request_id: str | None = None) -> Action:
        return cls(ActionType.DISCARD_CARD, ActionPayload(card_id=card_id), request_id)

    @classmethod
    def move_ship(
        cls,
        mission_index: int,
        group_index: int,
        dest_mission_index: int,
        request_id: str | None = None,
    ) -> Action:
        return cls(
            ActionType.MOVE_SHIP,
            ActionPayload(
                mission_index=mission_index,
                group_index=group_index,
                dest_mission_index=dest_mission_index,
            ),
            request_id,
        )

    @classmethod
    def beam_to_ship(
        cls,
        personnel_id: str,
        mission_index: int,
        from_group: int,
        to_group: int,
        request_id: str | None = None,
    ) -> Action:
        return cls(
            ActionType.BEAM_TO_SHIP,
            ActionPayload(
                personnel_id=personnel_id,
                mission_index=mission_index,
                from_group=from_group,
                to_group=to_group,
            ),
            request_id,
        )

    @classmethod
    def beam_to_planet(
        cls,
        personnel_id: str,
        mission_index: int,
        from_group: int,
        request_id: str | None = None,
    ) -> Action:
        return cls(
            ActionType.BEAM_TO_PLANET,
            ActionPayload(personnel_id=personnel_id, mission_index=mission_index, from_group=from_group),
            request_id,
        )

    @classmethod
    def beam_all_to_ship(cls, mission_index: int, to_group: int, request_id: str | None = None) -> Action:
        return cls(
            ActionType.BEAM_ALL_TO_SHIP,
            ActionPayload(mission_index=mission_index, to_group=to_group),
            request_id,
        )

    @classmethod
    def beam_all_to_planet(cls, mission_index: int, from_group: int, request_id: str | None = None) -> Action:
        return cls(
            ActionType.BEAM_ALL_TO_PLANET,
            ActionPayload(mission_index=mission_index, from_group=from_group),
            request_id,
        )

    @classmethod
    def attempt_mission(cls, mission_index: int, group_index: int, request_id: str | None = None) -> Action:
        return cls(
            ActionType.ATTEMPT_MISSION,
            ActionPayload(mission_index=mission_index, group_index=group_index),
            request_id,
        )

    @classmethod
    def select_personnel(cls, personnel_id: str, request_id: str | None = None) -> Action:
        return cls(
            ActionType.SELECT_PERSONNEL_FOR_DILEMMA,
            ActionPayload(personnel_id=personnel_id),
            request_id,
        )

    @classmethod
    def advance_dilemma(cls, request_id: str | None = None) -> Action:
        return cls(ActionType.ADVANCE_DILEMMA, ActionPayload(), request_id)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - Snapshot of the new state (if succeeded)
    - Reason and error code (if failed)
    - Log entries appended by this action
    """
    success: bool
    new_state: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)
    new_log_entries: list[Any] = field(default_factory=list)  # LogEntry

    @property
    def reason(self) -> str | None:
        return self.error

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, changes: list[str] | None = None) -> ActionResult:
        """Create a success result; the engine attaches the snapshot and log entries."""
        return cls(success=True, state_changes=changes or [])
