"""
Turn Phase Controller - The per-turn state machine.

    PlayAndDraw -> ExecuteOrders -> DiscardExcess -> (new turn) -> PlayAndDraw

Guards:
- Leaving PlayAndDraw requires the counters spent or the draw deck empty
- Leaving DiscardExcess requires a hand of at most seven cards

A new turn restores counters, every ship's range and every stopped
personnel. A player who starts a turn with no deck and no hand loses.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .action import ActionType
from .state import (
    GameState,
    GameStatus,
    LogType,
    MAX_HAND_SIZE,
    PersonnelStatus,
    STARTING_COUNTERS,
    TurnPhase,
)

logger = logging.getLogger(__name__)


PHASE_ACTIONS: dict[TurnPhase, frozenset[ActionType]] = {
    TurnPhase.PLAY_AND_DRAW: frozenset({
        ActionType.DRAW,
        ActionType.DEPLOY,
        ActionType.NEXT_PHASE,
    }),
    TurnPhase.EXECUTE_ORDERS: frozenset({
        ActionType.MOVE_SHIP,
        ActionType.BEAM_TO_SHIP,
        ActionType.BEAM_TO_PLANET,
        ActionType.BEAM_ALL_TO_SHIP,
        ActionType.BEAM_ALL_TO_PLANET,
        ActionType.ATTEMPT_MISSION,
        ActionType.SELECT_PERSONNEL_FOR_DILEMMA,
        ActionType.ADVANCE_DILEMMA,
        ActionType.NEXT_PHASE,
    }),
    TurnPhase.DISCARD_EXCESS: frozenset({
        ActionType.DISCARD_CARD,
        ActionType.NEXT_PHASE,
    }),
}

NEXT_PHASE: dict[TurnPhase, TurnPhase] = {
    TurnPhase.PLAY_AND_DRAW: TurnPhase.EXECUTE_ORDERS,
    TurnPhase.EXECUTE_ORDERS: TurnPhase.DISCARD_EXCESS,
    TurnPhase.DISCARD_EXCESS: TurnPhase.PLAY_AND_DRAW,
}


@dataclass
class TurnPhaseController:
    """Gates actions by phase and performs phase transitions."""
    starting_counters: int = STARTING_COUNTERS
    max_hand_size: int = MAX_HAND_SIZE

    def phase_error(self, phase: TurnPhase, action_type: ActionType) -> str | None:
        if action_type in PHASE_ACTIONS[phase]:
            return None
        return f"{action_type.value} is not allowed during {phase.value}"

    def validate_next_phase(self, state: GameState) -> str | None:
        if state.phase == TurnPhase.PLAY_AND_DRAW:
            if state.counters > 0 and state.deck:
                return f"Spend all counters first ({state.counters} remaining)"
        if state.phase == TurnPhase.DISCARD_EXCESS:
            if len(state.hand) > self.max_hand_size:
                return f"Discard down to {self.max_hand_size} cards first ({len(state.hand)} in hand)"
        return None

    def advance(self, state: GameState) -> None:
        """Move to the next phase; leaving DiscardExcess starts a new turn."""
        if state.phase == TurnPhase.DISCARD_EXCESS:
            self.start_turn(state)
            return

        previous = state.phase
        state.phase = NEXT_PHASE[previous]
        state.add_log(
            LogType.PHASE_CHANGE,
            f"Phase: {state.phase.value}",
            {"from": previous.value, "to": state.phase.value},
        )

    def start_turn(self, state: GameState) -> None:
        state.turn += 1
        state.phase = TurnPhase.PLAY_AND_DRAW
        state.counters = self.starting_counters

        for ship in state.ships():
            ship.range_remaining = ship.definition.range

        restored = 0
        for deployment in state.missions:
            for group in deployment.groups:
                for personnel in group.personnel:
                    if personnel.status == PersonnelStatus.STOPPED:
                        personnel.status = PersonnelStatus.UNSTOPPED
                        restored += 1

        state.add_log(
            LogType.NEW_TURN,
            f"Turn {state.turn} begins",
            {"turn": state.turn, "restored_personnel": restored},
        )

        if not state.deck and not state.hand:
            state.status = GameStatus.GAME_OVER
            state.victory = False
            logger.info("Game %s lost: no cards left at turn %d", state.game_id, state.turn)
            state.add_log(
                LogType.GAME_OVER,
                f"Defeat: no cards left to play. Final score {state.score}",
                {"victory": False, "score": state.score},
            )
