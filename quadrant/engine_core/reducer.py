"""
Game Engine - Applies actions to the game state.

The engine is the single point of state mutation.
All state changes must go through apply().

Design principles:
- One owner: the engine holds the only GameState and processes one action
  at a time to completion
- Validates before applying; a rejected action leaves state and log as they were
- Returns ActionResult with success/failure, a snapshot and new log entries
- Delegates encounters, movement and phases to their components
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging
import uuid

from ..card_schema.definitions import CardDatabase, CardType, MissionType
from ..card_schema.validation import validate_deck_list
from .action import Action, ActionResult, ActionType
from .dilemma_rules import DilemmaRuleEvaluator
from .encounter import MissionEncounterEngine
from .modifiers import ModifierResolver
from .phases import TurnPhaseController
from .requirements import RequirementEvaluator
from .rng import RandomSource, SecureRandomSource
from .ship_movement import MovePlan, ShipMovementValidator, commit_move
from .state import (
    Card,
    DilemmaCard,
    GameState,
    GameStatus,
    Group,
    LogEntry,
    LogType,
    MissionCard,
    MissionDeployment,
    PersonnelCard,
    ShipCard,
    STARTING_COUNTERS,
    MAX_HAND_SIZE,
    TurnPhase,
    create_card,
)

logger = logging.getLogger(__name__)

ENCOUNTER_ACTIONS = frozenset({
    ActionType.SELECT_PERSONNEL_FOR_DILEMMA,
    ActionType.ADVANCE_DILEMMA,
    ActionType.RESET_GAME,
})

SYSTEM_ACTIONS = frozenset({ActionType.SETUP_GAME, ActionType.RESET_GAME})


@dataclass
class GameEngine:
    """
    Owns one GameState and applies actions to it.

    Usage:
        engine = GameEngine(database=create_borg_database())
        result = engine.apply(Action.setup_game(DEFAULT_DECK))
        result = engine.apply(Action.draw())

    The random source is the only configurable seam; it defaults to the
    operating system CSPRNG.
    """
    database: CardDatabase
    rng: RandomSource = field(default_factory=SecureRandomSource)
    modifiers: ModifierResolver = field(default_factory=ModifierResolver)
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        self._state = GameState(game_id=self.game_id)
        self.action_history: list[Action] = []
        self.requirements = RequirementEvaluator(modifiers=self.modifiers)
        self.movement = ShipMovementValidator()
        self.rules = DilemmaRuleEvaluator(rng=self.rng, requirements=self.requirements)
        self.encounters = MissionEncounterEngine(
            rng=self.rng, rules=self.rules, requirements=self.requirements
        )
        self.phases = TurnPhaseController()

    @property
    def state(self) -> GameState:
        """The live state. Read it; never mutate it outside apply()."""
        return self._state

    @property
    def log(self) -> tuple[LogEntry, ...]:
        return tuple(self._state.log)

    def snapshot(self) -> dict[str, Any]:
        return self._state.to_snapshot()

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with the new snapshot or the rejection reason.
        """
        validation_error = self._validate_action(action)
        if validation_error:
            logger.debug("Rejected %s: %s", action.action_type.value, validation_error)
            return ActionResult.failure(validation_error, error_code="INVALID_ACTION")

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        backup = self._state.clone()
        log_mark = len(self._state.log)
        try:
            result = handler(action)
        except Exception:
            logger.exception("Handler for %s failed", action.action_type.value)
            self._state = backup
            return ActionResult.failure("Internal error applying action", error_code="HANDLER_ERROR")

        if not result.success:
            self._state = backup
            result.error_code = result.error_code or "INVALID_ACTION"
            logger.debug("Rejected %s: %s", action.action_type.value, result.error)
            return result

        # Setup starts a fresh history with itself; reset leaves it empty.
        if action.action_type != ActionType.RESET_GAME:
            self.action_history.append(action)
        result.new_state = self.snapshot()
        result.new_log_entries = self._state.log[log_mark:]
        return result

    def _validate_action(self, action: Action) -> str | None:
        """
        Validate that an action is legal in the current state.

        Returns error message if invalid, None if valid.
        """
        action_type = action.action_type
        state = self._state
        if action_type in SYSTEM_ACTIONS:
            return None

        if state.status == GameStatus.SETUP:
            return "Game not started - only setup actions allowed"
        if state.status == GameStatus.GAME_OVER:
            return "Game is over - no actions allowed"

        if state.encounter is not None and action_type not in ENCOUNTER_ACTIONS:
            return "A mission attempt is in progress - resolve the current dilemma first"

        return self.phases.phase_error(state.phase, action_type)

    def _get_handler(self, action_type: ActionType) -> Callable[[Action], ActionResult] | None:
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SETUP_GAME: self._handle_setup_game,
            ActionType.RESET_GAME: self._handle_reset_game,
            ActionType.DRAW: self._handle_draw,
            ActionType.DEPLOY: self._handle_deploy,
            ActionType.NEXT_PHASE: self._handle_next_phase,
            ActionType.DISCARD_CARD: self._handle_discard,
            ActionType.MOVE_SHIP: self._handle_move_ship,
            ActionType.BEAM_TO_SHIP: self._handle_beam_to_ship,
            ActionType.BEAM_TO_PLANET: self._handle_beam_to_planet,
            ActionType.BEAM_ALL_TO_SHIP: self._handle_beam_all_to_ship,
            ActionType.BEAM_ALL_TO_PLANET: self._handle_beam_all_to_planet,
            ActionType.ATTEMPT_MISSION: self._handle_attempt_mission,
            ActionType.SELECT_PERSONNEL_FOR_DILEMMA: self._handle_select_personnel,
            ActionType.ADVANCE_DILEMMA: self._handle_advance_dilemma,
        }
        return handlers.get(action_type)

    # =========================================================================
    # System actions
    # =========================================================================

    def _handle_setup_game(self, action: Action) -> ActionResult:
        """Partition the deck list into missions, dilemma pool and draw deck."""
        deck_ids = action.payload.deck_card_ids or []
        validation = validate_deck_list(deck_ids, self.database)
        if not validation.valid:
            return ActionResult.failure("; ".join(validation.errors), error_code="INVALID_DECK")

        state = GameState(game_id=self.game_id)
        pool: list[DilemmaCard] = []
        deck: list[Card] = []
        for position, card_id in enumerate(deck_ids):
            card = create_card(self.database.get(card_id), f"{card_id}-{position}")
            if isinstance(card, MissionCard):
                state.missions.append(MissionDeployment(mission=card))
                if card.definition.is_headquarters:
                    state.headquarters_index = len(state.missions) - 1
            elif isinstance(card, DilemmaCard):
                pool.append(card)
            else:
                deck.append(card)

        state.dilemma_pool = self.rng.shuffle(pool)
        state.deck = self.rng.shuffle(deck)
        state.hand = state.deck[:STARTING_COUNTERS]
        state.deck = state.deck[STARTING_COUNTERS:]
        state.status = GameStatus.PLAYING
        state.phase = TurnPhase.PLAY_AND_DRAW
        state.turn = 1
        state.counters = STARTING_COUNTERS

        state.add_log(
            LogType.GAME_START,
            "Game started",
            {
                "missions": [m.mission.name for m in state.missions],
                "deck_size": len(state.deck),
                "dilemma_pool_size": len(state.dilemma_pool),
                "hand_size": len(state.hand),
                "warnings": validation.warnings,
            },
        )
        self._state = state
        self.action_history = []
        return ActionResult.ok([f"Game set up with {len(deck_ids)} cards"])

    def _handle_reset_game(self, action: Action) -> ActionResult:
        self._state = GameState(game_id=self.game_id)
        self.action_history = []
        return ActionResult.ok(["Game reset"])

    # =========================================================================
    # Turn actions
    # =========================================================================

    def _handle_draw(self, action: Action) -> ActionResult:
        state = self._state
        count = action.payload.count if action.payload.count is not None else 1
        if count < 1:
            return ActionResult.failure("Must draw at least one card")
        if state.counters < count:
            return ActionResult.failure(f"Not enough counters: {state.counters} remaining")
        if len(state.deck) < count:
            return ActionResult.failure(f"Not enough cards in deck: {len(state.deck)} remaining")

        drawn = state.deck[:count]
        state.deck = state.deck[count:]
        state.hand = [*state.hand, *drawn]
        state.counters -= count
        state.add_log(
            LogType.DRAW,
            f"Drew {count} card(s)",
            {"count": count, "counters": state.counters},
        )
        return ActionResult.ok([f"Drew {count}"])

    def _handle_deploy(self, action: Action) -> ActionResult:
        state = self._state
        card = state.find_in_hand(action.payload.card_id or "")
        if card is None:
            return ActionResult.failure(f"Card {action.payload.card_id} is not in hand")
        if card.card_type not in (CardType.PERSONNEL, CardType.SHIP):
            return ActionResult.failure(f"{card.name} cannot be deployed")

        mission_index = action.payload.mission_index
        if mission_index is None:
            mission_index = state.headquarters_index
        if not 0 <= mission_index < len(state.missions):
            return ActionResult.failure(f"Invalid mission index: {mission_index}")
        deployment = state.missions[mission_index]
        mission = deployment.mission.definition

        cost = self.modifiers.deploy_cost(card, state)
        if cost > state.counters:
            return ActionResult.failure(f"Not enough counters: {card.name} costs {cost}, {state.counters} remaining")
        if card.definition.unique and state.is_in_play(card.card_id):
            return ActionResult.failure(f"{card.name} is unique and already in play")
        if mission.is_headquarters and mission.play:
            if not any(a in mission.play for a in card.definition.affiliations):
                return ActionResult.failure(f"{card.name} cannot be played at {mission.name}")
        if isinstance(card, PersonnelCard) and mission.mission_type == MissionType.SPACE:
            return ActionResult.failure("Personnel cannot be deployed at a space mission")

        state.hand = [c for c in state.hand if c.unique_id != card.unique_id]
        state.counters -= cost
        if isinstance(card, ShipCard):
            deployment.groups = [*deployment.groups, Group(cards=[card])]
        else:
            deployment.replace_group(0, deployment.groups[0].with_card(card))

        state.add_log(
            LogType.DEPLOY,
            f"Deployed {card.name} to {mission.name}",
            {"card": card.unique_id, "mission_index": mission_index, "cost": cost},
        )
        return ActionResult.ok([f"Deployed {card.name}"])

    def _handle_next_phase(self, action: Action) -> ActionResult:
        error = self.phases.validate_next_phase(self._state)
        if error:
            return ActionResult.failure(error)
        self.phases.advance(self._state)
        return ActionResult.ok([f"Phase: {self._state.phase.value}"])

    def _handle_discard(self, action: Action) -> ActionResult:
        state = self._state
        if len(state.hand) <= MAX_HAND_SIZE:
            return ActionResult.failure(f"Hand has {MAX_HAND_SIZE} or fewer cards")
        card = state.find_in_hand(action.payload.card_id or "")
        if card is None:
            return ActionResult.failure(f"Card {action.payload.card_id} is not in hand")

        state.hand = [c for c in state.hand if c.unique_id != card.unique_id]
        state.discard = [*state.discard, card]
        state.add_log(LogType.DISCARD, f"Discarded {card.name}", {"card": card.unique_id})
        return ActionResult.ok([f"Discarded {card.name}"])

    # =========================================================================
    # Orders
    # =========================================================================

    def _handle_move_ship(self, action: Action) -> ActionResult:
        p = action.payload
        plan = self.movement.plan_move(
            self._state,
            p.mission_index if p.mission_index is not None else -1,
            p.group_index if p.group_index is not None else -1,
            p.dest_mission_index if p.dest_mission_index is not None else -1,
        )
        if not isinstance(plan, MovePlan):
            return ActionResult.failure(plan)

        ship = self._state.missions[plan.source_index].groups[plan.group_index].ship
        commit_move(self._state, plan)
        source = self._state.missions[plan.source_index].mission
        dest = self._state.missions[plan.dest_index].mission
        self._state.add_log(
            LogType.MOVE_SHIP,
            f"{ship.name} moved from {source.name} to {dest.name} (range {plan.cost})",
            {
                "ship": ship.unique_id,
                "from": plan.source_index,
                "to": plan.dest_index,
                "cost": plan.cost,
                "range_remaining": ship.range_remaining,
            },
        )
        return ActionResult.ok([f"Moved {ship.name}"])

    def _handle_beam_to_ship(self, action: Action) -> ActionResult:
        p = action.payload
        deployment, error = self._beam_location(p.mission_index, p.from_group, p.to_group)
        if error:
            return ActionResult.failure(error)
        if p.to_group == 0:
            return ActionResult.failure("Target group must be a ship")
        return self._beam(deployment, [p.personnel_id], p.mission_index, p.from_group, p.to_group)

    def _handle_beam_to_planet(self, action: Action) -> ActionResult:
        p = action.payload
        deployment, error = self._beam_location(p.mission_index, p.from_group, 0)
        if error:
            return ActionResult.failure(error)
        if deployment.mission.definition.mission_type == MissionType.SPACE:
            return ActionResult.failure("Cannot beam to the surface at a space mission")
        return self._beam(deployment, [p.personnel_id], p.mission_index, p.from_group, 0)

    def _handle_beam_all_to_ship(self, action: Action) -> ActionResult:
        p = action.payload
        deployment, error = self._beam_location(p.mission_index, 0, p.to_group)
        if error:
            return ActionResult.failure(error)
        ids = [c.unique_id for c in deployment.groups[0].unstopped_personnel]
        if not ids:
            return ActionResult.failure("No unstopped personnel to beam")
        return self._beam(deployment, ids, p.mission_index, 0, p.to_group)

    def _handle_beam_all_to_planet(self, action: Action) -> ActionResult:
        p = action.payload
        deployment, error = self._beam_location(p.mission_index, p.from_group, 0)
        if error:
            return ActionResult.failure(error)
        if deployment.mission.definition.mission_type == MissionType.SPACE:
            return ActionResult.failure("Cannot beam to the surface at a space mission")
        ids = [c.unique_id for c in deployment.groups[p.from_group].unstopped_personnel]
        if not ids:
            return ActionResult.failure("No unstopped personnel to beam")
        return self._beam(deployment, ids, p.mission_index, p.from_group, 0)

    def _beam_location(
        self,
        mission_index: int | None,
        from_group: int | None,
        to_group: int | None,
    ) -> tuple[MissionDeployment | None, str | None]:
        state = self._state
        if mission_index is None or not 0 <= mission_index < len(state.missions):
            return None, f"Invalid mission index: {mission_index}"
        deployment = state.missions[mission_index]
        if from_group is None or not deployment.has_group(from_group):
            return None, f"Invalid source group: {from_group}"
        if to_group is None or not deployment.has_group(to_group):
            return None, f"Invalid target group: {to_group}"
        if from_group == to_group:
            return None, "Source and target group are the same"
        return deployment, None

    def _beam(
        self,
        deployment: MissionDeployment,
        personnel_ids: list[str | None],
        mission_index: int,
        from_group: int,
        to_group: int,
    ) -> ActionResult:
        source = deployment.groups[from_group]
        moving: list[PersonnelCard] = []
        for personnel_id in personnel_ids:
            card = source.find(personnel_id or "")
            if not isinstance(card, PersonnelCard):
                return ActionResult.failure(f"Personnel {personnel_id} is not in group {from_group}")
            if not card.is_unstopped:
                return ActionResult.failure(f"{card.name} is stopped and cannot beam")
            moving.append(card)

        moving_ids = {c.unique_id for c in moving}
        target = deployment.groups[to_group]
        deployment.replace_group(from_group, Group(cards=[c for c in source.cards if c.unique_id not in moving_ids]))
        deployment.replace_group(to_group, Group(cards=[*target.cards, *moving]))

        names = ", ".join(c.name for c in moving)
        self._state.add_log(
            LogType.BEAM,
            f"Beamed {names} at {deployment.mission.name}",
            {
                "personnel": sorted(moving_ids),
                "mission_index": mission_index,
                "from_group": from_group,
                "to_group": to_group,
            },
        )
        return ActionResult.ok([f"Beamed {len(moving)} personnel"])

    # =========================================================================
    # Mission attempts
    # =========================================================================

    def _handle_attempt_mission(self, action: Action) -> ActionResult:
        p = action.payload
        error = self.encounters.validate_attempt(self._state, p.mission_index, p.group_index)
        if error:
            return ActionResult.failure(error)
        self.encounters.begin_attempt(self._state, p.mission_index, p.group_index)
        return ActionResult.ok(["Mission attempt started"])

    def _handle_select_personnel(self, action: Action) -> ActionResult:
        personnel_id = action.payload.personnel_id
        error = self.encounters.validate_selection(self._state, personnel_id)
        if error:
            return ActionResult.failure(error)
        self.encounters.select_personnel(self._state, personnel_id)
        return ActionResult.ok(["Personnel selected"])

    def _handle_advance_dilemma(self, action: Action) -> ActionResult:
        error = self.encounters.validate_advance(self._state)
        if error:
            return ActionResult.failure(error)
        self.encounters.advance(self._state)
        return ActionResult.ok(["Dilemma resolved"])
