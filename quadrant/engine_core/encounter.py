"""
Mission Encounter Engine - Runs one mission attempt from draw to scoring.

An attempt proceeds in two stages:

1. ATTEMPT_MISSION
   - budget = unstopped personnel - overcome dilemmas beneath the mission
   - dilemmas parked beneath the mission (not overcome) rejoin at zero cost
   - face-down applicable pool cards are drawn in pool order; face-up ones
     are skipped, and when only face-up applicable cards remain the pool
     is flipped face-down and reshuffled
   - candidates are kept greedily while their cost fits the budget; the
     rest go back to the pool face-up
   - the kept cards are shuffled and the first one is resolved

2. ADVANCE_DILEMMA (repeated)
   - apply the pending result and place the card
   - if the group has nobody left standing, bury the queue and fail
   - otherwise face the next card; a second copy of a card already faced
     is overcome without effect
   - when the queue is empty, score the mission

The engine mutates the GameState passed in; the GameEngine guarantees it
only calls in after validation.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from ..card_schema.definitions import MissionType
from .dilemma_rules import DilemmaRuleEvaluator
from .requirements import RequirementEvaluator
from .rng import RandomSource
from .state import (
    DilemmaCard,
    DilemmaEncounter,
    DilemmaResult,
    GameState,
    GameStatus,
    LogType,
    MissionDeployment,
    PersonnelCard,
    PersonnelStatus,
    TurnPhase,
    WIN_SCORE,
)

logger = logging.getLogger(__name__)


@dataclass
class MissionEncounterEngine:
    """Owns the dilemma sequence of a mission attempt."""
    rng: RandomSource
    rules: DilemmaRuleEvaluator
    requirements: RequirementEvaluator
    win_score: int = WIN_SCORE

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_attempt(self, state: GameState, mission_index: int | None, group_index: int | None) -> str | None:
        """Returns error message if the attempt is illegal, None if legal."""
        if state.phase != TurnPhase.EXECUTE_ORDERS:
            return "Missions can only be attempted during ExecuteOrders"
        if state.encounter is not None:
            return "A mission attempt is already in progress"
        if mission_index is None or not 0 <= mission_index < len(state.missions):
            return f"Invalid mission index: {mission_index}"

        deployment = state.missions[mission_index]
        mission = deployment.mission
        if mission.definition.is_headquarters:
            return "Headquarters cannot be attempted"
        if mission.completed:
            return f"{mission.name} is already completed"
        if group_index is None or not deployment.has_group(group_index):
            return f"Invalid group index: {group_index}"

        unstopped = deployment.groups[group_index].unstopped_personnel
        if not unstopped:
            return "No unstopped personnel in that group"

        affiliations = mission.definition.affiliations
        if affiliations and not any(
            affiliation in affiliations for p in unstopped for affiliation in p.affiliations
        ):
            return f"No unstopped personnel matches {mission.name}'s affiliations"
        return None

    def validate_selection(self, state: GameState, personnel_id: str | None) -> str | None:
        encounter = state.encounter
        if encounter is None:
            return "No mission attempt in progress"
        if not encounter.awaiting_selection:
            return "The current dilemma does not require a selection"
        if personnel_id not in encounter.pending.selectable_ids:
            return f"Personnel {personnel_id} cannot be selected for this dilemma"
        return None

    def validate_advance(self, state: GameState) -> str | None:
        encounter = state.encounter
        if encounter is None:
            return "No mission attempt in progress"
        if encounter.awaiting_selection:
            return "Select a personnel for the current dilemma first"
        return None

    # =========================================================================
    # Attempt
    # =========================================================================

    def begin_attempt(self, state: GameState, mission_index: int, group_index: int) -> None:
        deployment = state.missions[mission_index]
        mission = deployment.mission
        group = deployment.groups[group_index]

        unstopped = len(group.unstopped_personnel)
        budget = max(0, unstopped - deployment.overcome_count)
        state.add_log(
            LogType.MISSION_ATTEMPT,
            f"Attempting {mission.name} with {unstopped} personnel",
            {
                "mission_index": mission_index,
                "group_index": group_index,
                "draw_budget": budget,
                "cost_budget": budget,
            },
        )

        parked = deployment.parked_dilemmas
        deployment.dilemmas = [d for d in deployment.dilemmas if d.overcome]

        drawn = self._draw_candidates(state, mission.definition.mission_type, budget)
        selected, cost_spent = self._select(state, parked, drawn, budget)
        selected = self.rng.shuffle(selected)

        state.add_log(
            LogType.DILEMMA_DRAW,
            f"{len(selected)} dilemma(s) face {mission.name}",
            {
                "drawn": [d.unique_id for d in drawn],
                "re_encountered": [d.unique_id for d in parked],
                "selected": [d.unique_id for d in selected],
                "cost_spent": cost_spent,
            },
        )

        if not selected:
            self._score_mission(state, mission_index, group_index)
            return

        state.encounter = DilemmaEncounter(
            mission_index=mission_index,
            group_index=group_index,
            selected=selected,
            draw_budget=budget,
            cost_budget=budget,
            cost_spent=cost_spent,
        )
        self._face_current(state)

    def _draw_candidates(self, state: GameState, mission_type: MissionType, budget: int) -> list[DilemmaCard]:
        """Take up to `budget` face-down applicable cards off the pool, in pool order."""
        drawn: list[DilemmaCard] = []
        while len(drawn) < budget:
            index = self._next_face_down(state.dilemma_pool, mission_type)
            if index is None:
                if any(d.definition.where.applies_to(mission_type) for d in state.dilemma_pool):
                    self._reshuffle_pool(state)
                    continue
                break
            drawn.append(state.dilemma_pool[index])
            state.dilemma_pool = [d for i, d in enumerate(state.dilemma_pool) if i != index]
        return drawn

    @staticmethod
    def _next_face_down(pool: list[DilemmaCard], mission_type: MissionType) -> int | None:
        for index, dilemma in enumerate(pool):
            if not dilemma.faceup and dilemma.definition.where.applies_to(mission_type):
                return index
        return None

    def _reshuffle_pool(self, state: GameState) -> None:
        for dilemma in state.dilemma_pool:
            dilemma.faceup = False
        state.dilemma_pool = self.rng.shuffle(state.dilemma_pool)
        logger.info("Dilemma pool reshuffled (%d cards)", len(state.dilemma_pool))
        state.add_log(
            LogType.DILEMMA_DRAW,
            "Dilemma pile reshuffled",
            {"reshuffle": True, "pool_size": len(state.dilemma_pool)},
        )

    def _select(
        self,
        state: GameState,
        parked: list[DilemmaCard],
        drawn: list[DilemmaCard],
        budget: int,
    ) -> tuple[list[DilemmaCard], int]:
        """Greedy selection in draw order; re-encountered cards cost nothing."""
        selected = list(parked)
        spent = 0
        returned: list[DilemmaCard] = []
        for dilemma in drawn:
            if spent + dilemma.cost <= budget:
                selected.append(dilemma)
                spent += dilemma.cost
            else:
                dilemma.faceup = True
                returned.append(dilemma)
        state.dilemma_pool = [*state.dilemma_pool, *returned]
        return selected, spent

    # =========================================================================
    # Resolution
    # =========================================================================

    def select_personnel(self, state: GameState, personnel_id: str) -> None:
        encounter = state.encounter
        group = state.missions[encounter.mission_index].groups[encounter.group_index]
        personnel = group.find(personnel_id)
        encounter.pending = self.rules.resolve_selection(personnel)
        state.add_log(
            LogType.DILEMMA_RESULT,
            f"{encounter.current.name}: {personnel.name} selected to be stopped",
            {"dilemma": encounter.current.unique_id, "personnel_id": personnel_id},
        )

    def advance(self, state: GameState) -> None:
        encounter = state.encounter
        deployment = state.missions[encounter.mission_index]
        dilemma = encounter.current
        result = encounter.pending

        self._apply_effects(state, deployment, encounter.group_index, result)
        if result.returns_to_pile:
            dilemma.overcome = False
            dilemma.faceup = True
            state.dilemma_pool = [*state.dilemma_pool, dilemma]
        else:
            self._place_beneath(deployment, dilemma, overcome=result.overcome)
        encounter.pending = None

        state.add_log(
            LogType.DILEMMA_RESULT,
            f"{dilemma.name}: {result.message}",
            {
                "dilemma": dilemma.unique_id,
                "overcome": result.overcome,
                "returns_to_pile": result.returns_to_pile,
                "stopped": list(result.stopped_ids),
                "killed": list(result.killed_ids),
                "failure_reason": result.failure_reason,
            },
        )

        group = deployment.groups[encounter.group_index]
        if group.all_personnel_down:
            buried = encounter.queued_after_current
            for queued in buried:
                self._place_beneath(deployment, queued, overcome=True)
            state.add_log(
                LogType.DILEMMA_RESULT,
                "All personnel stopped or killed; remaining dilemmas are overcome",
                {"buried": [d.unique_id for d in buried]},
            )
            state.encounter = None
            self._score_mission(state, encounter.mission_index, encounter.group_index)
            return

        encounter.cursor += 1
        self._face_current(state)

    def _face_current(self, state: GameState) -> None:
        """Resolve the card under the cursor, skipping duplicates; score when exhausted."""
        encounter = state.encounter
        deployment = state.missions[encounter.mission_index]

        while encounter.current is not None:
            dilemma = encounter.current
            if dilemma.card_id in encounter.faced_ids:
                self._place_beneath(deployment, dilemma, overcome=True)
                logger.info("Duplicate dilemma %s auto-overcome", dilemma.unique_id)
                state.add_log(
                    LogType.DILEMMA_RESULT,
                    f"{dilemma.name}: duplicate copy, overcome without effect",
                    {"dilemma": dilemma.unique_id, "duplicate": True, "overcome": True},
                )
                encounter.cursor += 1
                continue

            encounter.faced_ids.add(dilemma.card_id)
            group = deployment.groups[encounter.group_index]
            encounter.pending = self.rules.resolve(dilemma, group)
            state.add_log(
                LogType.DILEMMA_DRAW,
                f"Facing {dilemma.name}",
                {
                    "dilemma": dilemma.unique_id,
                    "position": encounter.cursor + 1,
                    "of": len(encounter.selected),
                    "requires_selection": encounter.pending.requires_selection,
                },
            )
            return

        state.encounter = None
        self._score_mission(state, encounter.mission_index, encounter.group_index)

    def _apply_effects(
        self,
        state: GameState,
        deployment: MissionDeployment,
        group_index: int,
        result: DilemmaResult,
    ) -> None:
        group = deployment.groups[group_index]
        for card in group.personnel:
            if card.unique_id in result.stopped_ids and card.is_unstopped:
                card.status = PersonnelStatus.STOPPED

        for unique_id in result.killed_ids:
            card = group.find(unique_id)
            if not isinstance(card, PersonnelCard):
                continue
            card.status = PersonnelStatus.KILLED
            group = group.without_card(unique_id)
            state.discard = [*state.discard, card]
        deployment.replace_group(group_index, group)

    @staticmethod
    def _place_beneath(deployment: MissionDeployment, dilemma: DilemmaCard, overcome: bool) -> None:
        dilemma.faceup = True
        dilemma.overcome = overcome
        deployment.dilemmas = [*deployment.dilemmas, dilemma]

    # =========================================================================
    # Scoring
    # =========================================================================

    def _score_mission(self, state: GameState, mission_index: int, group_index: int) -> bool:
        deployment = state.missions[mission_index]
        mission = deployment.mission
        group = deployment.groups[group_index]
        definition = mission.definition

        if self.requirements.check_mission(group.personnel, definition, group.cards):
            mission.completed = True
            state.score += definition.score
            if definition.mission_type == MissionType.PLANET:
                state.completed_planet_missions += 1
            elif definition.mission_type == MissionType.SPACE:
                state.completed_space_missions += 1
            state.add_log(
                LogType.MISSION_COMPLETE,
                f"{mission.name} completed for {definition.score} points",
                {"mission_index": mission_index, "points": definition.score, "score": state.score},
            )
            self._check_victory(state)
            return True

        gap = self.requirements.mission_gap(group.personnel, definition, group.cards)
        for personnel in group.personnel:
            personnel.status = PersonnelStatus.STOPPED
        state.add_log(
            LogType.MISSION_FAIL,
            f"{mission.name} attempt failed",
            {
                "mission_index": mission_index,
                "gap": gap.to_dict() if gap else None,
                "hint": gap.describe() if gap else None,
            },
        )
        return False

    def _check_victory(self, state: GameState) -> None:
        if (
            state.score >= self.win_score
            and state.completed_planet_missions >= 1
            and state.completed_space_missions >= 1
        ):
            state.status = GameStatus.GAME_OVER
            state.victory = True
            logger.info("Game %s won with %d points", state.game_id, state.score)
            state.add_log(
                LogType.GAME_OVER,
                f"Victory! Final score {state.score}",
                {"victory": True, "score": state.score},
            )
