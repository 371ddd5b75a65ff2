"""
Dilemma Rule Evaluator - Resolves one dilemma against the attacking group.

Each rule variant has its own evaluation function. Evaluation never mutates
the group: it returns a DilemmaResult describing who is stopped or killed,
whether the attacker must choose a personnel first, and where the card goes
afterwards. The encounter engine applies the result.

All random targets come from the injected RandomSource.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from ..card_schema.dilemma_dsl import (
    ChooseToStop,
    CrewLimit,
    Penalty,
    PenaltyType,
    RandomStop,
    RandomThenCheck,
    RuleType,
    UnlessCheck,
    format_requirements,
)
from .requirements import RequirementEvaluator
from .rng import RandomSource
from .state import Card, DilemmaCard, DilemmaResult, Group, PersonnelCard


@dataclass
class DilemmaRuleEvaluator:
    """Dispatches a dilemma's rule to the evaluator for its variant."""
    rng: RandomSource
    requirements: RequirementEvaluator

    def resolve(self, dilemma: DilemmaCard, group: Group) -> DilemmaResult:
        rule = dilemma.definition.rule
        if rule is None:
            return DilemmaResult(overcome=True, message=f"{dilemma.name} has no effect.")
        handler = self._get_handler(rule.rule_type)
        return handler(rule, group)

    def resolve_selection(self, personnel: PersonnelCard) -> DilemmaResult:
        """Result after the attacker picks the personnel to stop."""
        return DilemmaResult(
            overcome=True,
            stopped_ids=[personnel.unique_id],
            message=f"{personnel.name} was stopped.",
        )

    def _get_handler(self, rule_type: RuleType) -> Callable[..., DilemmaResult]:
        handlers = {
            RuleType.CHOOSE_TO_STOP: self._resolve_choose_to_stop,
            RuleType.UNLESS_CHECK: self._resolve_unless_check,
            RuleType.RANDOM_THEN_CHECK: self._resolve_random_then_check,
            RuleType.RANDOM_STOP: self._resolve_random_stop,
            RuleType.CREW_LIMIT: self._resolve_crew_limit,
        }
        return handlers[rule_type]

    # =========================================================================
    # Variants
    # =========================================================================

    def _resolve_choose_to_stop(self, rule: ChooseToStop, group: Group) -> DilemmaResult:
        """Choose a personnel who has one of the skills to be stopped. If you cannot, penalty."""
        matching = self._with_any_skill(group, rule.skills)
        if matching:
            return DilemmaResult(
                overcome=False,
                requires_selection=True,
                selectable_ids=[p.unique_id for p in matching],
                message=f"Choose a personnel with {' or '.join(rule.skills)} to stop.",
            )
        return self._apply_penalty(
            rule.penalty,
            group,
            failure_reason=f"No personnel with {' or '.join(rule.skills)}",
        )

    def _resolve_unless_check(self, rule: UnlessCheck, group: Group) -> DilemmaResult:
        """Unless the group meets one requirement set, penalty."""
        if self.requirements.check(group.personnel, rule.requirements, group.cards):
            return DilemmaResult(overcome=True, message="Requirements met. Dilemma overcome.")
        return self._apply_penalty(
            rule.penalty,
            group,
            failure_reason=f"Needed: {format_requirements(rule.requirements)}",
        )

    def _resolve_random_then_check(self, rule: RandomThenCheck, group: Group) -> DilemmaResult:
        """
        Randomly select a personnel before checking.

        Met: the target is stopped and the dilemma overcome.
        Not met: the target is killed, everyone else stopped, and the card
        returns to the pool.
        """
        unstopped = group.unstopped_personnel
        if not unstopped:
            return DilemmaResult(overcome=True, message="No personnel. Dilemma overcome.")

        target = self.rng.choice(unstopped)
        if self.requirements.check(group.personnel, rule.requirements, group.cards):
            return DilemmaResult(
                overcome=True,
                stopped_ids=[target.unique_id],
                message=f"Skills met. {target.name} stopped. Dilemma overcome.",
            )

        return DilemmaResult(
            overcome=False,
            stopped_ids=[p.unique_id for p in unstopped if p.unique_id != target.unique_id],
            killed_ids=[target.unique_id],
            returns_to_pile=True,
            message=f"Skills not met. {target.name} killed, all others stopped.",
            failure_reason=f"Needed: {format_requirements(rule.requirements)}",
        )

    def _resolve_random_stop(self, rule: RandomStop, group: Group) -> DilemmaResult:
        """Stop one random personnel per threshold that the remaining crew still meets."""
        remaining = list(group.unstopped_personnel)
        stopped: list[PersonnelCard] = []
        for threshold in rule.thresholds:
            if remaining and len(remaining) >= threshold:
                target = self.rng.choice(remaining)
                remaining = [p for p in remaining if p.unique_id != target.unique_id]
                stopped.append(target)

        if not stopped:
            return DilemmaResult(overcome=True, message="No personnel to stop. Dilemma overcome.")
        return DilemmaResult(
            overcome=True,
            stopped_ids=[p.unique_id for p in stopped],
            message=f"{', '.join(p.name for p in stopped)} randomly stopped.",
        )

    def _resolve_crew_limit(self, rule: CrewLimit, group: Group) -> DilemmaResult:
        """Keep a random subset of the crew; the card stays beneath the mission."""
        unstopped = group.unstopped_personnel
        if len(unstopped) <= rule.keep_count:
            return DilemmaResult(
                overcome=False,
                message=f"{rule.keep_count} or fewer personnel. Dilemma stays on mission.",
            )
        to_stop = self.rng.shuffle(unstopped)[rule.keep_count:]
        return DilemmaResult(
            overcome=False,
            stopped_ids=[p.unique_id for p in to_stop],
            message=f"{len(to_stop)} personnel stopped. Dilemma stays on mission.",
        )

    # =========================================================================
    # Penalties
    # =========================================================================

    def _apply_penalty(self, penalty: Penalty, group: Group, failure_reason: str) -> DilemmaResult:
        unstopped = group.unstopped_personnel

        if penalty.penalty_type == PenaltyType.RANDOM_KILL:
            if not unstopped:
                return DilemmaResult(
                    overcome=True,
                    message="No personnel to kill. Dilemma overcome.",
                    failure_reason=failure_reason,
                )
            killed = self.rng.choice(unstopped)
            return DilemmaResult(
                overcome=True,
                killed_ids=[killed.unique_id],
                message=f"{killed.name} was randomly killed.",
                failure_reason=failure_reason,
            )

        if penalty.penalty_type == PenaltyType.RANDOM_KILL_WITH_SKILL:
            candidates = self._with_any_skill(group, (penalty.skill,))
            if not candidates:
                return DilemmaResult(
                    overcome=True,
                    message=f"No personnel with {penalty.skill} to kill. Dilemma overcome.",
                    failure_reason=failure_reason,
                )
            killed = self.rng.choice(candidates)
            return DilemmaResult(
                overcome=True,
                killed_ids=[killed.unique_id],
                message=f"{killed.name} with {penalty.skill} was killed.",
                failure_reason=failure_reason,
            )

        if penalty.penalty_type == PenaltyType.CHOOSE_MATCHING_TO_STOP_ELSE_STOP_ALL:
            matching = self._with_any_skill(group, penalty.skills)
            if matching:
                return DilemmaResult(
                    overcome=False,
                    requires_selection=True,
                    selectable_ids=[p.unique_id for p in matching],
                    message=f"Choose a personnel with {' or '.join(penalty.skills)} to stop.",
                    failure_reason=failure_reason,
                )

        # STOP_ALL_RETURN_TO_PILE, or no match for a choose-matching penalty
        return DilemmaResult(
            overcome=False,
            stopped_ids=[p.unique_id for p in unstopped],
            returns_to_pile=True,
            message="All personnel stopped. Dilemma returns to the pile.",
            failure_reason=failure_reason,
        )

    def _with_any_skill(self, group: Group, skills: tuple[str, ...]) -> list[PersonnelCard]:
        present: list[Card] = group.cards
        modifiers = self.requirements.modifiers
        return [
            p for p in group.unstopped_personnel
            if any(skill in modifiers.effective_stats(p, present).skills for skill in skills)
        ]
