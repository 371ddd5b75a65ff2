"""
Dilemma DSL - Closed set of dilemma rule variants.

Every dilemma card carries exactly one rule. Rules are plain data; the
engine's DilemmaRuleEvaluator has one evaluation function per variant.

Variants:
- ChooseToStop: attacker picks a matching personnel to stop, else penalty
- UnlessCheck: nothing happens if any requirement set passes, else penalty
- RandomThenCheck: a random target is picked first, then requirements checked
- RandomStop: graduated random stops based on how many personnel remain
- CrewLimit: stop the excess above a crew size; card stays on the mission

New behaviors are added by adding a variant and its evaluator, never by
comparing rule names.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class Attribute(Enum):
    """Personnel attributes usable in requirements."""
    INTEGRITY = "Integrity"
    CUNNING = "Cunning"
    STRENGTH = "Strength"


class RuleType(Enum):
    CHOOSE_TO_STOP = "chooseToStop"
    UNLESS_CHECK = "unlessCheck"
    RANDOM_THEN_CHECK = "randomThenCheck"
    RANDOM_STOP = "randomStop"
    CREW_LIMIT = "crewLimit"


class PenaltyType(Enum):
    RANDOM_KILL = "randomKill"
    RANDOM_KILL_WITH_SKILL = "randomKillWithSkill"
    STOP_ALL_RETURN_TO_PILE = "stopAllReturnToPile"
    CHOOSE_MATCHING_TO_STOP_ELSE_STOP_ALL = "chooseMatchingToStopElseStopAll"


@dataclass(frozen=True)
class Requirement:
    """
    One requirement set: a multiset of skills plus an optional attribute check.

    The attribute total must be strictly greater than `threshold`.
    With `single_personnel`, one personnel must meet the whole set alone.
    """
    skills: tuple[str, ...] = ()
    attribute: Attribute | None = None
    threshold: int | None = None
    single_personnel: bool = False

    @property
    def has_attribute_check(self) -> bool:
        return self.attribute is not None and self.threshold is not None


@dataclass(frozen=True)
class Penalty:
    """What happens when a check fails."""
    penalty_type: PenaltyType
    skill: str | None = None  # RANDOM_KILL_WITH_SKILL
    skills: tuple[str, ...] = ()  # CHOOSE_MATCHING_TO_STOP_ELSE_STOP_ALL


@dataclass(frozen=True)
class ChooseToStop:
    skills: tuple[str, ...]
    penalty: Penalty
    rule_type: ClassVar[RuleType] = RuleType.CHOOSE_TO_STOP


@dataclass(frozen=True)
class UnlessCheck:
    requirements: tuple[Requirement, ...]
    penalty: Penalty
    rule_type: ClassVar[RuleType] = RuleType.UNLESS_CHECK


@dataclass(frozen=True)
class RandomThenCheck:
    requirements: tuple[Requirement, ...]
    rule_type: ClassVar[RuleType] = RuleType.RANDOM_THEN_CHECK


@dataclass(frozen=True)
class RandomStop:
    """Each threshold stops one more random personnel if that many remain."""
    thresholds: tuple[int, ...] = (1, 9, 10)
    rule_type: ClassVar[RuleType] = RuleType.RANDOM_STOP


@dataclass(frozen=True)
class CrewLimit:
    keep_count: int
    rule_type: ClassVar[RuleType] = RuleType.CREW_LIMIT


DilemmaRule = Union[ChooseToStop, UnlessCheck, RandomThenCheck, RandomStop, CrewLimit]


# ============================================================================
# Factory functions for common rule patterns
# ============================================================================

def requirement(
    *skills: str,
    attribute: Attribute | None = None,
    threshold: int | None = None,
    single_personnel: bool = False,
) -> Requirement:
    """Create a requirement set."""
    return Requirement(
        skills=tuple(skills),
        attribute=attribute,
        threshold=threshold,
        single_personnel=single_personnel,
    )


def random_kill() -> Penalty:
    return Penalty(PenaltyType.RANDOM_KILL)


def random_kill_with_skill(skill: str) -> Penalty:
    return Penalty(PenaltyType.RANDOM_KILL_WITH_SKILL, skill=skill)


def stop_all_return_to_pile() -> Penalty:
    return Penalty(PenaltyType.STOP_ALL_RETURN_TO_PILE)


def choose_matching_to_stop(*skills: str) -> Penalty:
    """Attacker chooses a matching personnel to stop; if none, stop all and return."""
    return Penalty(PenaltyType.CHOOSE_MATCHING_TO_STOP_ELSE_STOP_ALL, skills=tuple(skills))


def format_requirement(req: Requirement) -> str:
    """Render one requirement set, e.g. '2 Medical + Cunning>32'."""
    parts: list[str] = []
    counts: dict[str, int] = {}
    for skill in req.skills:
        counts[skill] = counts.get(skill, 0) + 1
    for skill, count in counts.items():
        parts.append(f"{count} {skill}" if count > 1 else skill)
    if req.has_attribute_check:
        parts.append(f"{req.attribute.value}>{req.threshold}")
    joined = " + ".join(parts)
    return f"one personnel with {joined}" if req.single_personnel else joined


def format_requirements(requirements: tuple[Requirement, ...] | list[Requirement]) -> str:
    return " or ".join(format_requirement(r) for r in requirements)
