"""
Requirement Evaluator - Skill and attribute checks against a roster.

Used by mission scoring and dilemma checks. Pure: it never mutates cards.

A requirement expression is a list of alternative sets. Sets are tried in
declaration order and the first satisfied one wins. For a group set, skills
and attributes of every unstopped personnel are pooled; each required skill
occurrence consumes one from the pool, and the pooled attribute must be
strictly greater than the threshold. A single-personnel set must be met by
one personnel alone.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from ..card_schema.definitions import MissionDefinition
from ..card_schema.dilemma_dsl import Attribute, Requirement
from .modifiers import ModifierResolver, PersonnelStats
from .state import Card, PersonnelCard


@dataclass
class RosterStats:
    """Pooled skills and attributes of a roster."""
    unstopped: int = 0
    integrity: int = 0
    cunning: int = 0
    strength: int = 0
    skills: dict[str, int] = field(default_factory=dict)

    def attribute(self, attribute: Attribute) -> int:
        return {
            Attribute.INTEGRITY: self.integrity,
            Attribute.CUNNING: self.cunning,
            Attribute.STRENGTH: self.strength,
        }[attribute]

    def add(self, stats: PersonnelStats) -> None:
        self.unstopped += 1
        self.integrity += stats.integrity
        self.cunning += stats.cunning
        self.strength += stats.strength
        for skill in stats.skills:
            self.skills[skill] = self.skills.get(skill, 0) + 1


@dataclass
class AttributeGap:
    attribute: Attribute
    need: int
    have: int


@dataclass
class MissionGap:
    """What the closest requirement alternative of a mission still lacks."""
    missing_skills: list[str] = field(default_factory=list)
    attribute_gap: AttributeGap | None = None
    missing_affiliation: bool = False

    @property
    def total_missing(self) -> int:
        return len(self.missing_skills) + (1 if self.attribute_gap else 0)

    def describe(self) -> str:
        parts: list[str] = []
        if self.missing_affiliation:
            parts.append("Wrong affiliation")
        counts: dict[str, int] = {}
        for skill in self.missing_skills:
            counts[skill] = counts.get(skill, 0) + 1
        for skill, count in counts.items():
            parts.append(f"{count} {skill}" if count > 1 else skill)
        if self.attribute_gap:
            gap = self.attribute_gap
            parts.append(f"{gap.attribute.value} {gap.have}/{gap.need}")
        return "Need: " + ", ".join(parts) if parts else "Ready"

    def to_dict(self) -> dict[str, Any]:
        return {
            "missing_skills": list(self.missing_skills),
            "attribute_gap": (
                {
                    "attribute": self.attribute_gap.attribute.value,
                    "need": self.attribute_gap.need,
                    "have": self.attribute_gap.have,
                }
                if self.attribute_gap else None
            ),
            "missing_affiliation": self.missing_affiliation,
        }


@dataclass
class RequirementEvaluator:
    """Stateless requirement checks; effective stats come from the modifier resolver."""
    modifiers: ModifierResolver = field(default_factory=ModifierResolver)

    def roster_stats(
        self,
        roster: list[PersonnelCard],
        present: list[Card] | None = None,
    ) -> RosterStats:
        """Pool the stats of the unstopped members of a roster."""
        present = present if present is not None else list(roster)
        stats = RosterStats()
        for personnel in roster:
            if personnel.is_unstopped:
                stats.add(self.modifiers.effective_stats(personnel, present))
        return stats

    def satisfies(
        self,
        roster: list[PersonnelCard],
        requirement: Requirement,
        present: list[Card] | None = None,
    ) -> bool:
        if requirement.single_personnel:
            return self._single_personnel_satisfies(roster, requirement, present)
        return self._group_satisfies(self.roster_stats(roster, present), requirement)

    def first_satisfied(
        self,
        roster: list[PersonnelCard],
        requirements: tuple[Requirement, ...] | list[Requirement],
        present: list[Card] | None = None,
    ) -> int | None:
        """Index of the first satisfied alternative, or None."""
        stats = self.roster_stats(roster, present)
        for index, requirement in enumerate(requirements):
            if requirement.single_personnel:
                if self._single_personnel_satisfies(roster, requirement, present):
                    return index
            elif self._group_satisfies(stats, requirement):
                return index
        return None

    def check(
        self,
        roster: list[PersonnelCard],
        requirements: tuple[Requirement, ...] | list[Requirement],
        present: list[Card] | None = None,
    ) -> bool:
        """True if any alternative passes. An empty expression always passes."""
        if not requirements:
            return True
        return self.first_satisfied(roster, requirements, present) is not None

    def check_mission(
        self,
        roster: list[PersonnelCard],
        mission: MissionDefinition,
        present: list[Card] | None = None,
    ) -> bool:
        """Missions without requirement alternatives (headquarters) can never be completed."""
        if not mission.requirements:
            return False
        return self.first_satisfied(roster, mission.requirements, present) is not None

    def mission_gap(
        self,
        roster: list[PersonnelCard],
        mission: MissionDefinition,
        present: list[Card] | None = None,
    ) -> MissionGap | None:
        """
        Describe the closest requirement alternative (fewest missing items).

        Returns None for headquarters.
        """
        if not mission.requirements:
            return None

        stats = self.roster_stats(roster, present)
        unstopped = [p for p in roster if p.is_unstopped]
        missing_affiliation = bool(mission.affiliations) and not any(
            affiliation in mission.affiliations
            for p in unstopped
            for affiliation in p.affiliations
        )

        best: MissionGap | None = None
        for requirement in mission.requirements:
            available = dict(stats.skills)
            missing: list[str] = []
            for skill in requirement.skills:
                if available.get(skill, 0) <= 0:
                    missing.append(skill)
                else:
                    available[skill] -= 1

            attribute_gap = None
            if requirement.has_attribute_check:
                have = stats.attribute(requirement.attribute)
                if have <= requirement.threshold:
                    attribute_gap = AttributeGap(
                        attribute=requirement.attribute,
                        need=requirement.threshold + 1,
                        have=have,
                    )

            gap = MissionGap(
                missing_skills=missing,
                attribute_gap=attribute_gap,
                missing_affiliation=missing_affiliation,
            )
            if best is None or gap.total_missing < best.total_missing:
                best = gap
        return best

    def _group_satisfies(self, stats: RosterStats, requirement: Requirement) -> bool:
        available = dict(stats.skills)
        for skill in requirement.skills:
            count = available.get(skill, 0)
            if count <= 0:
                return False
            available[skill] = count - 1

        if requirement.has_attribute_check:
            if stats.attribute(requirement.attribute) <= requirement.threshold:
                return False
        return True

    def _single_personnel_satisfies(
        self,
        roster: list[PersonnelCard],
        requirement: Requirement,
        present: list[Card] | None,
    ) -> bool:
        present = present if present is not None else list(roster)
        needed: dict[str, int] = {}
        for skill in requirement.skills:
            needed[skill] = needed.get(skill, 0) + 1

        for personnel in roster:
            if not personnel.is_unstopped:
                continue
            stats = self.modifiers.effective_stats(personnel, present)
            if any(stats.skills.count(skill) < count for skill, count in needed.items()):
                continue
            if requirement.has_attribute_check:
                if stats.attribute(requirement.attribute) <= requirement.threshold:
                    continue
            return True
        return False
