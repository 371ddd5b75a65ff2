"""
Modifier Resolver - Lookup for adjusted personnel stats and deploy costs.

Passive abilities (stat boosts from present cards, cost reductions) are
bookkept outside the rules core. The core only asks this resolver for the
already-adjusted numbers. The base resolver returns printed values.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..card_schema.dilemma_dsl import Attribute

if TYPE_CHECKING:
    from .state import Card, GameState, PersonnelCard


@dataclass(frozen=True)
class PersonnelStats:
    """Effective skills and attributes of one personnel."""
    skills: tuple[str, ...]
    integrity: int
    cunning: int
    strength: int

    def attribute(self, attribute: Attribute) -> int:
        return {
            Attribute.INTEGRITY: self.integrity,
            Attribute.CUNNING: self.cunning,
            Attribute.STRENGTH: self.strength,
        }[attribute]


class ModifierResolver:
    """Base resolver: no abilities, printed values only."""

    def effective_stats(self, personnel: PersonnelCard, present: list[Card]) -> PersonnelStats:
        definition = personnel.definition
        return PersonnelStats(
            skills=definition.skills,
            integrity=definition.integrity,
            cunning=definition.cunning,
            strength=definition.strength,
        )

    def deploy_cost(self, card: Card, state: GameState) -> int:
        return getattr(card.definition, "deploy", 0)
