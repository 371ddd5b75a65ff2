"""
Card Validation - Checks for card databases and deck lists.

Validates that:
1. Every deck id resolves to a definition
2. The deck holds exactly five missions with one headquarters
3. Skills named anywhere are known skills
4. Dilemmas carry a rule and a non-negative cost
"""

from __future__ import annotations
from dataclasses import dataclass

from .definitions import (
    ALL_SKILLS,
    CardDatabase,
    CardDefinition,
    CardType,
    DilemmaDefinition,
    MissionDefinition,
    PersonnelDefinition,
    ShipDefinition,
)
from .dilemma_dsl import ChooseToStop, UnlessCheck, RandomThenCheck, Penalty, Requirement

MISSION_COUNT = 5


class DeckValidationError(Exception):
    """Raised when deck or database validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Deck validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_deck_list(
    deck_card_ids: list[str],
    database: CardDatabase,
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate a deck list against a card database.

    Returns ValidationResult with errors and warnings.
    Raises DeckValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    unknown = sorted({cid for cid in deck_card_ids if cid not in database})
    for card_id in unknown:
        errors.append(f"Unknown card id: {card_id}")

    definitions = [database.get(cid) for cid in deck_card_ids if cid in database]
    missions = [d for d in definitions if d.card_type == CardType.MISSION]
    if len(missions) != MISSION_COUNT:
        errors.append(f"Deck must contain exactly {MISSION_COUNT} missions, found {len(missions)}")

    headquarters = [m for m in missions if m.is_headquarters]
    if len(headquarters) != 1:
        errors.append(f"Deck must contain exactly 1 headquarters mission, found {len(headquarters)}")

    mission_ids = [m.card_id for m in missions]
    if len(set(mission_ids)) != len(mission_ids):
        errors.append("Deck contains the same mission more than once")

    if not any(d.card_type == CardType.DILEMMA for d in definitions):
        warnings.append("Deck has no dilemmas; mission attempts will face none")

    if not any(d.card_type in (CardType.PERSONNEL, CardType.SHIP) for d in definitions):
        warnings.append("Deck has nothing deployable")

    result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
    if raise_on_error and errors:
        raise DeckValidationError(errors)
    return result


def validate_database(database: CardDatabase) -> ValidationResult:
    """Validate every definition in a card database."""
    errors: list[str] = []
    warnings: list[str] = []

    for card_id, definition in database.cards.items():
        if card_id != definition.card_id:
            errors.append(f"{card_id}: keyed under a different id ({definition.card_id})")
        errors.extend(_validate_card(definition))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_card(card: CardDefinition) -> list[str]:
    errors: list[str] = []
    prefix = f"{card.card_id} ({card.name})"

    if isinstance(card, MissionDefinition):
        for alternative in card.skills:
            errors.extend(_unknown_skills(prefix, alternative))
        if card.skills and card.attribute is None:
            errors.append(f"{prefix}: mission requirements need an attribute")
        if card.is_headquarters and card.skills:
            errors.append(f"{prefix}: headquarters cannot have requirements")
    elif isinstance(card, PersonnelDefinition):
        errors.extend(_unknown_skills(prefix, card.skills))
        if not card.icons:
            errors.append(f"{prefix}: personnel needs a staffing icon")
    elif isinstance(card, ShipDefinition):
        if card.range < 0:
            errors.append(f"{prefix}: range must be >= 0")
        if not card.staffing:
            errors.append(f"{prefix}: ship needs a staffing requirement")
    elif isinstance(card, DilemmaDefinition):
        if card.rule is None:
            errors.append(f"{prefix}: dilemma has no rule")
        if card.cost < 0:
            errors.append(f"{prefix}: cost must be >= 0")
        errors.extend(_validate_rule(prefix, card))

    return errors


def _validate_rule(prefix: str, card: DilemmaDefinition) -> list[str]:
    rule = card.rule
    errors: list[str] = []
    if isinstance(rule, ChooseToStop):
        errors.extend(_unknown_skills(prefix, rule.skills))
    if isinstance(rule, (UnlessCheck, RandomThenCheck)):
        for req in rule.requirements:
            errors.extend(_validate_requirement(prefix, req))
    if isinstance(rule, (ChooseToStop, UnlessCheck)):
        errors.extend(_validate_penalty(prefix, rule.penalty))
    return errors


def _validate_penalty(prefix: str, penalty: Penalty) -> list[str]:
    skills = penalty.skills + ((penalty.skill,) if penalty.skill else ())
    return _unknown_skills(prefix, skills)


def _validate_requirement(prefix: str, req: Requirement) -> list[str]:
    errors = _unknown_skills(prefix, req.skills)
    if (req.attribute is None) != (req.threshold is None):
        errors.append(f"{prefix}: attribute and threshold must be given together")
    return errors


def _unknown_skills(prefix: str, skills: tuple[str, ...]) -> list[str]:
    return [f"{prefix}: unknown skill {s!r}" for s in skills if s not in ALL_SKILLS]
