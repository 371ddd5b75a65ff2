"""Card schema - immutable card definitions and the dilemma rule DSL."""

from .dilemma_dsl import (
    Attribute,
    RuleType,
    PenaltyType,
    Requirement,
    Penalty,
    ChooseToStop,
    UnlessCheck,
    RandomThenCheck,
    RandomStop,
    CrewLimit,
    DilemmaRule,
    format_requirements,
)
from .definitions import (
    ALL_SKILLS,
    ALL_AFFILIATIONS,
    CardType,
    MissionType,
    Quadrant,
    DilemmaLocation,
    StaffingIcon,
    CardDefinition,
    MissionDefinition,
    PersonnelDefinition,
    ShipDefinition,
    DilemmaDefinition,
    EventDefinition,
    InterruptDefinition,
    CardDatabase,
)
from .validation import validate_deck_list, validate_database, DeckValidationError

__all__ = [
    "Attribute",
    "RuleType",
    "PenaltyType",
    "Requirement",
    "Penalty",
    "ChooseToStop",
    "UnlessCheck",
    "RandomThenCheck",
    "RandomStop",
    "CrewLimit",
    "DilemmaRule",
    "format_requirements",
    "ALL_SKILLS",
    "ALL_AFFILIATIONS",
    "CardType",
    "MissionType",
    "Quadrant",
    "DilemmaLocation",
    "StaffingIcon",
    "CardDefinition",
    "MissionDefinition",
    "PersonnelDefinition",
    "ShipDefinition",
    "DilemmaDefinition",
    "EventDefinition",
    "InterruptDefinition",
    "CardDatabase",
    "validate_deck_list",
    "validate_database",
    "DeckValidationError",
]
