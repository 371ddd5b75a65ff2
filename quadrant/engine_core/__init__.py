"""
Engine Core - Deterministic rules engine for missions and dilemmas.

The engine is the runtime that:
1. Owns the GameState
2. Gates actions by game status, encounter and turn phase
3. Applies actions via the GameEngine handlers
4. Resolves dilemma encounters card by card
5. Routes all randomness through one injectable RandomSource
"""

from .state import (
    GameState,
    GameStatus,
    TurnPhase,
    PersonnelStatus,
    LogType,
    LogEntry,
    Card,
    MissionCard,
    PersonnelCard,
    ShipCard,
    DilemmaCard,
    Group,
    MissionDeployment,
    DilemmaEncounter,
    DilemmaResult,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .rng import RandomSource, SecureRandomSource, SeededRandomSource
from .modifiers import ModifierResolver, PersonnelStats
from .requirements import RequirementEvaluator, RosterStats, MissionGap
from .ship_movement import ShipMovementValidator, StaffingCheck, MovePlan
from .dilemma_rules import DilemmaRuleEvaluator
from .encounter import MissionEncounterEngine
from .phases import TurnPhaseController
from .reducer import GameEngine

__all__ = [
    "GameState",
    "GameStatus",
    "TurnPhase",
    "PersonnelStatus",
    "LogType",
    "LogEntry",
    "Card",
    "MissionCard",
    "PersonnelCard",
    "ShipCard",
    "DilemmaCard",
    "Group",
    "MissionDeployment",
    "DilemmaEncounter",
    "DilemmaResult",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "RandomSource",
    "SecureRandomSource",
    "SeededRandomSource",
    "ModifierResolver",
    "PersonnelStats",
    "RequirementEvaluator",
    "RosterStats",
    "MissionGap",
    "ShipMovementValidator",
    "StaffingCheck",
    "MovePlan",
    "DilemmaRuleEvaluator",
    "MissionEncounterEngine",
    "TurnPhaseController",
    "GameEngine",
]
