"""
Game State - The single aggregate owned by the GameEngine.

Design principles:
- One owner: only GameEngine handlers mutate a GameState
- Definitions are shared and immutable; instances carry per-copy flags
- Group membership changes build new Group snapshots, never splice in place
- Serializable: to_snapshot() produces plain JSON-ready data
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from copy import deepcopy
from enum import Enum
import time

from ..card_schema.definitions import (
    CardDefinition,
    CardType,
    DilemmaDefinition,
    MissionDefinition,
    PersonnelDefinition,
    ShipDefinition,
)

STARTING_COUNTERS = 7
MAX_HAND_SIZE = 7
WIN_SCORE = 100
QUADRANT_CHANGE_RANGE = 2


class GameStatus(Enum):
    """High-level game status."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class TurnPhase(Enum):
    """The three phases of a turn."""
    PLAY_AND_DRAW = "PlayAndDraw"
    EXECUTE_ORDERS = "ExecuteOrders"
    DISCARD_EXCESS = "DiscardExcess"


class PersonnelStatus(Enum):
    UNSTOPPED = "Unstopped"
    STOPPED = "Stopped"
    KILLED = "Killed"


class LogType(Enum):
    """Types of action log entries."""
    GAME_START = "game_start"
    NEW_TURN = "new_turn"
    PHASE_CHANGE = "phase_change"
    DRAW = "draw"
    DEPLOY = "deploy"
    DISCARD = "discard"
    MOVE_SHIP = "move_ship"
    BEAM = "beam"
    MISSION_ATTEMPT = "mission_attempt"
    DILEMMA_DRAW = "dilemma_draw"
    DILEMMA_RESULT = "dilemma_result"
    MISSION_COMPLETE = "mission_complete"
    MISSION_FAIL = "mission_fail"
    GAME_OVER = "game_over"


# =============================================================================
# Card instances
# =============================================================================

@dataclass
class Card:
    """
    A card instance in the game.

    Note: This is a runtime instance, not the definition.
    `unique_id` is assigned once at setup and never changes; copies of the
    same named card share `card_id` but never `unique_id`.
    """
    definition: CardDefinition
    unique_id: str

    @property
    def card_id(self) -> str:
        return self.definition.card_id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def card_type(self) -> CardType:
        return self.definition.card_type

    def __hash__(self):
        return hash(self.unique_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.unique_id == other.unique_id

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "unique_id": self.unique_id,
            "card_id": self.card_id,
            "name": self.name,
            "card_type": self.card_type.value,
        }


@dataclass(eq=False)
class MissionCard(Card):
    definition: MissionDefinition
    completed: bool = False

    def to_snapshot(self) -> dict[str, Any]:
        data = super().to_snapshot()
        data.update(
            mission_type=self.definition.mission_type.value,
            quadrant=self.definition.quadrant.value,
            range=self.definition.range,
            score=self.definition.score,
            completed=self.completed,
        )
        return data


@dataclass(eq=False)
class PersonnelCard(Card):
    definition: PersonnelDefinition
    status: PersonnelStatus = PersonnelStatus.UNSTOPPED

    @property
    def is_unstopped(self) -> bool:
        return self.status == PersonnelStatus.UNSTOPPED

    @property
    def skills(self) -> tuple[str, ...]:
        return self.definition.skills

    @property
    def affiliations(self) -> tuple[str, ...]:
        return self.definition.affiliations

    def to_snapshot(self) -> dict[str, Any]:
        data = super().to_snapshot()
        data["status"] = self.status.value
        return data


@dataclass(eq=False)
class ShipCard(Card):
    definition: ShipDefinition
    range_remaining: int | None = None

    def __post_init__(self):
        if self.range_remaining is None:
            self.range_remaining = self.definition.range

    @property
    def affiliations(self) -> tuple[str, ...]:
        return self.definition.affiliations

    def to_snapshot(self) -> dict[str, Any]:
        data = super().to_snapshot()
        data.update(range=self.definition.range, range_remaining=self.range_remaining)
        return data


@dataclass(eq=False)
class DilemmaCard(Card):
    definition: DilemmaDefinition
    overcome: bool = False
    faceup: bool = False

    @property
    def cost(self) -> int:
        return self.definition.cost

    def to_snapshot(self) -> dict[str, Any]:
        data = super().to_snapshot()
        data.update(
            where=self.definition.where.value,
            cost=self.cost,
            overcome=self.overcome,
            faceup=self.faceup,
        )
        return data


def create_card(definition: CardDefinition, unique_id: str) -> Card:
    """Create the runtime instance matching a definition's type."""
    if isinstance(definition, MissionDefinition):
        return MissionCard(definition=definition, unique_id=unique_id)
    if isinstance(definition, PersonnelDefinition):
        return PersonnelCard(definition=definition, unique_id=unique_id)
    if isinstance(definition, ShipDefinition):
        return ShipCard(definition=definition, unique_id=unique_id)
    if isinstance(definition, DilemmaDefinition):
        return DilemmaCard(definition=definition, unique_id=unique_id)
    return Card(definition=definition, unique_id=unique_id)


# =============================================================================
# Locations
# =============================================================================

@dataclass
class Group:
    """
    Cards co-located at one mission.

    Index 0 of a mission's groups is the planetside/headquarters group and
    holds no ship. Every other group starts with its ship.
    """
    cards: list[Card] = field(default_factory=list)

    @property
    def ship(self) -> ShipCard | None:
        if self.cards and isinstance(self.cards[0], ShipCard):
            return self.cards[0]
        return None

    @property
    def personnel(self) -> list[PersonnelCard]:
        return [c for c in self.cards if isinstance(c, PersonnelCard)]

    @property
    def unstopped_personnel(self) -> list[PersonnelCard]:
        return [p for p in self.personnel if p.is_unstopped]

    @property
    def all_personnel_down(self) -> bool:
        return not self.unstopped_personnel

    def find(self, unique_id: str) -> Card | None:
        for card in self.cards:
            if card.unique_id == unique_id:
                return card
        return None

    def with_card(self, card: Card) -> Group:
        """Return new group with card appended."""
        return Group(cards=[*self.cards, card])

    def without_card(self, unique_id: str) -> Group:
        """Return new group with the card removed."""
        return Group(cards=[c for c in self.cards if c.unique_id != unique_id])

    def to_snapshot(self) -> dict[str, Any]:
        return {"cards": [c.to_snapshot() for c in self.cards]}


@dataclass
class MissionDeployment:
    """One mission card, its groups and the dilemmas placed beneath it."""
    mission: MissionCard
    groups: list[Group] = field(default_factory=lambda: [Group()])
    dilemmas: list[DilemmaCard] = field(default_factory=list)

    @property
    def overcome_count(self) -> int:
        return sum(1 for d in self.dilemmas if d.overcome)

    @property
    def parked_dilemmas(self) -> list[DilemmaCard]:
        """Dilemmas beneath the mission that are not yet overcome."""
        return [d for d in self.dilemmas if not d.overcome]

    def has_group(self, index: int) -> bool:
        return 0 <= index < len(self.groups)

    def replace_group(self, index: int, group: Group) -> None:
        self.groups = [group if i == index else g for i, g in enumerate(self.groups)]

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "mission": self.mission.to_snapshot(),
            "groups": [g.to_snapshot() for g in self.groups],
            "dilemmas": [d.to_snapshot() for d in self.dilemmas],
        }


# =============================================================================
# Encounter
# =============================================================================

@dataclass
class DilemmaResult:
    """
    Outcome of resolving one dilemma against a roster.

    Produced by the DilemmaRuleEvaluator and applied by the encounter engine
    on the next ADVANCE_DILEMMA.
    """
    overcome: bool
    stopped_ids: list[str] = field(default_factory=list)
    killed_ids: list[str] = field(default_factory=list)
    requires_selection: bool = False
    selectable_ids: list[str] = field(default_factory=list)
    returns_to_pile: bool = False
    message: str = ""
    failure_reason: str | None = None

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "overcome": self.overcome,
            "stopped_ids": list(self.stopped_ids),
            "killed_ids": list(self.killed_ids),
            "requires_selection": self.requires_selection,
            "selectable_ids": list(self.selectable_ids),
            "returns_to_pile": self.returns_to_pile,
            "message": self.message,
            "failure_reason": self.failure_reason,
        }


@dataclass
class DilemmaEncounter:
    """
    Transient state of one mission attempt in progress.

    Exists only between ATTEMPT_MISSION and the final ADVANCE_DILEMMA.
    """
    mission_index: int
    group_index: int
    selected: list[DilemmaCard] = field(default_factory=list)
    cursor: int = 0
    draw_budget: int = 0
    cost_budget: int = 0
    cost_spent: int = 0
    faced_ids: set[str] = field(default_factory=set)
    pending: DilemmaResult | None = None

    @property
    def current(self) -> DilemmaCard | None:
        if 0 <= self.cursor < len(self.selected):
            return self.selected[self.cursor]
        return None

    @property
    def queued_after_current(self) -> list[DilemmaCard]:
        return self.selected[self.cursor + 1:]

    @property
    def awaiting_selection(self) -> bool:
        return self.pending is not None and self.pending.requires_selection

    def to_snapshot(self) -> dict[str, Any]:
        current = self.current
        return {
            "mission_index": self.mission_index,
            "group_index": self.group_index,
            "selected": [d.to_snapshot() for d in self.selected],
            "cursor": self.cursor,
            "draw_budget": self.draw_budget,
            "cost_budget": self.cost_budget,
            "cost_spent": self.cost_spent,
            "current": current.to_snapshot() if current else None,
            "pending": self.pending.to_snapshot() if self.pending else None,
        }


# =============================================================================
# Log
# =============================================================================

@dataclass(frozen=True)
class LogEntry:
    """An immutable action log entry."""
    entry_id: int
    timestamp: float
    entry_type: LogType
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "id": self.entry_id,
            "timestamp": self.timestamp,
            "type": self.entry_type.value,
            "message": self.message,
            "details": dict(self.details),
        }


# =============================================================================
# Game state
# =============================================================================

@dataclass
class GameState:
    """
    Complete game state.

    Owned by exactly one GameEngine. Everything here is plain data and can
    be deep-copied to restore the state after a failed handler.
    """
    game_id: str
    status: GameStatus = GameStatus.SETUP
    phase: TurnPhase = TurnPhase.PLAY_AND_DRAW
    turn: int = 0
    counters: int = 0
    score: int = 0

    missions: list[MissionDeployment] = field(default_factory=list)
    headquarters_index: int = 0
    dilemma_pool: list[DilemmaCard] = field(default_factory=list)
    deck: list[Card] = field(default_factory=list)
    hand: list[Card] = field(default_factory=list)
    discard: list[Card] = field(default_factory=list)

    completed_planet_missions: int = 0
    completed_space_missions: int = 0

    encounter: DilemmaEncounter | None = None
    victory: bool | None = None

    log: list[LogEntry] = field(default_factory=list)

    @property
    def is_over(self) -> bool:
        return self.status == GameStatus.GAME_OVER

    def find_in_hand(self, unique_id: str) -> Card | None:
        for card in self.hand:
            if card.unique_id == unique_id:
                return card
        return None

    def in_play_cards(self) -> list[Card]:
        """All cards in groups at any mission."""
        return [
            card
            for deployment in self.missions
            for group in deployment.groups
            for card in group.cards
        ]

    def is_in_play(self, card_id: str) -> bool:
        return any(card.card_id == card_id for card in self.in_play_cards())

    def ships(self) -> list[ShipCard]:
        return [c for c in self.in_play_cards() if isinstance(c, ShipCard)]

    def add_log(
        self,
        entry_type: LogType,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            entry_id=len(self.log) + 1,
            timestamp=time.time(),
            entry_type=entry_type,
            message=message,
            details=details or {},
        )
        self.log.append(entry)
        return entry

    def clone(self) -> GameState:
        """Deep copy for restore-on-failure."""
        return deepcopy(self)

    def to_snapshot(self) -> dict[str, Any]:
        """Serializable view of the state (hidden deck order is not exposed)."""
        return {
            "game_id": self.game_id,
            "status": self.status.value,
            "phase": self.phase.value,
            "turn": self.turn,
            "counters": self.counters,
            "score": self.score,
            "headquarters_index": self.headquarters_index,
            "missions": [m.to_snapshot() for m in self.missions],
            "dilemma_pool_size": len(self.dilemma_pool),
            "dilemma_pool_faceup": sum(1 for d in self.dilemma_pool if d.faceup),
            "deck_size": len(self.deck),
            "hand": [c.to_snapshot() for c in self.hand],
            "discard": [c.to_snapshot() for c in self.discard],
            "completed_planet_missions": self.completed_planet_missions,
            "completed_space_missions": self.completed_space_missions,
            "encounter": self.encounter.to_snapshot() if self.encounter else None,
            "victory": self.victory,
            "log_size": len(self.log),
        }
