"""
Card Definitions - Immutable, database-level card data.

A definition describes a named card: its printed stats, skills, cost and
(for dilemmas) its rule. Definitions are shared by every physical copy of
the card. Per-copy mutable data (status, range remaining, overcome/faceup
flags) lives on runtime instances in engine_core.state, never here.

Card types:
- Mission: a location with requirement alternatives and a score
- Personnel: skills, attributes and staffing icons
- Ship: staffing requirement and range
- Dilemma: cost, location and a rule from the dilemma DSL
- Event / Interrupt: carried in decks and hands, not deployable
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .dilemma_dsl import Attribute, DilemmaRule, Requirement


ALL_SKILLS: frozenset[str] = frozenset({
    "Acquisition",
    "Anthropology",
    "Archaeology",
    "Astrometrics",
    "Biology",
    "Diplomacy",
    "Engineer",
    "Exobiology",
    "Geology",
    "Honor",
    "Intelligence",
    "Law",
    "Leadership",
    "Medical",
    "Navigation",
    "Officer",
    "Physics",
    "Programming",
    "Science",
    "Security",
    "Telepathy",
    "Transporters",
    "Treachery",
})

ALL_AFFILIATIONS: tuple[str, ...] = (
    "Bajoran",
    "Borg",
    "Cardassian",
    "Dominion",
    "Federation",
    "Ferengi",
    "Klingon",
    "Non-Aligned",
    "Romulan",
    "Starfleet",
)


class CardType(Enum):
    """Tag of the card union."""
    MISSION = "Mission"
    PERSONNEL = "Personnel"
    SHIP = "Ship"
    DILEMMA = "Dilemma"
    EVENT = "Event"
    INTERRUPT = "Interrupt"


class MissionType(Enum):
    HEADQUARTERS = "Headquarters"
    PLANET = "Planet"
    SPACE = "Space"


class Quadrant(Enum):
    ALPHA = "Alpha"
    BETA = "Beta"
    GAMMA = "Gamma"
    DELTA = "Delta"


class DilemmaLocation(Enum):
    """Where a dilemma may be encountered."""
    PLANET = "Planet"
    SPACE = "Space"
    DUAL = "Dual"

    def applies_to(self, mission_type: MissionType) -> bool:
        """Dual dilemmas fit any attemptable mission; others must match."""
        if self == DilemmaLocation.DUAL:
            return True
        return self.value == mission_type.value


class StaffingIcon(Enum):
    STAFF = "Staff"
    COMMAND = "Command"


@dataclass(frozen=True)
class CardDefinition:
    """
    Base definition shared by every card type.

    Note: `card_id` is the definitional id (e.g. "EN03118"). Multiple
    physical copies share it; runtime instances get their own unique id.
    """
    card_id: str
    name: str
    unique: bool = False

    @property
    def card_type(self) -> CardType:
        raise NotImplementedError


@dataclass(frozen=True)
class MissionDefinition(CardDefinition):
    """
    A mission location.

    `skills` holds requirement alternatives; all of them share the single
    attribute threshold printed on the card. Headquarters have no
    alternatives and therefore can never be completed.
    """
    mission_type: MissionType = MissionType.PLANET
    quadrant: Quadrant = Quadrant.ALPHA
    range: int = 0
    score: int = 0
    affiliations: tuple[str, ...] = ()
    skills: tuple[tuple[str, ...], ...] = ()
    attribute: Attribute | None = None
    value: int | None = None
    play: tuple[str, ...] = ()  # Headquarters deploy restriction

    @property
    def card_type(self) -> CardType:
        return CardType.MISSION

    @property
    def is_headquarters(self) -> bool:
        return self.mission_type == MissionType.HEADQUARTERS

    @property
    def requirements(self) -> tuple[Requirement, ...]:
        """Requirement alternatives, each carrying the shared attribute threshold."""
        return tuple(
            Requirement(skills=alternative, attribute=self.attribute, threshold=self.value)
            for alternative in self.skills
        )


@dataclass(frozen=True)
class PersonnelDefinition(CardDefinition):
    affiliations: tuple[str, ...] = ()
    deploy: int = 0
    species: tuple[str, ...] = ()
    icons: tuple[StaffingIcon, ...] = ()
    skills: tuple[str, ...] = ()
    integrity: int = 0
    cunning: int = 0
    strength: int = 0

    @property
    def card_type(self) -> CardType:
        return CardType.PERSONNEL


@dataclass(frozen=True)
class ShipDefinition(CardDefinition):
    affiliations: tuple[str, ...] = ()
    deploy: int = 0
    species: tuple[str, ...] = ()
    staffing: tuple[StaffingIcon, ...] = ()
    range: int = 0
    weapons: int = 0
    shields: int = 0

    @property
    def card_type(self) -> CardType:
        return CardType.SHIP


@dataclass(frozen=True)
class DilemmaDefinition(CardDefinition):
    where: DilemmaLocation = DilemmaLocation.DUAL
    cost: int = 0
    rule: DilemmaRule | None = None
    text: str = ""

    @property
    def card_type(self) -> CardType:
        return CardType.DILEMMA


@dataclass(frozen=True)
class EventDefinition(CardDefinition):
    deploy: int = 0

    @property
    def card_type(self) -> CardType:
        return CardType.EVENT


@dataclass(frozen=True)
class InterruptDefinition(CardDefinition):

    @property
    def card_type(self) -> CardType:
        return CardType.INTERRUPT


@dataclass
class CardDatabase:
    """
    Static card lookup keyed by definitional id.

    The engine treats this as read-only collaborator data.
    """
    name: str
    cards: dict[str, CardDefinition] = field(default_factory=dict)

    @classmethod
    def from_definitions(cls, name: str, definitions: list[CardDefinition]) -> CardDatabase:
        return cls(name=name, cards={d.card_id: d for d in definitions})

    def get(self, card_id: str) -> CardDefinition | None:
        return self.cards.get(card_id)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self.cards

    def __len__(self) -> int:
        return len(self.cards)

    def of_type(self, card_type: CardType) -> list[CardDefinition]:
        return [d for d in self.cards.values() if d.card_type == card_type]
