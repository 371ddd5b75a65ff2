"""
Pytest fixtures for Quadrant tests.
"""

import itertools
import random

import pytest

from ..card_schema.definitions import CardDatabase
from ..engine_core.action import Action
from ..engine_core.dilemma_rules import DilemmaRuleEvaluator
from ..engine_core.reducer import GameEngine
from ..engine_core.requirements import RequirementEvaluator
from ..engine_core.rng import RandomSource, SeededRandomSource
from ..engine_core.state import (
    Card,
    DilemmaCard,
    Group,
    MissionCard,
    PersonnelCard,
    ShipCard,
    TurnPhase,
)
from ..games.borg_starter import DEFAULT_DECK, create_borg_database


class FixedRandomSource(RandomSource):
    """Predictable source: shuffles keep order and choices take the first item."""

    def __init__(self):
        self._rng = random.Random(0)

    def shuffle(self, items):
        return list(items)

    def choice(self, items):
        return list(items)[0]


@pytest.fixture
def database() -> CardDatabase:
    """The built-in Borg card database."""
    return create_borg_database()


@pytest.fixture
def fixed_rng() -> FixedRandomSource:
    return FixedRandomSource()


@pytest.fixture
def seeded_rng() -> SeededRandomSource:
    return SeededRandomSource(42)


@pytest.fixture
def requirements() -> RequirementEvaluator:
    return RequirementEvaluator()


@pytest.fixture
def rules(fixed_rng, requirements) -> DilemmaRuleEvaluator:
    return DilemmaRuleEvaluator(rng=fixed_rng, requirements=requirements)


@pytest.fixture
def make_card(database):
    """
    Factory for runtime card instances with fresh unique ids.

    Usage:
        drone = make_card("EN03118")
        stopped = make_card("EN03118", status=PersonnelStatus.STOPPED)
    """
    counter = itertools.count(1)
    kinds = {
        "Mission": MissionCard,
        "Personnel": PersonnelCard,
        "Ship": ShipCard,
        "Dilemma": DilemmaCard,
    }

    def _make(card_id, definition=None, **fields):
        definition = definition or database.get(card_id)
        card_class = kinds.get(definition.card_type.value, Card)
        unique_id = f"{definition.card_id}-t{next(counter)}"
        return card_class(definition=definition, unique_id=unique_id, **fields)

    return _make


@pytest.fixture
def make_group(make_card):
    """Factory for a group from card ids; a ship id should come first."""
    def _make(*card_ids):
        return Group(cards=[make_card(card_id) for card_id in card_ids])

    return _make


@pytest.fixture
def engine(database, fixed_rng) -> GameEngine:
    """
    Engine set up with the default deck and an order-preserving random source.

    Missions: 0 Unicomplex (HQ), 1 Hunt Alien (planet), 2 Salvage Borg Ship
    (planet, Alpha), 3 Assault on Species 8472 (space), 4 Battle
    Reconnaissance (space). The opening hand is the first seven deck cards.
    """
    engine = GameEngine(database=database, rng=fixed_rng, game_id="test_game")
    result = engine.apply(Action.setup_game(DEFAULT_DECK))
    assert result.success
    return engine


@pytest.fixture
def orders_engine(engine) -> GameEngine:
    """Engine in ExecuteOrders with an empty dilemma pool; tests place cards themselves."""
    engine.state.phase = TurnPhase.EXECUTE_ORDERS
    engine.state.dilemma_pool = []
    return engine


# Seven personnel who together meet Hunt Alien: 2 Exobiology, Navigation,
# Leadership and Strength 37.
HUNT_ALIEN_TEAM = (
    "EN03122",  # Borg Queen: Leadership x3, Strength 6
    "EN03118",  # Acclimation Drone: Exobiology
    "EN03130",  # Information Drone: Exobiology
    "EN03126",  # Computation Drone: Navigation
    "EN03134",  # Opposition Drone: Strength 6
    "EN03140",  # Transwarp Drone
    "EN03125",  # Cartography Drone
)


@pytest.fixture
def hunt_alien_team(make_card):
    return [make_card(card_id) for card_id in HUNT_ALIEN_TEAM]


@pytest.fixture
def place(orders_engine):
    """Put cards into a group at a mission: place(mission_index, cards, group_index=0)."""
    def _place(mission_index, cards, group_index=0):
        deployment = orders_engine.state.missions[mission_index]
        while len(deployment.groups) <= group_index:
            deployment.groups = [*deployment.groups, Group()]
        deployment.replace_group(group_index, Group(cards=list(cards)))
        return deployment

    return _place
