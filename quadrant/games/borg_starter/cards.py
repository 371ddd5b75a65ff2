"""
Borg Starter Cards - Card definitions for the built-in deck.

This module contains the cards needed by the default Borg deck plus a few
extras. Order abilities, interlinks and passive modifiers printed on these
cards are not modeled here; the engine consumes adjusted stats through its
modifier resolver.

Card structure:
- Missions: type, quadrant, range, score, requirement alternatives
- Personnel: skills, attributes, staffing icon
- Ships: staffing, range
- Dilemmas: location, cost, rule
"""

from ...card_schema.definitions import (
    ALL_AFFILIATIONS,
    CardDatabase,
    CardDefinition,
    DilemmaDefinition,
    DilemmaLocation,
    EventDefinition,
    InterruptDefinition,
    MissionDefinition,
    MissionType,
    PersonnelDefinition,
    Quadrant,
    ShipDefinition,
    StaffingIcon,
)
from ...card_schema.dilemma_dsl import (
    Attribute,
    ChooseToStop,
    CrewLimit,
    RandomStop,
    RandomThenCheck,
    UnlessCheck,
    choose_matching_to_stop,
    random_kill,
    random_kill_with_skill,
    requirement,
    stop_all_return_to_pile,
)

STAFF = StaffingIcon.STAFF
COMMAND = StaffingIcon.COMMAND


# =============================================================================
# Missions
# =============================================================================

MISSIONS: list[MissionDefinition] = [
    MissionDefinition(
        card_id="EN03110",
        name="Unicomplex, Root of the Hive Mind",
        unique=True,
        mission_type=MissionType.HEADQUARTERS,
        quadrant=Quadrant.DELTA,
        range=2,
        play=("Equipment", "Borg"),
    ),
    MissionDefinition(
        card_id="EN03094",
        name="Hunt Alien",
        unique=True,
        mission_type=MissionType.PLANET,
        quadrant=Quadrant.DELTA,
        range=3,
        score=35,
        affiliations=("Borg", "Klingon"),
        skills=(
            ("Exobiology", "Exobiology", "Navigation", "Leadership"),
            ("Exobiology", "Exobiology", "Navigation", "Security"),
        ),
        attribute=Attribute.STRENGTH,
        value=32,
    ),
    MissionDefinition(
        card_id="EN03103",
        name="Salvage Borg Ship",
        unique=True,
        mission_type=MissionType.PLANET,
        quadrant=Quadrant.ALPHA,
        range=2,
        score=35,
        affiliations=ALL_AFFILIATIONS,
        skills=(("Astrometrics", "Engineer", "Medical", "Programming"),),
        attribute=Attribute.CUNNING,
        value=34,
    ),
    MissionDefinition(
        card_id="EN03082",
        name="Assault on Species 8472",
        unique=True,
        mission_type=MissionType.SPACE,
        quadrant=Quadrant.DELTA,
        range=4,
        score=35,
        affiliations=("Borg", "Klingon", "Federation"),
        skills=(("Engineer", "Engineer", "Exobiology", "Physics"),),
        attribute=Attribute.CUNNING,
        value=34,
    ),
    MissionDefinition(
        card_id="EN03083",
        name="Battle Reconnaissance",
        unique=True,
        mission_type=MissionType.SPACE,
        quadrant=Quadrant.DELTA,
        range=2,
        score=35,
        affiliations=ALL_AFFILIATIONS,
        skills=(("Exobiology", "Programming", "Security", "Transporters"),),
        attribute=Attribute.STRENGTH,
        value=32,
    ),
]


# =============================================================================
# Personnel
# =============================================================================

def _drone(card_id: str, name: str, deploy: int, skills: tuple[str, ...],
           integrity: int = 5, cunning: int = 5, strength: int = 5,
           unique: bool = False, icon: StaffingIcon = STAFF) -> PersonnelDefinition:
    return PersonnelDefinition(
        card_id=card_id,
        name=name,
        unique=unique,
        affiliations=("Borg",),
        deploy=deploy,
        species=("Borg",),
        icons=(icon,),
        skills=skills,
        integrity=integrity,
        cunning=cunning,
        strength=strength,
    )


PERSONNEL: list[PersonnelDefinition] = [
    _drone("EN03118", "Acclimation Drone", 2,
           ("Anthropology", "Engineer", "Exobiology", "Medical")),
    _drone("EN03122", "Borg Queen, Bringer of Order", 4,
           ("Leadership", "Leadership", "Leadership", "Treachery"),
           integrity=3, cunning=8, strength=6, unique=True, icon=COMMAND),
    _drone("EN03124", "Calibration Drone", 2, ("Archaeology", "Biology", "Geology")),
    _drone("EN03125", "Cartography Drone", 1, ("Engineer",)),
    _drone("EN03126", "Computation Drone", 2, ("Navigation", "Programming"), cunning=6),
    _drone("EN03130", "Information Drone", 2, ("Exobiology", "Science", "Transporters")),
    _drone("EN03131", "Invasive Drone", 2, ("Programming", "Security", "Transporters")),
    _drone("EN03134", "Opposition Drone", 2, ("Biology", "Security"), strength=6),
    _drone("EN03137", "Research Drone", 1, ("Medical",)),
    _drone("EN03139", "Seven of Nine, Representative of the Hive", 3,
           ("Engineer", "Exobiology", "Physics", "Programming", "Science"),
           cunning=7, strength=6, unique=True),
    _drone("EN03140", "Transwarp Drone", 2, ("Astrometrics", "Navigation", "Physics")),
]


# =============================================================================
# Ships
# =============================================================================

SHIPS: list[ShipDefinition] = [
    ShipDefinition(
        card_id="EN03198",
        name="Borg Cube",
        affiliations=("Borg",),
        deploy=6,
        species=("Borg",),
        staffing=(STAFF,) * 5,
        range=10,
        weapons=12,
        shields=11,
    ),
    ShipDefinition(
        card_id="EN03199",
        name="Borg Sphere",
        affiliations=("Borg",),
        deploy=5,
        species=("Borg",),
        staffing=(STAFF,) * 4,
        range=9,
        weapons=10,
        shields=9,
    ),
]


# =============================================================================
# Events and Interrupts
# =============================================================================

EVENTS: list[EventDefinition] = [
    EventDefinition(card_id="EN03036", name="Borg Cutting Beam", deploy=5),
    EventDefinition(card_id="EN02060", name="Salvaging the Wreckage", deploy=3),
]

INTERRUPTS: list[InterruptDefinition] = [
    InterruptDefinition(card_id="EN03069", name="Adapt"),
    InterruptDefinition(card_id="EN01136", name="Render Assistance"),
]


# =============================================================================
# Dilemmas
# =============================================================================

DILEMMAS: list[DilemmaDefinition] = [
    # Dual
    DilemmaDefinition(
        card_id="EN03002",
        name="An Old Debt",
        where=DilemmaLocation.DUAL,
        cost=3,
        rule=UnlessCheck(
            requirements=(
                requirement("Biology", "Physics", attribute=Attribute.CUNNING, threshold=32),
                requirement("Intelligence", "Medical", "Medical"),
            ),
            penalty=random_kill_with_skill("Leadership"),
        ),
        text="Unless you have Biology, Physics, and Cunning>32 or Intelligence and 2 Medical, "
             "randomly select a Leadership personnel to be killed.",
    ),
    DilemmaDefinition(
        card_id="EN03016",
        name="Justice or Vengeance",
        where=DilemmaLocation.DUAL,
        cost=3,
        rule=UnlessCheck(
            requirements=(
                requirement("Anthropology", "Security", "Security"),
                requirement("Exobiology", "Honor", attribute=Attribute.INTEGRITY, threshold=32),
            ),
            penalty=random_kill_with_skill("Treachery"),
        ),
        text="Unless you have Anthropology and 2 Security or Exobiology, Honor, and "
             "Integrity>32, randomly select a Treachery personnel to be killed.",
    ),
    DilemmaDefinition(
        card_id="EN01034",
        name="Limited Welcome",
        where=DilemmaLocation.DUAL,
        cost=2,
        rule=CrewLimit(keep_count=9),
        text="Randomly select nine personnel. All your other personnel are stopped. "
             "Place this dilemma on this mission. When you attempt this mission again, "
             "after your opponent draws dilemmas, you may overcome this dilemma.",
    ),
    DilemmaDefinition(
        card_id="EN01041",
        name="Ornaran Threat",
        where=DilemmaLocation.DUAL,
        cost=4,
        rule=RandomThenCheck(
            requirements=(
                requirement("Diplomacy", "Medical"),
                requirement("Security", "Security"),
            ),
        ),
        text="Randomly select a personnel. Unless you have Diplomacy and Medical or "
             "2 Security, that personnel is killed, all your other personnel are stopped, "
             "and this dilemma returns to its owner's dilemma pile.",
    ),
    DilemmaDefinition(
        card_id="EN01043",
        name="Pinned Down",
        where=DilemmaLocation.DUAL,
        cost=2,
        rule=RandomStop(thresholds=(1, 9, 10)),
        text="Randomly select a personnel to be stopped. If you still have nine personnel "
             "remaining, randomly select another personnel to be stopped. If you still "
             "have ten, select a third.",
    ),
    DilemmaDefinition(
        card_id="EN03030",
        name="Sokath, His Eyes Uncovered!",
        where=DilemmaLocation.DUAL,
        cost=3,
        rule=UnlessCheck(
            requirements=(
                requirement("Diplomacy", "Diplomacy"),
                requirement(attribute=Attribute.CUNNING, threshold=35),
            ),
            penalty=stop_all_return_to_pile(),
        ),
        text="Unless you have 2 Diplomacy or Cunning>35, all your personnel are stopped "
             "and this dilemma returns to its owner's dilemma pile.",
    ),
    # Planet
    DilemmaDefinition(
        card_id="EN01008",
        name="Authenticate Artifacts",
        where=DilemmaLocation.PLANET,
        cost=2,
        rule=UnlessCheck(
            requirements=(
                requirement("Anthropology", "Anthropology", single_personnel=True),
                requirement("Archaeology", "Archaeology", single_personnel=True),
            ),
            penalty=choose_matching_to_stop("Anthropology", "Archaeology"),
        ),
        text="Unless you have a personnel who has 2 Anthropology or a personnel who has "
             "2 Archaeology, your opponent chooses an Anthropology or Archaeology "
             "personnel to be stopped. If your opponent cannot, all your personnel are "
             "stopped and this dilemma returns to its owner's dilemma pile.",
    ),
    DilemmaDefinition(
        card_id="EN03010",
        name="Failure To Communicate",
        where=DilemmaLocation.PLANET,
        cost=2,
        rule=UnlessCheck(
            requirements=(
                requirement("Anthropology", "Anthropology", single_personnel=True),
                requirement("Security", "Security", single_personnel=True),
            ),
            penalty=choose_matching_to_stop("Anthropology", "Security"),
        ),
        text="Unless you have a personnel who has 2 Anthropology or a personnel who has "
             "2 Security, your opponent chooses an Anthropology or Security personnel "
             "to be stopped. If your opponent cannot, all your personnel are stopped and "
             "this dilemma returns to its owner's dilemma pile.",
    ),
    DilemmaDefinition(
        card_id="EN01033",
        name="Kolaran Raiders",
        where=DilemmaLocation.PLANET,
        cost=1,
        rule=ChooseToStop(skills=("Leadership", "Security"), penalty=random_kill()),
        text="Choose a personnel who has Leadership or Security to be stopped. If you "
             "cannot, randomly select a personnel to be killed.",
    ),
    DilemmaDefinition(
        card_id="EN01057",
        name="Triage",
        where=DilemmaLocation.PLANET,
        cost=1,
        rule=ChooseToStop(skills=("Biology", "Medical"), penalty=random_kill()),
        text="Choose a personnel who has Biology or Medical to be stopped. If you cannot, "
             "randomly select a personnel to be killed.",
    ),
    # Space
    DilemmaDefinition(
        card_id="EN01017",
        name="Command Decisions",
        where=DilemmaLocation.SPACE,
        cost=1,
        rule=ChooseToStop(skills=("Leadership", "Officer"), penalty=random_kill()),
        text="Choose a personnel who has Leadership or Officer to be stopped. If you "
             "cannot, randomly select a personnel to be killed.",
    ),
    DilemmaDefinition(
        card_id="EN01052",
        name="Systems Diagnostic",
        where=DilemmaLocation.SPACE,
        cost=2,
        rule=ChooseToStop(skills=("Engineer", "Programming"), penalty=stop_all_return_to_pile()),
        text="Choose a personnel who has Engineer or Programming to be stopped. If you "
             "cannot, all your personnel are stopped and this dilemma returns to its "
             "owner's dilemma pile.",
    ),
    DilemmaDefinition(
        card_id="EN01060",
        name="Wavefront",
        where=DilemmaLocation.SPACE,
        cost=2,
        rule=UnlessCheck(
            requirements=(
                requirement("Astrometrics", "Astrometrics", single_personnel=True),
                requirement("Navigation", "Navigation", single_personnel=True),
            ),
            penalty=choose_matching_to_stop("Astrometrics", "Navigation"),
        ),
        text="Unless you have a personnel who has 2 Astrometrics or a personnel who has "
             "2 Navigation, your opponent chooses an Astrometrics or Navigation personnel "
             "to be stopped. If your opponent cannot, all your personnel are stopped and "
             "this dilemma returns to its owner's dilemma pile.",
    ),
]


ALL_CARDS: list[CardDefinition] = [
    *MISSIONS,
    *PERSONNEL,
    *SHIPS,
    *EVENTS,
    *INTERRUPTS,
    *DILEMMAS,
]


def create_borg_database() -> CardDatabase:
    """Create the card database for the built-in Borg deck."""
    return CardDatabase.from_definitions("borg_starter", ALL_CARDS)
