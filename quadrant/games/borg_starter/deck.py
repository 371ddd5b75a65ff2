"""
Default Borg deck list.

An ordered list of definitional ids (repeats allowed), partitioned by
SETUP_GAME into missions, dilemma pool and draw deck.
"""

DEFAULT_DECK: list[str] = [
    # Missions (5)
    "EN03110",  # Unicomplex, Root of the Hive Mind (Headquarters)
    "EN03094",  # Hunt Alien (Planet)
    "EN03103",  # Salvage Borg Ship (Planet)
    "EN03082",  # Assault on Species 8472 (Space)
    "EN03083",  # Battle Reconnaissance (Space)

    # Personnel (22)
    *["EN03118"] * 3,  # Acclimation Drone
    *["EN03122"] * 2,  # Borg Queen, Bringer of Order
    *["EN03124"] * 2,  # Calibration Drone
    *["EN03125"] * 2,  # Cartography Drone
    *["EN03126"] * 2,  # Computation Drone
    *["EN03130"] * 2,  # Information Drone
    *["EN03131"] * 2,  # Invasive Drone
    *["EN03134"] * 2,  # Opposition Drone
    *["EN03137"] * 2,  # Research Drone
    "EN03139",  # Seven of Nine, Representative of the Hive
    *["EN03140"] * 2,  # Transwarp Drone

    # Ships (4)
    "EN03198",  # Borg Cube
    *["EN03199"] * 3,  # Borg Sphere

    # Interrupts (3)
    *["EN03069"] * 3,  # Adapt

    # Events (3)
    *["EN02060"] * 3,  # Salvaging the Wreckage

    # Space dilemmas (4)
    *["EN01017"] * 2,  # Command Decisions
    "EN01052",  # Systems Diagnostic
    "EN01060",  # Wavefront

    # Planet dilemmas (6)
    "EN01008",  # Authenticate Artifacts
    *["EN03010"] * 2,  # Failure To Communicate
    *["EN01033"] * 2,  # Kolaran Raiders
    "EN01057",  # Triage

    # Dual dilemmas (10)
    *["EN03002"] * 2,  # An Old Debt
    *["EN03016"] * 2,  # Justice or Vengeance
    *["EN01034"] * 2,  # Limited Welcome
    "EN01041",  # Ornaran Threat
    *["EN01043"] * 2,  # Pinned Down
    "EN03030",  # Sokath, His Eyes Uncovered!
]

DECK_STATS = {
    "missions": 5,
    "personnel": 22,
    "ships": 4,
    "interrupts": 3,
    "events": 3,
    "dilemmas": {"space": 4, "planet": 6, "dual": 10, "total": 20},
    "total": 57,
}
