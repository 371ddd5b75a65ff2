"""
Quadrant CLI - Command-line interface for the engine.

Usage:
    quadrant cards                       List the built-in card database
    quadrant validate-deck <deck_file>   Validate a deck list
    quadrant demo [--seed N] [--turns N] Play a scripted game and print the log
    quadrant serve [--host H] [--port P] Run the API server
"""

import argparse
import json
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Quadrant - Mission and dilemma rules engine",
        prog="quadrant",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Cards command
    cards_parser = subparsers.add_parser("cards", help="List card definitions")
    cards_parser.add_argument("--type", dest="card_type", help="Only this card type (e.g. Dilemma)")

    # Validate command
    validate_parser = subparsers.add_parser("validate-deck", help="Validate a deck list")
    validate_parser.add_argument(
        "deck_file",
        help="Deck file: a JSON list of card ids, or one card id per line",
    )

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Play a scripted game")
    demo_parser.add_argument("--seed", type=int, default=1, help="Random seed")
    demo_parser.add_argument("--turns", type=int, default=10, help="Maximum turns to play")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "cards":
        cmd_cards(args)
    elif args.command == "validate-deck":
        cmd_validate_deck(args)
    elif args.command == "demo":
        cmd_demo(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_cards(args):
    """List card definitions."""
    from .card_schema import DilemmaDefinition, MissionDefinition, format_requirements
    from .games.borg_starter import create_borg_database

    database = create_borg_database()
    print(f"Card database: {database.name} ({len(database)} cards)")
    for definition in database.cards.values():
        if args.card_type and definition.card_type.value.lower() != args.card_type.lower():
            continue
        line = f"  {definition.card_id}  {definition.card_type.value:<10} {definition.name}"
        if isinstance(definition, MissionDefinition) and definition.requirements:
            line += f"  [{format_requirements(definition.requirements)}]"
        elif isinstance(definition, DilemmaDefinition):
            line += f"  ({definition.where.value}, cost {definition.cost})"
        print(line)


def cmd_validate_deck(args):
    """Validate a deck list."""
    from .card_schema import validate_deck_list
    from .games.borg_starter import create_borg_database

    try:
        deck_ids = _read_deck_file(args.deck_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.deck_file}")
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = validate_deck_list(deck_ids, create_borg_database())
    print(f"Deck: {len(deck_ids)} cards")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("Deck is valid")


def cmd_demo(args):
    """Play a seeded game with a simple scripted player and print the log."""
    from .engine_core import GameEngine, SeededRandomSource
    from .engine_core.action import Action
    from .games.borg_starter import DEFAULT_DECK, create_borg_database

    engine = GameEngine(database=create_borg_database(), rng=SeededRandomSource(args.seed))
    result = engine.apply(Action.setup_game(DEFAULT_DECK))
    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)

    printed = 0
    while not engine.state.is_over and engine.state.turn <= args.turns:
        _play_demo_turn(engine)
        for entry in engine.log[printed:]:
            print(f"[{entry.entry_type.value:>16}] {entry.message}")
        printed = len(engine.log)

    state = engine.state
    print(f"\nTurn {state.turn}, score {state.score}, status {state.status.value}")
    if state.victory is not None:
        print("Victory!" if state.victory else "Defeat.")


def cmd_serve(args):
    """Run the API server."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run("quadrant.api.app:app", host=args.host, port=args.port)


def _read_deck_file(path):
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    stripped = text.strip()
    if stripped.startswith("["):
        try:
            data = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON deck list: {e}")
        if not all(isinstance(card_id, str) for card_id in data):
            raise ValueError("Deck list must contain only card ids")
        return data
    return [
        line.split("#", 1)[0].strip()
        for line in text.splitlines()
        if line.split("#", 1)[0].strip()
    ]


def _play_demo_turn(engine):
    """
    One turn of a naive player.

    Deploys what it can afford at headquarters, draws with the rest, beams
    everyone onto the first ship there and flies it to the mission whose
    requirements it is closest to meeting.
    """
    from .card_schema import CardType
    from .engine_core.action import Action

    state = engine.state
    hq = state.headquarters_index

    # PlayAndDraw: ships first so personnel have something to board
    hand = sorted(state.hand, key=lambda c: c.card_type != CardType.SHIP)
    for card in hand:
        if card.card_type in (CardType.PERSONNEL, CardType.SHIP):
            engine.apply(Action.deploy(card.unique_id, hq))
    state = engine.state
    if state.counters and state.deck:
        engine.apply(Action.draw(min(state.counters, len(state.deck))))
    engine.apply(Action.next_phase())

    # ExecuteOrders
    state = engine.state
    home = state.missions[hq]
    if len(home.groups) > 1:
        if home.groups[0].unstopped_personnel:
            engine.apply(Action.beam_all_to_ship(hq, 1))
        _attempt_best_mission(engine, hq, 1)
    engine.apply(Action.next_phase())

    # DiscardExcess
    while len(engine.state.hand) > engine.phases.max_hand_size:
        engine.apply(Action.discard(engine.state.hand[0].unique_id))
    engine.apply(Action.next_phase())


def _attempt_best_mission(engine, source_index, group_index):
    from .card_schema import MissionType
    from .engine_core.action import Action

    state = engine.state
    group = state.missions[source_index].groups[group_index]
    if not group.unstopped_personnel:
        return

    best = None
    for plan in engine.movement.valid_destinations(state, source_index, group_index):
        deployment = state.missions[plan.dest_index]
        if deployment.mission.completed:
            continue
        gap = engine.requirements.mission_gap(group.personnel, deployment.mission.definition, group.cards)
        if gap is None:
            continue
        if best is None or gap.total_missing < best[0]:
            best = (gap.total_missing, plan)
    if best is None:
        return

    plan = best[1]
    if not engine.apply(Action.move_ship(source_index, group_index, plan.dest_index)).success:
        return
    dest = engine.state.missions[plan.dest_index]
    ship_group = len(dest.groups) - 1
    attempt_group = ship_group
    if dest.mission.definition.mission_type == MissionType.PLANET:
        engine.apply(Action.beam_all_to_planet(plan.dest_index, ship_group))
        attempt_group = 0

    if not engine.apply(Action.attempt_mission(plan.dest_index, attempt_group)).success:
        return
    while engine.state.encounter is not None:
        encounter = engine.state.encounter
        if encounter.awaiting_selection:
            engine.apply(Action.select_personnel(encounter.pending.selectable_ids[0]))
        if not engine.apply(Action.advance_dilemma()).success:
            break


if __name__ == "__main__":
    main()
