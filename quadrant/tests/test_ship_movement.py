"""
Tests for ship staffing and movement.
"""

from ..card_schema.definitions import ShipDefinition, StaffingIcon
from ..engine_core.action import Action
from ..engine_core.ship_movement import MovePlan, ShipMovementValidator
from ..engine_core.state import Group, PersonnelStatus


STAFFED_SPHERE = ("EN03199", "EN03125", "EN03137", "EN03124", "EN03126")


class TestStaffing:
    """Tests for check_staffed."""

    def test_four_drones_staff_a_sphere(self, make_group):
        group = make_group(*STAFFED_SPHERE)

        assert ShipMovementValidator().check_staffed(group).staffed

    def test_too_few_staff(self, make_group):
        group = make_group("EN03199", "EN03125", "EN03137", "EN03124")

        check = ShipMovementValidator().check_staffed(group)

        assert not check.staffed
        assert "staff" in check.reason.lower()

    def test_spare_command_covers_staff(self, make_group):
        """Three drones and the Queen (Command) staff a four-Staff Sphere."""
        group = make_group("EN03199", "EN03125", "EN03137", "EN03124", "EN03122")

        assert ShipMovementValidator().check_staffed(group).staffed

    def test_staff_cannot_cover_command(self, make_card):
        definition = ShipDefinition(
            card_id="TEST_SHIP",
            name="Test Ship",
            affiliations=("Borg",),
            staffing=(StaffingIcon.COMMAND, StaffingIcon.STAFF),
            range=5,
        )
        group = Group(cards=[
            make_card("TEST_SHIP", definition=definition),
            make_card("EN03125"),
            make_card("EN03137"),
        ])

        check = ShipMovementValidator().check_staffed(group)

        assert not check.staffed
        assert "command" in check.reason.lower()

    def test_crew_must_share_affiliation(self, make_card):
        definition = ShipDefinition(
            card_id="TEST_FED",
            name="Test Federation Ship",
            affiliations=("Federation",),
            staffing=(StaffingIcon.STAFF,),
            range=5,
        )
        group = Group(cards=[make_card("TEST_FED", definition=definition), make_card("EN03125")])

        check = ShipMovementValidator().check_staffed(group)

        assert not check.staffed
        assert "affiliation" in check.reason.lower()

    def test_stopped_crew_do_not_staff(self, make_card):
        crew = [make_card(card_id) for card_id in STAFFED_SPHERE[1:]]
        crew[0].status = PersonnelStatus.STOPPED
        group = Group(cards=[make_card("EN03199"), *crew])

        assert not ShipMovementValidator().check_staffed(group).staffed


class TestRangeCost:
    """Tests for range_cost."""

    def test_same_quadrant_sums_ranges(self, database):
        cost = ShipMovementValidator().range_cost(database.get("EN03110"), database.get("EN03094"))
        assert cost == 5

    def test_quadrant_change_adds_two(self, database):
        cost = ShipMovementValidator().range_cost(database.get("EN03110"), database.get("EN03103"))
        assert cost == 6


class TestMoveShip:
    """Tests for planning and executing MOVE_SHIP."""

    def test_plan_move(self, orders_engine, place, make_group):
        place(0, make_group(*STAFFED_SPHERE).cards, group_index=1)

        plan = orders_engine.movement.plan_move(orders_engine.state, 0, 1, 1)

        assert plan == MovePlan(source_index=0, group_index=1, dest_index=1, cost=5)

    def test_move_relocates_group_and_spends_range(self, orders_engine, place, make_group):
        group = make_group(*STAFFED_SPHERE)
        place(0, group.cards, group_index=1)

        result = orders_engine.apply(Action.move_ship(0, 1, 1))

        assert result.success
        state = orders_engine.state
        assert len(state.missions[0].groups) == 1
        moved = state.missions[1].groups[-1]
        assert [c.unique_id for c in moved.cards] == [c.unique_id for c in group.cards]
        assert moved.ship.range_remaining == 4
        assert state.log[-1].details["cost"] == 5

    def test_not_enough_range(self, orders_engine, place, make_group):
        group = make_group(*STAFFED_SPHERE)
        group.ship.range_remaining = 4
        place(0, group.cards, group_index=1)

        result = orders_engine.apply(Action.move_ship(0, 1, 1))

        assert not result.success
        assert "range" in result.error.lower()
        assert orders_engine.state.missions[0].groups[1].ship.range_remaining == 4

    def test_unstaffed_ship_cannot_move(self, orders_engine, place, make_group):
        place(0, make_group("EN03199", "EN03125").cards, group_index=1)

        result = orders_engine.apply(Action.move_ship(0, 1, 4))

        assert not result.success
        assert "staffed" in result.error.lower()

    def test_group_zero_has_no_ship(self, orders_engine, place, make_group):
        place(0, make_group("EN03125").cards)

        result = orders_engine.apply(Action.move_ship(0, 0, 1))

        assert not result.success
        assert "planetside" in result.error.lower()

    def test_same_mission_rejected(self, orders_engine, place, make_group):
        place(0, make_group(*STAFFED_SPHERE).cards, group_index=1)

        result = orders_engine.apply(Action.move_ship(0, 1, 0))

        assert not result.success
        assert "already" in result.error.lower()

    def test_move_not_allowed_during_play_and_draw(self, engine):
        result = engine.apply(Action.move_ship(0, 1, 1))

        assert not result.success
        assert "not allowed" in result.error.lower()

    def test_valid_destinations_respect_range(self, orders_engine, place, make_group):
        group = make_group(*STAFFED_SPHERE)
        place(0, group.cards, group_index=1)
        movement = orders_engine.movement

        assert [p.dest_index for p in movement.valid_destinations(orders_engine.state, 0, 1)] == [1, 2, 3, 4]

        group.ship.range_remaining = 5
        plans = movement.valid_destinations(orders_engine.state, 0, 1)
        assert [(p.dest_index, p.cost) for p in plans] == [(1, 5), (4, 4)]
