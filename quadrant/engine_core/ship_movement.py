"""
Ship Movement - Staffing and range checks for moving ships between missions.

Rules:
1. A ship must be staffed by the unstopped personnel aboard it
2. Command icons may cover unmet Staff demand, never the other way round
3. At least one unstopped crew member must share an affiliation with the ship
4. Cost = range of both missions, plus a penalty when quadrants differ
5. The whole group moves or nothing does
"""

from __future__ import annotations
from dataclasses import dataclass

from ..card_schema.definitions import MissionDefinition, StaffingIcon
from .state import GameState, Group, QUADRANT_CHANGE_RANGE


@dataclass
class StaffingCheck:
    staffed: bool
    reason: str | None = None


@dataclass
class MovePlan:
    """A validated move, ready to be committed."""
    source_index: int
    group_index: int
    dest_index: int
    cost: int


@dataclass
class ShipMovementValidator:
    """Validates ship movement. Never mutates state."""
    quadrant_change_range: int = QUADRANT_CHANGE_RANGE

    def check_staffed(self, group: Group) -> StaffingCheck:
        ship = group.ship
        if ship is None:
            return StaffingCheck(False, "No ship in group")

        required = ship.definition.staffing
        need_staff = sum(1 for icon in required if icon == StaffingIcon.STAFF)
        need_command = sum(1 for icon in required if icon == StaffingIcon.COMMAND)

        crew = group.unstopped_personnel
        have_staff = sum(
            1 for p in crew for icon in p.definition.icons if icon == StaffingIcon.STAFF
        )
        have_command = sum(
            1 for p in crew for icon in p.definition.icons if icon == StaffingIcon.COMMAND
        )

        if have_command < need_command:
            return StaffingCheck(
                False, f"Needs {need_command} Command, has {have_command}"
            )
        surplus_command = have_command - need_command
        if have_staff + surplus_command < need_staff:
            return StaffingCheck(
                False,
                f"Needs {need_staff} Staff, has {have_staff} (+{surplus_command} spare Command)",
            )

        if not any(
            affiliation in ship.affiliations
            for p in crew
            for affiliation in p.affiliations
        ):
            return StaffingCheck(False, "No crew member shares the ship's affiliation")

        return StaffingCheck(True)

    def range_cost(self, source: MissionDefinition, dest: MissionDefinition) -> int:
        cost = source.range + dest.range
        if source.quadrant != dest.quadrant:
            cost += self.quadrant_change_range
        return cost

    def plan_move(
        self,
        state: GameState,
        source_index: int,
        group_index: int,
        dest_index: int,
    ) -> MovePlan | str:
        """Return a MovePlan, or the reason the move is illegal."""
        if not 0 <= source_index < len(state.missions):
            return f"Invalid source mission index: {source_index}"
        if not 0 <= dest_index < len(state.missions):
            return f"Invalid destination mission index: {dest_index}"
        if source_index == dest_index:
            return "Ship is already at that mission"

        source = state.missions[source_index]
        if not source.has_group(group_index):
            return f"Invalid group index: {group_index}"
        if group_index == 0:
            return "Group 0 is planetside and has no ship"

        group = source.groups[group_index]
        ship = group.ship
        if ship is None:
            return "No ship in group"

        staffing = self.check_staffed(group)
        if not staffing.staffed:
            return f"Ship is not staffed: {staffing.reason}"

        cost = self.range_cost(
            source.mission.definition, state.missions[dest_index].mission.definition
        )
        if ship.range_remaining < cost:
            return f"Not enough range: needs {cost}, has {ship.range_remaining}"

        return MovePlan(source_index, group_index, dest_index, cost)

    def valid_destinations(
        self,
        state: GameState,
        source_index: int,
        group_index: int,
    ) -> list[MovePlan]:
        """Every mission the group could legally move to right now."""
        plans = []
        for dest_index in range(len(state.missions)):
            plan = self.plan_move(state, source_index, group_index, dest_index)
            if isinstance(plan, MovePlan):
                plans.append(plan)
        return plans


def commit_move(state: GameState, plan: MovePlan) -> None:
    """Deduct range and relocate the whole group in one step."""
    source = state.missions[plan.source_index]
    dest = state.missions[plan.dest_index]
    group = source.groups[plan.group_index]
    group.ship.range_remaining -= plan.cost
    source.groups = [g for i, g in enumerate(source.groups) if i != plan.group_index]
    dest.groups = [*dest.groups, group]
