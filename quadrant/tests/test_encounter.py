"""
Tests for mission attempts and dilemma encounters.

Tests:
- Draw budget, cost budget and location filtering
- Face-up skipping and pool reshuffle
- Selection, advancing and duplicate copies
- Short-circuit when the group is wiped out
- Scoring, failure and victory
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.rng import RandomSource
from ..engine_core.state import GameStatus, LogType, PersonnelStatus


HUNT_ALIEN = 1
SALVAGE = 2
ASSAULT = 3


class ReversingRandomSource(RandomSource):
    """Shuffles by reversing, so shuffled order is distinguishable from draw order."""

    def __init__(self):
        self.shuffled = []

    def shuffle(self, items):
        self.shuffled.append(list(items))
        return list(reversed(items))

    def choice(self, items):
        return list(items)[0]


def log_types(engine):
    return [entry.entry_type for entry in engine.state.log]


class TestAttemptValidation:
    """Attempts that must be rejected."""

    def test_headquarters_cannot_be_attempted(self, orders_engine, place, hunt_alien_team):
        place(0, hunt_alien_team)

        result = orders_engine.apply(Action.attempt_mission(0, 0))

        assert not result.success
        assert "headquarters" in result.error.lower()

    def test_empty_group_rejected(self, orders_engine):
        result = orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert not result.success
        assert "no unstopped personnel" in result.error.lower()

    def test_completed_mission_rejected(self, orders_engine, place, hunt_alien_team):
        place(HUNT_ALIEN, hunt_alien_team)
        orders_engine.state.missions[HUNT_ALIEN].mission.completed = True

        result = orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert not result.success
        assert "already completed" in result.error.lower()

    def test_wrong_phase_rejected(self, engine):
        result = engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert not result.success
        assert "not allowed" in result.error.lower()

    def test_invalid_group_rejected(self, orders_engine, place, hunt_alien_team):
        place(HUNT_ALIEN, hunt_alien_team)

        result = orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 3))

        assert not result.success
        assert "group" in result.error.lower()


class TestDilemmaDraw:
    """Budget, location and face-up handling when drawing dilemmas."""

    def test_no_dilemmas_scores_immediately(self, orders_engine, place, hunt_alien_team):
        place(HUNT_ALIEN, hunt_alien_team)

        result = orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert result.success
        state = orders_engine.state
        assert state.encounter is None
        assert state.missions[HUNT_ALIEN].mission.completed
        assert state.score == 35
        assert state.completed_planet_missions == 1
        assert LogType.MISSION_COMPLETE in log_types(orders_engine)

    def test_draw_limited_by_personnel_count(self, orders_engine, place, make_card, make_group):
        """Two personnel: only two cost-1 dilemmas are drawn."""
        place(HUNT_ALIEN, make_group("EN03125", "EN03126").cards)
        pool = [make_card("EN01033"), make_card("EN01057"), make_card("EN01033"), make_card("EN01057")]
        orders_engine.state.dilemma_pool = pool

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert encounter.draw_budget == 2
        assert [d.unique_id for d in encounter.selected] == [d.unique_id for d in pool[:2]]
        assert encounter.cost_spent == 2
        assert [d.unique_id for d in orders_engine.state.dilemma_pool] == [d.unique_id for d in pool[2:]]

    def test_overcome_dilemmas_reduce_budget(self, orders_engine, place, make_card, make_group):
        deployment = place(HUNT_ALIEN, make_group("EN03125", "EN03126", "EN03137").cards)
        deployment.dilemmas = [make_card("EN01057", overcome=True, faceup=True)]
        orders_engine.state.dilemma_pool = [make_card("EN01033"), make_card("EN01043")]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert orders_engine.state.encounter.draw_budget == 2

    def test_location_filter(self, orders_engine, place, make_card, make_group):
        """A space dilemma is never drawn at a planet mission."""
        place(HUNT_ALIEN, make_group("EN03125").cards)
        wavefront = make_card("EN01060")
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [wavefront, triage]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [triage.unique_id]
        assert orders_engine.state.dilemma_pool == [wavefront]
        assert not wavefront.faceup

    def test_expensive_dilemma_returns_face_up(self, orders_engine, place, make_card, make_group):
        """With budget 3, a cost-4 dilemma goes back face-up and the cost-1 card is kept."""
        place(HUNT_ALIEN, make_group("EN03125", "EN03126", "EN03137").cards)
        ornaran = make_card("EN01041")
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [ornaran, triage]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [triage.unique_id]
        assert orders_engine.state.dilemma_pool == [ornaran]
        assert ornaran.faceup

    def test_cost_equal_to_budget_is_kept(self, orders_engine, place, make_card, make_group):
        place(HUNT_ALIEN, make_group("EN03125", "EN03126", "EN03137").cards)
        sokath = make_card("EN03030")
        orders_engine.state.dilemma_pool = [sokath]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [sokath.unique_id]
        assert encounter.cost_spent == 3

    def test_face_up_cards_are_skipped(self, orders_engine, place, make_card, make_group):
        place(HUNT_ALIEN, make_group("EN03125").cards)
        seen = make_card("EN01057", faceup=True)
        fresh = make_card("EN01033")
        orders_engine.state.dilemma_pool = [seen, fresh]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert [d.unique_id for d in orders_engine.state.encounter.selected] == [fresh.unique_id]
        assert orders_engine.state.dilemma_pool == [seen]

    def test_pool_reshuffles_when_only_face_up_cards_remain(self, orders_engine, place, make_card, make_group):
        place(HUNT_ALIEN, make_group("EN03125").cards)
        seen = make_card("EN01057", faceup=True)
        orders_engine.state.dilemma_pool = [seen]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert [d.unique_id for d in orders_engine.state.encounter.selected] == [seen.unique_id]
        messages = [entry.message for entry in orders_engine.state.log]
        assert "Dilemma pile reshuffled" in messages

    def test_reshuffle_turns_whole_pool_face_down(self, orders_engine, place, make_card, make_group):
        """Non-applicable face-up cards are flipped too."""
        place(HUNT_ALIEN, make_group("EN03125").cards)
        seen = make_card("EN01057", faceup=True)
        wavefront = make_card("EN01060", faceup=True)
        orders_engine.state.dilemma_pool = [seen, wavefront]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert [d.unique_id for d in orders_engine.state.encounter.selected] == [seen.unique_id]
        assert orders_engine.state.dilemma_pool == [wavefront]
        assert all(d.faceup is False for d in orders_engine.state.dilemma_pool)

    def test_space_mission_takes_dual_and_space_only(self, orders_engine, place, make_card, make_group):
        """A planet dilemma is never drawn at a space mission; dual ones are."""
        place(ASSAULT, make_group("EN03125", "EN03126", "EN03137").cards)
        triage = make_card("EN01057")
        welcome = make_card("EN01034")
        decisions = make_card("EN01017")
        orders_engine.state.dilemma_pool = [triage, welcome, decisions]

        orders_engine.apply(Action.attempt_mission(ASSAULT, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [welcome.unique_id, decisions.unique_id]
        assert encounter.cost_spent == 3
        assert orders_engine.state.dilemma_pool == [triage]
        assert not triage.faceup

    def test_selected_dilemmas_are_shuffled_for_presentation(self, orders_engine, place, make_card, make_group):
        """Resolution order comes from the injected random source, not draw order."""
        rng = ReversingRandomSource()
        orders_engine.encounters.rng = rng
        place(HUNT_ALIEN, make_group("EN03125", "EN03126").cards)
        raiders = make_card("EN01033")
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [raiders, triage]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [triage.unique_id, raiders.unique_id]
        assert rng.shuffled == [[raiders, triage]]
        draw_entry = next(e for e in orders_engine.state.log if e.entry_type == LogType.DILEMMA_DRAW)
        assert draw_entry.details["drawn"] == [raiders.unique_id, triage.unique_id]

    def test_no_reshuffle_without_applicable_cards(self, orders_engine, place, make_card, make_group):
        """Only space dilemmas in the pool: a planet attempt faces nothing."""
        place(HUNT_ALIEN, make_group("EN03125").cards)
        orders_engine.state.dilemma_pool = [make_card("EN01060", faceup=True)]

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert orders_engine.state.encounter is None
        assert orders_engine.state.dilemma_pool[0].faceup
        assert LogType.MISSION_FAIL in log_types(orders_engine)


class TestResolution:
    """Selecting personnel and advancing through dilemmas."""

    def test_selection_required_before_advance(self, orders_engine, place, make_card, make_group):
        place(HUNT_ALIEN, make_group("EN03125", "EN03137").cards)
        orders_engine.state.dilemma_pool = [make_card("EN01057")]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        result = orders_engine.apply(Action.advance_dilemma())

        assert not result.success
        assert "select" in result.error.lower()

    def test_invalid_selection_rejected(self, orders_engine, place, make_card, make_group):
        group = make_group("EN03125", "EN03137")
        place(HUNT_ALIEN, group.cards)
        orders_engine.state.dilemma_pool = [make_card("EN01057")]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        result = orders_engine.apply(Action.select_personnel(group.cards[0].unique_id))

        assert not result.success
        assert "cannot be selected" in result.error.lower()

    def test_selected_personnel_is_stopped_on_advance(self, orders_engine, place, make_card, make_group):
        group = make_group("EN03125", "EN03137")
        medic = group.cards[1]
        place(HUNT_ALIEN, group.cards)
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [triage]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        assert orders_engine.apply(Action.select_personnel(medic.unique_id)).success
        assert medic.status == PersonnelStatus.UNSTOPPED

        assert orders_engine.apply(Action.advance_dilemma()).success
        deployment = orders_engine.state.missions[HUNT_ALIEN]
        assert triage in deployment.dilemmas
        assert triage.overcome
        # The attempt then fails and stops everyone
        assert orders_engine.state.encounter is None
        assert LogType.MISSION_FAIL in log_types(orders_engine)

    def test_other_actions_blocked_during_encounter(self, orders_engine, place, make_card, make_group):
        place(HUNT_ALIEN, make_group("EN03125", "EN03137").cards)
        orders_engine.state.dilemma_pool = [make_card("EN01057")]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        for action in (Action.next_phase(), Action.attempt_mission(SALVAGE, 0), Action.move_ship(0, 1, 1)):
            result = orders_engine.apply(action)
            assert not result.success
            assert "in progress" in result.error.lower()

    def test_advance_without_encounter_rejected(self, orders_engine):
        result = orders_engine.apply(Action.advance_dilemma())

        assert not result.success
        assert "no mission attempt" in result.error.lower()

    def test_killed_personnel_go_to_discard(self, orders_engine, place, make_card, make_group):
        """Triage with no Biology or Medical kills the first personnel."""
        group = make_group("EN03125", "EN03126")
        victim = group.cards[0]
        place(HUNT_ALIEN, group.cards)
        orders_engine.state.dilemma_pool = [make_card("EN01057")]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        orders_engine.apply(Action.advance_dilemma())

        state = orders_engine.state
        assert victim.status == PersonnelStatus.KILLED
        assert victim in state.discard
        assert victim.unique_id not in [c.unique_id for c in state.missions[HUNT_ALIEN].groups[0].cards]

    def test_duplicate_copy_is_overcome_without_effect(self, orders_engine, place, make_card, make_group):
        group = make_group("EN03125", "EN03137")
        place(HUNT_ALIEN, group.cards)
        first, second = make_card("EN01057"), make_card("EN01057")
        orders_engine.state.dilemma_pool = [first, second]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        orders_engine.apply(Action.select_personnel(group.cards[1].unique_id))
        orders_engine.apply(Action.advance_dilemma())

        assert second.overcome
        assert second in orders_engine.state.missions[HUNT_ALIEN].dilemmas
        duplicate_logs = [e for e in orders_engine.state.log if e.details.get("duplicate")]
        assert len(duplicate_logs) == 1
        assert orders_engine.state.encounter is None

    def test_group_wiped_out_buries_remaining_dilemmas(self, orders_engine, place, make_card, make_group):
        """Sokath stops everyone: it returns to the pool and Triage is buried as overcome."""
        place(HUNT_ALIEN, make_group("EN03125", "EN03126", "EN03137", "EN03124").cards)
        sokath = make_card("EN03030")
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [sokath, triage]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))
        assert orders_engine.state.encounter.current == sokath

        orders_engine.apply(Action.advance_dilemma())

        state = orders_engine.state
        deployment = state.missions[HUNT_ALIEN]
        assert state.encounter is None
        assert sokath in state.dilemma_pool
        assert sokath.faceup
        assert not sokath.overcome
        assert deployment.dilemmas == [triage]
        assert triage.overcome
        assert all(p.status == PersonnelStatus.STOPPED for p in deployment.groups[0].personnel)
        assert not deployment.mission.completed
        assert LogType.MISSION_FAIL in log_types(orders_engine)

    def test_parked_dilemma_rejoins_at_no_cost(self, orders_engine, place, make_card, make_group):
        """Limited Welcome stays beneath the mission and is faced again next attempt."""
        group = make_group("EN03125", "EN03126")
        deployment = place(HUNT_ALIEN, group.cards)
        welcome = make_card("EN01034")
        orders_engine.state.dilemma_pool = [welcome]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))
        orders_engine.apply(Action.advance_dilemma())

        assert deployment.parked_dilemmas == [welcome]
        assert orders_engine.state.encounter is None

        for personnel in group.personnel:
            personnel.status = PersonnelStatus.UNSTOPPED
        triage = make_card("EN01057")
        orders_engine.state.dilemma_pool = [triage]
        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        encounter = orders_engine.state.encounter
        assert [d.unique_id for d in encounter.selected] == [welcome.unique_id, triage.unique_id]
        assert encounter.cost_spent == 1
        assert welcome not in deployment.dilemmas


class TestScoring:
    """Mission completion, failure and victory."""

    def test_failed_attempt_stops_group_and_reports_gap(self, orders_engine, place, make_group):
        group = make_group("EN03125", "EN03126")
        place(HUNT_ALIEN, group.cards)

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        state = orders_engine.state
        assert state.score == 0
        assert all(p.status == PersonnelStatus.STOPPED for p in group.personnel)
        failure = state.log[-1]
        assert failure.entry_type == LogType.MISSION_FAIL
        assert failure.details["hint"].startswith("Need:")

    def test_points_alone_do_not_win(self, orders_engine, place, hunt_alien_team):
        """100 points without a completed space mission is not a victory."""
        orders_engine.state.score = 70
        place(HUNT_ALIEN, hunt_alien_team)

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        state = orders_engine.state
        assert state.score == 105
        assert state.status == GameStatus.PLAYING
        assert state.victory is None

    def test_victory(self, orders_engine, place, hunt_alien_team):
        state = orders_engine.state
        state.score = 65
        state.completed_space_missions = 1
        place(HUNT_ALIEN, hunt_alien_team)

        orders_engine.apply(Action.attempt_mission(HUNT_ALIEN, 0))

        state = orders_engine.state
        assert state.score == 100
        assert state.status == GameStatus.GAME_OVER
        assert state.victory is True
        assert state.log[-1].entry_type == LogType.GAME_OVER

        result = orders_engine.apply(Action.next_phase())
        assert not result.success
        assert "game is over" in result.error.lower()

    @pytest.mark.parametrize("mission_index", [SALVAGE, ASSAULT])
    def test_failed_attempt_logs_attempt_and_fail(self, orders_engine, place, make_group, mission_index):
        place(mission_index, make_group("EN03125").cards)

        orders_engine.apply(Action.attempt_mission(mission_index, 0))

        types = log_types(orders_engine)
        assert types[-3:] == [LogType.MISSION_ATTEMPT, LogType.DILEMMA_DRAW, LogType.MISSION_FAIL]
