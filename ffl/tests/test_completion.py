"""
Tests for schedule completion (backtracking over weekly matchings).
"""
from __future__ import annotations

import copy
from collections import Counter

import pytest

from ffl.errors import (
    CapacityMismatchError,
    InfeasibleScheduleError,
    InvalidTeamCountError,
    SchedulingError,
    SearchBudgetExceededError,
)
from ffl.models import UnorderedPair
from ffl.services.completion import complete_schedule
from ffl.services.pair_counts import build_deficit_matrix, remaining_pair_counts
from ffl.services.scheduling import double_round_robin, is_perfect_matching

TEAMS = list(range(1, 11))


def _history(weeks):
    return [(p.team_a, p.team_b) for w in weeks for p in w]


def _assert_consumes_exactly(weeks, deficits, teams):
    for week in weeks:
        assert is_perfect_matching(week, teams)
        assert [p.pair_index for p in week] == list(range(len(teams) // 2))
    used = Counter(p.pair for week in weeks for p in week)
    expected = {
        UnorderedPair(a, b): c for a, opps in deficits.items() for b, c in opps.items()
    }
    assert dict(used) == expected


@pytest.mark.parametrize("fixed", [17, 16, 15, 14])
def test_completes_tail_of_ten_team_season(fixed):
    season = double_round_robin(TEAMS)
    deficits = build_deficit_matrix(TEAMS, _history(season[:fixed]))
    weeks = complete_schedule(deficits, TEAMS, 18 - fixed)
    assert len(weeks) == 18 - fixed
    _assert_consumes_exactly(weeks, deficits, TEAMS)
    # Together with the fixed weeks, every pair meets exactly twice
    full = _history(season[:fixed]) + _history(weeks)
    assert remaining_pair_counts(TEAMS, full) == {}


def test_completes_whole_six_team_season_from_scratch():
    teams = ["A", "B", "C", "D", "E", "F"]
    deficits = build_deficit_matrix(teams, [])
    weeks = complete_schedule(deficits, teams, 10, search_budget=1_000_000)
    assert len(weeks) == 10
    _assert_consumes_exactly(weeks, deficits, teams)


def test_completes_around_a_hand_edited_history():
    """History that is not a prefix of the generated season still completes."""
    teams = [1, 2, 3, 4]
    history = [(1, 2), (3, 4), (1, 3), (2, 4), (1, 2), (3, 4)]
    deficits = build_deficit_matrix(teams, history)
    weeks = complete_schedule(deficits, teams, 3)
    _assert_consumes_exactly(weeks, deficits, teams)
    assert {frozenset(p.pair.teams) for p in weeks[0] + weeks[1] + weeks[2]} == {
        frozenset({1, 4}), frozenset({2, 3}), frozenset({1, 3}), frozenset({2, 4})
    }


def test_capacity_mismatch_reported_before_search():
    """19 remaining meetings against 4 weeks x 5 slots = 20."""
    season = double_round_robin(TEAMS)
    history = _history(season[:14]) + [(season[14][0].team_a, season[14][0].team_b)]
    deficits = build_deficit_matrix(TEAMS, history)
    with pytest.raises(CapacityMismatchError) as exc_info:
        # A zero budget would trip on the first search step
        complete_schedule(deficits, TEAMS, 4, search_budget=0)
    assert exc_info.value.needed == 19
    assert exc_info.value.capacity == 20
    assert exc_info.value.to_dict() == {"needed_pairs": 19, "capacity": 20, "weeks": 4}


def test_uneven_team_load_is_infeasible_without_search():
    teams = [1, 2, 3, 4]
    # Total 4 == 2 weeks x 2 slots, but team 1 owes 3 meetings in 2 weeks
    deficits = {1: {2: 2, 3: 1}, 2: {1: 2}, 3: {1: 1, 4: 1}, 4: {3: 1}}
    with pytest.raises(InfeasibleScheduleError):
        complete_schedule(deficits, teams, 2, search_budget=0)


def test_exhaustive_search_reports_infeasible():
    """Two disjoint triangles: every degree is right but no perfect matching exists."""
    teams = ["A", "B", "C", "D", "E", "F"]
    remaining = {
        UnorderedPair("A", "B"): 1, UnorderedPair("B", "C"): 1, UnorderedPair("A", "C"): 1,
        UnorderedPair("D", "E"): 1, UnorderedPair("E", "F"): 1, UnorderedPair("D", "F"): 1,
    }
    deficits = {t: {} for t in teams}
    for pair, c in remaining.items():
        deficits[pair.first][pair.second] = c
        deficits[pair.second][pair.first] = c
    with pytest.raises(InfeasibleScheduleError):
        complete_schedule(deficits, teams, 2)


def test_budget_exhaustion_is_distinct_from_infeasible():
    teams = ["A", "B", "C", "D", "E", "F"]
    deficits = {
        "A": {"B": 1, "C": 1}, "B": {"A": 1, "C": 1}, "C": {"A": 1, "B": 1},
        "D": {"E": 1, "F": 1}, "E": {"D": 1, "F": 1}, "F": {"D": 1, "E": 1},
    }
    with pytest.raises(SearchBudgetExceededError) as exc_info:
        complete_schedule(deficits, teams, 2, search_budget=0)
    assert exc_info.value.budget == 0
    assert not isinstance(exc_info.value, InfeasibleScheduleError)


def test_budget_exhaustion_on_solvable_input():
    season = double_round_robin(TEAMS)
    deficits = build_deficit_matrix(TEAMS, _history(season[:14]))
    with pytest.raises(SearchBudgetExceededError):
        complete_schedule(deficits, TEAMS, 4, search_budget=3)


def test_input_matrix_is_not_mutated():
    season = double_round_robin(TEAMS)
    deficits = build_deficit_matrix(TEAMS, _history(season[:14]))
    before = copy.deepcopy(deficits)
    complete_schedule(deficits, TEAMS, 4)
    assert deficits == before
    with pytest.raises(SearchBudgetExceededError):
        complete_schedule(deficits, TEAMS, 4, search_budget=2)
    assert deficits == before


def test_same_input_same_schedule():
    season = double_round_robin(TEAMS)
    deficits = build_deficit_matrix(TEAMS, _history(season[:14]))
    assert complete_schedule(deficits, TEAMS, 4) == complete_schedule(copy.deepcopy(deficits), TEAMS, 4)


def test_nothing_left_and_no_weeks():
    teams = [1, 2]
    deficits = build_deficit_matrix(teams, [(1, 2), (2, 1)])
    assert complete_schedule(deficits, teams, 0) == []


def test_odd_team_count_rejected():
    with pytest.raises(InvalidTeamCountError):
        complete_schedule({}, [1, 2, 3], 1)


def test_asymmetric_matrix_rejected():
    with pytest.raises(SchedulingError):
        complete_schedule({1: {2: 1}, 2: {}}, [1, 2], 1)


def test_unknown_team_in_matrix_rejected():
    with pytest.raises(SchedulingError):
        complete_schedule({1: {9: 1}, 9: {1: 1}}, [1, 2], 1)
