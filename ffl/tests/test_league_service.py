"""
Tests for the league service: roster, schedule persistence, completion, awards, read models.
"""
from __future__ import annotations

from collections import Counter

import pytest

from ffl.config import SeasonConfig
from ffl.errors import CapacityMismatchError
from ffl.persistence.db import get_connection, init_db, set_db_path
from ffl.persistence.repositories import AwardRepository, ScheduleRepository
from ffl.services.league_service import (
    DuplicateTeamError,
    InvalidWeekScheduleError,
    LeagueService,
    NoScheduleError,
    RosterSizeError,
    TeamNotFoundError,
    WeekOutOfRangeError,
)


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the league schema."""
    db_path = tmp_path / "league_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def league_service():
    return LeagueService(SeasonConfig())


@pytest.fixture
def full_roster(db_conn, league_service):
    """Ten teams, ids 1..10."""
    return [league_service.create_team(db_conn, f"Team {i}") for i in range(1, 11)]


@pytest.fixture
def scheduled(db_conn, league_service, full_roster):
    league_service.generate_schedule(db_conn)
    return full_roster


def _season_pair_counts(conn, weeks):
    repo = ScheduleRepository()
    return Counter(p.pair for w in weeks for p in repo.list_week(conn, w))


# ---------- Teams ----------


def test_create_and_list_teams(db_conn, league_service):
    league_service.create_team(db_conn, "  Aces ", espn_id="101")
    league_service.create_team(db_conn, "Bruisers")
    teams = league_service.list_teams(db_conn)
    assert [t.name for t in teams] == ["Aces", "Bruisers"]
    assert teams[0].espn_id == "101"


def test_duplicate_or_blank_team_name_rejected(db_conn, league_service):
    league_service.create_team(db_conn, "Aces")
    with pytest.raises(DuplicateTeamError):
        league_service.create_team(db_conn, "Aces")
    with pytest.raises(ValueError):
        league_service.create_team(db_conn, "   ")


def test_update_team(db_conn, league_service):
    aces = league_service.create_team(db_conn, "Aces")
    bruisers = league_service.create_team(db_conn, "Bruisers")
    updated = league_service.update_team(db_conn, aces.id, name="Aces High", espn_id="7")
    assert updated.name == "Aces High"
    assert updated.espn_id == "7"
    with pytest.raises(DuplicateTeamError):
        league_service.update_team(db_conn, aces.id, name="Bruisers")
    # Renaming to its own name is fine
    assert league_service.update_team(db_conn, bruisers.id, name="Bruisers").id == bruisers.id


def test_unknown_team_raises(db_conn, league_service):
    with pytest.raises(TeamNotFoundError):
        league_service.update_team(db_conn, 42, name="Ghost")
    with pytest.raises(TeamNotFoundError):
        league_service.delete_team(db_conn, 42)


def test_delete_team_cascades_to_schedule(db_conn, league_service, scheduled):
    league_service.delete_team(db_conn, scheduled[0].id)
    assert len(league_service.list_teams(db_conn)) == 9
    assert all(
        scheduled[0].id not in (p.team_a, p.team_b)
        for p in league_service.get_week_schedule(db_conn, 0)
    )


# ---------- Schedule ----------


def test_generate_schedule_needs_full_roster(db_conn, league_service):
    league_service.create_team(db_conn, "Lonely")
    with pytest.raises(RosterSizeError):
        league_service.generate_schedule(db_conn)


def test_generated_schedule_is_stored(db_conn, league_service, scheduled):
    repo = ScheduleRepository()
    assert all(len(repo.list_week(db_conn, w)) == 5 for w in range(18))
    assert repo.list_week(db_conn, 18) == []
    counts = _season_pair_counts(db_conn, range(18))
    assert len(counts) == 45
    assert set(counts.values()) == {2}


def test_save_week_schedule_replaces_week(db_conn, league_service, scheduled):
    ids = [t.id for t in scheduled]
    pairs = [(ids[0], ids[9]), (ids[1], ids[8]), (ids[2], ids[7]), (ids[3], ids[6]), (ids[4], ids[5])]
    saved = league_service.save_week_schedule(db_conn, 3, pairs)
    assert [p.pair_index for p in saved] == [0, 1, 2, 3, 4]
    stored = league_service.get_week_schedule(db_conn, 3)
    assert [(p.team_a, p.team_b) for p in stored] == pairs


@pytest.mark.parametrize(
    "pairs",
    [
        [(1, 1)],
        [(1, 2), (2, 3)],
        [(1, 99)],
    ],
)
def test_save_week_schedule_rejects_bad_weeks(db_conn, league_service, full_roster, pairs):
    with pytest.raises(InvalidWeekScheduleError):
        league_service.save_week_schedule(db_conn, 0, pairs)


def test_save_week_schedule_rejects_partial_week(db_conn, league_service, scheduled):
    before = league_service.get_week_schedule(db_conn, 3)
    with pytest.raises(InvalidWeekScheduleError):
        league_service.save_week_schedule(db_conn, 3, [(1, 2), (3, 4)])
    assert league_service.get_week_schedule(db_conn, 3) == before
    assert len(league_service.week_view(db_conn, 3)["pairs"]) == 5


def test_week_out_of_range(db_conn, league_service, full_roster):
    with pytest.raises(WeekOutOfRangeError):
        league_service.save_week_schedule(db_conn, 18, [(1, 2)])
    with pytest.raises(WeekOutOfRangeError):
        league_service.save_scores(db_conn, -1, {1: 10})


# ---------- Completion ----------


def test_complete_schedule_refills_tail(db_conn, league_service, scheduled):
    repo = ScheduleRepository()
    # Wipe the tail so completion has to rebuild it
    repo.replace_weeks(db_conn, {w: [] for w in range(14, 18)})
    result = league_service.complete_schedule(db_conn)
    assert (result.start_week, result.end_week, result.dry_run) == (14, 17, False)
    assert sorted(result.weeks) == [14, 15, 16, 17]
    counts = _season_pair_counts(db_conn, range(18))
    assert len(counts) == 45
    assert set(counts.values()) == {2}
    body = result.to_dict()
    assert body["ok"] is True
    assert [w["week"] for w in body["weeks"]] == [14, 15, 16, 17]
    assert len(body["weeks"][0]["pairs"]) == 5


def test_complete_schedule_dry_run_writes_nothing(db_conn, league_service, scheduled):
    before = {w: league_service.get_week_schedule(db_conn, w) for w in range(14, 18)}
    result = league_service.complete_schedule(db_conn, dry_run=True)
    assert result.dry_run
    assert len(result.weeks) == 4
    after = {w: league_service.get_week_schedule(db_conn, w) for w in range(14, 18)}
    assert after == before


def test_complete_schedule_clamps_start(db_conn, league_service, scheduled):
    result = league_service.complete_schedule(db_conn, start_week=2, dry_run=True)
    assert result.start_week == 14
    result = league_service.complete_schedule(db_conn, start_week=16, end_week=40, dry_run=True)
    assert (result.start_week, result.end_week) == (16, 17)


def test_complete_schedule_after_manual_edit(db_conn, league_service, scheduled):
    """A manually swapped week 13 changes what the tail has to contain."""
    ids = [t.id for t in scheduled]
    week13 = league_service.get_week_schedule(db_conn, 13)
    week14 = league_service.get_week_schedule(db_conn, 14)
    league_service.save_week_schedule(db_conn, 13, [(p.team_a, p.team_b) for p in week14])
    league_service.complete_schedule(db_conn)
    tail = Counter(p.pair for w in range(14, 18) for p in league_service.get_week_schedule(db_conn, w))
    assert all(tail[p.pair] >= 1 for p in week13)
    counts = _season_pair_counts(db_conn, range(18))
    assert set(counts.values()) == {2}
    assert len(counts) == len(ids) * (len(ids) - 1) // 2


def test_complete_schedule_capacity_mismatch_leaves_schedule(db_conn, league_service, scheduled):
    tail_before = {w: league_service.get_week_schedule(db_conn, w) for w in range(14, 18)}
    # Dropping week 0 entirely leaves 25 meetings for 20 slots
    league_service.save_week_schedule(db_conn, 0, [])
    with pytest.raises(CapacityMismatchError) as exc_info:
        league_service.complete_schedule(db_conn)
    assert exc_info.value.needed == 25
    assert exc_info.value.capacity == 20
    assert {w: league_service.get_week_schedule(db_conn, w) for w in range(14, 18)} == tail_before


# ---------- Scores, awards, read models ----------


def _score_week(conn, service, week, pairs_scores):
    """pairs_scores: per pair_index, the score each team of that pair gets."""
    pairings = service.get_week_schedule(conn, week)
    scores = {}
    for p in pairings:
        scores[p.team_a] = pairs_scores[p.pair_index]
        scores[p.team_b] = pairs_scores[p.pair_index]
    service.save_scores(conn, week, scores)
    return pairings


def test_save_scores_rejects_unknown_team(db_conn, league_service, full_roster):
    with pytest.raises(TeamNotFoundError):
        league_service.save_scores(db_conn, 0, {999: 10.0})


def test_calculate_awards_by_place_with_tie(db_conn, league_service, scheduled):
    pairings = _score_week(db_conn, league_service, 0, [25, 25, 20, 15, 10])
    awards = league_service.calculate_awards(db_conn, 0)
    assert awards == {0: 6.5, 1: 6.5, 2: 3, 3: 2, 4: 1}
    stored = AwardRepository().list_week(db_conn, 0)
    assert len(stored) == 10
    for p in pairings:
        assert stored[p.team_a] == stored[p.team_b] == awards[p.pair_index]


def test_calculate_awards_without_schedule(db_conn, league_service, full_roster):
    with pytest.raises(NoScheduleError):
        league_service.calculate_awards(db_conn, 5)


def test_recalculating_replaces_awards(db_conn, league_service, scheduled):
    _score_week(db_conn, league_service, 0, [10, 20, 30, 40, 50])
    league_service.calculate_awards(db_conn, 0)
    _score_week(db_conn, league_service, 0, [50, 40, 30, 20, 10])
    awards = league_service.calculate_awards(db_conn, 0)
    assert awards[0] == 8
    assert sum(AwardRepository().list_week(db_conn, 0).values()) == 2 * 19


def test_week_view_before_and_after_awards(db_conn, league_service, scheduled):
    _score_week(db_conn, league_service, 2, [10, 20, 30, 40, 50])
    view = league_service.week_view(db_conn, 2)
    assert view["week"] == 2
    assert view["awards_applied"] is False
    assert [p["pair_index"] for p in view["pairs"]] == [4, 3, 2, 1, 0]
    assert view["pairs"][0]["points_computed"] == 8
    assert view["pairs"][0]["points_awarded"] is None
    assert view["pairs"][0]["teams"][0]["name"].startswith("Team ")

    league_service.calculate_awards(db_conn, 2)
    view = league_service.week_view(db_conn)
    assert view["week"] == 2
    assert view["awards_applied"] is True
    assert view["pairs"][0]["points_awarded"] == 8


def test_week_view_without_schedule(db_conn, league_service, full_roster):
    view = league_service.week_view(db_conn, 0)
    assert view["pairs"] == []
    assert "note" in view


def test_default_week(db_conn, league_service, scheduled):
    assert league_service.default_week(db_conn) == 0
    _score_week(db_conn, league_service, 4, [1, 2, 3, 4, 5])
    assert league_service.default_week(db_conn) == 4
    _score_week(db_conn, league_service, 1, [1, 2, 3, 4, 5])
    league_service.calculate_awards(db_conn, 1)
    assert league_service.default_week(db_conn) == 1


def test_standings(db_conn, league_service, scheduled):
    pairings = _score_week(db_conn, league_service, 0, [50, 40, 30, 20, 10])
    league_service.calculate_awards(db_conn, 0)
    standings = league_service.standings(db_conn)
    assert standings["latest_week"] == 0
    rows = standings["rows"]
    assert len(rows) == 10
    top_pair = {pairings[0].team_a, pairings[0].team_b}
    assert {rows[0]["id"], rows[1]["id"]} == top_pair
    assert rows[0]["season_points"] == 8
    assert rows[0]["raw_sum"] == 50
    assert rows[-1]["season_points"] == 1


def test_standings_empty_league(db_conn, league_service):
    assert league_service.standings(db_conn) == {"latest_week": None, "rows": []}
