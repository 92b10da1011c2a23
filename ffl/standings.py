"""
Season standings from stored awards and scores.
Ordered by season points, then raw score total, then name.
"""
from __future__ import annotations

from typing import Iterable

from ffl.models import StandingRow, Team


def latest_awarded_week(awards: Iterable[tuple[int, int, float]]) -> int | None:
    weeks = [week for week, _, _ in awards]
    return max(weeks) if weeks else None


def compute_standings(
    teams: Iterable[Team],
    awards: Iterable[tuple[int, int, float]],
    scores: Iterable[tuple[int, int, float]],
) -> list[StandingRow]:
    """
    teams: all league teams. awards/scores: (week, team_id, value) rows.
    Teams without rows still appear with zeros; rows for unknown teams are ignored.
    """
    rows = {t.id: StandingRow(team_id=t.id, name=t.name, espn_id=t.espn_id) for t in teams}
    last_awarded: dict[int, int] = {}
    for week, team_id, points in awards:
        row = rows.get(team_id)
        if row is None:
            continue
        row.season_points += points
        row.played += 1
        if week >= last_awarded.get(team_id, -1):
            last_awarded[team_id] = week
            row.last_week = points
    for _, team_id, score in scores:
        row = rows.get(team_id)
        if row is not None:
            row.raw_sum += score
    return sorted(rows.values(), key=lambda r: (-r.season_points, -r.raw_sum, r.name))
