"""
Weekly points by place.

Each week every pair's combined score is ranked; places are worth a fixed,
descending table of points (default 8, 5, 3, 2, 1). Pairs with identical sums
share the places they occupy: each gets the mean of those places' points.
The points handed out in a week add up to the whole table. Block means are
computed in exact rational arithmetic; only the per-pair result is a float.
"""
from __future__ import annotations

from fractions import Fraction
from typing import Any, Hashable, Mapping, Sequence, TypeVar

from ffl.errors import PointsTableError
from ffl.models import MatchupResult, RankedMatchup, ScheduleWeek

K = TypeVar("K", bound=Hashable)


def _tied_runs(totals: Sequence[float]) -> list[tuple[int, int]]:
    """(start, end) index ranges of equal values in an already sorted sequence."""
    runs: list[tuple[int, int]] = []
    i = 0
    while i < len(totals):
        j = i + 1
        # Exact equality; no tolerance
        while j < len(totals) and totals[j] == totals[i]:
            j += 1
        runs.append((i, j))
        i = j
    return runs


def _block_mean(block: Sequence[float]) -> float:
    """Mean of a tied block, computed exactly and rounded once."""
    return float(sum(Fraction(p) for p in block) / len(block))


def _check_table(points_table: Sequence[float], pair_count: int) -> None:
    if len(points_table) != pair_count:
        raise PointsTableError(len(points_table), pair_count)


def allocate_points(sums: Sequence[tuple[K, float]], points_table: Sequence[float]) -> dict[K, float]:
    """
    Map each key (pair index or team id) to its points for the week.

    sums: (key, combined score) per pair. points_table: points per place, best first,
    exactly one entry per pair (PointsTableError otherwise). Empty week -> {}.
    """
    if not sums:
        return {}
    _check_table(points_table, len(sums))
    ordered = sorted(sums, key=lambda kv: kv[1], reverse=True)
    awards: dict[K, float] = {}
    for start, end in _tied_runs([total for _, total in ordered]):
        avg = _block_mean(points_table[start:end])
        for key, _ in ordered[start:end]:
            awards[key] = avg
    return awards


def matchup_results(week: ScheduleWeek, scores: Mapping[Any, float]) -> list[MatchupResult]:
    """Combine team scores per pairing. A team without a score counts as 0."""
    return [
        MatchupResult(
            pair_index=p.pair_index,
            team_a=p.team_a,
            team_b=p.team_b,
            score_a=float(scores.get(p.team_a) or 0),
            score_b=float(scores.get(p.team_b) or 0),
        )
        for p in week
    ]


def rank_matchups(results: Sequence[MatchupResult], points_table: Sequence[float]) -> list[RankedMatchup]:
    """Ranked view of a week: 1-based rank (tied pairs share the first place of their block) and points."""
    if not results:
        return []
    _check_table(points_table, len(results))
    ordered = sorted(results, key=lambda r: r.total, reverse=True)
    ranked: list[RankedMatchup] = []
    for start, end in _tied_runs([r.total for r in ordered]):
        avg = _block_mean(points_table[start:end])
        ranked.extend(RankedMatchup(result=r, rank=start + 1, points=avg) for r in ordered[start:end])
    return ranked


def week_awards(week: ScheduleWeek, scores: Mapping[Any, float], points_table: Sequence[float]) -> dict[int, float]:
    """pair_index -> points for a scheduled week and its team scores."""
    results = matchup_results(week, scores)
    return allocate_points([(r.pair_index, r.total) for r in results], points_table)
