"""
Remaining meetings per pair.

Every unordered pair of teams must meet `required_meetings` times over a season.
Given the pairs already fixed (played or previously scheduled), compute how many
more times each pair still has to meet. Pairs with nothing left are dropped.
"""
from __future__ import annotations

from itertools import combinations
from typing import Any, Iterable, Sequence

from ffl.errors import InconsistentPairHistoryError
from ffl.models import DeficitMatrix, UnorderedPair


def remaining_pair_counts(
    team_ids: Sequence[Any],
    scheduled_pairs: Iterable[tuple[Any, Any]],
    required_meetings: int = 2,
) -> dict[UnorderedPair, int]:
    """
    Pair -> meetings still required. One entry in scheduled_pairs per occurrence.
    Raises InconsistentPairHistoryError when a pair was already fixed more often than
    the quota allows (including pairs with a team outside the roster, whose quota is 0).
    """
    if required_meetings < 0:
        raise ValueError("required_meetings must be >= 0")
    remaining = {UnorderedPair(a, b): required_meetings for a, b in combinations(team_ids, 2)}
    seen: dict[UnorderedPair, int] = {}
    for a, b in scheduled_pairs:
        pair = UnorderedPair(a, b)
        seen[pair] = seen.get(pair, 0) + 1
        left = remaining.get(pair)
        if left is None:
            raise InconsistentPairHistoryError(a, b, seen[pair], 0)
        if left == 0:
            raise InconsistentPairHistoryError(a, b, seen[pair], required_meetings)
        remaining[pair] = left - 1
    return {pair: count for pair, count in remaining.items() if count > 0}


def to_deficit_matrix(team_ids: Sequence[Any], remaining: dict[UnorderedPair, int]) -> DeficitMatrix:
    """Symmetric team -> (opponent -> count) view. Every roster team is a key; zero counts absent."""
    matrix: DeficitMatrix = {t: {} for t in team_ids}
    for pair, count in remaining.items():
        if count <= 0:
            continue
        a, b = pair.first, pair.second
        if a not in matrix or b not in matrix:
            raise ValueError(f"Pair {pair} references a team outside the roster")
        matrix[a][b] = count
        matrix[b][a] = count
    return matrix


def build_deficit_matrix(
    team_ids: Sequence[Any],
    scheduled_pairs: Iterable[tuple[Any, Any]],
    required_meetings: int = 2,
) -> DeficitMatrix:
    return to_deficit_matrix(team_ids, remaining_pair_counts(team_ids, scheduled_pairs, required_meetings))


def total_deficit(matrix: DeficitMatrix) -> int:
    """Sum of remaining meetings over unordered pairs (each pair counted once)."""
    return sum(sum(opps.values()) for opps in matrix.values()) // 2
