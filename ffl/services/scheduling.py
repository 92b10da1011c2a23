"""
Deterministic double round-robin schedule generation.

Round-robin is used so every team meets every other team exactly once per cycle;
a cycle is N-1 weeks for N teams (N must be even; no byes). The season plays the
cycle twice: the second copy repeats the first with each pair's members swapped,
so every unordered pair meets exactly twice. The result is truncated to the
season length when that is shorter than 2(N-1) weeks.

Uses the circle method: fix the first slot, rotate the others each week. Same
team list ordering yields the same schedule (deterministic for persistence).
"""
from __future__ import annotations

from typing import Any, Sequence

from ffl.errors import InvalidTeamCountError
from ffl.logging_config import get_logger
from ffl.models import ScheduleWeek, week_from_pairs

logger = get_logger(__name__)


def _check_team_count(team_ids: Sequence[Any]) -> None:
    n = len(team_ids)
    if n == 0 or n % 2 == 1:
        raise InvalidTeamCountError(n)
    if len(set(team_ids)) != n:
        raise ValueError("Team identifiers must be unique")


def round_robin_rounds(team_ids: Sequence[Any]) -> list[list[tuple[Any, Any]]]:
    """
    Single round-robin: N-1 rounds of N/2 (team_a, team_b) pairs.
    Every team plays once per round; every unordered pair appears exactly once overall.
    """
    _check_team_count(team_ids)
    ids = list(team_ids)
    n = len(ids)
    rounds: list[list[tuple[Any, Any]]] = []
    # Circle method: indices 0..n-1. Fix 0, rotate 1..n-1 each round.
    # Round 0: pair (0, n-1), (1, n-2), (2, n-3), ...
    # Round 1: order [0, n-1, 1, 2, ..., n-2]; pair (0, n-2), (n-1, n-3), ...
    order = list(range(n))
    for _ in range(n - 1):
        # Fixed team meets the far end of the rotation; the rest reflect end-to-end
        rounds.append([(ids[order[i]], ids[order[n - 1 - i]]) for i in range(n // 2)])
        # Rotate: keep 0, then order[n-1], order[1], order[2], ..., order[n-2]
        order = [order[0]] + [order[n - 1]] + order[1 : n - 1]
    return rounds


def double_round_robin(team_ids: Sequence[Any], total_weeks: int | None = None) -> list[ScheduleWeek]:
    """
    Two round-robin cycles, the second with home/away (team_a/team_b) swapped.
    Truncated to total_weeks when given and shorter than 2(N-1).
    """
    base = round_robin_rounds(team_ids)
    swapped = [[(b, a) for a, b in rnd] for rnd in base]
    rounds = base + swapped
    if total_weeks is not None:
        if total_weeks < 0:
            raise ValueError("total_weeks must be >= 0")
        if total_weeks > len(rounds):
            logger.warning(
                "Season of %d weeks is longer than a double round-robin (%d weeks); extra weeks left empty",
                total_weeks, len(rounds),
            )
        rounds = rounds[:total_weeks]
    return [week_from_pairs(rnd) for rnd in rounds]


def generate_season_schedule(team_ids: Sequence[Any], total_weeks: int) -> list[ScheduleWeek]:
    """Season schedule for a fresh league: week index (0-based) -> pairings."""
    weeks = double_round_robin(team_ids, total_weeks)
    logger.info("Generated %d-week schedule for %d teams", len(weeks), len(team_ids))
    return weeks


def is_perfect_matching(week: ScheduleWeek, team_ids: Sequence[Any]) -> bool:
    """True if every team appears in exactly one pairing of the week and nobody else does."""
    seen: list[Any] = []
    for p in week:
        if p.team_a == p.team_b:
            return False
        seen.extend((p.team_a, p.team_b))
    return len(seen) == len(set(seen)) and set(seen) == set(team_ids)
