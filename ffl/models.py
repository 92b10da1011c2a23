"""
Data models for the pair league.
Domain objects only; no persistence or API logic.

Teams are paired up each week; a pair's combined score is ranked against the other
pairs of that week and converted into points by place. Over a season every pair of
teams meets a fixed number of times (twice for a double round-robin).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# team -> (opponent -> remaining meetings). Zero counts are absent.
DeficitMatrix = dict[Any, dict[Any, int]]


# ---------- Team ----------
@dataclass
class Team:
    """A league team. espn_id links the team to an external provider; unused by the core."""
    id: int
    name: str
    espn_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "espn_id": self.espn_id}


# ---------- Unordered pair ----------
@dataclass(frozen=True, eq=False)
class UnorderedPair:
    """
    Two distinct teams, independent of order.
    UnorderedPair(1, 2) == UnorderedPair(2, 1) and both hash the same.
    """
    first: Any
    second: Any

    def __post_init__(self) -> None:
        if self.first == self.second:
            raise ValueError(f"A pair needs two distinct teams (got {self.first!r} twice)")

    @property
    def teams(self) -> frozenset:
        return frozenset((self.first, self.second))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnorderedPair):
            return NotImplemented
        return self.teams == other.teams

    def __hash__(self) -> int:
        return hash(self.teams)

    def __str__(self) -> str:
        return f"{self.first}-{self.second}"


# ---------- Schedule ----------
@dataclass(frozen=True)
class Pairing:
    """
    One slot of a week's schedule. pair_index is positional within its week only.
    team_a/team_b order carries no meaning beyond display (the second half of a
    double round-robin swaps them).
    """
    pair_index: int
    team_a: Any
    team_b: Any

    @property
    def pair(self) -> UnorderedPair:
        return UnorderedPair(self.team_a, self.team_b)

    def to_dict(self) -> dict[str, Any]:
        return {"pair_index": self.pair_index, "team_a": self.team_a, "team_b": self.team_b}


# A week is an ordered list of pairings; a perfect matching of the roster.
ScheduleWeek = list[Pairing]


def week_from_pairs(pairs: list[tuple[Any, Any]]) -> ScheduleWeek:
    """Number (team_a, team_b) tuples by position."""
    return [Pairing(i, a, b) for i, (a, b) in enumerate(pairs)]


# ---------- Weekly results ----------
@dataclass(frozen=True)
class MatchupResult:
    """A pair's combined score for one week. Ephemeral; computed from stored scores."""
    pair_index: int
    team_a: Any
    team_b: Any
    score_a: float = 0.0
    score_b: float = 0.0

    @property
    def total(self) -> float:
        return self.score_a + self.score_b


@dataclass(frozen=True)
class RankedMatchup:
    """Matchup with its place (1-based, shared by ties) and points by place."""
    result: MatchupResult
    rank: int
    points: float

    def to_dict(self) -> dict[str, Any]:
        r = self.result
        return {
            "pair_index": r.pair_index,
            "rank": self.rank,
            "sum": r.total,
            "points_computed": self.points,
            "teams": [
                {"id": r.team_a, "score": r.score_a},
                {"id": r.team_b, "score": r.score_b},
            ],
        }


# ---------- Standings ----------
@dataclass
class StandingRow:
    team_id: int
    name: str
    espn_id: str | None = None
    season_points: float = 0.0
    raw_sum: float = 0.0
    played: int = 0
    last_week: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.team_id,
            "name": self.name,
            "espn_id": self.espn_id,
            "season_points": self.season_points,
            "raw_sum": self.raw_sum,
            "played": self.played,
            "last_week": self.last_week,
        }
