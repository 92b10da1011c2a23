"""
Scheduling and scoring errors.
Raised by the core (scheduling, pair counts, completion, points allocation);
the API layer maps them to HTTP status codes.
"""
from __future__ import annotations

from typing import Any


class SchedulingError(ValueError):
    """Base class for schedule generation/completion failures."""


class InvalidTeamCountError(SchedulingError):
    """Team count is odd or zero; a perfect weekly matching is impossible."""

    def __init__(self, team_count: int) -> None:
        self.team_count = team_count
        super().__init__(f"Team count must be even and non-zero (got {team_count})")


class InconsistentPairHistoryError(SchedulingError):
    """A pair has already been scheduled more times than the season quota allows."""

    def __init__(self, team_a: Any, team_b: Any, occurrences: int, quota: int) -> None:
        self.team_a = team_a
        self.team_b = team_b
        self.occurrences = occurrences
        self.quota = quota
        super().__init__(
            f"Pair {team_a}-{team_b} already scheduled {occurrences} times; quota is {quota}"
        )


class CapacityMismatchError(SchedulingError):
    """Remaining required meetings do not equal the open weekly slots."""

    def __init__(self, needed: int, capacity: int, weeks: int) -> None:
        self.needed = needed
        self.capacity = capacity
        self.weeks = weeks
        super().__init__(
            f"Remaining pair counts ({needed}) do not equal available slots ({capacity}) "
            f"across {weeks} weeks"
        )

    def to_dict(self) -> dict[str, int]:
        return {"needed_pairs": self.needed, "capacity": self.capacity, "weeks": self.weeks}


class InfeasibleScheduleError(SchedulingError):
    """No set of weekly matchings consumes the remaining pair counts exactly."""


class SearchBudgetExceededError(SchedulingError):
    """Search stopped after its step budget; feasibility is unknown."""

    def __init__(self, budget: int, steps: int) -> None:
        self.budget = budget
        self.steps = steps
        super().__init__(f"Schedule search exhausted its budget of {budget} steps")


class PointsTableError(ValueError):
    """Points-by-place table does not match the number of pairs in the week."""

    def __init__(self, table_length: int, pair_count: int) -> None:
        self.table_length = table_length
        self.pair_count = pair_count
        super().__init__(
            f"Points table has {table_length} places but the week has {pair_count} pairs"
        )
