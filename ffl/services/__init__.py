"""
Service layer: scheduling core (generation, pair counts, completion) and league orchestration.
The scheduling modules are pure; league_service orchestrates persistence.
"""
from .completion import complete_schedule
from .league_service import (
    CompletionResult,
    DuplicateTeamError,
    InvalidWeekScheduleError,
    LeagueService,
    NoScheduleError,
    RosterSizeError,
    TeamNotFoundError,
    WeekOutOfRangeError,
)
from .pair_counts import build_deficit_matrix, remaining_pair_counts
from .scheduling import double_round_robin, generate_season_schedule, round_robin_rounds

__all__ = [
    "complete_schedule",
    "build_deficit_matrix",
    "remaining_pair_counts",
    "double_round_robin",
    "generate_season_schedule",
    "round_robin_rounds",
    "LeagueService",
    "CompletionResult",
    "DuplicateTeamError",
    "InvalidWeekScheduleError",
    "NoScheduleError",
    "RosterSizeError",
    "TeamNotFoundError",
    "WeekOutOfRangeError",
]
