"""
Season configuration.
Handed to the scheduling/scoring functions at call time; nothing here is mutated at runtime.

Environment overrides (all optional):
    FFL_TOTAL_WEEKS, FFL_ROSTER_SIZE, FFL_REQUIRED_MEETINGS,
    FFL_WEEK_POINTS (comma separated, e.g. "8,5,3,2,1"),
    FFL_COMPLETION_START_WEEK, FFL_SEARCH_BUDGET, FFL_CORS_ORIGINS (comma separated)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

TOTAL_WEEKS = 18
ROSTER_SIZE = 10
REQUIRED_MEETINGS = 2  # double round-robin
WEEK_POINTS: tuple[float, ...] = (8, 5, 3, 2, 1)
COMPLETION_START_WEEK = 14  # 0-based; week 15 onwards may be re-completed
SEARCH_BUDGET = 200_000


@dataclass(frozen=True)
class SeasonConfig:
    """League constants for one season."""
    total_weeks: int = TOTAL_WEEKS
    roster_size: int = ROSTER_SIZE
    required_meetings: int = REQUIRED_MEETINGS
    week_points: tuple[float, ...] = WEEK_POINTS
    completion_start_week: int = COMPLETION_START_WEEK
    search_budget: int = SEARCH_BUDGET
    cors_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        if self.roster_size <= 0 or self.roster_size % 2:
            raise ValueError(f"roster_size must be even and positive (got {self.roster_size})")
        if self.total_weeks <= 0:
            raise ValueError("total_weeks must be positive")
        if self.required_meetings <= 0:
            raise ValueError("required_meetings must be positive")
        if len(self.week_points) != self.pairs_per_week:
            raise ValueError(
                f"week_points needs {self.pairs_per_week} places (one per pair), got {len(self.week_points)}"
            )
        if any(a < b for a, b in zip(self.week_points, self.week_points[1:])):
            raise ValueError("week_points must be in descending order")
        if not 0 <= self.completion_start_week < self.total_weeks:
            raise ValueError("completion_start_week must fall inside the season")
        if self.search_budget < 0:
            raise ValueError("search_budget must be >= 0")

    @property
    def pairs_per_week(self) -> int:
        return self.roster_size // 2


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer (got {raw!r})") from e


def _list_env(env: Mapping[str, str], key: str) -> list[str] | None:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_season_config(environ: Mapping[str, str] | None = None) -> SeasonConfig:
    """Build a SeasonConfig from environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    points_raw = _list_env(env, "FFL_WEEK_POINTS")
    try:
        week_points = tuple(float(p) for p in points_raw) if points_raw else WEEK_POINTS
    except ValueError as e:
        raise ValueError(f"FFL_WEEK_POINTS must be numbers (got {env.get('FFL_WEEK_POINTS')!r})") from e
    origins = _list_env(env, "FFL_CORS_ORIGINS")
    return SeasonConfig(
        total_weeks=_int_env(env, "FFL_TOTAL_WEEKS", TOTAL_WEEKS),
        roster_size=_int_env(env, "FFL_ROSTER_SIZE", ROSTER_SIZE),
        required_meetings=_int_env(env, "FFL_REQUIRED_MEETINGS", REQUIRED_MEETINGS),
        week_points=week_points,
        completion_start_week=_int_env(env, "FFL_COMPLETION_START_WEEK", COMPLETION_START_WEEK),
        search_budget=_int_env(env, "FFL_SEARCH_BUDGET", SEARCH_BUDGET),
        cors_origins=tuple(origins) if origins else ("*",),
    )
