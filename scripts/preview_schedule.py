#!/usr/bin/env python3
"""
Preview a season schedule without touching the database.

Generates the double round-robin for teams 1..N. With --fixed K, keeps its first K
weeks and lets the completer rebuild the rest from the remaining pair counts.
Run from project root: python3 scripts/preview_schedule.py --teams 10 --fixed 14
"""
from __future__ import annotations

import argparse
import logging

from ffl.config import load_season_config
from ffl.errors import SchedulingError
from ffl.logging_config import setup_logging
from ffl.models import ScheduleWeek
from ffl.services.completion import complete_schedule
from ffl.services.pair_counts import build_deficit_matrix
from ffl.services.scheduling import generate_season_schedule


def _print_weeks(weeks: list[ScheduleWeek], first_week: int, label: str) -> None:
    for offset, week in enumerate(weeks):
        pairs = "  ".join(f"{p.team_a:>2}-{p.team_b:<2}" for p in week)
        print(f"  week {first_week + offset + 1:>2} [{label}]  {pairs}")


def run(teams: int, weeks: int, fixed: int | None, budget: int) -> int:
    team_ids = list(range(1, teams + 1))
    try:
        season = generate_season_schedule(team_ids, weeks)
    except SchedulingError as e:
        print(f"  generation failed: {e}")
        return 1
    if fixed is None:
        _print_weeks(season, 0, "generated")
        return 0
    if not 0 <= fixed <= len(season):
        print(f"  --fixed must be between 0 and {len(season)}")
        return 2
    kept = season[:fixed]
    history = [(p.team_a, p.team_b) for week in kept for p in week]
    try:
        deficits = build_deficit_matrix(team_ids, history)
        completed = complete_schedule(deficits, team_ids, len(season) - fixed, budget)
    except SchedulingError as e:
        print(f"  completion failed: {e}")
        return 1
    _print_weeks(kept, 0, "fixed")
    _print_weeks(completed, fixed, "completed")
    return 0


def main() -> None:
    defaults = load_season_config()
    parser = argparse.ArgumentParser(description="Print a generated or completed season schedule.")
    parser.add_argument("--teams", type=int, default=defaults.roster_size, help="Number of teams (even)")
    parser.add_argument("--weeks", type=int, default=defaults.total_weeks, help="Season length in weeks")
    parser.add_argument("--fixed", type=int, default=None, help="Keep this many generated weeks, complete the rest")
    parser.add_argument("--budget", type=int, default=defaults.search_budget, help="Completion search step budget")
    parser.add_argument("--verbose", action="store_true", help="Log search details")
    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    raise SystemExit(run(args.teams, args.weeks, args.fixed, args.budget))


if __name__ == "__main__":
    main()
