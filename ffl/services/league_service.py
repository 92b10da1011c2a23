"""
League service: roster, schedule, scores, awards, standings.
Scheduling and scoring are pure functions; this layer loads their inputs from the
repositories and writes their outputs back. Weeks are 0-based.
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ffl.config import SeasonConfig, load_season_config
from ffl.logging_config import get_logger
from ffl.models import ScheduleWeek, Team, week_from_pairs
from ffl.persistence.repositories import (
    AwardRepository,
    ScheduleRepository,
    ScoreRepository,
    TeamRepository,
)
from ffl.scoring import matchup_results, rank_matchups, week_awards
from ffl.services.completion import complete_schedule
from ffl.services.pair_counts import build_deficit_matrix
from ffl.services.scheduling import generate_season_schedule, is_perfect_matching
from ffl.standings import compute_standings, latest_awarded_week

logger = get_logger(__name__)

# ---------- Exceptions ----------


class TeamNotFoundError(ValueError):
    """No team with the given id."""


class DuplicateTeamError(ValueError):
    """Team names are unique."""


class RosterSizeError(ValueError):
    """Schedule generation needs exactly the configured number of teams."""


class WeekOutOfRangeError(ValueError):
    """Week number outside 0..total_weeks-1."""


class InvalidWeekScheduleError(ValueError):
    """Manually entered week has a self-pair, a repeated team or an unknown team."""


class NoScheduleError(ValueError):
    """Awards need a schedule for the week."""


# ---------- Results ----------


@dataclass
class CompletionResult:
    start_week: int
    end_week: int
    dry_run: bool
    weeks: dict[int, ScheduleWeek] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "start_week": self.start_week,
            "end_week": self.end_week,
            "dry_run": self.dry_run,
            "weeks": [
                {"week": w, "pairs": [p.to_dict() for p in pairings]}
                for w, pairings in sorted(self.weeks.items())
            ],
        }


# ---------- LeagueService ----------


class LeagueService:
    """
    Domain orchestration for one league.
    Persistence is delegated to repositories; every method takes an open connection.
    """

    def __init__(self, config: SeasonConfig | None = None) -> None:
        self.config = config or load_season_config()
        self._team_repo = TeamRepository()
        self._schedule_repo = ScheduleRepository()
        self._score_repo = ScoreRepository()
        self._award_repo = AwardRepository()

    # ---------- Guards ----------

    def assert_week_in_range(self, week: int) -> None:
        if not 0 <= week < self.config.total_weeks:
            raise WeekOutOfRangeError(
                f"Week {week} is outside the season (0-{self.config.total_weeks - 1})"
            )

    def _require_team(self, conn: sqlite3.Connection, team_id: int) -> Team:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise TeamNotFoundError(f"Team not found: {team_id}")
        return team

    # ---------- Teams ----------

    def list_teams(self, conn: sqlite3.Connection) -> list[Team]:
        return self._team_repo.list_all(conn)

    def create_team(self, conn: sqlite3.Connection, name: str, espn_id: str | None = None) -> Team:
        name = name.strip()
        if not name:
            raise ValueError("Team name required")
        if self._team_repo.get_by_name(conn, name) is not None:
            raise DuplicateTeamError(f"Team name already taken: {name}")
        team = self._team_repo.create(conn, name, espn_id)
        logger.info("Created team %s (id=%s)", team.name, team.id)
        return team

    def update_team(
        self, conn: sqlite3.Connection, team_id: int, name: str | None = None, espn_id: str | None = None
    ) -> Team:
        self._require_team(conn, team_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("Team name cannot be empty")
            other = self._team_repo.get_by_name(conn, name)
            if other is not None and other.id != team_id:
                raise DuplicateTeamError(f"Team name already taken: {name}")
        self._team_repo.update(conn, team_id, name, espn_id)
        return self._require_team(conn, team_id)

    def delete_team(self, conn: sqlite3.Connection, team_id: int) -> None:
        self._require_team(conn, team_id)
        self._team_repo.delete(conn, team_id)
        logger.info("Deleted team %s", team_id)

    # ---------- Schedule ----------

    def generate_schedule(self, conn: sqlite3.Connection) -> list[ScheduleWeek]:
        """Write a fresh double round-robin over the whole season, replacing existing weeks."""
        team_ids = self._team_repo.list_ids(conn)
        if len(team_ids) != self.config.roster_size:
            raise RosterSizeError(
                f"Exactly {self.config.roster_size} teams required (have {len(team_ids)})"
            )
        weeks = generate_season_schedule(team_ids, self.config.total_weeks)
        written = self._schedule_repo.replace_weeks(conn, dict(enumerate(weeks)))
        logger.info("Saved generated schedule: %d weeks, %d pairings", len(weeks), written)
        return weeks

    def get_week_schedule(self, conn: sqlite3.Connection, week: int) -> ScheduleWeek:
        return self._schedule_repo.list_week(conn, week)

    def save_week_schedule(
        self, conn: sqlite3.Connection, week: int, pairs: Iterable[tuple[int, int]]
    ) -> ScheduleWeek:
        """
        Manual edit of one week. Pairs are numbered in the order given.
        A non-empty week must pair every team exactly once; an empty list clears the week.
        """
        self.assert_week_in_range(week)
        pairings = week_from_pairs(list(pairs))
        team_ids = self._team_repo.list_ids(conn)
        known = set(team_ids)
        seen: set[int] = set()
        for p in pairings:
            if p.team_a == p.team_b:
                raise InvalidWeekScheduleError("Pair teams must be different")
            for t in (p.team_a, p.team_b):
                if t not in known:
                    raise InvalidWeekScheduleError(f"Unknown team: {t}")
                if t in seen:
                    raise InvalidWeekScheduleError(f"Team {t} appears twice in week {week}")
                seen.add(t)
        if pairings and not is_perfect_matching(pairings, team_ids):
            missing = sorted(known - seen)
            raise InvalidWeekScheduleError(f"Week {week} leaves teams unpaired: {missing}")
        self._schedule_repo.replace_week(conn, week, pairings)
        logger.info("Saved %d pairings for week %d", len(pairings), week)
        return pairings

    def complete_schedule(
        self,
        conn: sqlite3.Connection,
        start_week: int | None = None,
        end_week: int | None = None,
        dry_run: bool = False,
    ) -> CompletionResult:
        """
        Refill weeks start..end (inclusive) so every pair reaches its season quota.
        start is clamped up to completion_start_week, end down to the last week.
        Weeks before start are taken as fixed. Nothing is written when dry_run is set
        or when the completer raises.
        """
        cfg = self.config
        start = cfg.completion_start_week if start_week is None else max(cfg.completion_start_week, start_week)
        end = cfg.total_weeks - 1 if end_week is None else min(cfg.total_weeks - 1, end_week)
        if end < start:
            raise WeekOutOfRangeError(f"Empty completion range: weeks {start}-{end}")
        team_ids = self._team_repo.list_ids(conn)
        fixed = self._schedule_repo.list_pairs_before(conn, start)
        deficits = build_deficit_matrix(team_ids, fixed, cfg.required_meetings)
        weeks = complete_schedule(deficits, team_ids, end - start + 1, cfg.search_budget)
        result = CompletionResult(
            start_week=start,
            end_week=end,
            dry_run=dry_run,
            weeks={start + i: w for i, w in enumerate(weeks)},
        )
        if not dry_run:
            self._schedule_repo.replace_weeks(conn, result.weeks)
            logger.info("Saved completed schedule for weeks %d-%d", start, end)
        return result

    # ---------- Scores & awards ----------

    def get_scores(self, conn: sqlite3.Connection, week: int) -> dict[int, float]:
        return self._score_repo.list_week(conn, week)

    def save_scores(self, conn: sqlite3.Connection, week: int, scores: Mapping[int, float]) -> int:
        """Replace the week's scores."""
        self.assert_week_in_range(week)
        known = set(self._team_repo.list_ids(conn))
        unknown = [t for t in scores if t not in known]
        if unknown:
            raise TeamNotFoundError(f"Unknown team ids: {unknown}")
        return self._score_repo.replace_week(conn, week, scores)

    def calculate_awards(self, conn: sqlite3.Connection, week: int) -> dict[int, float]:
        """Points by place for the week; both teams of a pair get the pair's points. Returns pair_index -> points."""
        self.assert_week_in_range(week)
        pairings = self._schedule_repo.list_week(conn, week)
        if not pairings:
            raise NoScheduleError(f"No schedule for week {week}")
        scores = self._score_repo.list_week(conn, week)
        awards = week_awards(pairings, scores, self.config.week_points)
        per_team: dict[int, float] = {}
        for p in pairings:
            per_team[p.team_a] = awards[p.pair_index]
            per_team[p.team_b] = awards[p.pair_index]
        self._award_repo.replace_week(conn, week, per_team)
        logger.info("Saved awards for week %d (%d teams)", week, len(per_team))
        return awards

    # ---------- Read models ----------

    def default_week(self, conn: sqlite3.Connection) -> int:
        """Latest awarded week, else latest scored week, else 0."""
        awarded = self._award_repo.max_week(conn)
        if awarded is not None:
            return awarded
        scored = self._score_repo.max_week(conn)
        return scored if scored is not None else 0

    def week_view(self, conn: sqlite3.Connection, week: int | None = None) -> dict[str, Any]:
        """Ranked pairs of a week with computed and (if applied) awarded points."""
        if week is None or not 0 <= week < self.config.total_weeks:
            week = self.default_week(conn)
        pairings = self._schedule_repo.list_week(conn, week)
        if not pairings:
            return {"week": week, "pairs": [], "awards_applied": False, "note": "No schedule for this week."}
        names = {t.id: t.name for t in self._team_repo.list_all(conn)}
        scores = self._score_repo.list_week(conn, week)
        awarded = self._award_repo.list_week(conn, week)
        ranked = rank_matchups(matchup_results(pairings, scores), self.config.week_points)
        awards_applied = True
        pairs: list[dict[str, Any]] = []
        for rm in ranked:
            r = rm.result
            if r.team_a in awarded and r.team_b in awarded:
                points_awarded: float | None = awarded[r.team_a]
            else:
                points_awarded = None
                awards_applied = False
            d = rm.to_dict()
            d["points_awarded"] = points_awarded
            for t in d["teams"]:
                t["name"] = names.get(t["id"], f"Team {t['id']}")
            pairs.append(d)
        return {"week": week, "pairs": pairs, "awards_applied": awards_applied}

    def standings(self, conn: sqlite3.Connection) -> dict[str, Any]:
        awards = self._award_repo.list_all(conn)
        rows = compute_standings(
            self._team_repo.list_all(conn),
            awards,
            self._score_repo.list_all(conn),
        )
        return {"latest_week": latest_awarded_week(awards), "rows": [r.to_dict() for r in rows]}
