"""
Repository interfaces for league data.
No business logic, only read/write operations.
Week replacement runs in a single transaction: the old rows go only if the new ones land.
"""
from __future__ import annotations

import sqlite3
from typing import Iterable, Mapping

from ffl.models import Pairing, Team


def _row_to_team(row: sqlite3.Row) -> Team:
    return Team(id=row["id"], name=row["name"], espn_id=row["espn_id"])


# ---------- TeamRepository ----------


class TeamRepository:
    """CRUD for teams. Roster order is id order."""

    def create(self, conn: sqlite3.Connection, name: str, espn_id: str | None = None) -> Team:
        cur = conn.execute("INSERT INTO teams (name, espn_id) VALUES (?, ?)", (name, espn_id))
        conn.commit()
        return Team(id=cur.lastrowid, name=name, espn_id=espn_id)

    def get(self, conn: sqlite3.Connection, team_id: int) -> Team | None:
        row = conn.execute("SELECT id, name, espn_id FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _row_to_team(row) if row else None

    def get_by_name(self, conn: sqlite3.Connection, name: str) -> Team | None:
        row = conn.execute("SELECT id, name, espn_id FROM teams WHERE name = ?", (name,)).fetchone()
        return _row_to_team(row) if row else None

    def list_all(self, conn: sqlite3.Connection) -> list[Team]:
        rows = conn.execute("SELECT id, name, espn_id FROM teams ORDER BY id ASC").fetchall()
        return [_row_to_team(r) for r in rows]

    def list_ids(self, conn: sqlite3.Connection) -> list[int]:
        return [r["id"] for r in conn.execute("SELECT id FROM teams ORDER BY id ASC").fetchall()]

    def update(self, conn: sqlite3.Connection, team_id: int, name: str | None, espn_id: str | None) -> None:
        """name None keeps the current name; espn_id is always overwritten."""
        conn.execute(
            "UPDATE teams SET name = COALESCE(?, name), espn_id = ? WHERE id = ?",
            (name, espn_id, team_id),
        )
        conn.commit()

    def delete(self, conn: sqlite3.Connection, team_id: int) -> None:
        conn.execute("DELETE FROM teams WHERE id = ?", (team_id,))
        conn.commit()


# ---------- ScheduleRepository ----------


class ScheduleRepository:
    """Weekly pairings."""

    def list_week(self, conn: sqlite3.Connection, week: int) -> list[Pairing]:
        rows = conn.execute(
            "SELECT pair_index, team_a, team_b FROM schedule WHERE week = ? ORDER BY pair_index ASC",
            (week,),
        ).fetchall()
        return [Pairing(r["pair_index"], r["team_a"], r["team_b"]) for r in rows]

    def list_pairs_before(self, conn: sqlite3.Connection, week: int) -> list[tuple[int, int]]:
        """Every (team_a, team_b) occurrence in weeks < week."""
        rows = conn.execute(
            "SELECT team_a, team_b FROM schedule WHERE week < ? ORDER BY week, pair_index",
            (week,),
        ).fetchall()
        return [(r["team_a"], r["team_b"]) for r in rows]

    def replace_weeks(self, conn: sqlite3.Connection, weeks: Mapping[int, Iterable[Pairing]]) -> int:
        """Overwrite each given week's pairings. Returns the number of rows written."""
        written = 0
        with conn:
            for week, pairings in weeks.items():
                conn.execute("DELETE FROM schedule WHERE week = ?", (week,))
                for p in pairings:
                    conn.execute(
                        "INSERT INTO schedule (week, pair_index, team_a, team_b) VALUES (?, ?, ?, ?)",
                        (week, p.pair_index, p.team_a, p.team_b),
                    )
                    written += 1
        return written

    def replace_week(self, conn: sqlite3.Connection, week: int, pairings: Iterable[Pairing]) -> int:
        return self.replace_weeks(conn, {week: pairings})


# ---------- Weekly values (scores, awards) ----------


class _WeeklyValueRepository:
    """Shared shape of scores and awards: (week, team_id, value)."""

    table = ""
    column = ""

    def list_week(self, conn: sqlite3.Connection, week: int) -> dict[int, float]:
        rows = conn.execute(
            f"SELECT team_id, {self.column} AS value FROM {self.table} WHERE week = ?",
            (week,),
        ).fetchall()
        return {r["team_id"]: r["value"] for r in rows}

    def list_all(self, conn: sqlite3.Connection) -> list[tuple[int, int, float]]:
        rows = conn.execute(
            f"SELECT week, team_id, {self.column} AS value FROM {self.table} ORDER BY week, team_id"
        ).fetchall()
        return [(r["week"], r["team_id"], r["value"]) for r in rows]

    def max_week(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(f"SELECT MAX(week) AS w FROM {self.table}").fetchone()
        return row["w"] if row else None

    def replace_week(self, conn: sqlite3.Connection, week: int, values: Mapping[int, float]) -> int:
        with conn:
            conn.execute(f"DELETE FROM {self.table} WHERE week = ?", (week,))
            conn.executemany(
                f"INSERT INTO {self.table} (week, team_id, {self.column}) VALUES (?, ?, ?)",
                [(week, team_id, float(value)) for team_id, value in values.items()],
            )
        return len(values)


class ScoreRepository(_WeeklyValueRepository):
    """Raw weekly team scores."""

    table = "scores"
    column = "score"


class AwardRepository(_WeeklyValueRepository):
    """Points by place per team per week."""

    table = "awards"
    column = "points"
