"""
SQLite schema for league entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def teams_schema() -> str:
    """League roster. Ordering by id defines the roster order used for scheduling."""
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        espn_id TEXT
    );
    """


def schedule_schema() -> str:
    """One row per pairing. week is 0-based; pair_index is positional within the week."""
    return """
    CREATE TABLE IF NOT EXISTS schedule (
        week INTEGER NOT NULL,
        pair_index INTEGER NOT NULL,
        team_a INTEGER NOT NULL,
        team_b INTEGER NOT NULL,
        PRIMARY KEY (week, pair_index),
        FOREIGN KEY (team_a) REFERENCES teams(id) ON DELETE CASCADE,
        FOREIGN KEY (team_b) REFERENCES teams(id) ON DELETE CASCADE
    );
    """


def scores_schema() -> str:
    """Raw weekly team scores (entered by an admin or an external import)."""
    return """
    CREATE TABLE IF NOT EXISTS scores (
        week INTEGER NOT NULL,
        team_id INTEGER NOT NULL,
        score REAL NOT NULL DEFAULT 0,
        PRIMARY KEY (week, team_id),
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE
    );
    """


def awards_schema() -> str:
    """Points by place per team per week. Both teams of a pair get the pair's points."""
    return """
    CREATE TABLE IF NOT EXISTS awards (
        week INTEGER NOT NULL,
        team_id INTEGER NOT NULL,
        points REAL NOT NULL DEFAULT 0,
        PRIMARY KEY (week, team_id),
        FOREIGN KEY (team_id) REFERENCES teams(id) ON DELETE CASCADE
    );
    """


def all_schema_sql() -> str:
    return teams_schema() + schedule_schema() + scores_schema() + awards_schema()
