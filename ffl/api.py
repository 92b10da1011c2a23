"""
REST API for the pair league backend.
Thin wrappers around the league service and persistence.
"""
from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from ffl.auth import ADMIN_SUBJECT, create_access_token, decode_token, verify_admin
from ffl.config import load_season_config
from ffl.errors import (
    CapacityMismatchError,
    InfeasibleScheduleError,
    PointsTableError,
    SearchBudgetExceededError,
)
from ffl.logging_config import get_logger, setup_logging
from ffl.persistence import get_connection, init_db
from ffl.persistence.db import get_db_path
from ffl.services.league_service import LeagueService, TeamNotFoundError

logger = get_logger(__name__)

_config = load_season_config()


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def get_league_service() -> LeagueService:
    return LeagueService(_config)


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    init_db(db_path=get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Pair League API",
    description="Season schedule, weekly scores and points by place for a pair league",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_config.cors_origins),
    allow_credentials="*" not in _config.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

security = HTTPBearer(auto_error=False)


# ---------- Request/Response models ----------


class LoginRequest(BaseModel):
    username: str
    password: str


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    espn_id: str | None = Field(None, description="External provider team id; informational only")


class UpdateTeamRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    espn_id: str | None = None


class PairIn(BaseModel):
    team_a: int
    team_b: int


def _require_admin(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str:
    """Admin endpoints: valid bearer token with the admin subject."""
    if credentials is None or decode_token(credentials.credentials) != ADMIN_SUBJECT:
        raise HTTPException(
            status_code=401,
            detail="Admin login required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ADMIN_SUBJECT


def _http_error(e: ValueError) -> HTTPException:
    """Map domain errors to HTTP errors."""
    logger.warning("Rejected request: %s", e)
    if isinstance(e, TeamNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, CapacityMismatchError):
        return HTTPException(
            status_code=400,
            detail={"error": "capacity_mismatch", "message": str(e), **e.to_dict()},
        )
    if isinstance(e, SearchBudgetExceededError):
        return HTTPException(
            status_code=409,
            detail={"error": "search_budget_exceeded", "message": str(e), "budget": e.budget},
        )
    if isinstance(e, InfeasibleScheduleError):
        return HTTPException(
            status_code=409,
            detail={
                "error": "infeasible_schedule",
                "message": "Could not construct a valid completion. Check earlier weeks for duplicates or missing pairs.",
            },
        )
    if isinstance(e, PointsTableError):
        return HTTPException(
            status_code=409,
            detail={
                "error": "points_table_mismatch",
                "message": str(e),
                "table_length": e.table_length,
                "pair_count": e.pair_count,
            },
        )
    return HTTPException(status_code=400, detail=str(e))


# ---------- Endpoints ----------


@app.get("/health")
def health() -> dict[str, Any]:
    return {"ok": True}


@app.post("/admin/login")
def admin_login(req: LoginRequest) -> dict[str, Any]:
    if not verify_admin(req.username, req.password):
        logger.warning("Rejected admin login for %r", req.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return {"token": create_access_token(ADMIN_SUBJECT), "token_type": "bearer"}


# ---------- Teams ----------


@app.get("/teams")
def list_teams(svc: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"teams": [t.to_dict() for t in svc.list_teams(conn)]}


@app.post("/teams")
def create_team(
    req: CreateTeamRequest,
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            team = svc.create_team(conn, req.name, req.espn_id)
        except ValueError as e:
            raise _http_error(e)
        return team.to_dict()


@app.put("/teams/{team_id}")
def update_team(
    team_id: int,
    req: UpdateTeamRequest,
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            team = svc.update_team(conn, team_id, req.name, req.espn_id)
        except ValueError as e:
            raise _http_error(e)
        return team.to_dict()


@app.delete("/teams/{team_id}")
def delete_team(
    team_id: int,
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            svc.delete_team(conn, team_id)
        except ValueError as e:
            raise _http_error(e)
        return {"ok": True}


# ---------- Schedule ----------


@app.get("/schedule")
def get_schedule(
    week: int = Query(..., ge=0),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        return {"week": week, "pairs": [p.to_dict() for p in svc.get_week_schedule(conn, week)]}


@app.put("/schedule")
def put_schedule(
    pairs: list[PairIn],
    week: int = Query(..., ge=0),
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """Replace one week's pairings (manual edit)."""
    with db_conn() as conn:
        try:
            saved = svc.save_week_schedule(conn, week, [(p.team_a, p.team_b) for p in pairs])
        except ValueError as e:
            raise _http_error(e)
        return {"ok": True, "saved": len(saved)}


@app.post("/schedule/generate")
def generate_schedule(
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """Fresh double round-robin for the whole season; replaces every week."""
    with db_conn() as conn:
        try:
            weeks = svc.generate_schedule(conn)
        except ValueError as e:
            raise _http_error(e)
        return {"ok": True, "weeks": len(weeks)}


@app.post("/schedule/complete")
def complete_schedule(
    start: int | None = Query(None, ge=0, description="First week to fill (0-based); clamped to the configured minimum"),
    end: int | None = Query(None, ge=0, description="Last week to fill, inclusive"),
    dry: bool = Query(False, description="Preview only; nothing is written"),
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """Fill the remaining weeks so every pair meets exactly its season quota."""
    with db_conn() as conn:
        try:
            result = svc.complete_schedule(conn, start, end, dry_run=dry)
        except ValueError as e:
            raise _http_error(e)
        return result.to_dict()


# ---------- Scores & awards ----------


@app.get("/scores")
def get_scores(
    week: int = Query(..., ge=0),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        scores = svc.get_scores(conn, week)
        return {
            "week": week,
            "scores": [{"team_id": tid, "score": s} for tid, s in sorted(scores.items())],
        }


@app.put("/scores")
def put_scores(
    scores: dict[int, float],
    week: int = Query(..., ge=0),
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """Replace the week's scores. Body: {team_id: score}."""
    with db_conn() as conn:
        try:
            saved = svc.save_scores(conn, week, scores)
        except ValueError as e:
            raise _http_error(e)
        return {"ok": True, "saved": saved}


@app.post("/calc")
def calculate_awards(
    week: int = Query(..., ge=0),
    _: str = Depends(_require_admin),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    """Compute and store points by place for the week."""
    with db_conn() as conn:
        try:
            awards = svc.calculate_awards(conn, week)
        except ValueError as e:
            raise _http_error(e)
        return {
            "ok": True,
            "week": week,
            "awards": [{"pair_index": i, "points": pts} for i, pts in sorted(awards.items())],
        }


@app.get("/week")
def get_week(
    week: int | None = Query(None, description="Defaults to the latest awarded (else scored) week"),
    svc: LeagueService = Depends(get_league_service),
) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            return svc.week_view(conn, week)
        except ValueError as e:
            raise _http_error(e)


@app.get("/standings")
def get_standings(svc: LeagueService = Depends(get_league_service)) -> dict[str, Any]:
    with db_conn() as conn:
        return svc.standings(conn)


# ---------- Run with: uvicorn ffl.api:app --reload ----------
