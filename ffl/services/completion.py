"""
Schedule completion by backtracking.

Given the meetings each pair still owes (a deficit matrix) and W open weeks, find W
weekly perfect matchings that use every pair exactly its remaining count. This is a
decomposition of a multigraph (teams as vertices, deficits as edge multiplicities)
into perfect matchings.

Search:
  - Within a week, pair the unpaired team with the fewest legal opponents first and
    try its opponents fewest-options-first. Ties break by roster order, so the same
    inputs always give the same schedule.
  - Each week enumerates its matchings lazily. If the following weeks cannot be
    completed, the week is undone and its next matching is tried.
  - Counts are decremented inside a context manager that restores the previous value
    on every exit (success, failure, generator close, exception).
  - Remaining-count states already proven dead are skipped.
  - Every tentative pairing is one step; past the budget the search stops with
    SearchBudgetExceededError (feasibility unknown), distinct from
    InfeasibleScheduleError (every branch explored).
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

from ffl.config import SEARCH_BUDGET
from ffl.errors import (
    CapacityMismatchError,
    InfeasibleScheduleError,
    InvalidTeamCountError,
    SchedulingError,
    SearchBudgetExceededError,
)
from ffl.logging_config import get_logger
from ffl.models import ScheduleWeek, week_from_pairs
from ffl.services.pair_counts import total_deficit

logger = get_logger(__name__)


def _working_copy(deficits: Mapping[Any, Mapping[Any, int]], team_ids: Sequence[Any]) -> dict[Any, dict[Any, int]]:
    """Validate the matrix and return a private symmetric copy without zero entries."""
    roster = set(team_ids)
    adjacency: dict[Any, dict[Any, int]] = {t: {} for t in team_ids}
    for team, opponents in deficits.items():
        if team not in roster:
            raise SchedulingError(f"Deficit matrix references unknown team {team!r}")
        for opp, count in opponents.items():
            if opp not in roster or opp == team:
                raise SchedulingError(f"Invalid opponent {opp!r} for team {team!r}")
            if not isinstance(count, int) or count < 0:
                raise SchedulingError(f"Remaining count for {team!r}-{opp!r} must be a non-negative integer")
            if deficits.get(opp, {}).get(team, 0) != count:
                raise SchedulingError(f"Deficit matrix is not symmetric for {team!r}-{opp!r}")
            if count:
                adjacency[team][opp] = count
    return adjacency


class _CompletionSearch:
    """One search run. Owns a private copy of the counts; discarded afterwards."""

    def __init__(
        self,
        adjacency: dict[Any, dict[Any, int]],
        team_ids: list[Any],
        weeks: int,
        budget: int,
    ) -> None:
        self._adjacency = adjacency
        self._team_ids = team_ids
        self._position = {t: i for i, t in enumerate(team_ids)}
        self._weeks = weeks
        self._budget = budget
        # Counts only go down from here, so this fixes the shape of every state key
        self._pairs = [
            (a, b) for i, a in enumerate(team_ids) for b in team_ids[i + 1 :] if b in adjacency[a]
        ]
        self._dead: set[tuple[int, ...]] = set()
        self.steps = 0

    def run(self) -> list[ScheduleWeek]:
        found: list[list[tuple[Any, Any]]] = []
        if not self._fill(found):
            raise InfeasibleScheduleError(
                f"No completion of {self._weeks} weeks uses every remaining pair exactly"
            )
        return [week_from_pairs(pairs) for pairs in found]

    # ---------- State ----------

    def _state_key(self) -> tuple[int, ...]:
        return tuple(self._adjacency[a][b] for a, b in self._pairs)

    def _all_consumed(self) -> bool:
        return all(c == 0 for opps in self._adjacency.values() for c in opps.values())

    @contextmanager
    def _meeting(self, a: Any, b: Any) -> Iterator[None]:
        before = self._adjacency[a][b]
        self._adjacency[a][b] = before - 1
        self._adjacency[b][a] = before - 1
        try:
            yield
        finally:
            self._adjacency[a][b] = before
            self._adjacency[b][a] = before

    def _step(self) -> None:
        self.steps += 1
        if self.steps > self._budget:
            raise SearchBudgetExceededError(self._budget, self.steps)

    # ---------- Search ----------

    def _options(self, team: Any, unpaired: frozenset) -> list[Any]:
        return [opp for opp, c in self._adjacency[team].items() if c > 0 and opp in unpaired]

    def _matchings(self, unpaired: frozenset, chosen: list[tuple[Any, Any]]) -> Iterator[list[tuple[Any, Any]]]:
        """Yield every perfect matching of `unpaired`; counts stay decremented while a matching is out."""
        if not unpaired:
            yield list(chosen)
            return
        team = min(
            (t for t in self._team_ids if t in unpaired),
            key=lambda t: len(self._options(t, unpaired)),
        )
        rest = unpaired - {team}
        candidates = sorted(
            self._options(team, unpaired),
            key=lambda opp: (len(self._options(opp, rest)), self._position[opp]),
        )
        for opp in candidates:
            self._step()
            with self._meeting(team, opp):
                chosen.append((team, opp))
                try:
                    yield from self._matchings(rest - {opp}, chosen)
                finally:
                    chosen.pop()

    def _fill(self, found: list[list[tuple[Any, Any]]]) -> bool:
        if len(found) == self._weeks:
            return self._all_consumed()
        key = self._state_key()
        if key in self._dead:
            return False
        matchings = self._matchings(frozenset(self._team_ids), [])
        try:
            for week in matchings:
                found.append(week)
                if self._fill(found):
                    return True
                found.pop()
        finally:
            matchings.close()
        self._dead.add(key)
        return False


def complete_schedule(
    deficits: Mapping[Any, Mapping[Any, int]],
    team_ids: Sequence[Any],
    weeks: int,
    search_budget: int = SEARCH_BUDGET,
) -> list[ScheduleWeek]:
    """
    Build `weeks` weekly matchings that consume `deficits` exactly.

    Raises (before any search): InvalidTeamCountError, SchedulingError for a malformed
    matrix, CapacityMismatchError when total remaining meetings != weeks * N/2,
    InfeasibleScheduleError when some team's remaining meetings != weeks.
    Raises (after search): InfeasibleScheduleError or SearchBudgetExceededError.
    `deficits` is never modified.
    """
    ids = list(team_ids)
    n = len(ids)
    if n == 0 or n % 2 == 1:
        raise InvalidTeamCountError(n)
    if len(set(ids)) != n:
        raise ValueError("Team identifiers must be unique")
    if weeks < 0:
        raise ValueError("weeks must be >= 0")
    if search_budget < 0:
        raise ValueError("search_budget must be >= 0")

    adjacency = _working_copy(deficits, ids)
    needed = total_deficit(adjacency)
    capacity = weeks * (n // 2)
    if needed != capacity:
        logger.warning("Capacity mismatch: %d remaining meetings, %d slots", needed, capacity)
        raise CapacityMismatchError(needed, capacity, weeks)
    # Each team plays once a week, so its remaining meetings must equal the open weeks
    for team in ids:
        load = sum(adjacency[team].values())
        if load != weeks:
            raise InfeasibleScheduleError(
                f"Team {team!r} still owes {load} meetings but {weeks} weeks remain"
            )

    search = _CompletionSearch(adjacency, ids, weeks, search_budget)
    logger.debug("Completing %d weeks for %d teams (budget %d)", weeks, n, search_budget)
    try:
        result = search.run()
    except SearchBudgetExceededError:
        logger.warning("Schedule search hit its budget of %d steps", search_budget)
        raise
    except InfeasibleScheduleError:
        logger.warning("Schedule search exhausted after %d steps without a completion", search.steps)
        raise
    logger.info("Completed %d weeks in %d search steps", weeks, search.steps)
    return result
