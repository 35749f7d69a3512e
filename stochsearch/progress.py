"""Result values and the shared best-so-far tracker.

A single :class:`ProgressTracker` may be shared by many search instances
(typically the ``split()`` copies run by parallel workers). Every update is a
read-compare-write under one lock, so readers always see a consistent
``(solution, cost)`` snapshot and a proposed result is accepted only if it is
strictly better than the one on record.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any

from .utils.common import copy_candidate, require

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolutionCostPair:
    """A complete candidate solution and its cost.

    Attributes:
        solution: The candidate solution. Owned by this pair; producers pass a copy.
        cost: Cost of the solution (int for integer-cost problems, float otherwise).
        known_optimal: Whether the cost equals the problem's known minimum.
    """

    solution: Any
    cost: float | int
    known_optimal: bool = False

    @property
    def cost_double(self) -> float:
        """Cost as a float."""
        return float(self.cost)

    @property
    def contains_int_cost(self) -> bool:
        """Whether the cost is integer valued."""
        return isinstance(self.cost, int)

    def copy(self) -> SolutionCostPair:
        """Pair holding a copy of the solution."""
        return SolutionCostPair(copy_candidate(self.solution), self.cost, self.known_optimal)

    def __lt__(self, other: SolutionCostPair) -> bool:
        return self.cost < other.cost


class ProgressTracker:
    """Thread-safe record of the best solution found across runs and workers.

    Also carries a cooperative stop flag and a "found best" flag that search
    loops check between generations or between constructions.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cost: float | int = math.inf
        self._solution: Any = None
        self._found_best = False
        self._stopped = False
        self._created = time.time()
        self._elapsed = 0.0

    def update(self, cost: float | int, solution: Any, known_optimal: bool = False) -> float | int:
        """Propose a new best.

        Args:
            cost: Cost of the proposed solution.
            solution: The proposed solution. Not copied.
            known_optimal: Whether ``cost`` is the problem's known minimum.

        Returns:
            The best cost on record after the update.
        """
        with self._lock:
            if cost < self._cost:
                self._cost = cost
                self._solution = solution
                self._elapsed = time.time() - self._created
                if known_optimal:
                    self._found_best = True
                logger.debug("New best cost recorded: %s", cost)
            return self._cost

    def update_pair(self, pair: SolutionCostPair) -> float | int:
        """Propose a new best from a :class:`SolutionCostPair`."""
        return self.update(pair.cost, pair.solution, pair.known_optimal)

    @property
    def cost(self) -> float | int:
        """Best cost on record (``inf`` before any update)."""
        with self._lock:
            return self._cost

    @property
    def cost_double(self) -> float:
        with self._lock:
            return float(self._cost)

    @property
    def solution(self) -> Any:
        """Best solution on record, or None."""
        with self._lock:
            return self._solution

    @property
    def solution_cost_pair(self) -> SolutionCostPair | None:
        """Consistent snapshot of the best solution and its cost."""
        with self._lock:
            if self._solution is None:
                return None
            return SolutionCostPair(self._solution, self._cost, self._found_best)

    @property
    def contains_int_cost(self) -> bool:
        with self._lock:
            return isinstance(self._cost, int)

    @property
    def did_find_best(self) -> bool:
        """Whether a solution with the known minimum cost has been recorded."""
        with self._lock:
            return self._found_best

    def set_found_best(self) -> None:
        with self._lock:
            self._found_best = True

    @property
    def is_stopped(self) -> bool:
        """Whether a stop has been requested."""
        with self._lock:
            return self._stopped

    def stop(self) -> None:
        """Request that all searches sharing this tracker stop at their next check."""
        with self._lock:
            self._stopped = True

    def start(self) -> None:
        """Clear a previous stop request."""
        with self._lock:
            self._stopped = False

    def elapsed(self) -> float:
        """Seconds from tracker creation until the current best was found."""
        with self._lock:
            return self._elapsed

    def __repr__(self) -> str:
        return f"ProgressTracker(cost={self._cost}, found_best={self._found_best}, stopped={self._stopped})"


# Default for ``tracker`` arguments: the search gets a tracker of its own.
NEW_TRACKER: Any = object()


def resolve_tracker(tracker: Any) -> ProgressTracker:
    """Tracker for a ``tracker`` argument.

    Returns a new :class:`ProgressTracker` for :data:`NEW_TRACKER` and the
    argument itself otherwise.

    Raises:
        MissingDependencyError: If ``tracker`` is None.
    """
    if tracker is NEW_TRACKER:
        return ProgressTracker()
    return require(tracker, "tracker")
