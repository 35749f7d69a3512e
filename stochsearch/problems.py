"""Problem interfaces.

Concrete problems (TSP instances, scheduling, benchmark functions) live
outside this package; the search components only need a cost function to
minimize and, optionally, a lower bound on that cost.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any

INT_MIN_COST = -(2**31)


class Problem(ABC):
    """Base class for optimization problems (minimization)."""

    @abstractmethod
    def cost(self, candidate: Any) -> float | int:
        """Cost of a candidate solution; lower is better."""

    def value(self, candidate: Any) -> float | int:
        """Actual value of the candidate if it differs from cost. Defaults to cost."""
        return self.cost(candidate)

    @abstractmethod
    def min_cost(self) -> float | int:
        """Lower bound on cost, or the most negative representable value if unknown."""

    def is_minimum_cost(self, cost: float | int) -> bool:
        """Whether ``cost`` equals the known minimum."""
        return cost == self.min_cost()

    @property
    def integer_cost(self) -> bool:
        """True for problems whose costs are integers."""
        return False


class OptimizationProblem(Problem):
    """Problem with floating-point costs."""

    @abstractmethod
    def cost(self, candidate: Any) -> float:
        """Cost of a candidate solution; lower is better."""

    def min_cost(self) -> float:
        return -math.inf


class IntegerCostOptimizationProblem(Problem):
    """Problem with integer costs."""

    @abstractmethod
    def cost(self, candidate: Any) -> int:
        """Cost of a candidate solution; lower is better."""

    def min_cost(self) -> int:
        return INT_MIN_COST

    @property
    def integer_cost(self) -> bool:
        return True
