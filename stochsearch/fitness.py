"""Fitness transformations: cost (minimized) to fitness (maximized).

Two flavors mirror the two fitness vector dtypes used by populations:
:class:`DoubleFitnessFunction` (``float64``) and
:class:`IntegerFitnessFunction` (``int32``).
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import numpy as np

from .problems import INT_MIN_COST, IntegerCostOptimizationProblem, Problem
from .utils.common import require


class FitnessFunction(ABC):
    """Base class for fitness functions.

    Attributes:
        dtype: Numpy dtype of the fitness vector a population stores.
    """

    dtype: ClassVar[type] = np.float64

    @abstractmethod
    def fitness(self, candidate: Any) -> float | int:
        """Fitness of a candidate; higher is better."""

    @property
    @abstractmethod
    def problem(self) -> Problem:
        """The problem whose cost this function transforms."""

    @property
    def is_integer(self) -> bool:
        return np.issubdtype(self.dtype, np.integer)


class DoubleFitnessFunction(FitnessFunction):
    """Fitness function producing floating-point fitness values."""

    dtype: ClassVar[type] = np.float64


class IntegerFitnessFunction(FitnessFunction):
    """Fitness function producing 32-bit integer fitness values."""

    dtype: ClassVar[type] = np.int32


class InverseCostFitnessFunction(DoubleFitnessFunction):
    """Fitness ``c / (c + cost - min_cost)``, which lies in ``(0, 1]``.

    The problem must declare a finite minimum cost. Useful with
    fitness-proportional selection, which needs positive fitness.
    """

    def __init__(self, problem: Problem, c: float = 1.0) -> None:
        """Initialize the transformation.

        Args:
            problem: Problem to transform.
            c: Positive scaling constant.

        Raises:
            MissingDependencyError: If problem is None.
            ValueError: If ``c <= 0`` or the problem's min cost is not finite.
        """
        self._problem = require(problem, "problem")
        if c <= 0:
            msg = f"c must be > 0, got {c}"
            raise ValueError(msg)
        min_cost = problem.min_cost()
        if not math.isfinite(min_cost) or (problem.integer_cost and min_cost <= INT_MIN_COST):
            msg = "InverseCostFitnessFunction requires a problem with a finite min_cost()"
            raise ValueError(msg)
        self.c = c
        self._offset = c - min_cost

    def fitness(self, candidate: Any) -> float:
        return self.c / (self._offset + self._problem.cost(candidate))

    @property
    def problem(self) -> Problem:
        return self._problem

    def __repr__(self) -> str:
        return f"InverseCostFitnessFunction(c={self.c})"


class NegativeCostFitnessFunction(DoubleFitnessFunction):
    """Fitness ``-cost`` as a float."""

    def __init__(self, problem: Problem) -> None:
        self._problem = require(problem, "problem")

    def fitness(self, candidate: Any) -> float:
        return -float(self._problem.cost(candidate))

    @property
    def problem(self) -> Problem:
        return self._problem

    def __repr__(self) -> str:
        return "NegativeCostFitnessFunction()"


class NegativeIntegerCostFitnessFunction(IntegerFitnessFunction):
    """Fitness ``-cost`` for integer-cost problems."""

    def __init__(self, problem: IntegerCostOptimizationProblem) -> None:
        self._problem = require(problem, "problem")

    def fitness(self, candidate: Any) -> int:
        return -int(self._problem.cost(candidate))

    @property
    def problem(self) -> IntegerCostOptimizationProblem:
        return self._problem

    def __repr__(self) -> str:
        return "NegativeIntegerCostFitnessFunction()"


def create_fitness_function(method: str, problem: Problem, c: float = 1.0) -> FitnessFunction:
    """Create a fitness transformation for a problem.

    Args:
        method: 'inverse' or 'negative'. 'negative' picks the integer flavor
            for integer-cost problems.
        problem: Problem to transform.
        c: Scaling constant for the inverse transformation.

    Returns:
        FitnessFunction instance.
    """
    require(problem, "problem")
    method = method.lower()

    if method == "inverse":
        return InverseCostFitnessFunction(problem, c=c)

    if method == "negative":
        if problem.integer_cost:
            return NegativeIntegerCostFitnessFunction(problem)
        return NegativeCostFitnessFunction(problem)

    msg = f"Unknown fitness transformation: {method}"
    raise ValueError(msg)
