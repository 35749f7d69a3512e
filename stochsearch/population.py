"""Population container for generational evolutionary algorithms.

A population of fixed size ``n`` holds the current generation with its
fitness vector, a child buffer of the same size, and the index array filled
by the selection operator. The lifecycle is::

    UNINITIALIZED --init--> READY --select--> SELECTED --replace--> READY ...

Between :meth:`Population.select` and :meth:`Population.replace` the caller
may mutate the children returned by :meth:`Population.get`. Each mutated
child's fitness must then be refreshed with
:meth:`Population.update_fitness`; the population does not track mutation.
"""

from __future__ import annotations

import heapq
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np
from numpy.typing import NDArray

from .progress import ProgressTracker, SolutionCostPair
from .utils.common import copy_candidate, require

if TYPE_CHECKING:
    from .fitness import FitnessFunction
    from .operators import Initializer
    from .selection import SelectionOperator

logger = logging.getLogger(__name__)


class PopulationState(Enum):
    """Lifecycle state of a population."""

    UNINITIALIZED = auto()
    READY = auto()
    SELECTED = auto()


class Population:
    """Fixed-size population with a child buffer and global-best tracking.

    Attributes:
        elite_count: Number of elite members carried unchanged into each new
            generation (0 disables elitism).
        dtype: Numpy dtype of the fitness vectors.
    """

    dtype: ClassVar[type] = np.float64

    def __init__(
        self,
        n: int,
        initializer: Initializer,
        fitness: FitnessFunction,
        selection: SelectionOperator,
        tracker: ProgressTracker,
        elite_count: int = 0,
    ) -> None:
        """Initialize an empty population.

        Args:
            n: Population size.
            initializer: Creates random candidate solutions.
            fitness: Fitness function; its dtype must match this population flavor.
            selection: Selection operator.
            tracker: Shared progress tracker.
            elite_count: Number of elite members, ``0 <= elite_count < n``.

        Raises:
            ValueError: If n < 1, elite_count is out of range, or the fitness
                function's flavor does not match.
            MissingDependencyError: If a collaborator is None.
        """
        if n < 1:
            msg = f"population size must be >= 1, got {n}"
            raise ValueError(msg)
        self._initializer = require(initializer, "initializer")
        self._fitness_fn = require(fitness, "fitness")
        self._selection = require(selection, "selection")
        self._tracker = require(tracker, "tracker")
        if not 0 <= elite_count < n:
            msg = f"elite_count must be in [0, {n}), got {elite_count}"
            raise ValueError(msg)
        if np.dtype(fitness.dtype) != np.dtype(self.dtype):
            msg = f"{type(self).__name__} needs {np.dtype(self.dtype)} fitness, got {np.dtype(fitness.dtype)}"
            raise ValueError(msg)

        self._n = n
        self.elite_count = elite_count
        self._problem = fitness.problem

        self._pop: list[Any] = [None] * n
        self._fitness: NDArray = np.zeros(n, dtype=self.dtype)
        self._children: list[Any] = [None] * n
        self._child_fitness: NDArray = np.zeros(n, dtype=self.dtype)
        self._selected: NDArray[np.intp] = np.zeros(n, dtype=np.intp)

        self._best_fitness: float | int | None = None
        self._most_fit: SolutionCostPair | None = None
        self._state = PopulationState.UNINITIALIZED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Fill every slot with a new candidate and reset the global best."""
        for i in range(self._n):
            candidate = self._initializer.create_candidate_solution()
            self._pop[i] = candidate
            self._fitness[i] = self._fitness_fn.fitness(candidate)
        self._children = [None] * self._n
        self._best_fitness = None
        self._most_fit = None
        self._update_most_fit()
        self._state = PopulationState.READY

    def select(self) -> None:
        """Select parents and copy them into the child buffer in selection order.

        Children inherit their parent's fitness until :meth:`update_fitness`
        recomputes it.

        Raises:
            RuntimeError: If the population is not in the READY state.
            IndexError: If the selection operator produced an out-of-range index.
        """
        self._require_state(PopulationState.READY, "select")
        view = self._fitness.view()
        view.flags.writeable = False
        self._selection.select(view, self._selected)
        if self._selected.min() < 0 or self._selected.max() >= self._n:
            msg = f"selection produced an index outside [0, {self._n})"
            raise IndexError(msg)

        for i, parent in enumerate(self._selected):
            self._children[i] = copy_candidate(self._pop[parent])
        self._child_fitness[:] = self._fitness[self._selected]
        self._state = PopulationState.SELECTED

    def update_fitness(self, i: int) -> None:
        """Recompute the fitness of child ``i`` after it was modified."""
        self._require_state(PopulationState.SELECTED, "update_fitness")
        self._check_index(i)
        self._child_fitness[i] = self._fitness_fn.fitness(self._children[i])

    def replace(self) -> None:
        """Make the children the new current generation.

        With elitism, the ``elite_count`` most fit members of the outgoing
        generation overwrite the ``elite_count`` least fit children. Equal
        fitness resolves to the lower index in both choices.
        """
        self._require_state(PopulationState.SELECTED, "replace")
        if self.elite_count > 0:
            k = self.elite_count
            elites = heapq.nlargest(k, range(self._n), key=self._fitness.__getitem__)
            worst = heapq.nsmallest(k, range(self._n), key=self._child_fitness.__getitem__)
            for elite, slot in zip(elites, worst):
                self._children[slot] = self._pop[elite]
                self._child_fitness[slot] = self._fitness[elite]

        self._pop, self._children = self._children, self._pop
        self._fitness, self._child_fitness = self._child_fitness, self._fitness
        self._children = [None] * self._n
        self._update_most_fit()
        self._state = PopulationState.READY

    def split(self) -> Population:
        """Uninitialized copy for a parallel worker.

        The copy shares the fitness function and progress tracker, and gets
        split copies of the initializer and selection operator.
        """
        return type(self)(
            self._n,
            self._initializer.split(),
            self._fitness_fn,
            self._selection.split(),
            self._tracker,
            self.elite_count,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def size(self) -> int:
        return self._n

    def mutable_size(self) -> int:
        """Number of child slots open to crossover and mutation."""
        return self._n

    def __len__(self) -> int:
        return self._n

    def get(self, i: int) -> Any:
        """Child ``i`` in the buffer, available for in-place mutation."""
        self._require_state(PopulationState.SELECTED, "get")
        self._check_index(i)
        return self._children[i]

    def get_member(self, i: int) -> Any:
        """Member ``i`` of the current generation. Do not mutate it."""
        self._check_index(i)
        return self._pop[i]

    def get_fitness(self, i: int) -> float | int:
        """Fitness of member ``i`` of the current generation."""
        self._check_index(i)
        return self._fitness[i].item()

    @property
    def fitnesses(self) -> NDArray:
        """Read-only view of the current generation's fitness vector."""
        view = self._fitness.view()
        view.flags.writeable = False
        return view

    @property
    def selected(self) -> NDArray[np.intp]:
        """Parent index of each child from the most recent :meth:`select`."""
        return self._selected.copy()

    def get_fitness_of_most_fit(self) -> float | int | None:
        """Best fitness observed since the last :meth:`init`."""
        return self._best_fitness

    def get_most_fit(self) -> SolutionCostPair | None:
        """Best solution observed since the last :meth:`init`."""
        return self._most_fit

    @property
    def state(self) -> PopulationState:
        return self._state

    @property
    def problem(self) -> Any:
        return self._problem

    @property
    def fitness_function(self) -> FitnessFunction:
        return self._fitness_fn

    @property
    def selection(self) -> SelectionOperator:
        return self._selection

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self._tracker

    @progress_tracker.setter
    def progress_tracker(self, tracker: ProgressTracker) -> None:
        self._tracker = require(tracker, "tracker")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update_most_fit(self) -> None:
        best = int(np.argmax(self._fitness))
        best_fitness = self._fitness[best].item()
        if self._best_fitness is not None and best_fitness <= self._best_fitness:
            return
        self._best_fitness = best_fitness
        self._most_fit = self._make_pair(self._pop[best])
        self._tracker.update_pair(self._most_fit.copy())
        logger.debug("Population best fitness improved to %s (cost %s)", best_fitness, self._most_fit.cost)

    def _make_pair(self, candidate: Any) -> SolutionCostPair:
        cost = self._problem.cost(candidate)
        cost = int(cost) if self._problem.integer_cost else float(cost)
        return SolutionCostPair(copy_candidate(candidate), cost, self._problem.is_minimum_cost(cost))

    def _require_state(self, state: PopulationState, operation: str) -> None:
        if self._state is not state:
            msg = f"{operation}() requires state {state.name}, population is {self._state.name}"
            raise RuntimeError(msg)

    def _check_index(self, i: int) -> None:
        if not 0 <= i < self._n:
            msg = f"index {i} out of range for population of size {self._n}"
            raise IndexError(msg)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n={self._n}, elite_count={self.elite_count}, "
            f"state={self._state.name}, best_fitness={self._best_fitness})"
        )


class DoublePopulation(Population):
    """Population with floating-point fitness."""

    dtype: ClassVar[type] = np.float64


class IntegerPopulation(Population):
    """Population with 32-bit integer fitness."""

    dtype: ClassVar[type] = np.int32


def create_population(
    n: int,
    initializer: Initializer,
    fitness: FitnessFunction,
    selection: SelectionOperator,
    tracker: ProgressTracker,
    elite_count: int = 0,
) -> Population:
    """Create the population flavor matching the fitness function's dtype."""
    require(fitness, "fitness")
    cls = IntegerPopulation if fitness.is_integer else DoublePopulation
    return cls(n, initializer, fitness, selection, tracker, elite_count)
