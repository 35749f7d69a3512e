from __future__ import annotations

import copy
import logging
import time
from typing import TYPE_CHECKING

from .operators import BitFlipMutation, BitVectorInitializer, Initializer
from .population import Population, create_population
from .progress import NEW_TRACKER, ProgressTracker, SolutionCostPair, resolve_tracker
from .results import GenerationStats, compute_generation_stats
from .utils.common import (
    MissingDependencyError,
    SeedLike,
    check_probability,
    ensure_rng,
    require,
    spawn_rng,
)

if TYPE_CHECKING:
    from .fitness import FitnessFunction
    from .operators import CrossoverOperator, MutationOperator
    from .problems import Problem
    from .selection import SelectionOperator

# Configure logging
logger = logging.getLogger(__name__)


class GenerationalEvolutionaryAlgorithm:
    """Generational evolutionary algorithm with optional elitism.

    Each generation selects ``n`` parents into the child buffer, applies
    crossover to adjacent pairs ``(2i, 2i+1)`` with probability
    ``crossover_rate``, applies the mutation operator to each child with
    probability ``mutation_probability``, re-evaluates modified children and
    replaces the population (keeping ``elite_count`` elites).

    Runs stop cooperatively between generations when the shared tracker is
    stopped or holds a known optimum, when ``time_limit`` seconds have
    passed, or after ``early_stopping_generations`` generations without
    improvement.

    Example:
        >>> ea = GenerationalEvolutionaryAlgorithm(
        ...     n=50,
        ...     initializer=BitVectorInitializer(32),
        ...     fitness=fitness,
        ...     selection=TournamentSelection(2),
        ...     mutation=BitFlipMutation(1 / 32),
        ...     crossover=SinglePointCrossover(),
        ...     crossover_rate=0.9,
        ...     elite_count=1,
        ... )
        >>> best = ea.optimize(200)
    """

    def __init__(
        self,
        n: int,
        initializer: Initializer,
        fitness: FitnessFunction,
        selection: SelectionOperator,
        mutation: MutationOperator,
        mutation_probability: float = 1.0,
        crossover: CrossoverOperator | None = None,
        crossover_rate: float = 0.0,
        elite_count: int = 0,
        tracker: ProgressTracker = NEW_TRACKER,
        rng: SeedLike = None,
        time_limit: float | None = None,
        early_stopping_generations: int | None = None,
    ) -> None:
        """Initialize the algorithm.

        Args:
            n: Population size.
            initializer: Creates random initial population members.
            fitness: Fitness function.
            selection: Selection operator.
            mutation: Mutation operator.
            mutation_probability: Probability that a child is mutated, in [0, 1].
            crossover: Crossover operator. Required when crossover_rate > 0.
            crossover_rate: Probability that a pair of parents undergo
                crossover. Values above 1 are treated as 1.
            elite_count: Number of elite members, ``0 <= elite_count < n``.
            tracker: Shared progress tracker. A new one is created if omitted.
            rng: Random generator or seed for the crossover/mutation decisions.
            time_limit: Optional wall-clock limit per run, in seconds.
            early_stopping_generations: Optional number of generations
                without improvement after which a run stops.

        Raises:
            ValueError: For invalid sizes or rates.
            MissingDependencyError: If a required collaborator is None.
        """
        if n < 1:
            msg = f"population size must be >= 1, got {n}"
            raise ValueError(msg)
        check_probability(mutation_probability, "mutation_probability")
        if crossover_rate < 0:
            msg = f"crossover_rate must be >= 0, got {crossover_rate}"
            raise ValueError(msg)
        if crossover is None and crossover_rate > 0:
            msg = "crossover operator is required when crossover_rate > 0"
            raise MissingDependencyError(msg)
        if time_limit is not None and time_limit <= 0:
            msg = f"time_limit must be > 0, got {time_limit}"
            raise ValueError(msg)
        if early_stopping_generations is not None and early_stopping_generations < 1:
            msg = f"early_stopping_generations must be >= 1, got {early_stopping_generations}"
            raise ValueError(msg)

        self.mutation = require(mutation, "mutation")
        self.mutation_probability = mutation_probability
        self.crossover = crossover
        self.crossover_rate = min(crossover_rate, 1.0)
        self.time_limit = time_limit
        self.early_stopping_generations = early_stopping_generations
        self.rng = ensure_rng(rng)

        self.population: Population = create_population(
            n,
            initializer,
            fitness,
            selection,
            resolve_tracker(tracker),
            elite_count,
        )

        self._total_run_length = 0
        self._initialized = False
        self._stagnant_generations = 0
        self.history: list[GenerationStats] = []

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def optimize(self, max_generations: int = 1) -> SolutionCostPair | None:
        """Initialize a new population and evolve it.

        Args:
            max_generations: Maximum number of generations to run.

        Returns:
            Best solution found during the run, or None if the tracker was
            already stopped or already holds a known optimal solution.
        """
        return self._run(max_generations, init=True)

    def reoptimize(self, max_generations: int = 1) -> SolutionCostPair | None:
        """Continue evolving the current population without reinitializing it.

        Falls back to :meth:`optimize` if no run has been made yet.
        """
        return self._run(max_generations, init=not self._initialized)

    def _run(self, max_generations: int, init: bool) -> SolutionCostPair | None:
        if max_generations < 0:
            msg = f"max_generations must be >= 0, got {max_generations}"
            raise ValueError(msg)

        tracker = self.progress_tracker
        if tracker.did_find_best or tracker.is_stopped:
            return None

        start_time = time.time()
        pop = self.population
        pop.selection.init(max_generations)

        if init:
            pop.init()
            self._initialized = True
            self._stagnant_generations = 0
            self.history = []
            logger.info(
                "Starting %s: n=%d, elite_count=%d, max_generations=%d",
                type(self).__name__,
                pop.size(),
                pop.elite_count,
                max_generations,
            )
            logger.info("Initial best fitness: %s", pop.get_fitness_of_most_fit())

        generation = 0
        while generation < max_generations and not self._should_stop(start_time):
            best_before = pop.get_fitness_of_most_fit()
            self._next_generation()
            generation += 1
            self._total_run_length += 1

            best_after = pop.get_fitness_of_most_fit()
            stats = compute_generation_stats(
                pop.fitnesses,
                generation=self._total_run_length,
                best_ever=best_after,
                elapsed_time=time.time() - start_time,
            )
            self.history.append(stats)

            if best_after > best_before:
                self._stagnant_generations = 0
                logger.debug("Gen %d: New best fitness: %s", self._total_run_length, best_after)
            else:
                self._stagnant_generations += 1

        best = pop.get_most_fit()
        tracker.update_pair(best.copy())
        logger.info(
            "Run complete: %d generations in %.2fs, best cost %s",
            generation,
            time.time() - start_time,
            best.cost,
        )
        return best

    def _next_generation(self) -> None:
        pop = self.population
        pop.select()
        m = pop.mutable_size()
        changed = [False] * m

        if self.crossover is not None and self.crossover_rate > 0:
            for i in range(0, m - 1, 2):
                if self.rng.random() < self.crossover_rate:
                    self.crossover.cross(pop.get(i), pop.get(i + 1))
                    changed[i] = changed[i + 1] = True

        if self.mutation_probability > 0:
            for i in range(m):
                if self.rng.random() < self.mutation_probability:
                    self.mutation.mutate(pop.get(i))
                    changed[i] = True

        for i in range(m):
            if changed[i]:
                pop.update_fitness(i)

        pop.replace()

    def _should_stop(self, start_time: float) -> bool:
        tracker = self.progress_tracker
        if tracker.is_stopped or tracker.did_find_best:
            return True
        if self.time_limit is not None and time.time() - start_time >= self.time_limit:
            logger.info("Time limit of %.2fs reached", self.time_limit)
            return True
        if (
            self.early_stopping_generations is not None
            and self._stagnant_generations >= self.early_stopping_generations
        ):
            logger.info("Early stopping after %d generations without improvement", self._stagnant_generations)
            return True
        return False

    # ------------------------------------------------------------------
    # Parallel copies and accessors
    # ------------------------------------------------------------------

    def split(self) -> GenerationalEvolutionaryAlgorithm:
        """Independent copy for a parallel worker, sharing the progress tracker."""
        clone = copy.copy(self)
        clone.population = self.population.split()
        clone.mutation = self.mutation.split()
        clone.crossover = self.crossover.split() if self.crossover is not None else None
        clone.rng = spawn_rng(self.rng)
        clone._total_run_length = 0
        clone._initialized = False
        clone._stagnant_generations = 0
        clone.history = []
        return clone

    @property
    def total_run_length(self) -> int:
        """Generations completed across all runs of this instance."""
        return self._total_run_length

    @property
    def problem(self) -> Problem:
        return self.population.problem

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self.population.progress_tracker

    @progress_tracker.setter
    def progress_tracker(self, tracker: ProgressTracker) -> None:
        self.population.progress_tracker = tracker

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n={self.population.size()}, elite_count={self.population.elite_count}, "
            f"mutation={self.mutation}, crossover={self.crossover}, crossover_rate={self.crossover_rate})"
        )


class GeneticAlgorithm(GenerationalEvolutionaryAlgorithm):
    """Genetic algorithm over bit vectors.

    Every child passes through :class:`BitFlipMutation`, which flips each bit
    independently with probability ``mutation_rate``. Crossover and selection
    are configurable.
    """

    def __init__(
        self,
        n: int,
        initializer: Initializer | int,
        fitness: FitnessFunction,
        mutation_rate: float,
        crossover: CrossoverOperator,
        crossover_rate: float,
        selection: SelectionOperator,
        elite_count: int = 0,
        tracker: ProgressTracker = NEW_TRACKER,
        rng: SeedLike = None,
        time_limit: float | None = None,
        early_stopping_generations: int | None = None,
    ) -> None:
        """Initialize the genetic algorithm.

        Args:
            n: Population size.
            initializer: Initializer for bit vectors, or the bit length to
                build a :class:`BitVectorInitializer` for.
            fitness: Fitness function.
            mutation_rate: Per-bit flip probability, ``0 < mutation_rate < 1``.
            crossover: Crossover operator.
            crossover_rate: Probability that a pair of parents undergo crossover.
            selection: Selection operator.
            elite_count: Number of elite members, ``0 <= elite_count < n``.
            tracker: Shared progress tracker. A new one is created if omitted.
            rng: Random generator or seed.
            time_limit: Optional wall-clock limit per run, in seconds.
            early_stopping_generations: Optional stagnation limit.

        Raises:
            ValueError: For invalid sizes or rates, or a negative bit length.
            MissingDependencyError: If a required collaborator is None.
        """
        if n < 1:
            msg = f"population size must be >= 1, got {n}"
            raise ValueError(msg)
        require(crossover, "crossover")
        rng = ensure_rng(rng)
        if isinstance(initializer, int):
            initializer = BitVectorInitializer(initializer, rng=spawn_rng(rng))
        super().__init__(
            n,
            require(initializer, "initializer"),
            fitness,
            selection,
            BitFlipMutation(mutation_rate, rng=spawn_rng(rng)),
            mutation_probability=1.0,
            crossover=crossover,
            crossover_rate=crossover_rate,
            elite_count=elite_count,
            tracker=tracker,
            rng=rng,
            time_limit=time_limit,
            early_stopping_generations=early_stopping_generations,
        )

    @property
    def mutation_rate(self) -> float:
        """Per-bit flip probability."""
        return self.mutation.rate
