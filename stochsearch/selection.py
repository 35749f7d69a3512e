"""Selection operators for evolutionary algorithms.

Every operator works on a read-only fitness vector (``float64`` or ``int32``)
and writes parent indices into a caller-owned index array. The indices refer
to the population ordering *before* selection and may repeat.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray
from scipy.stats import rankdata

from .utils.common import SeedLike, ensure_rng, spawn_rng

if TYPE_CHECKING:
    from numpy.random import Generator

logger = logging.getLogger(__name__)


class SelectionOperator(ABC):
    """Abstract base class for selection operators.

    Args:
        rng: Random generator or seed. Each operator owns its own stream.
    """

    def __init__(self, rng: SeedLike = None) -> None:
        self.rng: Generator = ensure_rng(rng)

    @abstractmethod
    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        """Fill ``selected`` with parent indices.

        Args:
            fitnesses: Fitness of each member of the current population.
            selected: Output array; one parent index is written per slot.
        """

    def init(self, generations: int) -> None:
        """Hook called once at the start of a run. Stateless operators ignore it."""

    def split(self) -> SelectionOperator:
        """Copy with the same configuration and an independent random stream."""
        clone = copy.copy(self)
        clone.rng = spawn_rng(self.rng)
        return clone

    def _validate_inputs(self, fitnesses: NDArray, selected: NDArray) -> None:
        """Validate selection inputs."""
        if len(fitnesses) == 0:
            msg = "Cannot select from empty population"
            raise ValueError(msg)
        if len(selected) == 0:
            msg = "selected must have at least one slot"
            raise ValueError(msg)


def _as_float(fitnesses: NDArray) -> NDArray[np.float64]:
    return np.asarray(fitnesses, dtype=np.float64)


def _sample_proportional(rng: Generator, weights: NDArray[np.float64], count: int) -> NDArray[np.intp]:
    """Roulette-wheel draws proportional to non-negative weights.

    A draw landing exactly on the total selects the last index.
    """
    cumulative = np.cumsum(weights)
    total = cumulative[-1]
    if total <= 0 or not np.isfinite(total):
        return rng.integers(0, len(weights), size=count)
    draws = rng.random(count) * total
    indices = np.searchsorted(cumulative, draws, side="right")
    return np.minimum(indices, len(weights) - 1)


class FitnessProportionalSelection(SelectionOperator):
    """Roulette wheel (fitness-proportionate) selection.

    Fitness values are expected to be positive. If the minimum is not
    positive, all values are shifted so the least fit gets a small weight.
    """

    def __init__(self, min_fitness_offset: float = 1e-6, rng: SeedLike = None) -> None:
        """Initialize roulette wheel selection.

        Args:
            min_fitness_offset: Small offset to ensure positive probabilities.
            rng: Random generator or seed.
        """
        super().__init__(rng)
        self.min_fitness_offset = min_fitness_offset

    def _weights(self, fitnesses: NDArray) -> NDArray[np.float64]:
        weights = _as_float(fitnesses)
        min_fit = weights.min()
        if min_fit <= 0:
            weights = weights + (abs(min_fit) + self.min_fitness_offset)
        return weights

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        selected[:] = _sample_proportional(self.rng, self._weights(fitnesses), len(selected))

    def __repr__(self) -> str:
        return f"FitnessProportionalSelection(offset={self.min_fitness_offset})"


class StochasticUniversalSampling(FitnessProportionalSelection):
    """Stochastic universal sampling.

    Places ``m`` equally spaced pointers on the fitness-proportional wheel
    using a single random offset, then shuffles the result so that adjacent
    parents are not systematically related.
    """

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        weights = self._weights(fitnesses)
        m = len(selected)
        cumulative = np.cumsum(weights)
        total = cumulative[-1]
        if total <= 0 or not np.isfinite(total):
            selected[:] = self.rng.integers(0, len(weights), size=m)
            return
        step = total / m
        pointers = self.rng.random() * step + step * np.arange(m)
        indices = np.minimum(np.searchsorted(cumulative, pointers, side="right"), len(weights) - 1)
        self.rng.shuffle(indices)
        selected[:] = indices

    def __repr__(self) -> str:
        return f"StochasticUniversalSampling(offset={self.min_fitness_offset})"


class TournamentSelection(SelectionOperator):
    """Tournament selection.

    All tournaments are drawn at once; each draws ``k`` contestants uniformly
    with replacement and keeps the fittest (first on ties).
    """

    def __init__(self, tournament_size: int = 2, rng: SeedLike = None) -> None:
        """Initialize tournament selection.

        Args:
            tournament_size: Number of individuals in each tournament.
            rng: Random generator or seed.
        """
        if tournament_size < 1:
            msg = f"tournament_size must be >= 1, got {tournament_size}"
            raise ValueError(msg)
        super().__init__(rng)
        self.tournament_size = tournament_size

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        fitnesses = np.asarray(fitnesses)
        m = len(selected)
        tournament_indices = self.rng.integers(0, len(fitnesses), size=(m, self.tournament_size))
        tournament_fitness = fitnesses[tournament_indices]
        winner_positions = np.argmax(tournament_fitness, axis=1)
        selected[:] = tournament_indices[np.arange(m), winner_positions]

    def __repr__(self) -> str:
        return f"TournamentSelection(tournament_size={self.tournament_size})"


class TruncationSelection(SelectionOperator):
    """Truncation selection: parents drawn uniformly from the ``k`` most fit."""

    def __init__(self, k: int = 2, rng: SeedLike = None) -> None:
        if k < 1:
            msg = f"k must be >= 1, got {k}"
            raise ValueError(msg)
        super().__init__(rng)
        self.k = k

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        cutoff = min(self.k, len(fitnesses))
        sorted_indices = np.argsort(-_as_float(fitnesses), kind="stable")
        eligible_indices = sorted_indices[:cutoff]
        selected[:] = eligible_indices[self.rng.integers(0, cutoff, size=len(selected))]

    def __repr__(self) -> str:
        return f"TruncationSelection(k={self.k})"


class RandomSelection(SelectionOperator):
    """Uniform random selection; ignores fitness entirely."""

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        selected[:] = self.rng.integers(0, len(fitnesses), size=len(selected))

    def __repr__(self) -> str:
        return "RandomSelection()"


class LinearRankSelection(SelectionOperator):
    """Rank-based selection.

    Selection probability is based on fitness rank rather than raw fitness values.
    Uses linear ranking formula with configurable selection pressure.
    """

    def __init__(self, selection_pressure: float = 1.5, rng: SeedLike = None) -> None:
        """Initialize rank selection.

        Args:
            selection_pressure: Selection pressure in [1.0, 2.0].
                               Higher values favor fitter individuals more.
            rng: Random generator or seed.
        """
        if not 1.0 <= selection_pressure <= 2.0:
            msg = f"selection_pressure must be in [1.0, 2.0], got {selection_pressure}"
            raise ValueError(msg)
        super().__init__(rng)
        self.selection_pressure = selection_pressure

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        pop_size = len(fitnesses)

        if pop_size == 1:
            selected[:] = 0
            return

        ranks = rankdata(_as_float(fitnesses), method="average")

        # Linear ranking formula
        s = self.selection_pressure
        n = float(pop_size)
        probs = (2 - s + 2 * (s - 1) * (ranks - 1) / (n - 1)) / n
        probs = np.maximum(probs, 0)

        selected[:] = _sample_proportional(self.rng, probs, len(selected))

    def __repr__(self) -> str:
        return f"LinearRankSelection(selection_pressure={self.selection_pressure})"


class CoolingSchedule(ABC):
    """Temperature schedule for :class:`BoltzmannSelection`."""

    def __init__(self, t0: float, t_min: float) -> None:
        if t0 <= 0:
            msg = f"t0 must be > 0, got {t0}"
            raise ValueError(msg)
        if not 0 < t_min <= t0:
            msg = f"t_min must be in (0, t0], got {t_min}"
            raise ValueError(msg)
        self.t0 = t0
        self.t_min = t_min

    @abstractmethod
    def next_t(self, t: float) -> float:
        """Temperature for the next generation."""


class ExponentialCooling(CoolingSchedule):
    """``T <- max(alpha * T, t_min)``."""

    def __init__(self, t0: float = 100.0, alpha: float = 0.95, t_min: float = 1.0) -> None:
        super().__init__(t0, t_min)
        if not 0 < alpha < 1:
            msg = f"alpha must be in (0, 1), got {alpha}"
            raise ValueError(msg)
        self.alpha = alpha

    def next_t(self, t: float) -> float:
        return max(t * self.alpha, self.t_min)

    def __repr__(self) -> str:
        return f"ExponentialCooling(t0={self.t0}, alpha={self.alpha}, t_min={self.t_min})"


class LinearCooling(CoolingSchedule):
    """``T <- max(T - r, t_min)``."""

    def __init__(self, t0: float = 100.0, r: float = 1.0, t_min: float = 1.0) -> None:
        super().__init__(t0, t_min)
        if r < 0:
            msg = f"r must be >= 0, got {r}"
            raise ValueError(msg)
        self.r = r

    def next_t(self, t: float) -> float:
        t -= self.r
        return self.t_min if t < self.t_min else t

    def __repr__(self) -> str:
        return f"LinearCooling(t0={self.t0}, r={self.r}, t_min={self.t_min})"


class BoltzmannSelection(SelectionOperator):
    """Boltzmann selection: weight ``exp(f / T)`` with a cooling temperature.

    The temperature resets to ``schedule.t0`` in :meth:`init` and advances once
    per call to :meth:`select`, so selection pressure grows over a run.
    """

    def __init__(self, schedule: CoolingSchedule | None = None, rng: SeedLike = None) -> None:
        super().__init__(rng)
        self.schedule = schedule or ExponentialCooling()
        self.temperature = self.schedule.t0

    def init(self, generations: int) -> None:
        self.temperature = self.schedule.t0

    def select(self, fitnesses: NDArray, selected: NDArray[np.intp]) -> None:
        self._validate_inputs(fitnesses, selected)
        scaled = _as_float(fitnesses) / self.temperature
        # Shift by the max so the largest weight is exactly 1.
        weights = np.exp(scaled - scaled.max())
        selected[:] = _sample_proportional(self.rng, weights, len(selected))
        self.temperature = self.schedule.next_t(self.temperature)

    def split(self) -> BoltzmannSelection:
        clone = BoltzmannSelection(self.schedule, spawn_rng(self.rng))
        return clone

    def __repr__(self) -> str:
        return f"BoltzmannSelection(schedule={self.schedule})"


def create_selection_operator(
    method: str = "tournament",
    tournament_size: int = 2,
    selection_pressure: float = 1.5,
    truncation_count: int = 2,
    rng: SeedLike = None,
) -> SelectionOperator:
    """Create a selection operator.

    Args:
        method: 'tournament', 'roulette', 'sus', 'rank', 'truncation', 'random' or 'boltzmann'.
        tournament_size: Size for tournament selection.
        selection_pressure: Pressure for rank selection.
        truncation_count: Number of top individuals for truncation selection.
        rng: Random generator or seed.

    Returns:
        SelectionOperator instance.
    """
    method = method.lower()

    if method == "tournament":
        return TournamentSelection(tournament_size=tournament_size, rng=rng)

    if method in ("roulette", "fitness_proportional"):
        return FitnessProportionalSelection(rng=rng)

    if method in ("sus", "stochastic_universal"):
        return StochasticUniversalSampling(rng=rng)

    if method == "rank":
        return LinearRankSelection(selection_pressure=selection_pressure, rng=rng)

    if method == "truncation":
        return TruncationSelection(k=truncation_count, rng=rng)

    if method == "random":
        return RandomSelection(rng=rng)

    if method == "boltzmann":
        return BoltzmannSelection(rng=rng)

    msg = f"Unknown selection method: {method}"
    raise ValueError(msg)
