"""Stochastic sampling search over constructive heuristics.

Each sample builds one complete solution from an empty partial solution. At
every step the heuristic scores all remaining extensions and a
sampler-specific rule picks one of them:

- :class:`ValueBiasedStochasticSampling` (VBSS) chooses with probability
  proportional to a bias function of the heuristic value.
- :class:`AcceptanceBandSampling` chooses uniformly among the extensions
  whose value lies within a band below the best value.
- :class:`HeuristicSolutionGenerator` always takes the first best extension.

Reference: J. L. Bresina, "Heuristic-Biased Stochastic Sampling", AAAI 1996;
V. A. Cicirello and S. F. Smith, "Enhancing Stochastic Search Performance by
Value-Biased Randomization of Heuristics", Journal of Heuristics, 2005.
"""

from __future__ import annotations

import copy
import logging
import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

import numpy as np
from numpy.typing import NDArray

from ..progress import NEW_TRACKER, ProgressTracker, SolutionCostPair, resolve_tracker
from ..utils.common import SeedLike, ensure_rng, require, spawn_rng

if TYPE_CHECKING:
    from numpy.random import Generator

    from ..problems import Problem
    from .heuristics import ConstructiveHeuristic

logger = logging.getLogger(__name__)

BiasFunction = Callable[[float], float]

# Relative slack on the acceptance threshold so values equal to it up to
# rounding are accepted.
_BAND_TOLERANCE = 1e-12


class ConstructiveSampler(ABC):
    """Base class for searches that sample complete solutions one at a time."""

    def __init__(
        self,
        heuristic: ConstructiveHeuristic,
        tracker: ProgressTracker = NEW_TRACKER,
        rng: SeedLike = None,
    ) -> None:
        """Initialize the sampler.

        Args:
            heuristic: Constructive heuristic guiding each construction.
            tracker: Shared progress tracker. A new one is created if omitted.
            rng: Random generator or seed.

        Raises:
            MissingDependencyError: If the heuristic, its problem or the tracker is None.
        """
        self.heuristic = require(heuristic, "heuristic")
        self._problem = require(heuristic.problem, "heuristic.problem")
        self._tracker = resolve_tracker(tracker)
        self.rng: Generator = ensure_rng(rng)
        self._total_run_length = 0

    def optimize(self, count: int = 1) -> SolutionCostPair | None:
        """Construct ``count`` solutions and return the best of them.

        Construction stops early if the shared tracker is stopped or records
        a known optimal solution.

        Args:
            count: Number of solutions to construct.

        Returns:
            Best constructed solution, or None if the tracker was already
            stopped or already holds a known optimal solution.
        """
        if count < 1:
            msg = f"count must be >= 1, got {count}"
            raise ValueError(msg)

        best: SolutionCostPair | None = None
        for _ in range(count):
            if self._tracker.is_stopped or self._tracker.did_find_best:
                break
            current = self._construct()
            self._total_run_length += 1
            self._tracker.update_pair(current.copy())
            if best is None or current.cost < best.cost:
                best = current
                logger.debug("%s sample %d: cost %s", type(self).__name__, self._total_run_length, current.cost)
        return best

    def _construct(self) -> SolutionCostPair:
        heuristic = self.heuristic
        n = heuristic.complete_length()
        partial = heuristic.create_partial(n)
        inc_eval = heuristic.create_incremental_evaluation()
        values = np.empty(n, dtype=np.float64)

        while not partial.is_complete():
            k = partial.num_extensions()
            if k == 1:
                chosen = 0
            else:
                for i in range(k):
                    values[i] = heuristic.h(partial, partial.get_extension(i), inc_eval)
                chosen = self._choose_extension(values, k)
            if inc_eval is not None:
                inc_eval.extend(partial, partial.get_extension(chosen))
            partial.extend(chosen)

        solution = partial.to_complete()
        cost = self._problem.cost(solution)
        cost = int(cost) if self._problem.integer_cost else float(cost)
        return SolutionCostPair(solution, cost, self._problem.is_minimum_cost(cost))

    @abstractmethod
    def _choose_extension(self, values: NDArray[np.float64], k: int) -> int:
        """Index of the extension to take, given heuristic values ``values[:k]``.

        ``values`` is scratch space and may be overwritten.
        """

    def split(self) -> ConstructiveSampler:
        """Copy for a parallel worker with its own random stream.

        The copy shares the heuristic and progress tracker and starts with a
        run length of zero.
        """
        clone = copy.copy(self)
        clone.rng = spawn_rng(self.rng)
        clone._total_run_length = 0
        return clone

    @property
    def total_run_length(self) -> int:
        """Number of solutions constructed by this instance."""
        return self._total_run_length

    @property
    def problem(self) -> Problem:
        return self._problem

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self._tracker

    @progress_tracker.setter
    def progress_tracker(self, tracker: ProgressTracker) -> None:
        self._tracker = require(tracker, "tracker")


class ValueBiasedStochasticSampling(ConstructiveSampler):
    """Value-Biased Stochastic Sampling (VBSS).

    Extension ``i`` is chosen with probability ``bias(h_i) / sum_j bias(h_j)``.
    The default bias is polynomial, ``h ** exponent``. Heuristic values must
    be non-negative and the bias must map them to non-negative weights. If
    every weight is zero, the choice is uniform.

    Example:
        >>> vbss = ValueBiasedStochasticSampling(heuristic, exponent=2)
        >>> best = vbss.optimize(100)
        >>> exp_vbss = ValueBiasedStochasticSampling(
        ...     heuristic, bias=ValueBiasedStochasticSampling.create_exponential_bias(0.5)
        ... )
    """

    def __init__(
        self,
        heuristic: ConstructiveHeuristic,
        exponent: float = 1.0,
        bias: BiasFunction | None = None,
        tracker: ProgressTracker = NEW_TRACKER,
        rng: SeedLike = None,
    ) -> None:
        """Initialize VBSS.

        Args:
            heuristic: Constructive heuristic.
            exponent: Exponent of the polynomial bias. Ignored if ``bias`` is given.
            bias: Bias function applied to each heuristic value.
            tracker: Shared progress tracker. A new one is created if omitted.
            rng: Random generator or seed.
        """
        super().__init__(heuristic, tracker, rng)
        self.exponent = exponent
        if bias is not None:
            self.bias = bias
        elif exponent == 1:
            self.bias = _identity
        else:
            self.bias = _PolynomialBias(exponent)

    @staticmethod
    def create_exponential_bias(beta: float) -> BiasFunction:
        """Bias function ``v -> exp(beta * v)``."""
        return _ExponentialBias(beta)

    def adjust_for_bias(self, values: NDArray[np.float64], k: int) -> None:
        """Replace ``values[:k]`` in place with normalized cumulative bias weights.

        Afterwards ``values[k-1] == 1`` and ``values[i] - values[i-1]`` is the
        probability of choosing extension ``i``.
        """
        head = values[:k]
        for i in range(k):
            head[i] = self.bias(head[i])
        np.cumsum(head, out=head)
        total = head[k - 1]
        if total > 0:
            head /= total
        else:
            head[:] = np.arange(1, k + 1) / k
        head[k - 1] = 1.0

    def select(self, values: NDArray[np.float64], k: int, u: float) -> int:
        """Index of the first cumulative weight in ``values[:k]`` that exceeds ``u``.

        Returns ``k - 1`` if ``u`` is not below any of them.
        """
        i = int(np.searchsorted(values[:k], u, side="right"))
        return min(i, k - 1)

    def _choose_extension(self, values: NDArray[np.float64], k: int) -> int:
        self.adjust_for_bias(values, k)
        return self.select(values, k, self.rng.random())

    def __repr__(self) -> str:
        return f"ValueBiasedStochasticSampling(bias={self.bias!r})"


class AcceptanceBandSampling(ConstructiveSampler):
    """Acceptance-Band Sampling.

    With heuristic values ``h`` over the remaining extensions, extensions
    with ``h >= h_max - beta * |h_max|`` are accepted and one of them is
    chosen uniformly. ``beta = 0`` keeps only the extensions tied for the
    best value and, for non-negative heuristic values, ``beta = 1`` accepts
    all of them.
    """

    def __init__(
        self,
        heuristic: ConstructiveHeuristic,
        beta: float = 0.1,
        tracker: ProgressTracker = NEW_TRACKER,
        rng: SeedLike = None,
    ) -> None:
        """Initialize acceptance-band sampling.

        Args:
            heuristic: Constructive heuristic.
            beta: Width of the acceptance band as a fraction of ``|h_max|``,
                in [0, 1].
            tracker: Shared progress tracker. A new one is created if omitted.
            rng: Random generator or seed.

        Raises:
            ValueError: If beta is outside [0, 1].
        """
        if not 0.0 <= beta <= 1.0:
            msg = f"beta must be in [0, 1], got {beta}"
            raise ValueError(msg)
        super().__init__(heuristic, tracker, rng)
        self.beta = beta

    def choose(self, values: NDArray[np.float64], k: int, h_max: float, eq: NDArray[np.intp]) -> int:
        """Choose uniformly among the extensions inside the acceptance band.

        Args:
            values: Heuristic values; only ``values[:k]`` are considered.
            k: Number of extensions.
            h_max: Maximum of ``values[:k]``.
            eq: Output buffer. Its first entries receive the accepted
                indices in increasing order.

        Returns:
            The chosen index.
        """
        threshold = h_max - self.beta * abs(h_max)
        threshold -= _BAND_TOLERANCE * max(1.0, abs(h_max))
        count = 0
        for i in range(k):
            if values[i] >= threshold:
                eq[count] = i
                count += 1
        if count == 1:
            return int(eq[0])
        return int(eq[self.rng.integers(count)])

    def _choose_extension(self, values: NDArray[np.float64], k: int) -> int:
        eq = np.empty(k, dtype=np.intp)
        return self.choose(values, k, float(np.max(values[:k])), eq)

    def __repr__(self) -> str:
        return f"AcceptanceBandSampling(beta={self.beta})"


class HeuristicSolutionGenerator(ConstructiveSampler):
    """Greedy construction: always takes the first extension with the best value.

    Every construction yields the same solution, so ``optimize(count)`` with
    ``count > 1`` only adds run length.
    """

    def _choose_extension(self, values: NDArray[np.float64], k: int) -> int:
        return int(np.argmax(values[:k]))

    def __repr__(self) -> str:
        return "HeuristicSolutionGenerator()"


def _identity(value: float) -> float:
    return value


class _PolynomialBias:
    def __init__(self, exponent: float) -> None:
        self.exponent = exponent

    def __call__(self, value: float) -> float:
        return value**self.exponent

    def __repr__(self) -> str:
        return f"PolynomialBias(exponent={self.exponent})"


class _ExponentialBias:
    def __init__(self, beta: float) -> None:
        self.beta = beta

    def __call__(self, value: float) -> float:
        return math.exp(self.beta * value)

    def __repr__(self) -> str:
        return f"ExponentialBias(beta={self.beta})"


def create_sampler(
    method: str,
    heuristic: ConstructiveHeuristic,
    exponent: float = 1.0,
    beta: float = 0.1,
    tracker: ProgressTracker = NEW_TRACKER,
    rng: SeedLike = None,
) -> ConstructiveSampler:
    """Create a constructive sampler.

    Args:
        method: 'vbss', 'acceptance_band' or 'heuristic'.
        heuristic: Constructive heuristic.
        exponent: Polynomial bias exponent for VBSS.
        beta: Band width for acceptance-band sampling.
        tracker: Shared progress tracker. A new one is created if omitted.
        rng: Random generator or seed.

    Returns:
        ConstructiveSampler instance.
    """
    method = method.lower()

    if method == "vbss":
        return ValueBiasedStochasticSampling(heuristic, exponent=exponent, tracker=tracker, rng=rng)

    if method in ("acceptance_band", "abs"):
        return AcceptanceBandSampling(heuristic, beta=beta, tracker=tracker, rng=rng)

    if method in ("heuristic", "greedy"):
        return HeuristicSolutionGenerator(heuristic, tracker=tracker, rng=rng)

    msg = f"Unknown sampling method: {method}"
    raise ValueError(msg)
