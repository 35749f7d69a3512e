"""Operator interfaces plus the bit-vector and permutation operators.

Operators modify candidates in place. Each one owns a random generator and
its ``split()`` returns a copy with an independent stream, so copies can run
in separate workers.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from .utils.common import SeedLike, check_probability, ensure_rng, spawn_rng

if TYPE_CHECKING:
    from numpy.random import Generator


class _RandomizedOperator:
    """Mixin holding a random generator and a split that re-seeds it."""

    def __init__(self, rng: SeedLike = None) -> None:
        self.rng: Generator = ensure_rng(rng)

    def split(self) -> Any:
        clone = copy.copy(self)
        clone.rng = spawn_rng(self.rng)
        return clone


class Initializer(ABC):
    """Creates random candidate solutions for population initialization."""

    @abstractmethod
    def create_candidate_solution(self) -> Any:
        """Return a new random candidate solution."""

    @abstractmethod
    def split(self) -> Initializer:
        """Return an initializer safe to use from another worker."""


class MutationOperator(ABC):
    """Mutates a candidate solution in place."""

    @abstractmethod
    def mutate(self, candidate: Any) -> None:
        """Mutate ``candidate`` in place."""

    @abstractmethod
    def split(self) -> MutationOperator:
        """Return an operator safe to use from another worker."""


class CrossoverOperator(ABC):
    """Recombines two candidates in place.

    After :meth:`cross` returns, both arguments hold complete, valid children.
    """

    @abstractmethod
    def cross(self, c1: Any, c2: Any) -> None:
        """Transform parents ``c1`` and ``c2`` into two children."""

    @abstractmethod
    def split(self) -> CrossoverOperator:
        """Return an operator safe to use from another worker."""


class BitVectorInitializer(_RandomizedOperator, Initializer):
    """Uniformly random boolean vectors of a fixed length."""

    def __init__(self, length: int, rng: SeedLike = None) -> None:
        if length < 0:
            msg = f"length must be >= 0, got {length}"
            raise ValueError(msg)
        super().__init__(rng)
        self.length = length

    def create_candidate_solution(self) -> NDArray[np.bool_]:
        return self.rng.random(self.length) < 0.5

    def __repr__(self) -> str:
        return f"BitVectorInitializer(length={self.length})"


class BitFlipMutation(_RandomizedOperator, MutationOperator):
    """Flips each bit independently with probability ``rate``."""

    def __init__(self, rate: float, rng: SeedLike = None) -> None:
        """Initialize bit flip mutation.

        Args:
            rate: Per-bit flip probability, ``0 < rate < 1``.
            rng: Random generator or seed.
        """
        check_probability(rate, "mutation rate", open_low=True, open_high=True)
        super().__init__(rng)
        self.rate = rate

    def mutate(self, candidate: NDArray[np.bool_]) -> None:
        candidate ^= self.rng.random(len(candidate)) < self.rate

    def __repr__(self) -> str:
        return f"BitFlipMutation(rate={self.rate})"


class SinglePointCrossover(_RandomizedOperator, CrossoverOperator):
    """Swaps the tails of two vectors after a random cut point."""

    def cross(self, c1: NDArray, c2: NDArray) -> None:
        n = min(len(c1), len(c2))
        if n < 2:
            return
        point = int(self.rng.integers(1, n))
        tail = c1[point:n].copy()
        c1[point:n] = c2[point:n]
        c2[point:n] = tail

    def __repr__(self) -> str:
        return "SinglePointCrossover()"


class TwoPointCrossover(_RandomizedOperator, CrossoverOperator):
    """Swaps the segment between two distinct random cut points."""

    def cross(self, c1: NDArray, c2: NDArray) -> None:
        n = min(len(c1), len(c2))
        if n < 2:
            return
        a, b = sorted(self.rng.choice(n + 1, size=2, replace=False))
        segment = c1[a:b].copy()
        c1[a:b] = c2[a:b]
        c2[a:b] = segment

    def __repr__(self) -> str:
        return "TwoPointCrossover()"


class UniformCrossover(_RandomizedOperator, CrossoverOperator):
    """Swaps each position independently with probability ``swap_rate``."""

    def __init__(self, swap_rate: float = 0.5, rng: SeedLike = None) -> None:
        check_probability(swap_rate, "swap_rate")
        super().__init__(rng)
        self.swap_rate = swap_rate

    def cross(self, c1: NDArray, c2: NDArray) -> None:
        n = min(len(c1), len(c2))
        mask = self.rng.random(n) < self.swap_rate
        swapped = c1[:n][mask].copy()
        c1[:n][mask] = c2[:n][mask]
        c2[:n][mask] = swapped

    def __repr__(self) -> str:
        return f"UniformCrossover(swap_rate={self.swap_rate})"


class PermutationInitializer(_RandomizedOperator, Initializer):
    """Uniformly random permutations of ``0 .. length-1``."""

    def __init__(self, length: int, rng: SeedLike = None) -> None:
        if length < 0:
            msg = f"length must be >= 0, got {length}"
            raise ValueError(msg)
        super().__init__(rng)
        self.length = length

    def create_candidate_solution(self) -> NDArray[np.int_]:
        return self.rng.permutation(self.length)

    def __repr__(self) -> str:
        return f"PermutationInitializer(length={self.length})"


class ScrambleMutation(_RandomizedOperator, MutationOperator):
    """Randomly reorders the elements between two distinct random positions.

    Permutations shorter than 2 are left unchanged.
    """

    def mutate(self, candidate: NDArray) -> None:
        n = len(candidate)
        if n < 2:
            return
        i, j = sorted(self.rng.choice(n, size=2, replace=False))
        candidate[i : j + 1] = self.rng.permutation(candidate[i : j + 1])

    def __repr__(self) -> str:
        return "ScrambleMutation()"


class BlockInterchangeMutation(_RandomizedOperator, MutationOperator):
    """Swaps two random non-overlapping blocks, keeping the elements between them.

    The blocks are ``[a, b]`` and ``[c, d]`` with ``a <= b < c <= d``, so
    either block may be a single element. Permutations shorter than 2 are
    left unchanged.
    """

    def mutate(self, candidate: NDArray) -> None:
        n = len(candidate)
        if n < 2:
            return
        a, b, c, d = self._block_bounds(n)
        candidate[a : d + 1] = np.concatenate(
            (candidate[c : d + 1], candidate[b + 1 : c], candidate[a : b + 1])
        )

    def _block_bounds(self, n: int) -> tuple[int, int, int, int]:
        # Four distinct sorted indices from [0, n+2); n and n+1 stand for
        # repeats that make a block of length 1.
        a, b, c, d = (int(x) for x in np.sort(self.rng.choice(n + 2, size=4, replace=False)))
        if d == n:
            a, b, c, d = a, a, b, c
        elif c == n:
            a, b, c, d = a, a, b, b
        elif d == n + 1:
            d = c
        return a, b, c, d

    def __repr__(self) -> str:
        return "BlockInterchangeMutation()"


def create_crossover_operator(method: str = "single_point", rng: SeedLike = None) -> CrossoverOperator:
    """Create a bit-vector crossover operator.

    Args:
        method: 'single_point', 'two_point' or 'uniform'.
        rng: Random generator or seed.

    Returns:
        CrossoverOperator instance.
    """
    method = method.lower()

    if method == "single_point":
        return SinglePointCrossover(rng)

    if method == "two_point":
        return TwoPointCrossover(rng)

    if method == "uniform":
        return UniformCrossover(rng=rng)

    msg = f"Unknown crossover method: {method}"
    raise ValueError(msg)
