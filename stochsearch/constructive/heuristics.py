"""Constructive heuristics and partial solutions.

A constructive search builds a complete solution one element at a time. At
each step the partial solution exposes its remaining extensions, and the
heuristic scores each of them (higher is better). Heuristics that can score
extensions faster with some bookkeeping return an
:class:`IncrementalEvaluation` that the search feeds every chosen element.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..problems import Problem


class IncrementalEvaluation(ABC):
    """Per-construction state a heuristic may use to speed up scoring."""

    @abstractmethod
    def extend(self, partial: Partial, element: int) -> None:
        """Record that ``partial`` is about to be extended by ``element``."""


class Partial(ABC):
    """A partially built solution."""

    @abstractmethod
    def extend(self, i: int) -> None:
        """Extend by the ``i``-th remaining extension."""

    @abstractmethod
    def get_extension(self, i: int) -> int:
        """Element of the ``i``-th remaining extension."""

    @abstractmethod
    def num_extensions(self) -> int:
        """Number of remaining extensions."""

    @abstractmethod
    def is_complete(self) -> bool:
        """Whether no extensions remain."""

    @abstractmethod
    def to_complete(self) -> Any:
        """Build the complete solution."""

    @abstractmethod
    def size(self) -> int:
        """Number of elements placed so far."""

    @abstractmethod
    def get(self, i: int) -> int:
        """Element at position ``i`` of the partial solution."""

    @abstractmethod
    def get_last(self) -> int:
        """Most recently placed element."""

    def __len__(self) -> int:
        return self.size()


class PartialPermutation(Partial):
    """Partial permutation of the integers ``0 .. n-1``.

    Remaining elements are kept in an unordered pool. Extending by index
    ``i`` moves the last pool element into slot ``i``, so indices returned by
    :meth:`get_extension` are only valid until the next :meth:`extend`.
    """

    def __init__(self, n: int) -> None:
        if n < 0:
            msg = f"permutation length must be >= 0, got {n}"
            raise ValueError(msg)
        self._n = n
        self._placed: NDArray[np.int_] = np.empty(n, dtype=np.int_)
        self._size = 0
        self._remaining: list[int] = list(range(n))

    def extend(self, i: int) -> None:
        self._check_extension(i)
        element = self._remaining[i]
        last = self._remaining.pop()
        if i < len(self._remaining):
            self._remaining[i] = last
        self._placed[self._size] = element
        self._size += 1

    def get_extension(self, i: int) -> int:
        self._check_extension(i)
        return self._remaining[i]

    def num_extensions(self) -> int:
        return len(self._remaining)

    def is_complete(self) -> bool:
        return not self._remaining

    def to_complete(self) -> NDArray[np.int_]:
        """Complete permutation as a new array.

        Elements not yet placed follow the placed ones in pool order.
        """
        complete = self._placed.copy()
        complete[self._size :] = self._remaining
        return complete

    def size(self) -> int:
        return self._size

    def get(self, i: int) -> int:
        if not 0 <= i < self._size:
            msg = f"index {i} out of range for partial permutation of size {self._size}"
            raise IndexError(msg)
        return int(self._placed[i])

    def get_last(self) -> int:
        if self._size == 0:
            msg = "partial permutation is empty"
            raise IndexError(msg)
        return int(self._placed[self._size - 1])

    def _check_extension(self, i: int) -> None:
        if not 0 <= i < len(self._remaining):
            msg = f"extension index {i} out of range, {len(self._remaining)} remaining"
            raise IndexError(msg)

    def __repr__(self) -> str:
        return f"PartialPermutation(n={self._n}, placed={self._placed[: self._size].tolist()})"


class ConstructiveHeuristic(ABC):
    """Scores candidate extensions of a partial solution; higher is better.

    Subclasses implement :meth:`h`, :meth:`complete_length` and
    :attr:`problem`. Heuristics over permutations can rely on the default
    :meth:`create_partial`.
    """

    @abstractmethod
    def h(self, partial: Partial, element: int, inc_eval: IncrementalEvaluation | None) -> float:
        """Heuristic value of extending ``partial`` with ``element``.

        Args:
            partial: Current partial solution.
            element: Candidate element.
            inc_eval: The construction's incremental evaluation, or None if
                :meth:`create_incremental_evaluation` returned None.

        Returns:
            Non-negative heuristic value.
        """

    def create_incremental_evaluation(self) -> IncrementalEvaluation | None:
        """New incremental evaluation for one construction, or None if unused."""
        return None

    @abstractmethod
    def complete_length(self) -> int:
        """Number of elements in a complete solution."""

    def create_partial(self, n: int) -> Partial:
        """Empty partial solution of length ``n``."""
        return PartialPermutation(n)

    @property
    @abstractmethod
    def problem(self) -> Problem:
        """Problem whose solutions this heuristic constructs."""
