from __future__ import annotations

import copy
from typing import Any, Union

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

SeedLike = Union[Generator, int, None]


class MissingDependencyError(TypeError):
    """Raised when a required collaborator (operator, problem, tracker) is None."""


def require(obj: Any, name: str) -> Any:
    """Return ``obj`` unchanged, or raise if it is missing.

    Args:
        obj: Collaborator passed to a constructor or setter.
        name: Parameter name used in the error message.

    Returns:
        The same object.

    Raises:
        MissingDependencyError: If ``obj`` is None.
    """
    if obj is None:
        msg = f"{name} is required, got None"
        raise MissingDependencyError(msg)
    return obj


def ensure_rng(rng: SeedLike = None) -> Generator:
    """Coerce a generator, seed or None into a numpy Generator.

    Args:
        rng: Existing Generator (returned as is), integer seed, or None.

    Returns:
        A numpy Generator.
    """
    if isinstance(rng, Generator):
        return rng
    return np.random.default_rng(rng)


def spawn_rng(rng: Generator) -> Generator:
    """Derive an independent child stream for a split copy."""
    return rng.spawn(1)[0]


def copy_candidate(candidate: Any) -> Any:
    """Deep-copy a candidate solution.

    Objects exposing ``copy()`` (numpy arrays, user classes) use it;
    anything else goes through ``copy.deepcopy``.
    """
    copier = getattr(candidate, "copy", None)
    if callable(copier):
        return copier()
    return copy.deepcopy(candidate)


def ensure_numpy(arr: Any) -> NDArray:
    """Convert array to numpy if needed.

    Args:
        arr: Input array-like object.

    Returns:
        NumPy ndarray.
    """
    return np.asarray(arr)


def check_probability(value: float, name: str, *, open_low: bool = False, open_high: bool = False) -> float:
    """Validate that a rate lies in the unit interval.

    Args:
        value: Rate to check.
        name: Parameter name used in the error message.
        open_low: Exclude 0 from the valid range.
        open_high: Exclude 1 from the valid range.

    Returns:
        The value, unchanged.

    Raises:
        ValueError: If the value falls outside the requested interval.
    """
    low_ok = value > 0 if open_low else value >= 0
    high_ok = value < 1 if open_high else value <= 1
    if not (low_ok and high_ok):
        interval = f"{'(' if open_low else '['}0, 1{')' if open_high else ']'}"
        msg = f"{name} must be in {interval}, got {value}"
        raise ValueError(msg)
    return value
