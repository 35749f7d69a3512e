"""Shared helpers: RNG handling, candidate copying, argument validation."""

from .common import (
    MissingDependencyError,
    SeedLike,
    check_probability,
    copy_candidate,
    ensure_numpy,
    ensure_rng,
    require,
    spawn_rng,
)

__all__ = [
    "MissingDependencyError",
    "SeedLike",
    "check_probability",
    "copy_candidate",
    "ensure_numpy",
    "ensure_rng",
    "require",
    "spawn_rng",
]
