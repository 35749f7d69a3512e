"""Constructive search: heuristics, partial solutions and stochastic samplers."""

from .heuristics import (
    ConstructiveHeuristic,
    IncrementalEvaluation,
    Partial,
    PartialPermutation,
)
from .sampling import (
    AcceptanceBandSampling,
    ConstructiveSampler,
    HeuristicSolutionGenerator,
    ValueBiasedStochasticSampling,
    create_sampler,
)

__all__ = [
    "AcceptanceBandSampling",
    "ConstructiveHeuristic",
    "ConstructiveSampler",
    "HeuristicSolutionGenerator",
    "IncrementalEvaluation",
    "Partial",
    "PartialPermutation",
    "ValueBiasedStochasticSampling",
    "create_sampler",
]
