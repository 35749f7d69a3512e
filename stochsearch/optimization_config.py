"""Optimization Configuration Module.

This module provides settings classes for the search algorithms, allowing
control over:
- Genetic Algorithm behavior (selection, crossover, mutation, elitism)
- Fitness transformation of problem costs
- Constructive stochastic sampling (VBSS, acceptance band)

Settings validate themselves on construction and round-trip through dicts
and JSON. The ``build_*`` functions turn settings into ready-to-run
algorithm instances.

Example:
    >>> from stochsearch.optimization_config import (
    ...     EvolutionSettings, SelectionType, CrossoverType, build_genetic_algorithm,
    ... )
    >>>
    >>> settings = EvolutionSettings(
    ...     population_size=100,
    ...     crossover_type=CrossoverType.TWO_POINT,
    ...     selection_type=SelectionType.TOURNAMENT,
    ...     tournament_size=4,
    ...     elite_count=2,
    ... )
    >>> ga = build_genetic_algorithm(settings, problem, bit_length=64)
    >>> best = ga.optimize(settings.max_generations)
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .constructive.sampling import create_sampler
from .fitness import FitnessFunction, create_fitness_function
from .genetic_algorithm import GeneticAlgorithm
from .operators import create_crossover_operator
from .progress import NEW_TRACKER
from .selection import create_selection_operator
from .utils.common import ensure_rng, spawn_rng

if TYPE_CHECKING:
    from .constructive.heuristics import ConstructiveHeuristic
    from .constructive.sampling import ConstructiveSampler
    from .problems import Problem
    from .progress import ProgressTracker

logger = logging.getLogger(__name__)


class SelectionType(Enum):
    """Selection strategy types for Genetic Algorithm."""

    TOURNAMENT = "tournament"
    ROULETTE = "roulette"
    STOCHASTIC_UNIVERSAL = "sus"
    RANK = "rank"
    TRUNCATION = "truncation"
    RANDOM = "random"
    BOLTZMANN = "boltzmann"

    @classmethod
    def from_string(cls, value: str) -> SelectionType:
        """Create from string value."""
        mapping = {
            "tournament": cls.TOURNAMENT,
            "roulette": cls.ROULETTE,
            "fitness_proportional": cls.ROULETTE,
            "sus": cls.STOCHASTIC_UNIVERSAL,
            "stochastic_universal": cls.STOCHASTIC_UNIVERSAL,
            "rank": cls.RANK,
            "truncation": cls.TRUNCATION,
            "random": cls.RANDOM,
            "boltzmann": cls.BOLTZMANN,
        }
        return mapping.get(value.lower(), cls.TOURNAMENT)


class CrossoverType(Enum):
    """Crossover operator types for bit vectors."""

    SINGLE_POINT = "single_point"
    TWO_POINT = "two_point"
    UNIFORM = "uniform"

    @classmethod
    def from_string(cls, value: str) -> CrossoverType:
        """Create from string value."""
        mapping = {
            "single_point": cls.SINGLE_POINT,
            "one_point": cls.SINGLE_POINT,
            "two_point": cls.TWO_POINT,
            "uniform": cls.UNIFORM,
        }
        return mapping.get(value.lower(), cls.SINGLE_POINT)


class FitnessTransform(Enum):
    """Cost-to-fitness transformations."""

    INVERSE = "inverse"
    NEGATIVE = "negative"

    @classmethod
    def from_string(cls, value: str) -> FitnessTransform:
        """Create from string value."""
        mapping = {
            "inverse": cls.INVERSE,
            "inverse_cost": cls.INVERSE,
            "negative": cls.NEGATIVE,
            "negative_cost": cls.NEGATIVE,
        }
        return mapping.get(value.lower(), cls.NEGATIVE)


class SamplingMethod(Enum):
    """Constructive sampling methods."""

    VBSS = "vbss"
    ACCEPTANCE_BAND = "acceptance_band"
    HEURISTIC = "heuristic"

    @classmethod
    def from_string(cls, value: str) -> SamplingMethod:
        """Create from string value."""
        mapping = {
            "vbss": cls.VBSS,
            "value_biased": cls.VBSS,
            "acceptance_band": cls.ACCEPTANCE_BAND,
            "abs": cls.ACCEPTANCE_BAND,
            "heuristic": cls.HEURISTIC,
            "greedy": cls.HEURISTIC,
        }
        return mapping.get(value.lower(), cls.VBSS)


class _SettingsMixin:
    """Dict and JSON round-tripping shared by the settings dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary. Enums are stored by value."""
        return {k: v.value if isinstance(v, Enum) else v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Any:
        """Create settings from a dictionary.

        Enum fields accept either enum members or their string values.
        Unknown keys raise ``ValueError``.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            msg = f"Unknown {cls.__name__} fields: {sorted(unknown)}"
            raise ValueError(msg)
        return cls(**data)

    def to_json(self, path: str | Path | None = None) -> str:
        """Serialize settings to JSON.

        Args:
            path: Optional file path to save to.

        Returns:
            JSON string representation.
        """
        json_str = json.dumps(self.to_dict(), indent=2)

        if path is not None:
            Path(path).write_text(json_str)
            logger.info("Saved %s to %s", type(self).__name__, path)

        return json_str

    @classmethod
    def from_json(cls, json_str: str | None = None, path: str | Path | None = None) -> Any:
        """Load settings from JSON.

        Args:
            json_str: JSON string.
            path: File path to load from.

        Returns:
            Settings instance.
        """
        if path is not None:
            json_str = Path(path).read_text()

        if json_str is None:
            msg = "Either json_str or path must be provided"
            raise ValueError(msg)

        return cls.from_dict(json.loads(json_str))

    def with_updates(self, **kwargs: Any) -> Any:
        """Create copy with updated values.

        Args:
            **kwargs: Values to update.

        Returns:
            New settings instance with updates, validated again.
        """
        data = self.to_dict()
        data.update(kwargs)
        return type(self).from_dict(data)


@dataclass
class EvolutionSettings(_SettingsMixin):
    """Genetic Algorithm configuration.

    Attributes:
        population_size: Number of individuals in population.
        max_generations: Maximum number of generations.
        mutation_rate: Per-bit flip probability, in (0, 1).
        crossover_type: Type of crossover operator.
        crossover_rate: Probability that a pair of parents is recombined.
        selection_type: Type of selection strategy.
        tournament_size: Tournament size for tournament selection.
        truncation_count: Number of top individuals for truncation selection.
        selection_pressure: Expected copies of the best member for rank selection.
        elite_count: Number of best individuals preserved each generation.
        fitness_transform: How problem costs become fitness values.
        early_stopping_generations: Generations without improvement to stop
            (None disables early stopping).
        time_limit: Wall-clock limit per run in seconds (None for no limit).
        random_seed: Random seed for reproducibility.

    Example:
        >>> settings = EvolutionSettings(
        ...     population_size=100,
        ...     crossover_type=CrossoverType.UNIFORM,
        ...     selection_type=SelectionType.TOURNAMENT,
        ...     tournament_size=5,
        ... )
    """

    # Population settings
    population_size: int = 50
    max_generations: int = 100

    # Variation settings
    mutation_rate: float = 0.01
    crossover_type: CrossoverType = CrossoverType.SINGLE_POINT
    crossover_rate: float = 0.8

    # Selection settings
    selection_type: SelectionType = SelectionType.TOURNAMENT
    tournament_size: int = 2
    truncation_count: int = 2
    selection_pressure: float = 1.5
    elite_count: int = 1

    fitness_transform: FitnessTransform = FitnessTransform.NEGATIVE

    # Stopping
    early_stopping_generations: int | None = None
    time_limit: float | None = None

    random_seed: int | None = None

    def __post_init__(self) -> None:
        """Validate settings."""
        if isinstance(self.crossover_type, str):
            self.crossover_type = CrossoverType.from_string(self.crossover_type)
        if isinstance(self.selection_type, str):
            self.selection_type = SelectionType.from_string(self.selection_type)
        if isinstance(self.fitness_transform, str):
            self.fitness_transform = FitnessTransform.from_string(self.fitness_transform)

        if self.population_size < 1:
            msg = f"population_size must be >= 1, got {self.population_size}"
            raise ValueError(msg)

        if self.max_generations < 0:
            msg = f"max_generations must be >= 0, got {self.max_generations}"
            raise ValueError(msg)

        if not 0 < self.mutation_rate < 1:
            msg = f"mutation_rate must be in (0, 1), got {self.mutation_rate}"
            raise ValueError(msg)

        if self.crossover_rate < 0:
            msg = f"crossover_rate must be >= 0, got {self.crossover_rate}"
            raise ValueError(msg)

        if self.tournament_size < 1:
            msg = f"tournament_size must be >= 1, got {self.tournament_size}"
            raise ValueError(msg)

        if self.truncation_count < 1:
            msg = f"truncation_count must be >= 1, got {self.truncation_count}"
            raise ValueError(msg)

        if not 1.0 <= self.selection_pressure <= 2.0:
            msg = f"selection_pressure must be in [1, 2], got {self.selection_pressure}"
            raise ValueError(msg)

        if not 0 <= self.elite_count < self.population_size:
            msg = f"elite_count ({self.elite_count}) must be in [0, population_size ({self.population_size}))"
            raise ValueError(msg)

        if self.early_stopping_generations is not None and self.early_stopping_generations < 1:
            msg = f"early_stopping_generations must be >= 1, got {self.early_stopping_generations}"
            raise ValueError(msg)

        if self.time_limit is not None and self.time_limit <= 0:
            msg = f"time_limit must be > 0, got {self.time_limit}"
            raise ValueError(msg)


@dataclass
class SamplingSettings(_SettingsMixin):
    """Constructive sampling configuration.

    Attributes:
        method: Sampling method.
        exponent: Polynomial bias exponent for VBSS.
        beta: Acceptance band width for acceptance-band sampling, in [0, 1].
        num_samples: Number of solutions constructed per run.
        random_seed: Random seed for reproducibility.
    """

    method: SamplingMethod = SamplingMethod.VBSS
    exponent: float = 1.0
    beta: float = 0.1
    num_samples: int = 100
    random_seed: int | None = None

    def __post_init__(self) -> None:
        """Validate settings."""
        if isinstance(self.method, str):
            self.method = SamplingMethod.from_string(self.method)

        if not 0.0 <= self.beta <= 1.0:
            msg = f"beta must be in [0, 1], got {self.beta}"
            raise ValueError(msg)

        if self.num_samples < 1:
            msg = f"num_samples must be >= 1, got {self.num_samples}"
            raise ValueError(msg)


# =============================================================================
# Presets
# =============================================================================


def get_quick_settings() -> EvolutionSettings:
    """Get settings preset for quick experiments.

    Small population, few generations, early stopping.
    """
    return EvolutionSettings(
        population_size=20,
        max_generations=30,
        elite_count=1,
        early_stopping_generations=10,
    )


def get_thorough_settings() -> EvolutionSettings:
    """Get settings preset for thorough optimization.

    Large population, many generations, extensive search.
    """
    return EvolutionSettings(
        population_size=100,
        max_generations=500,
        crossover_type=CrossoverType.UNIFORM,
        tournament_size=3,
        elite_count=2,
        early_stopping_generations=100,
    )


# =============================================================================
# Builders
# =============================================================================


def build_genetic_algorithm(
    settings: EvolutionSettings,
    fitness: FitnessFunction | Problem,
    bit_length: int,
    tracker: ProgressTracker = NEW_TRACKER,
) -> GeneticAlgorithm:
    """Build a bit-vector genetic algorithm from settings.

    Args:
        settings: Evolution settings.
        fitness: Fitness function, or a problem to wrap with
            ``settings.fitness_transform``.
        bit_length: Length of the bit vectors.
        tracker: Shared progress tracker. A new one is created if omitted.

    Returns:
        Configured GeneticAlgorithm. Run it with
        ``ga.optimize(settings.max_generations)``.
    """
    if not isinstance(fitness, FitnessFunction):
        fitness = create_fitness_function(settings.fitness_transform.value, fitness)

    rng = ensure_rng(settings.random_seed)
    selection = create_selection_operator(
        settings.selection_type.value,
        tournament_size=settings.tournament_size,
        selection_pressure=settings.selection_pressure,
        truncation_count=settings.truncation_count,
        rng=spawn_rng(rng),
    )
    crossover = create_crossover_operator(settings.crossover_type.value, rng=spawn_rng(rng))

    logger.debug("Building GeneticAlgorithm from %s", settings)
    return GeneticAlgorithm(
        settings.population_size,
        bit_length,
        fitness,
        settings.mutation_rate,
        crossover,
        settings.crossover_rate,
        selection,
        elite_count=settings.elite_count,
        tracker=tracker,
        rng=rng,
        time_limit=settings.time_limit,
        early_stopping_generations=settings.early_stopping_generations,
    )


def build_sampler(
    settings: SamplingSettings,
    heuristic: ConstructiveHeuristic,
    tracker: ProgressTracker = NEW_TRACKER,
) -> ConstructiveSampler:
    """Build a constructive sampler from settings.

    Run it with ``sampler.optimize(settings.num_samples)``.
    """
    return create_sampler(
        settings.method.value,
        heuristic,
        exponent=settings.exponent,
        beta=settings.beta,
        tracker=tracker,
        rng=settings.random_seed,
    )


__all__ = [
    # Enums
    "SelectionType",
    "CrossoverType",
    "FitnessTransform",
    "SamplingMethod",
    # Settings
    "EvolutionSettings",
    "SamplingSettings",
    # Presets and builders
    "get_quick_settings",
    "get_thorough_settings",
    "build_genetic_algorithm",
    "build_sampler",
]
