from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from scipy import stats

from .utils.common import ensure_numpy

if TYPE_CHECKING:
    from numpy.typing import NDArray


logger = logging.getLogger(__name__)


@dataclass
class GenerationStats:
    """Statistics for a single generation.

    Attributes:
        generation: Generation number (1 for the first generation after init).
        best_fitness: Best fitness in generation.
        mean_fitness: Mean fitness of population.
        std_fitness: Standard deviation of fitness.
        median_fitness: Median fitness.
        min_fitness: Minimum fitness.
        iqr_fitness: Interquartile range of fitness.
        best_ever: Best fitness observed since the population was initialized.
        elapsed_time: Seconds since the run started.
    """

    generation: int
    best_fitness: float
    mean_fitness: float
    std_fitness: float
    median_fitness: float
    min_fitness: float
    iqr_fitness: float = 0.0
    best_ever: float = float("-inf")
    elapsed_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "generation": self.generation,
            "best_fitness": self.best_fitness,
            "mean_fitness": self.mean_fitness,
            "std_fitness": self.std_fitness,
            "median_fitness": self.median_fitness,
            "min_fitness": self.min_fitness,
            "iqr_fitness": self.iqr_fitness,
            "best_ever": self.best_ever,
            "elapsed_time": self.elapsed_time,
        }


def compute_generation_stats(
    fitnesses: NDArray,
    generation: int,
    best_ever: float,
    elapsed_time: float = 0.0,
) -> GenerationStats:
    """Summarize a population fitness vector.

    Args:
        fitnesses: Fitness of each population member.
        generation: Generation number.
        best_ever: Best fitness observed so far in the run.
        elapsed_time: Seconds since the run started.

    Returns:
        GenerationStats for the generation.
    """
    values = ensure_numpy(fitnesses).astype(np.float64)
    return GenerationStats(
        generation=generation,
        best_fitness=float(np.max(values)),
        mean_fitness=float(np.mean(values)),
        std_fitness=float(np.std(values)),
        median_fitness=float(np.median(values)),
        min_fitness=float(np.min(values)),
        iqr_fitness=float(stats.iqr(values)),
        best_ever=float(best_ever),
        elapsed_time=elapsed_time,
    )


class ConvergenceAnalyzer:
    """Analyzes optimization convergence patterns."""

    def __init__(
        self,
        window_size: int = 5,
        improvement_threshold: float = 1e-4,
    ) -> None:
        """Initialize convergence analyzer."""
        if window_size < 1:
            msg = f"window_size must be >= 1, got {window_size}"
            raise ValueError(msg)
        self.window_size = window_size
        self.improvement_threshold = improvement_threshold

    def compute_convergence_metrics(
        self,
        generation_history: list[GenerationStats],
    ) -> dict[str, Any]:
        """Compute convergence metrics from generation history."""
        if not generation_history:
            return {}

        best_ever = np.array([g.best_ever for g in generation_history])
        mean_fitness = np.array([g.mean_fitness for g in generation_history])
        spread = np.array([g.iqr_fitness for g in generation_history])

        n_gens = len(best_ever)
        improvements = np.diff(best_ever)

        converged_gen = None
        for i in range(self.window_size, len(improvements) + 1):
            window = improvements[i - self.window_size : i]
            if np.max(np.abs(window)) < self.improvement_threshold:
                converged_gen = generation_history[i - self.window_size].generation
                break

        if converged_gen is not None:
            logger.debug("Best-ever fitness flat since generation %d", converged_gen)

        if len(improvements) >= self.window_size:
            moving_avg = np.convolve(
                improvements, np.ones(self.window_size) / self.window_size, mode="valid"
            )
        else:
            moving_avg = np.array([])

        total_improvement = best_ever[-1] - best_ever[0]
        mean_improvement_rate = total_improvement / max(n_gens - 1, 1)

        if spread[0] > 0:
            spread_loss = (spread[0] - spread[-1]) / spread[0]
        else:
            spread_loss = 0.0

        return {
            "n_generations": n_gens,
            "total_improvement": float(total_improvement),
            "mean_improvement_rate": float(mean_improvement_rate),
            "converged_generation": converged_gen,
            "final_best_fitness": float(best_ever[-1]),
            "final_mean_fitness": float(mean_fitness[-1]),
            "spread_loss": float(spread_loss),
            "improvement_history": improvements.tolist(),
            "moving_avg_improvement": moving_avg.tolist(),
        }
