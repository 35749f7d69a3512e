"""stochsearch: stochastic search algorithms.

Provides a generational evolutionary algorithm (with a bit-vector genetic
algorithm specialization) and stochastic sampling over constructive
heuristics (value-biased stochastic sampling and acceptance-band sampling).

Example:
    >>> from stochsearch import (
    ...     GeneticAlgorithm, NegativeIntegerCostFitnessFunction,
    ...     SinglePointCrossover, TournamentSelection,
    ... )
    >>> ga = GeneticAlgorithm(
    ...     n=50,
    ...     initializer=32,
    ...     fitness=NegativeIntegerCostFitnessFunction(problem),
    ...     mutation_rate=1 / 32,
    ...     crossover=SinglePointCrossover(),
    ...     crossover_rate=0.9,
    ...     selection=TournamentSelection(2),
    ...     elite_count=1,
    ... )
    >>> best = ga.optimize(100)
"""

from .constructive import (
    AcceptanceBandSampling,
    ConstructiveHeuristic,
    ConstructiveSampler,
    HeuristicSolutionGenerator,
    IncrementalEvaluation,
    Partial,
    PartialPermutation,
    ValueBiasedStochasticSampling,
    create_sampler,
)
from .fitness import (
    DoubleFitnessFunction,
    FitnessFunction,
    IntegerFitnessFunction,
    InverseCostFitnessFunction,
    NegativeCostFitnessFunction,
    NegativeIntegerCostFitnessFunction,
    create_fitness_function,
)
from .genetic_algorithm import GenerationalEvolutionaryAlgorithm, GeneticAlgorithm
from .operators import (
    BitFlipMutation,
    BitVectorInitializer,
    BlockInterchangeMutation,
    CrossoverOperator,
    Initializer,
    MutationOperator,
    PermutationInitializer,
    ScrambleMutation,
    SinglePointCrossover,
    TwoPointCrossover,
    UniformCrossover,
    create_crossover_operator,
)
from .optimization_config import (
    CrossoverType,
    EvolutionSettings,
    FitnessTransform,
    SamplingMethod,
    SamplingSettings,
    SelectionType,
    build_genetic_algorithm,
    build_sampler,
    get_quick_settings,
    get_thorough_settings,
)
from .population import (
    DoublePopulation,
    IntegerPopulation,
    Population,
    PopulationState,
    create_population,
)
from .problems import IntegerCostOptimizationProblem, OptimizationProblem, Problem
from .progress import ProgressTracker, SolutionCostPair
from .results import ConvergenceAnalyzer, GenerationStats, compute_generation_stats
from .selection import (
    BoltzmannSelection,
    ExponentialCooling,
    FitnessProportionalSelection,
    LinearCooling,
    LinearRankSelection,
    RandomSelection,
    SelectionOperator,
    StochasticUniversalSampling,
    TournamentSelection,
    TruncationSelection,
    create_selection_operator,
)
from .utils.common import MissingDependencyError

__version__ = "0.1.0"

__all__ = [
    # Problems and results
    "Problem",
    "OptimizationProblem",
    "IntegerCostOptimizationProblem",
    "SolutionCostPair",
    "ProgressTracker",
    "MissingDependencyError",
    # Fitness
    "FitnessFunction",
    "DoubleFitnessFunction",
    "IntegerFitnessFunction",
    "InverseCostFitnessFunction",
    "NegativeCostFitnessFunction",
    "NegativeIntegerCostFitnessFunction",
    "create_fitness_function",
    # Selection
    "SelectionOperator",
    "FitnessProportionalSelection",
    "StochasticUniversalSampling",
    "TournamentSelection",
    "TruncationSelection",
    "RandomSelection",
    "LinearRankSelection",
    "BoltzmannSelection",
    "ExponentialCooling",
    "LinearCooling",
    "create_selection_operator",
    # Operators
    "Initializer",
    "MutationOperator",
    "CrossoverOperator",
    "BitVectorInitializer",
    "BitFlipMutation",
    "PermutationInitializer",
    "ScrambleMutation",
    "BlockInterchangeMutation",
    "SinglePointCrossover",
    "TwoPointCrossover",
    "UniformCrossover",
    "create_crossover_operator",
    # Population and algorithms
    "Population",
    "DoublePopulation",
    "IntegerPopulation",
    "PopulationState",
    "create_population",
    "GenerationalEvolutionaryAlgorithm",
    "GeneticAlgorithm",
    # Constructive search
    "ConstructiveHeuristic",
    "IncrementalEvaluation",
    "Partial",
    "PartialPermutation",
    "ConstructiveSampler",
    "ValueBiasedStochasticSampling",
    "AcceptanceBandSampling",
    "HeuristicSolutionGenerator",
    "create_sampler",
    # Configuration
    "SelectionType",
    "CrossoverType",
    "FitnessTransform",
    "SamplingMethod",
    "EvolutionSettings",
    "SamplingSettings",
    "get_quick_settings",
    "get_thorough_settings",
    "build_genetic_algorithm",
    "build_sampler",
    # Results
    "GenerationStats",
    "ConvergenceAnalyzer",
    "compute_generation_stats",
]
