"""
Tests for partial permutations and the constructive samplers.
"""

import math
import unittest

import numpy as np

from stochsearch.constructive.heuristics import (
    ConstructiveHeuristic,
    IncrementalEvaluation,
    PartialPermutation,
)
from stochsearch.constructive.sampling import (
    AcceptanceBandSampling,
    HeuristicSolutionGenerator,
    ValueBiasedStochasticSampling,
    create_sampler,
)
from stochsearch.problems import IntegerCostOptimizationProblem, OptimizationProblem
from stochsearch.progress import NEW_TRACKER, ProgressTracker
from stochsearch.utils.common import MissingDependencyError


class IntProblem(IntegerCostOptimizationProblem):
    """Sum of the elements plus the length: n(n+1)/2 for any permutation."""

    def cost(self, candidate):
        return int(np.sum(candidate)) + len(candidate)


class DoubleProblem(OptimizationProblem):
    def cost(self, candidate):
        return float(np.sum(candidate)) + len(candidate)


class SumEvaluation(IncrementalEvaluation):
    def __init__(self):
        self.total = 0
        self.calls = 0

    def extend(self, partial, element):
        self.total += element + 1
        self.calls += 1


class EvenFirstHeuristic(ConstructiveHeuristic):
    """Prefers even elements (largest first), then odd ones (largest first)."""

    def __init__(self, problem, n, incremental=True):
        self._problem = problem
        self.n = n
        self.incremental = incremental
        self.evaluations = []

    def h(self, partial, element, inc_eval):
        return 20 + element if element % 2 == 0 else element

    def create_incremental_evaluation(self):
        if not self.incremental:
            return None
        evaluation = SumEvaluation()
        self.evaluations.append(evaluation)
        return evaluation

    def complete_length(self):
        return self.n

    @property
    def problem(self):
        return self._problem


class NoProblemHeuristic(EvenFirstHeuristic):
    def __init__(self):
        super().__init__(None, 3)


def _samplers(heuristic, tracker=NEW_TRACKER):
    return [
        ValueBiasedStochasticSampling(heuristic, tracker=tracker, rng=0),
        ValueBiasedStochasticSampling(heuristic, exponent=2.0, tracker=tracker, rng=0),
        ValueBiasedStochasticSampling(heuristic, bias=lambda v: v * v, tracker=tracker, rng=0),
        AcceptanceBandSampling(heuristic, tracker=tracker, rng=0),
        AcceptanceBandSampling(heuristic, beta=0.0, tracker=tracker, rng=0),
        AcceptanceBandSampling(heuristic, beta=1.0, tracker=tracker, rng=0),
        HeuristicSolutionGenerator(heuristic, tracker=tracker),
    ]


class TestPartialPermutation(unittest.TestCase):
    def test_extend_by_remaining_index(self):
        p = PartialPermutation(4)
        self.assertEqual(p.num_extensions(), 4)
        self.assertEqual(p.get_extension(1), 1)
        p.extend(1)
        self.assertEqual(p.size(), 1)
        self.assertEqual(p.get(0), 1)
        self.assertEqual(p.get_last(), 1)
        self.assertEqual(p.num_extensions(), 3)
        remaining = sorted(p.get_extension(i) for i in range(p.num_extensions()))
        self.assertEqual(remaining, [0, 2, 3])

    def test_complete(self):
        p = PartialPermutation(3)
        while not p.is_complete():
            p.extend(p.num_extensions() - 1)
        np.testing.assert_array_equal(p.to_complete(), [2, 1, 0])
        self.assertEqual(len(p), 3)

    def test_to_complete_fills_remaining(self):
        p = PartialPermutation(4)
        p.extend(2)
        self.assertEqual(sorted(p.to_complete().tolist()), [0, 1, 2, 3])
        self.assertEqual(p.to_complete()[0], 2)

    def test_index_errors(self):
        p = PartialPermutation(2)
        with self.assertRaises(IndexError):
            p.get_last()
        with self.assertRaises(IndexError):
            p.extend(2)
        with self.assertRaises(IndexError):
            p.get(0)

    def test_empty(self):
        p = PartialPermutation(0)
        self.assertTrue(p.is_complete())
        self.assertEqual(len(p.to_complete()), 0)


class TestSamplerContract(unittest.TestCase):
    """Run length, tracker and split behavior shared by every sampler."""

    def test_int_costs(self):
        for n in range(10):
            problem = IntProblem()
            for sampler in _samplers(EvenFirstHeuristic(problem, n)):
                self.assertEqual(sampler.total_run_length, 0)
                self.assertIs(sampler.problem, problem)
                tracker = sampler.progress_tracker
                solution = sampler.optimize()
                self.assertEqual(sampler.total_run_length, 1)
                self.assertEqual(solution.cost, (n + 1) * n // 2)
                self.assertIsInstance(solution.cost, int)
                self.assertEqual(tracker.cost, (n + 1) * n // 2)
                self.assertEqual(len(solution.solution), n)
                self.assertEqual(sorted(solution.solution.tolist()), list(range(n)))
                solution = sampler.optimize()
                self.assertEqual(sampler.total_run_length, 2)
                self.assertEqual(solution.cost, (n + 1) * n // 2)

    def test_double_costs(self):
        for n in range(10):
            for sampler in _samplers(EvenFirstHeuristic(DoubleProblem(), n)):
                solution = sampler.optimize()
                self.assertAlmostEqual(solution.cost_double, (n + 1) * n / 2)
                self.assertAlmostEqual(sampler.progress_tracker.cost_double, (n + 1) * n / 2)

    def test_multiple_samples(self):
        for n in range(10):
            for sampler in _samplers(EvenFirstHeuristic(IntProblem(), n)):
                solution = sampler.optimize(5)
                self.assertEqual(sampler.total_run_length, 5)
                self.assertEqual(solution.cost, (n + 1) * n // 2)
                sampler.optimize(2)
                self.assertEqual(sampler.total_run_length, 7)

    def test_supplied_tracker(self):
        tracker = ProgressTracker()
        for sampler in _samplers(EvenFirstHeuristic(IntProblem(), 5), tracker=tracker):
            self.assertIs(sampler.progress_tracker, tracker)
            sampler.optimize()
            self.assertEqual(tracker.cost, 15)

    def test_tracker_setter(self):
        for sampler in _samplers(EvenFirstHeuristic(IntProblem(), 4)):
            tracker = ProgressTracker()
            sampler.progress_tracker = tracker
            self.assertIs(sampler.progress_tracker, tracker)
            with self.assertRaises(MissingDependencyError):
                sampler.progress_tracker = None

    def test_split(self):
        for n in range(10):
            for original in _samplers(EvenFirstHeuristic(IntProblem(), n)):
                original.optimize()
                sampler = original.split()
                self.assertIs(type(sampler), type(original))
                self.assertEqual(sampler.total_run_length, 0)
                self.assertIs(sampler.progress_tracker, original.progress_tracker)
                self.assertIs(sampler.problem, original.problem)
                solution = sampler.optimize()
                self.assertEqual(sampler.total_run_length, 1)
                self.assertEqual(original.total_run_length, 1)
                self.assertEqual(solution.cost, (n + 1) * n // 2)

    def test_null_incremental_evaluation(self):
        for n in range(4):
            for sampler in _samplers(EvenFirstHeuristic(IntProblem(), n, incremental=False)):
                solution = sampler.optimize()
                self.assertEqual(solution.cost, (n + 1) * n // 2)

    def test_incremental_evaluation_sees_every_element(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 6)
        ValueBiasedStochasticSampling(heuristic, rng=1).optimize()
        evaluation = heuristic.evaluations[-1]
        self.assertEqual(evaluation.calls, 6)
        self.assertEqual(evaluation.total, 21)

    def test_stopped_tracker(self):
        tracker = ProgressTracker()
        tracker.stop()
        for sampler in _samplers(EvenFirstHeuristic(IntProblem(), 5), tracker=tracker):
            self.assertIsNone(sampler.optimize(3))
            self.assertEqual(sampler.total_run_length, 0)

    def test_found_best_tracker(self):
        tracker = ProgressTracker()
        tracker.update(0, "optimal", known_optimal=True)
        for sampler in _samplers(EvenFirstHeuristic(IntProblem(), 5), tracker=tracker):
            self.assertIsNone(sampler.optimize())

    def test_count_must_be_positive(self):
        sampler = HeuristicSolutionGenerator(EvenFirstHeuristic(IntProblem(), 3))
        with self.assertRaises(ValueError):
            sampler.optimize(0)

    def test_missing_heuristic_or_problem(self):
        with self.assertRaises(MissingDependencyError):
            ValueBiasedStochasticSampling(None)
        with self.assertRaises(MissingDependencyError):
            AcceptanceBandSampling(NoProblemHeuristic(), 0.5)

    def test_explicit_none_tracker(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 3)
        with self.assertRaises(MissingDependencyError):
            ValueBiasedStochasticSampling(heuristic, tracker=None)
        with self.assertRaises(MissingDependencyError):
            AcceptanceBandSampling(heuristic, 0.5, None)
        with self.assertRaises(MissingDependencyError):
            HeuristicSolutionGenerator(heuristic, tracker=None)
        for method in ("vbss", "acceptance_band", "heuristic"):
            with self.assertRaises(MissingDependencyError):
                create_sampler(method, heuristic, tracker=None)

    def test_omitted_tracker_is_private(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 3)
        a = ValueBiasedStochasticSampling(heuristic)
        b = ValueBiasedStochasticSampling(heuristic)
        self.assertIsInstance(a.progress_tracker, ProgressTracker)
        self.assertIsNot(a.progress_tracker, b.progress_tracker)

    def test_result_does_not_alias_tracker(self):
        for sampler in _samplers(EvenFirstHeuristic(IntProblem(), 5)):
            tracker = sampler.progress_tracker
            solution = sampler.optimize()
            recorded = tracker.solution.copy()
            self.assertIsNot(solution.solution, tracker.solution)
            solution.solution[:] = -1
            np.testing.assert_array_equal(tracker.solution, recorded)
            self.assertEqual(sorted(tracker.solution.tolist()), list(range(5)))


class TestValueBiasedStochasticSampling(unittest.TestCase):
    def setUp(self):
        self.vbss = ValueBiasedStochasticSampling(EvenFirstHeuristic(IntProblem(), 8), rng=0)

    def test_exponential_bias(self):
        bias = ValueBiasedStochasticSampling.create_exponential_bias(0.25)
        expected = [1.0, math.e, math.exp(2), math.exp(3)]
        for v, e in zip(range(0, 13, 4), expected):
            self.assertAlmostEqual(bias(v), e, places=10)

    def test_adjust_for_bias(self):
        for n in range(2, 8):
            for k in range(2, n + 1):
                values = np.zeros(n)
                for i in range(k):
                    values[k - 1 - i] = 2.0**i
                self.vbss.adjust_for_bias(values, k)
                self.assertAlmostEqual(values[k - 1], 1.0, places=10)
                for i in range(k - 3, -1, -1):
                    self.assertAlmostEqual(
                        2 * (values[i + 2] - values[i + 1]),
                        values[i + 1] - values[i],
                        places=10,
                    )

    def test_adjust_for_bias_all_zero_is_uniform(self):
        values = np.zeros(4)
        self.vbss.adjust_for_bias(values, 4)
        np.testing.assert_allclose(values, [0.25, 0.5, 0.75, 1.0])

    def test_select(self):
        for n in range(2, 8):
            for k in range(2, n + 1):
                inc = 1.0 / k
                values = np.zeros(n)
                values[0] = inc
                for i in range(1, k):
                    values[i] = values[i - 1] + inc
                u = 0.0
                for i in range(k):
                    self.assertEqual(self.vbss.select(values, k, u), i)
                    u += inc
                u = inc / 2
                for i in range(k):
                    self.assertEqual(self.vbss.select(values, k, u), i)
                    u += inc
                u = 1.0 - 1e-10
                for i in range(k - 1, -1, -1):
                    self.assertEqual(self.vbss.select(values, k, u), i)
                    u -= inc

    def test_select_past_end(self):
        values = np.array([0.5, 1.0])
        self.assertEqual(self.vbss.select(values, 2, 1.0), 1)

    def test_higher_values_chosen_more_often(self):
        counts = np.zeros(3, dtype=int)
        for _ in range(3000):
            values = np.array([1.0, 1.0, 2.0])
            counts[self.vbss._choose_extension(values, 3)] += 1
        self.assertAlmostEqual(counts[2] / 3000, 0.5, delta=0.05)


class TestAcceptanceBandSampling(unittest.TestCase):
    """``choose`` with values that are exactly representable."""

    def _sampler(self, beta):
        return AcceptanceBandSampling(EvenFirstHeuristic(IntProblem(), 10), beta, rng=0)

    def _choose(self, sampler, values, k):
        n = len(values)
        eq = np.full(n, -1, dtype=np.intp)
        chosen = sampler.choose(values, k, float(np.max(values[:k])), eq)
        return chosen, eq

    def _increasing(self, n, k):
        values = np.full(n, 99999.0)
        values[:k] = np.arange(1, k + 1)
        return values

    def _decreasing(self, n, k):
        values = np.full(n, 99999.0)
        values[:k] = np.arange(k, 0, -1)
        return values

    def test_beta_validation(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 3)
        for beta in (-0.000001, 1.000001):
            with self.assertRaises(ValueError):
                AcceptanceBandSampling(heuristic, beta)

    def test_beta_one_accepts_all(self):
        sampler = self._sampler(1.0)
        for n in range(1, 11):
            for k in range(1, n + 1):
                for values in (self._increasing(n, k), self._decreasing(n, k)):
                    for _ in range(10):
                        chosen, eq = self._choose(sampler, values, k)
                        self.assertTrue(0 <= chosen < k)
                        np.testing.assert_array_equal(eq[:k], np.arange(k))
                        self.assertTrue(np.all(eq[k:] == -1))

    def test_beta_zero_accepts_only_best(self):
        sampler = self._sampler(0.0)
        for n in range(1, 11):
            for k in range(1, n + 1):
                chosen, eq = self._choose(sampler, self._increasing(n, k), k)
                self.assertEqual(chosen, k - 1)
                self.assertEqual(eq[0], k - 1)
                self.assertTrue(np.all(eq[1:] == -1))

                chosen, eq = self._choose(sampler, self._decreasing(n, k), k)
                self.assertEqual(chosen, 0)
                self.assertEqual(eq[0], 0)
                self.assertTrue(np.all(eq[1:] == -1))

    def test_beta_zero_keeps_ties(self):
        sampler = self._sampler(0.0)
        values = np.array([1.0, 3.0, 2.0, 3.0, 0.0])
        seen = set()
        for _ in range(50):
            chosen, eq = self._choose(sampler, values, 5)
            np.testing.assert_array_equal(eq, [1, 3, -1, -1, -1])
            seen.add(chosen)
        self.assertEqual(seen, {1, 3})

    def _tenths(self, n, k, decreasing=False):
        values = np.full(n, 99999.0)
        h_max = 0.1 * k
        if decreasing:
            values[:k] = h_max - 0.1 * np.arange(k)
        else:
            values[:k] = 0.1 * np.arange(1, k + 1)
        return values

    def test_beta_half(self):
        sampler = self._sampler(0.5)
        for n in range(1, 11):
            for k in range(1, n + 1):
                # band is [h_max / 2, h_max]
                accepted = (k + 2) // 2
                first = (k - 1) // 2
                for _ in range(10):
                    chosen, eq = self._choose(sampler, self._tenths(n, k), k)
                    self.assertTrue(first <= chosen < k)
                    np.testing.assert_array_equal(eq[:accepted], np.arange(accepted) + first)
                    self.assertTrue(np.all(eq[accepted:] == -1))

                    chosen, eq = self._choose(sampler, self._tenths(n, k, decreasing=True), k)
                    self.assertTrue(0 <= chosen < accepted)
                    np.testing.assert_array_equal(eq[:accepted], np.arange(accepted))
                    self.assertTrue(np.all(eq[accepted:] == -1))

    def test_band_is_relative_to_best_value(self):
        sampler = self._sampler(0.5)
        values = np.array([10.0, 4.0, 6.0, 5.0, 9.0])
        for _ in range(20):
            chosen, eq = self._choose(sampler, values, 5)
            np.testing.assert_array_equal(eq, [0, 2, 3, 4, -1])
            self.assertIn(chosen, (0, 2, 3, 4))


class TestHeuristicSolutionGenerator(unittest.TestCase):
    def test_greedy_order(self):
        sampler = HeuristicSolutionGenerator(EvenFirstHeuristic(IntProblem(), 6))
        solution = sampler.optimize()
        np.testing.assert_array_equal(solution.solution, [4, 2, 0, 5, 3, 1])

    def test_deterministic(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 7)
        a = HeuristicSolutionGenerator(heuristic).optimize().solution
        b = HeuristicSolutionGenerator(heuristic).optimize().solution
        np.testing.assert_array_equal(a, b)


class TestCreateSampler(unittest.TestCase):
    def test_methods(self):
        heuristic = EvenFirstHeuristic(IntProblem(), 3)
        self.assertIsInstance(create_sampler("vbss", heuristic), ValueBiasedStochasticSampling)
        sampler = create_sampler("acceptance_band", heuristic, beta=0.3)
        self.assertIsInstance(sampler, AcceptanceBandSampling)
        self.assertEqual(sampler.beta, 0.3)
        self.assertIsInstance(create_sampler("heuristic", heuristic), HeuristicSolutionGenerator)
        with self.assertRaises(ValueError):
            create_sampler("beam", heuristic)


if __name__ == "__main__":
    unittest.main()
