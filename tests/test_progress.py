"""
Tests for SolutionCostPair and the shared ProgressTracker.
"""

import math
import threading
import unittest

import numpy as np

from stochsearch.progress import NEW_TRACKER, ProgressTracker, SolutionCostPair, resolve_tracker
from stochsearch.utils.common import MissingDependencyError


class TestSolutionCostPair(unittest.TestCase):
    def test_fields(self):
        pair = SolutionCostPair("abc", 5, known_optimal=True)
        self.assertEqual(pair.solution, "abc")
        self.assertEqual(pair.cost, 5)
        self.assertTrue(pair.known_optimal)
        self.assertEqual(pair.cost_double, 5.0)
        self.assertTrue(pair.contains_int_cost)
        self.assertFalse(SolutionCostPair("x", 2.5).contains_int_cost)

    def test_ordering_by_cost(self):
        pairs = [SolutionCostPair("a", 3), SolutionCostPair("b", 1), SolutionCostPair("c", 2)]
        self.assertEqual(min(pairs).solution, "b")

    def test_frozen(self):
        pair = SolutionCostPair("a", 1)
        with self.assertRaises(AttributeError):
            pair.cost = 0

    def test_copy_detaches_solution(self):
        pair = SolutionCostPair(np.arange(4), 3, known_optimal=True)
        clone = pair.copy()
        clone.solution[0] = 9
        self.assertEqual(pair.solution[0], 0)
        self.assertEqual(clone.cost, 3)
        self.assertTrue(clone.known_optimal)


class TestResolveTracker(unittest.TestCase):
    def test_default_creates_tracker(self):
        first = resolve_tracker(NEW_TRACKER)
        self.assertIsInstance(first, ProgressTracker)
        self.assertIsNot(first, resolve_tracker(NEW_TRACKER))

    def test_given_tracker_is_kept(self):
        tracker = ProgressTracker()
        self.assertIs(resolve_tracker(tracker), tracker)

    def test_none_rejected(self):
        with self.assertRaises(MissingDependencyError):
            resolve_tracker(None)


class TestProgressTracker(unittest.TestCase):
    def test_initial_state(self):
        tracker = ProgressTracker()
        self.assertEqual(tracker.cost, math.inf)
        self.assertIsNone(tracker.solution)
        self.assertIsNone(tracker.solution_cost_pair)
        self.assertFalse(tracker.did_find_best)
        self.assertFalse(tracker.is_stopped)

    def test_only_strictly_better_accepted(self):
        tracker = ProgressTracker()
        self.assertEqual(tracker.update(10, "first"), 10)
        self.assertEqual(tracker.update(10, "tie"), 10)
        self.assertEqual(tracker.solution, "first")
        self.assertEqual(tracker.update(12, "worse"), 10)
        self.assertEqual(tracker.solution, "first")
        self.assertEqual(tracker.update(7, "better"), 7)
        self.assertEqual(tracker.solution, "better")

    def test_update_pair_and_snapshot(self):
        tracker = ProgressTracker()
        tracker.update_pair(SolutionCostPair("s", 3))
        snapshot = tracker.solution_cost_pair
        self.assertEqual(snapshot.solution, "s")
        self.assertEqual(snapshot.cost, 3)
        self.assertTrue(tracker.contains_int_cost)
        self.assertEqual(tracker.cost_double, 3.0)

    def test_known_optimal_sets_found_best(self):
        tracker = ProgressTracker()
        tracker.update(5, "a")
        self.assertFalse(tracker.did_find_best)
        tracker.update(0, "b", known_optimal=True)
        self.assertTrue(tracker.did_find_best)

    def test_rejected_update_does_not_set_found_best(self):
        tracker = ProgressTracker()
        tracker.update(0, "a")
        tracker.update(0, "b", known_optimal=True)
        self.assertFalse(tracker.did_find_best)
        tracker.set_found_best()
        self.assertTrue(tracker.did_find_best)

    def test_stop_and_start(self):
        tracker = ProgressTracker()
        tracker.stop()
        self.assertTrue(tracker.is_stopped)
        tracker.start()
        self.assertFalse(tracker.is_stopped)

    def test_elapsed_recorded_on_improvement(self):
        tracker = ProgressTracker()
        self.assertEqual(tracker.elapsed(), 0.0)
        tracker.update(1, "a")
        first = tracker.elapsed()
        self.assertGreaterEqual(first, 0.0)
        tracker.update(2, "worse")
        self.assertEqual(tracker.elapsed(), first)

    def test_concurrent_updates_keep_minimum(self):
        tracker = ProgressTracker()

        def worker(offset):
            for cost in range(1000 + offset, offset, -1):
                tracker.update(cost, f"s{cost}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        pair = tracker.solution_cost_pair
        self.assertEqual(pair.cost, 1)
        self.assertEqual(pair.solution, "s1")


if __name__ == "__main__":
    unittest.main()
