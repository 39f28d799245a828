"""
Tests for the annealer, the parallel search coordinator and the divider
"""

import threading
import unittest
import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from grouping.annealer import Annealer
from grouping.data_models import Category, Individual
from grouping.divider import divide_population, run_division
from grouping.initial_partition import InitialPartitionBuilder
from grouping.parallel_search import ParallelSearchCoordinator, default_instance_count
from grouping.parameters import DivideConfig, OptimizationParameters
from grouping.partition import Partition
from grouping.sample_data import sample_population
from grouping.validation import validate_constraints


ATTRIBUTES = ("math", "english", "physics")


def seed_partition(population, num_groups):
    return InitialPartitionBuilder(population, num_groups).build()


class TestAnnealer(unittest.TestCase):
    """Test single-instance simulated annealing"""

    def setUp(self):
        self.population = sample_population(30, attributes=ATTRIBUTES, seed=4)
        self.params = OptimizationParameters()

    def test_fixed_seed_is_deterministic(self):
        first = Annealer(seed_partition(self.population, 3), self.params, 5000, seed=9).run()
        second = Annealer(seed_partition(self.population, 3), self.params, 5000, seed=9).run()
        self.assertEqual(first.assignments, second.assignments)

    def test_best_cost_never_exceeds_start(self):
        initial = seed_partition(self.population, 3)
        start_cost = initial.cost(self.params)
        annealer = Annealer(initial, self.params, 5000, seed=1)
        best = annealer.run()

        self.assertLessEqual(best.cost(self.params), start_cost)
        self.assertAlmostEqual(annealer.metrics["best_cost"], best.cost(self.params),
                               delta=1e-6 * max(1.0, abs(start_cost)))

    def test_result_keeps_sizes_and_membership(self):
        initial = seed_partition(self.population, 3)
        sizes = initial.group_sizes()
        best = Annealer(initial, self.params, 3000, seed=2).run()

        self.assertTrue(best.is_complete())
        self.assertEqual(best.group_sizes(), sizes)
        self.assertEqual(sum(g.size for g in best.to_groups()), len(self.population))

    def test_metrics(self):
        annealer = Annealer(seed_partition(self.population, 3), self.params, 2000, seed=3)
        annealer.run()
        metrics = annealer.metrics

        self.assertEqual(metrics["iterations"], 2000)
        self.assertEqual(metrics["stop_reason"], "budget")
        self.assertEqual(metrics["skipped"], metrics["proposals"] - metrics["iterations"])
        self.assertGreaterEqual(metrics["proposals"], metrics["iterations"])
        self.assertLess(metrics["final_temperature"], metrics["start_temperature"] + 1e-9)

    def test_single_category_population(self):
        population = [
            Individual(name=f"p{i}", category=Category.PRIMARY, scores={"math": float(50 + i)})
            for i in range(12)
        ]
        best = Annealer(seed_partition(population, 3), self.params, 3000, seed=5).run()
        groups = best.to_groups()
        validation = validate_constraints(groups, self.params)

        self.assertEqual(validation.max_gender_ratio_diff, 0.0)
        self.assertTrue(validation.gender_constraints_met)

    def test_single_occupied_group_stops(self):
        partition = Partition.from_assignments(self.population, 2, [0] * len(self.population))
        annealer = Annealer(partition, self.params, 10_000, seed=1)
        best = annealer.run()

        self.assertEqual(annealer.metrics["stop_reason"], "no_moves")
        self.assertEqual(annealer.metrics["iterations"], 0)
        self.assertEqual(best.assignments, [0] * len(self.population))

    def test_only_degenerate_moves_stops(self):
        # each category confined to one group, same-category swaps only
        assignments = [0 if ind.is_primary else 1 for ind in self.population]
        partition = Partition.from_assignments(self.population, 2, assignments)
        params = replace(self.params, same_category_swap_probability=1.0)
        annealer = Annealer(partition, params, 10, seed=1)
        best = annealer.run()

        self.assertEqual(annealer.metrics["stop_reason"], "no_moves")
        self.assertEqual(annealer.metrics["iterations"], 0)
        self.assertEqual(best.assignments, assignments)

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()
        annealer = Annealer(seed_partition(self.population, 3), self.params, 100_000,
                            seed=1, cancel_event=cancel)
        annealer.run()

        self.assertEqual(annealer.metrics["stop_reason"], "cancelled")
        self.assertEqual(annealer.metrics["iterations"], 0)

    def test_early_stop_flag_observed(self):
        found = threading.Event()
        found.set()
        annealer = Annealer(seed_partition(self.population, 3), self.params, 100_000,
                            seed=1, found_good_solution=found)
        annealer.run()
        self.assertEqual(annealer.metrics["stop_reason"], "early_stop")

    def test_good_solution_sets_flag(self):
        params = replace(self.params, good_solution_threshold=float("inf"))
        found = threading.Event()
        annealer = Annealer(seed_partition(self.population, 3), params, 50_000,
                            seed=1, found_good_solution=found)
        annealer.run()

        self.assertTrue(found.is_set())
        self.assertEqual(annealer.metrics["stop_reason"], "early_stop")
        self.assertLess(annealer.metrics["iterations"], 50_000)

    def test_reheat(self):
        params = replace(self.params, reheat_after_iterations=10, reheat_min_accept_count=1000)
        annealer = Annealer(seed_partition(self.population, 3), params, 2000, seed=6)
        annealer.run()
        self.assertGreater(annealer.metrics["reheats"], 0)

    def test_custom_start_temperature(self):
        annealer = Annealer(seed_partition(self.population, 3), self.params, 10, start_temperature=123.0)
        self.assertEqual(annealer.start_temperature, 123.0)


class TestParallelSearchCoordinator(unittest.TestCase):
    """Test the multi-instance search"""

    def setUp(self):
        self.population = sample_population(40, attributes=ATTRIBUTES, seed=8)
        self.params = replace(OptimizationParameters(), num_parallel_instances=2)

    def test_thread_executor(self):
        coordinator = ParallelSearchCoordinator(
            self.population, 4, self.params, 2000, seed=1, executor="thread"
        )
        best = coordinator.run()

        self.assertTrue(best.is_complete())
        self.assertEqual(len(coordinator.results), 2)
        self.assertEqual([r.instance_index for r in coordinator.results], [0, 1])
        self.assertEqual(coordinator.best_result.cost, min(r.cost for r in coordinator.results))
        self.assertEqual(best.assignments, coordinator.best_result.assignments)

    def test_process_executor(self):
        coordinator = ParallelSearchCoordinator(
            self.population, 4, self.params, 1000, seed=1, executor="process"
        )
        best = coordinator.run()

        self.assertTrue(best.is_complete())
        self.assertEqual(len(coordinator.results), 2)

    def test_instance_diversity(self):
        coordinator = ParallelSearchCoordinator(self.population, 4, self.params, 10, seed=100)
        self.assertEqual(coordinator.start_temperature(0), self.params.initial_temperature)
        self.assertEqual(coordinator.start_temperature(3),
                         self.params.initial_temperature + 3 * self.params.temperature_diversity_delta)
        self.assertEqual(coordinator.instance_seed(2), 102)

        unseeded = ParallelSearchCoordinator(self.population, 4, self.params, 10)
        self.assertIsNone(unseeded.instance_seed(2))

    def test_same_seed_same_result(self):
        params = replace(self.params, good_solution_threshold=0.0)
        runs = [
            ParallelSearchCoordinator(self.population, 4, params, 1500, seed=7, executor="thread").run()
            for _ in range(2)
        ]
        self.assertEqual(runs[0].assignments, runs[1].assignments)

    def test_cancel(self):
        coordinator = ParallelSearchCoordinator(
            self.population, 4, self.params, 10_000_000, seed=1, executor="thread"
        )
        coordinator.cancel()
        best = coordinator.run()

        self.assertTrue(best.is_complete())
        self.assertTrue(all(r.metrics["stop_reason"] == "cancelled" for r in coordinator.results))

    def test_external_cancel_event(self):
        external = threading.Event()
        external.set()
        coordinator = ParallelSearchCoordinator(
            self.population, 4, self.params, 10_000_000, seed=1,
            executor="thread", cancel_event=external,
        )
        coordinator.run()
        self.assertTrue(all(r.metrics["stop_reason"] == "cancelled" for r in coordinator.results))

    def test_invalid_executor(self):
        with self.assertRaises(ValueError):
            ParallelSearchCoordinator(self.population, 4, self.params, 10, executor="gpu")

    def test_default_instance_count(self):
        coordinator = ParallelSearchCoordinator(
            self.population, 4, OptimizationParameters(), 10, executor="thread"
        )
        self.assertEqual(coordinator.instance_count(), default_instance_count(40))
        self.assertGreaterEqual(default_instance_count(40), 1)
        self.assertLessEqual(default_instance_count(40), 4)
        self.assertLessEqual(default_instance_count(5000), 16)


class TestDivider(unittest.TestCase):
    """Test the division entry point"""

    def setUp(self):
        self.params = replace(OptimizationParameters(), num_parallel_instances=1)

    def config(self, num_groups, max_iterations=2000):
        return DivideConfig(num_groups=num_groups, max_iterations=max_iterations,
                            parameters=self.params, random_seed=0, executor="thread")

    def test_empty_population(self):
        self.assertEqual(divide_population([], self.config(3)), [])

    def test_zero_groups(self):
        population = sample_population(5, attributes=ATTRIBUTES, seed=1)
        self.assertEqual(divide_population(population, self.config(0)), [])

    def test_fewer_individuals_than_groups(self):
        population = sample_population(3, attributes=ATTRIBUTES, seed=1)
        result = run_division(population, self.config(5))

        self.assertEqual(len(result.groups), 3)
        self.assertTrue(all(g.size == 1 for g in result.groups))
        self.assertFalse(result.optimized)
        self.assertEqual(len(result.notes), 1)

    def test_single_group(self):
        population = sample_population(10, attributes=ATTRIBUTES, seed=1)
        groups = divide_population(population, self.config(1))

        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].size, 10)
        validation = validate_constraints(groups, self.params)
        self.assertEqual(validation.max_score_diff, 0.0)
        self.assertEqual(validation.max_gender_ratio_diff, 0.0)

    def test_division_covers_population(self):
        population = sample_population(30, attributes=ATTRIBUTES, seed=2)
        result = run_division(population, self.config(3))

        self.assertTrue(result.optimized)
        self.assertEqual(len(result.groups), 3)
        members = [m for g in result.groups for m in g.members]
        self.assertEqual(len(members), 30)
        self.assertEqual({id(m) for m in members}, {id(m) for m in population})
        self.assertIsNotNone(result.cost)

    def test_cancelled_division_still_returns_groups(self):
        population = sample_population(30, attributes=ATTRIBUTES, seed=2)
        cancel = threading.Event()
        cancel.set()
        groups = divide_population(population, self.config(3, max_iterations=10_000_000),
                                   cancel_event=cancel)
        self.assertEqual(sum(g.size for g in groups), 30)

    def test_balanced_division(self):
        """100 individuals, 4 groups, 300k iterations: spreads within heuristic bounds"""
        population = sample_population(100, seed=12)
        groups = divide_population(population, self.config(4, max_iterations=300_000))
        validation = validate_constraints(groups, self.params)

        self.assertLessEqual(validation.max_score_diff, 2.0)
        self.assertLessEqual(validation.max_gender_ratio_diff, 0.25)


if __name__ == "__main__":
    unittest.main()
