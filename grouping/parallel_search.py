"""
Parallel multi-instance search.

Runs N independent annealers (each with its own seed partition, starting
temperature and random generator) and reduces to the lowest-cost result.
Instances share nothing but two events: the found-good-solution flag and
the cooperative cancel token.
"""

import multiprocessing
import os
import threading
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .annealer import Annealer
from .data_models import Individual, attribute_order as default_attribute_order
from .initial_partition import InitialPartitionBuilder
from .parameters import EXECUTORS, OptimizationParameters
from .partition import Partition

# Seconds between checks of an external cancel event while waiting on workers
CANCEL_POLL_SECONDS = 0.2

# Events inherited by process workers through the pool initializer
_worker_found_good_solution = None
_worker_cancel_event = None


@dataclass
class SearchTask:
    """Everything one annealer instance needs, in picklable form"""
    instance_index: int
    population: tuple
    num_groups: int
    attribute_order: tuple
    params: OptimizationParameters
    max_iterations: int
    start_temperature: float
    seed: Optional[int] = None


@dataclass
class InstanceResult:
    """Outcome of one annealer instance"""
    instance_index: int
    cost: float
    assignments: List[int]
    metrics: Dict[str, Any] = field(default_factory=dict)


def run_search_instance(task: SearchTask,
                        found_good_solution=None,
                        cancel_event=None) -> InstanceResult:
    """Build a seed partition and anneal it."""
    initial = InitialPartitionBuilder(task.population, task.num_groups, task.attribute_order).build()
    annealer = Annealer(
        initial,
        task.params,
        task.max_iterations,
        start_temperature=task.start_temperature,
        seed=task.seed,
        found_good_solution=found_good_solution,
        cancel_event=cancel_event,
    )
    best = annealer.run()
    return InstanceResult(
        instance_index=task.instance_index,
        cost=annealer.metrics["best_cost"],
        assignments=list(best.assignments),
        metrics=annealer.metrics,
    )


def _init_worker(found_good_solution, cancel_event):
    global _worker_found_good_solution, _worker_cancel_event
    _worker_found_good_solution = found_good_solution
    _worker_cancel_event = cancel_event


def _run_in_worker_process(task: SearchTask) -> InstanceResult:
    return run_search_instance(task, _worker_found_good_solution, _worker_cancel_event)


def default_instance_count(population_size: int) -> int:
    """Hardware parallelism clamped by a population-size tier."""
    cpus = os.cpu_count() or 1
    if population_size > 2000:
        return min(cpus, 16)
    if population_size > 1000:
        return min(cpus, 12)
    if population_size > 500:
        return min(cpus, 8)
    return min(cpus, 4)


class ParallelSearchCoordinator:
    """Fork-join driver for N annealer instances"""

    def __init__(self,
                 population: Sequence[Individual],
                 num_groups: int,
                 params: OptimizationParameters,
                 max_iterations: int,
                 attribute_order: Optional[Sequence[str]] = None,
                 seed: Optional[int] = None,
                 executor: str = "process",
                 cancel_event=None,
                 verbose: bool = False):
        """
        Initialize coordinator

        Args:
            population: Individuals to divide
            num_groups: Number of groups K
            params: Cost and schedule parameters
            max_iterations: Iteration budget of every instance
            attribute_order: Fixed attribute ordering (defaults to the first individual's keys)
            seed: Base seed; instance i is seeded with seed + i
            executor: "process" or "thread"
            cancel_event: Optional external event; when set the search is cancelled
            verbose: Print per-instance progress
        """
        if executor not in EXECUTORS:
            raise ValueError(f"Invalid executor: {executor}. Must be 'process' or 'thread'")

        self.population = tuple(population)
        self.num_groups = num_groups
        self.params = params
        self.max_iterations = max_iterations
        if attribute_order is None:
            attribute_order = default_attribute_order(list(self.population))
        self.attribute_order = tuple(attribute_order)
        self.seed = seed
        self.executor = executor
        self.external_cancel_event = cancel_event
        self.verbose = verbose

        if executor == "process":
            self._mp_context = multiprocessing.get_context()
            self.found_good_solution = self._mp_context.Event()
            self.cancel_event = self._mp_context.Event()
        else:
            self._mp_context = None
            self.found_good_solution = threading.Event()
            self.cancel_event = threading.Event()

        self.results: List[InstanceResult] = []
        self.best_result: Optional[InstanceResult] = None

    def instance_count(self) -> int:
        if self.params.num_parallel_instances is not None:
            return max(1, self.params.num_parallel_instances)
        return default_instance_count(len(self.population))

    def start_temperature(self, instance_index: int) -> float:
        return self.params.initial_temperature + instance_index * self.params.temperature_diversity_delta

    def instance_seed(self, instance_index: int) -> Optional[int]:
        if self.seed is None:
            return None
        return self.seed + instance_index

    def cancel(self):
        """Ask every running instance to stop at its next poll."""
        self.cancel_event.set()

    def _tasks(self) -> List[SearchTask]:
        return [
            SearchTask(
                instance_index=idx,
                population=self.population,
                num_groups=self.num_groups,
                attribute_order=self.attribute_order,
                params=self.params,
                max_iterations=self.max_iterations,
                start_temperature=self.start_temperature(idx),
                seed=self.instance_seed(idx),
            )
            for idx in range(self.instance_count())
        ]

    def _make_executor(self, num_workers: int):
        if self.executor == "process":
            return ProcessPoolExecutor(
                max_workers=num_workers,
                mp_context=self._mp_context,
                initializer=_init_worker,
                initargs=(self.found_good_solution, self.cancel_event),
            )
        return ThreadPoolExecutor(max_workers=num_workers)

    def _submit(self, pool, task: SearchTask):
        if self.executor == "process":
            return pool.submit(_run_in_worker_process, task)
        return pool.submit(run_search_instance, task, self.found_good_solution, self.cancel_event)

    def run(self) -> Partition:
        """
        Run all instances and return the lowest-cost partition.

        Returns:
            Best partition across instances (ties go to the lowest instance index)
        """
        tasks = self._tasks()
        if self.verbose:
            print(f"Running {len(tasks)} annealing instance(s) "
                  f"({self.executor} executor, {self.max_iterations} iterations each)")

        self.results = []
        with self._make_executor(len(tasks)) as pool:
            pending = {self._submit(pool, task) for task in tasks}
            while pending:
                done, pending = wait(pending, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    result = future.result()
                    self.results.append(result)
                    if self.verbose:
                        m = result.metrics
                        print(f"  Instance {result.instance_index}: cost={result.cost:.4f}, "
                              f"iterations={m['iterations']}, reheats={m['reheats']}, "
                              f"stop={m['stop_reason']}")
                if (self.external_cancel_event is not None
                        and self.external_cancel_event.is_set()
                        and not self.cancel_event.is_set()):
                    if self.verbose:
                        print("  Cancellation requested, stopping instances...")
                    self.cancel()

        self.results.sort(key=lambda r: r.instance_index)
        self.best_result = min(self.results, key=lambda r: (r.cost, r.instance_index))
        if self.verbose:
            print(f"Best instance: {self.best_result.instance_index} "
                  f"(cost={self.best_result.cost:.4f})")

        return Partition.from_assignments(
            self.population, self.num_groups, self.best_result.assignments, self.attribute_order
        )
