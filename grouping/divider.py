"""
Division entry point.

Applies the degenerate-input policy, runs the parallel search and
materializes the best partition into groups.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .data_models import Group, Individual, attribute_order
from .parallel_search import InstanceResult, ParallelSearchCoordinator
from .parameters import DivideConfig
from .partition import Partition


@dataclass
class DivisionResult:
    """Groups plus the search details behind them"""
    groups: List[Group]
    partition: Optional[Partition] = None
    cost: Optional[float] = None
    instance_results: List[InstanceResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    optimized: bool = False
    notes: List[str] = field(default_factory=list)


def run_division(population: Sequence[Individual],
                 config: DivideConfig,
                 verbose: bool = False,
                 cancel_event=None) -> DivisionResult:
    """
    Divide a population into config.num_groups balanced groups.

    Degenerate inputs never reach the optimizer: an empty population or
    zero groups yields no groups, fewer individuals than groups yields one
    singleton group per individual, and a single group takes everyone.

    Args:
        population: Individuals to divide
        config: Division settings
        verbose: Print search progress
        cancel_event: Optional event that cancels the search when set

    Returns:
        DivisionResult
    """
    population = list(population)
    num_groups = config.num_groups
    start_time = time.time()

    if not population or num_groups <= 0:
        return DivisionResult(groups=[])

    if len(population) < num_groups:
        groups = [Group(id=idx, members=[individual]) for idx, individual in enumerate(population)]
        return DivisionResult(
            groups=groups,
            notes=[f"Population ({len(population)}) smaller than group count ({num_groups}); "
                   f"created {len(population)} singleton groups"],
        )

    if num_groups == 1:
        return DivisionResult(groups=[Group(id=0, members=population)])

    iterations = config.effective_iterations(len(population))
    coordinator = ParallelSearchCoordinator(
        population,
        num_groups,
        config.parameters,
        iterations,
        attribute_order=attribute_order(population),
        seed=config.random_seed,
        executor=config.executor,
        cancel_event=cancel_event,
        verbose=verbose,
    )
    best = coordinator.run()

    notes = []
    sizes = best.group_sizes()
    size_spread = max(sizes) - min(sizes)
    if size_spread > config.parameters.max_class_size_diff:
        notes.append(f"Group size spread {size_spread} exceeds max_class_size_diff "
                     f"{config.parameters.max_class_size_diff} (sizes are fixed by the seed partition)")
    if verbose:
        for note in notes:
            print(f"  Warning: {note}")

    return DivisionResult(
        groups=best.to_groups(population),
        partition=best,
        cost=coordinator.best_result.cost,
        instance_results=coordinator.results,
        elapsed_seconds=time.time() - start_time,
        optimized=True,
        notes=notes,
    )


def divide_population(population: Sequence[Individual],
                      config: DivideConfig,
                      verbose: bool = False,
                      cancel_event=None) -> List[Group]:
    """Divide a population and return only the groups."""
    return run_division(population, config, verbose=verbose, cancel_event=cancel_event).groups
