"""
Single-instance simulated annealing over a Partition.

The annealer proposes swaps, evaluates the full cost after each swap,
accepts with the Metropolis criterion and undoes rejected swaps by swapping
again. Temperature cools geometrically and is reset (reheated) when the
search stalls with few acceptances.
"""

import math
import random
from typing import Any, Dict, Optional

from .moves import MoveGenerator
from .parameters import OptimizationParameters
from .partition import Partition

# Proposals between two polls of the early-stop flag and the cancel token
EARLY_STOP_CHECK_INTERVAL = 1000

# Consecutive degenerate proposals after which the search gives up
MAX_CONSECUTIVE_SKIPS = 100_000


class Annealer:
    """
    Simulated annealing search for one partition.

    The partition passed in is owned by the annealer and mutated in place;
    run() returns an independent clone of the best state seen.
    """

    def __init__(self,
                 partition: Partition,
                 params: OptimizationParameters,
                 max_iterations: int,
                 start_temperature: Optional[float] = None,
                 seed: Optional[int] = None,
                 found_good_solution=None,
                 cancel_event=None):
        """
        Initialize annealer

        Args:
            partition: Complete starting partition
            params: Cost and schedule parameters
            max_iterations: Budget of evaluated (non-degenerate) moves
            start_temperature: Starting temperature (defaults to params.initial_temperature)
            seed: Seed for this instance's random generator (None for non-deterministic)
            found_good_solution: Shared event set when any instance beats good_solution_threshold
            cancel_event: Cooperative cancellation token
        """
        self.partition = partition
        self.params = params
        self.max_iterations = max_iterations
        self.start_temperature = (params.initial_temperature
                                  if start_temperature is None else start_temperature)
        self.seed = seed
        self.rng = random.Random(seed)
        self.found_good_solution = found_good_solution
        self.cancel_event = cancel_event
        self.moves = MoveGenerator(partition.population, params.same_category_swap_probability)
        self.metrics: Dict[str, Any] = {}

    def _stop_reason(self) -> Optional[str]:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return "cancelled"
        if self.found_good_solution is not None and self.found_good_solution.is_set():
            return "early_stop"
        return None

    def run(self) -> Partition:
        """
        Execute the annealing loop.

        Returns:
            Best partition found
        """
        params = self.params
        rng = self.rng
        current = self.partition
        current_cost = current.cost(params)
        best = current.copy()
        best_cost = current_cost

        temperature = self.start_temperature
        accept_count = 0
        iterations_since_improvement = 0

        iterations = 0
        proposals = 0
        accepted = 0
        reheats = 0
        consecutive_skips = 0
        stop_reason = "budget"

        if current.occupied_group_count() < 2:
            stop_reason = "no_moves"
        else:
            while iterations < self.max_iterations:
                if proposals % EARLY_STOP_CHECK_INTERVAL == 0:
                    reason = self._stop_reason()
                    if reason is not None:
                        stop_reason = reason
                        break
                proposals += 1

                move = self.moves.propose(rng)
                if move is None:
                    stop_reason = "no_moves"
                    break
                i, j = move.first, move.second
                # Degenerate proposals do not consume budget
                if i == j or current.assignments[i] == current.assignments[j]:
                    consecutive_skips += 1
                    if consecutive_skips > MAX_CONSECUTIVE_SKIPS:
                        stop_reason = "no_moves"
                        break
                    continue
                consecutive_skips = 0
                iterations += 1

                current.swap(i, j)
                new_cost = current.cost(params)
                delta = new_cost - current_cost

                if delta < 0.0 or (temperature > 0.0
                                   and rng.random() < math.exp(-delta / temperature)):
                    current_cost = new_cost
                    accept_count += 1
                    accepted += 1

                    if new_cost < best_cost:
                        best = current.copy()
                        best_cost = new_cost
                        iterations_since_improvement = 0

                        if (best_cost < params.good_solution_threshold
                                and self.found_good_solution is not None):
                            self.found_good_solution.set()
                    else:
                        iterations_since_improvement += 1
                else:
                    current.swap(i, j)
                    iterations_since_improvement += 1

                if (iterations_since_improvement > params.reheat_after_iterations
                        and accept_count < params.reheat_min_accept_count):
                    temperature = self.start_temperature * params.reheat_temperature_factor
                    iterations_since_improvement = 0
                    accept_count = 0
                    reheats += 1
                else:
                    temperature *= params.cooling_rate

        self.metrics = {
            "best_cost": best_cost,
            "iterations": iterations,
            "proposals": proposals,
            "skipped": proposals - iterations,
            "accepted": accepted,
            "reheats": reheats,
            "start_temperature": self.start_temperature,
            "final_temperature": temperature,
            "stop_reason": stop_reason,
        }
        return best
