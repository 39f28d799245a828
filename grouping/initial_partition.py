"""
Greedy seed partition (modified Longest-Processing-Time).

Individuals are placed in descending aggregate-score order into the group
with the lowest aggregate sum, biased toward keeping every group's category
ratio near one half.
"""

from typing import Optional, Sequence

from .data_models import Individual
from .partition import Partition

# Fixed weight of the category-balance term during seeding
CATEGORY_BALANCE_BIAS = 10000.0


class InitialPartitionBuilder:
    """Deterministic greedy builder for seed partitions"""

    def __init__(self,
                 population: Sequence[Individual],
                 num_groups: int,
                 attribute_order: Optional[Sequence[str]] = None):
        self.population = population
        self.num_groups = num_groups
        self.attribute_order = attribute_order

    def placement_order(self) -> list[int]:
        """Indices by aggregate score descending, ties by original index."""
        return sorted(range(len(self.population)),
                      key=lambda idx: (-self.population[idx].total_score, idx))

    def build(self) -> Partition:
        """
        Build a complete partition.

        For each individual in placement order, the target group minimizes
        aggregate_sum + CATEGORY_BALANCE_BIAS * |hypothetical_ratio - 0.5|,
        with ties going to the lowest group id.

        Returns:
            Partition with every individual assigned
        """
        partition = Partition(self.population, self.num_groups, self.attribute_order)

        for idx in self.placement_order():
            is_primary = self.population[idx].is_primary
            best_group = 0
            best_key = None
            for group_id, stats in enumerate(partition.group_stats):
                ratio = stats.hypothetical_category_ratio(is_primary)
                key = stats.total_sum + CATEGORY_BALANCE_BIAS * abs(ratio - 0.5)
                if best_key is None or key < best_key:
                    best_key = key
                    best_group = group_id
            partition.assign(idx, best_group)

        return partition
