"""
Partition: assignment vector, cached group statistics and the cost function.

A Partition owns all mutable state of one search instance. Individuals are
referenced by index; their contributions (aggregate score, attribute scores
in the fixed attribute order, category flag) are precomputed once and
shared between a partition and its clones.
"""

from typing import List, Optional, Sequence, Tuple

from .data_models import Group, Individual, attribute_order as default_attribute_order
from .group_statistics import GroupStatistics
from .parameters import OptimizationParameters

UNASSIGNED = -1


def dimension_spread(values: Sequence[float]) -> Tuple[float, float]:
    """
    Spread of a set of group means around their mean-of-means.

    Returns:
        Tuple of (max absolute deviation, variance of the means)
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0
    mean = sum(values) / n
    max_dev = 0.0
    sq_sum = 0.0
    for value in values:
        dev = value - mean
        if abs(dev) > max_dev:
            max_dev = abs(dev)
        sq_sum += dev * dev
    return max_dev, sq_sum / n


def _penalty(deviation: float, threshold: float, weight: float, power: int) -> float:
    if deviation > threshold:
        return (deviation - threshold) ** power * weight
    return 0.0


class Partition:
    """Assignment of every individual to exactly one of K groups"""

    def __init__(self,
                 population: Sequence[Individual],
                 num_groups: int,
                 attribute_order: Optional[Sequence[str]] = None):
        """
        Create an empty partition (no individual assigned yet).

        Args:
            population: Individuals, addressed by position
            num_groups: Number of groups K
            attribute_order: Attribute ordering (defaults to the first individual's keys)
        """
        self.population = tuple(population)
        self.num_groups = num_groups
        if attribute_order is None:
            attribute_order = default_attribute_order(list(self.population))
        self.attribute_order = tuple(attribute_order)
        self.contributions = tuple(
            (ind.total_score, tuple(ind.score(a) for a in self.attribute_order), ind.is_primary)
            for ind in self.population
        )
        self.assignments: List[int] = [UNASSIGNED] * len(self.population)
        self.group_stats: List[GroupStatistics] = [
            GroupStatistics(len(self.attribute_order)) for _ in range(num_groups)
        ]

    @classmethod
    def from_assignments(cls,
                         population: Sequence[Individual],
                         num_groups: int,
                         assignments: Sequence[int],
                         attribute_order: Optional[Sequence[str]] = None) -> "Partition":
        """Rebuild a partition from an assignment vector (e.g. returned by a worker)."""
        if len(assignments) != len(population):
            raise ValueError(f"Assignment vector has {len(assignments)} entries, "
                             f"population has {len(population)}")
        partition = cls(population, num_groups, attribute_order)
        for idx, group_id in enumerate(assignments):
            partition.assign(idx, group_id)
        return partition

    def __len__(self) -> int:
        return len(self.assignments)

    def assign(self, idx: int, group_id: int):
        """
        Place an unassigned individual into a group (construction only).

        Raises:
            ValueError: If the individual is already assigned or the group id is out of range
        """
        if self.assignments[idx] != UNASSIGNED:
            raise ValueError(f"Individual {idx} is already assigned to group {self.assignments[idx]}")
        if not 0 <= group_id < self.num_groups:
            raise ValueError(f"Group id {group_id} out of range [0, {self.num_groups})")
        self.assignments[idx] = group_id
        self.group_stats[group_id].add_contribution(*self.contributions[idx])

    def is_complete(self) -> bool:
        return UNASSIGNED not in self.assignments

    def group_of(self, idx: int) -> int:
        return self.assignments[idx]

    def swap(self, i: int, j: int):
        """
        Exchange the groups of individuals i and j.

        No-op when both are in the same group. Applying the same swap twice
        restores the previous state.
        """
        group_i = self.assignments[i]
        group_j = self.assignments[j]
        if group_i == group_j:
            return

        stats_i = self.group_stats[group_i]
        stats_j = self.group_stats[group_j]
        contrib_i = self.contributions[i]
        contrib_j = self.contributions[j]

        stats_i.remove_contribution(*contrib_i)
        stats_j.remove_contribution(*contrib_j)
        stats_j.add_contribution(*contrib_i)
        stats_i.add_contribution(*contrib_j)

        self.assignments[i] = group_j
        self.assignments[j] = group_i

    def cost(self, params: OptimizationParameters) -> float:
        """
        Combined hard-penalty and soft-variance cost.

        For the aggregate score, the category ratio and every attribute the
        group means are compared with their mean-of-means. A maximum
        deviation above the dimension's threshold adds
        (excess ** penalty_power) * penalty_weight; the variance of the
        means adds variance * soft_weight.
        """
        stats = self.group_stats
        if not stats:
            return 0.0
        power = params.penalty_power

        max_dev, variance = dimension_spread([s.avg_total() for s in stats])
        cost = _penalty(max_dev, params.max_score_diff, params.total_score_penalty_weight, power)
        cost += variance * params.total_variance_weight

        max_dev, variance = dimension_spread([s.category_ratio() for s in stats])
        cost += _penalty(max_dev, params.max_gender_ratio_diff, params.gender_ratio_penalty_weight, power)
        cost += variance * params.gender_variance_weight

        for attribute_idx in range(len(self.attribute_order)):
            max_dev, variance = dimension_spread([s.avg_attribute(attribute_idx) for s in stats])
            cost += _penalty(max_dev, params.max_subject_score_diff,
                             params.subject_score_penalty_weight, power)
            cost += variance * params.subject_variance_weight

        return cost

    def copy(self) -> "Partition":
        """Deep copy of the mutable state; population and contributions are shared."""
        clone = Partition.__new__(Partition)
        clone.population = self.population
        clone.num_groups = self.num_groups
        clone.attribute_order = self.attribute_order
        clone.contributions = self.contributions
        clone.assignments = self.assignments.copy()
        clone.group_stats = [s.copy() for s in self.group_stats]
        return clone

    def group_sizes(self) -> List[int]:
        return [s.count for s in self.group_stats]

    def occupied_group_count(self) -> int:
        return sum(1 for s in self.group_stats if s.count > 0)

    def members_of(self, group_id: int) -> List[int]:
        return [idx for idx, g in enumerate(self.assignments) if g == group_id]

    def recomputed_statistics(self) -> List[GroupStatistics]:
        """Statistics rebuilt from scratch over the current members (for consistency checks)."""
        return [
            GroupStatistics.recompute((self.population[idx] for idx in self.members_of(g)),
                                      self.attribute_order)
            for g in range(self.num_groups)
        ]

    def to_groups(self, population: Optional[Sequence[Individual]] = None) -> List[Group]:
        """Materialize the assignment vector into Group values (ids 0..K-1)."""
        if population is None:
            population = self.population
        groups = [Group(id=g) for g in range(self.num_groups)]
        for idx, group_id in enumerate(self.assignments):
            groups[group_id].add_member(population[idx])
        return groups
