"""
Running aggregates for one group.

GroupStatistics is the cache the annealer reads on every cost evaluation.
It is only ever changed through add/remove so that each update costs
O(attribute count); recompute() exists for consistency checks.
"""

from typing import Iterable, Sequence

from .data_models import Individual


class GroupStatistics:
    """Aggregate sum, per-attribute sums, member count and per-category counts"""

    __slots__ = ("total_sum", "attribute_sums", "count", "primary_count", "secondary_count")

    def __init__(self, attribute_count: int):
        self.total_sum = 0.0
        self.attribute_sums = [0.0] * attribute_count
        self.count = 0
        self.primary_count = 0
        self.secondary_count = 0

    def add(self, individual: Individual, attribute_order: Sequence[str]):
        self.add_contribution(individual.total_score,
                              [individual.score(a) for a in attribute_order],
                              individual.is_primary)

    def remove(self, individual: Individual, attribute_order: Sequence[str]):
        self.remove_contribution(individual.total_score,
                                 [individual.score(a) for a in attribute_order],
                                 individual.is_primary)

    def add_contribution(self, total: float, attribute_scores: Sequence[float], is_primary: bool):
        """Add a precomputed contribution (hot path used by Partition)."""
        self.total_sum += total
        self.count += 1
        if is_primary:
            self.primary_count += 1
        else:
            self.secondary_count += 1
        sums = self.attribute_sums
        for idx, score in enumerate(attribute_scores):
            sums[idx] += score

    def remove_contribution(self, total: float, attribute_scores: Sequence[float], is_primary: bool):
        self.total_sum -= total
        self.count -= 1
        if is_primary:
            self.primary_count -= 1
        else:
            self.secondary_count -= 1
        sums = self.attribute_sums
        for idx, score in enumerate(attribute_scores):
            sums[idx] -= score

    def avg_total(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_sum / self.count

    def avg_attribute(self, attribute_idx: int) -> float:
        if self.count == 0:
            return 0.0
        return self.attribute_sums[attribute_idx] / self.count

    def category_ratio(self) -> float:
        """Primary share of the group; an empty group is neutral (0.5)."""
        if self.count == 0:
            return 0.5
        return self.primary_count / self.count

    def hypothetical_category_ratio(self, is_primary: bool) -> float:
        """Category ratio as if one more individual had been added."""
        primary = self.primary_count + (1 if is_primary else 0)
        return primary / (self.count + 1)

    def copy(self) -> "GroupStatistics":
        clone = GroupStatistics.__new__(GroupStatistics)
        clone.total_sum = self.total_sum
        clone.attribute_sums = self.attribute_sums.copy()
        clone.count = self.count
        clone.primary_count = self.primary_count
        clone.secondary_count = self.secondary_count
        return clone

    @classmethod
    def recompute(cls, members: Iterable[Individual], attribute_order: Sequence[str]) -> "GroupStatistics":
        """Build statistics from scratch over the given members."""
        stats = cls(len(attribute_order))
        for member in members:
            stats.add(member, attribute_order)
        return stats

    def __repr__(self) -> str:
        return (f"GroupStatistics(count={self.count}, total_sum={self.total_sum:.3f}, "
                f"primary={self.primary_count}, secondary={self.secondary_count})")
