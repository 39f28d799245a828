"""
Data models for balanced grouping.

Core data structures representing individuals, their binary category tag,
and the materialized groups produced by a division run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any


class Category(Enum):
    """Binary balancing tag carried by every individual"""
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True, eq=False)
class Individual:
    """
    One member of the population.

    Attributes:
        name: Display name
        category: Binary category tag
        scores: Ordered mapping of attribute name to numeric score
        total_score: Aggregate score (defaults to the sum of scores)
        id: Optional external identifier
        extra_fields: Passthrough columns kept for export
    """
    name: str
    category: Category
    scores: dict[str, float] = field(default_factory=dict)
    total_score: Optional[float] = None
    id: Optional[str] = None
    extra_fields: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Compute the aggregate score when it was not given."""
        if self.total_score is None:
            object.__setattr__(self, "total_score", float(sum(self.scores.values())))

    @property
    def is_primary(self) -> bool:
        return self.category is Category.PRIMARY

    def score(self, attribute: str) -> float:
        """Score for one attribute, 0.0 when the attribute is missing."""
        return self.scores.get(attribute, 0.0)


@dataclass
class Group:
    """
    A partition bucket with its members.

    Metrics are derived from the current members on every call; use
    GroupStatistics for the incrementally maintained equivalent.
    """
    id: int
    members: list[Individual] = field(default_factory=list)

    def add_member(self, individual: Individual):
        self.members.append(individual)

    def __len__(self) -> int:
        return len(self.members)

    @property
    def size(self) -> int:
        return len(self.members)

    def primary_count(self) -> int:
        return sum(1 for m in self.members if m.is_primary)

    def secondary_count(self) -> int:
        return len(self.members) - self.primary_count()

    def avg_total_score(self) -> float:
        if not self.members:
            return 0.0
        return sum(m.total_score for m in self.members) / len(self.members)

    def avg_attribute_score(self, attribute: str) -> float:
        if not self.members:
            return 0.0
        return sum(m.score(attribute) for m in self.members) / len(self.members)

    def category_ratio(self) -> float:
        """Share of primary-category members (0.5 for an empty group)."""
        if not self.members:
            return 0.5
        return self.primary_count() / len(self.members)

    def attribute_names(self) -> list[str]:
        if not self.members:
            return []
        return list(self.members[0].scores.keys())

    def to_dict(self) -> dict[str, Any]:
        """Summary values for export and reporting."""
        return {
            "group": self.id + 1,
            "size": self.size,
            "primary": self.primary_count(),
            "secondary": self.secondary_count(),
            "category_ratio": self.category_ratio(),
            "avg_total": self.avg_total_score(),
        }


def attribute_order(population: list[Individual]) -> list[str]:
    """
    Fixed attribute ordering for a run, taken from the first individual.

    Returns:
        List of attribute names (empty for an empty population)
    """
    if not population:
        return []
    return list(population[0].scores.keys())
