"""
Descriptive statistics and reporting for a finished division.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .data_models import Group
from .validation import EPSILON, ConstraintValidation


@dataclass
class AttributeStatistics:
    """Spread of one attribute's group averages"""
    name: str
    mean_score: float
    variance: float
    std_dev: float
    min_score: float
    max_score: float


@dataclass
class DivisionStatistics:
    """Spread of group average totals plus per-attribute statistics"""
    mean_score: float = 0.0
    variance: float = 0.0
    std_dev: float = 0.0
    min_score: float = 0.0
    max_score: float = 0.0
    score_range: float = 0.0
    attribute_stats: List[AttributeStatistics] = field(default_factory=list)


@dataclass
class CategoryBalance:
    primary_variance: float = 0.0
    secondary_variance: float = 0.0
    ratio_variance: float = 0.0


@dataclass
class DetailedStatistics:
    overall: DivisionStatistics
    category_balance: CategoryBalance
    group_sizes: List[int]
    primary_counts: List[int]
    secondary_counts: List[int]


def _attribute_names(groups: Sequence[Group]) -> List[str]:
    for group in groups:
        if group.members:
            return group.attribute_names()
    return []


def calculate_statistics(groups: Sequence[Group]) -> DivisionStatistics:
    """Mean, variance, std-dev and range of group average totals and attribute averages."""
    if not groups:
        return DivisionStatistics()

    averages = np.array([g.avg_total_score() for g in groups])
    attribute_stats = []
    for name in _attribute_names(groups):
        values = np.array([g.avg_attribute_score(name) for g in groups])
        attribute_stats.append(AttributeStatistics(
            name=name,
            mean_score=float(values.mean()),
            variance=float(values.var()),
            std_dev=float(values.std()),
            min_score=float(values.min()),
            max_score=float(values.max()),
        ))

    return DivisionStatistics(
        mean_score=float(averages.mean()),
        variance=float(averages.var()),
        std_dev=float(averages.std()),
        min_score=float(averages.min()),
        max_score=float(averages.max()),
        score_range=float(np.ptp(averages)),
        attribute_stats=attribute_stats,
    )


def calculate_category_balance(groups: Sequence[Group]) -> CategoryBalance:
    if not groups:
        return CategoryBalance()
    primary = np.array([g.primary_count() for g in groups], dtype=float)
    secondary = np.array([g.secondary_count() for g in groups], dtype=float)
    ratios = np.array([g.category_ratio() for g in groups])
    return CategoryBalance(
        primary_variance=float(primary.var()),
        secondary_variance=float(secondary.var()),
        ratio_variance=float(ratios.var()),
    )


def calculate_detailed_statistics(groups: Sequence[Group]) -> DetailedStatistics:
    return DetailedStatistics(
        overall=calculate_statistics(groups),
        category_balance=calculate_category_balance(groups),
        group_sizes=[g.size for g in groups],
        primary_counts=[g.primary_count() for g in groups],
        secondary_counts=[g.secondary_count() for g in groups],
    )


def _met(flag: bool) -> str:
    return "✓ met" if flag else "✗ not met"


def print_division_report(groups: Sequence[Group],
                          validation: ConstraintValidation,
                          statistics: Optional[DetailedStatistics] = None,
                          subject_threshold: Optional[float] = None) -> str:
    """Generate a human-readable division quality report"""
    if statistics is None:
        statistics = calculate_detailed_statistics(groups)

    lines = []
    lines.append("=" * 60)
    lines.append("DIVISION QUALITY REPORT")
    lines.append("=" * 60)
    lines.append(f"Groups: {len(groups)}, Individuals: {sum(g.size for g in groups)}")
    lines.append("")

    lines.append("CONSTRAINTS:")
    lines.append(f"  Total score spread: {validation.max_score_diff:.3f} "
                 f"({_met(validation.score_constraints_met)})")
    lines.append(f"  Category ratio spread: {validation.max_gender_ratio_diff:.3f} "
                 f"({_met(validation.gender_constraints_met)})")
    lines.append(f"  Group size spread: {validation.max_class_size_diff} "
                 f"({_met(validation.size_constraints_met)})")
    for name, diff in validation.subject_max_diffs:
        marker = ""
        if subject_threshold is not None:
            marker = " ✓" if diff <= subject_threshold + EPSILON else " ✗"
        lines.append(f"  {name}: spread {diff:.3f}{marker}")
    lines.append("")

    overall = statistics.overall
    lines.append("GROUP AVERAGES:")
    lines.append(f"  Mean total: {overall.mean_score:.2f}, std-dev {overall.std_dev:.3f}, "
                 f"range {overall.min_score:.2f} - {overall.max_score:.2f}")
    lines.append("")

    lines.append("Group | Size | Primary | Secondary | Ratio | Avg total")
    lines.append("------|------|---------|-----------|-------|----------")
    for group in groups:
        lines.append(f"{group.id + 1:5} | {group.size:4} | {group.primary_count():7} | "
                     f"{group.secondary_count():9} | {group.category_ratio():5.3f} | "
                     f"{group.avg_total_score():9.2f}")

    balance = statistics.category_balance
    lines.append("")
    lines.append(f"Category balance: primary variance {balance.primary_variance:.3f}, "
                 f"ratio variance {balance.ratio_variance:.5f}")
    lines.append("=" * 60)

    return "\n".join(lines)
