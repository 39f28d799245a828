"""
Post-hoc hard-constraint check on a finished division.

Spreads here are max-minus-min over groups, unlike the cost function which
measures the maximum deviation from the mean of group means.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .data_models import Group
from .parameters import OptimizationParameters

EPSILON = 1e-9


@dataclass
class ConstraintValidation:
    """Spreads of the balanced dimensions and whether each is within its threshold"""
    score_constraints_met: bool
    gender_constraints_met: bool
    size_constraints_met: bool
    max_score_diff: float
    max_gender_ratio_diff: float
    max_class_size_diff: int
    subject_max_diffs: List[Tuple[str, float]] = field(default_factory=list)
    subject_constraints_met: bool = True

    @property
    def all_met(self) -> bool:
        return (self.score_constraints_met and self.gender_constraints_met
                and self.subject_constraints_met and self.size_constraints_met)

    def unmet_subjects(self, threshold: float) -> List[str]:
        return [name for name, diff in self.subject_max_diffs if diff > threshold + EPSILON]


def _spread(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return max(values) - min(values)


def validate_constraints(groups: Sequence[Group],
                         params: Optional[OptimizationParameters] = None) -> ConstraintValidation:
    """
    Check a division against the hard thresholds.

    Args:
        groups: Materialized groups
        params: Thresholds (defaults to OptimizationParameters())

    Returns:
        ConstraintValidation with spreads and met flags
    """
    if params is None:
        params = OptimizationParameters()

    if not groups:
        return ConstraintValidation(
            score_constraints_met=True,
            gender_constraints_met=True,
            size_constraints_met=True,
            max_score_diff=0.0,
            max_gender_ratio_diff=0.0,
            max_class_size_diff=0,
        )

    attributes: List[str] = []
    for group in groups:
        if group.members:
            attributes = group.attribute_names()
            break

    max_score_diff = _spread([g.avg_total_score() for g in groups])
    max_gender_ratio_diff = _spread([g.category_ratio() for g in groups])
    sizes = [g.size for g in groups]
    max_class_size_diff = max(sizes) - min(sizes)

    subject_max_diffs = [
        (name, _spread([g.avg_attribute_score(name) for g in groups]))
        for name in attributes
    ]
    subject_constraints_met = all(
        diff <= params.max_subject_score_diff + EPSILON for _, diff in subject_max_diffs
    )

    return ConstraintValidation(
        score_constraints_met=max_score_diff <= params.max_score_diff + EPSILON,
        gender_constraints_met=max_gender_ratio_diff <= params.max_gender_ratio_diff + EPSILON,
        size_constraints_met=max_class_size_diff <= params.max_class_size_diff,
        max_score_diff=max_score_diff,
        max_gender_ratio_diff=max_gender_ratio_diff,
        max_class_size_diff=max_class_size_diff,
        subject_max_diffs=subject_max_diffs,
        subject_constraints_met=subject_constraints_met,
    )
