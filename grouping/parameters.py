"""
Optimization parameters and division settings.

OptimizationParameters holds the constraint thresholds, cost weights and
annealing schedule. DivideConfig bundles them with the per-run request
(group count, iteration budget, seed, executor).
"""

from dataclasses import dataclass, field, fields, asdict, replace
from typing import Optional, Any


@dataclass(frozen=True)
class OptimizationParameters:
    """
    Immutable configuration for the cost function and the annealer.

    Hard thresholds:
        max_score_diff: Allowed deviation of group average totals
        max_subject_score_diff: Allowed deviation of group attribute averages
        max_class_size_diff: Allowed group size spread (validated only)
        max_gender_ratio_diff: Allowed deviation of group category ratios

    Penalties (applied to the excess over a threshold):
        total_score_penalty_weight, subject_score_penalty_weight,
        gender_ratio_penalty_weight, penalty_power

    Soft objectives (weights on the variance of group means):
        total_variance_weight, gender_variance_weight, subject_variance_weight

    Annealing:
        initial_temperature, cooling_rate, num_parallel_instances,
        temperature_diversity_delta, same_category_swap_probability

    Early stop and reheat:
        good_solution_threshold, reheat_after_iterations,
        reheat_temperature_factor, reheat_min_accept_count
    """
    # Hard constraint thresholds
    max_score_diff: float = 1.0
    max_subject_score_diff: float = 1.0
    max_class_size_diff: int = 5
    max_gender_ratio_diff: float = 0.1

    # Hard constraint penalties
    total_score_penalty_weight: float = 1_000_000_000.0
    subject_score_penalty_weight: float = 1_000_000_000.0
    gender_ratio_penalty_weight: float = 100_000_000_000.0
    penalty_power: int = 6

    # Soft objectives
    total_variance_weight: float = 10.0
    gender_variance_weight: float = 5000.0
    subject_variance_weight: float = 50.0

    # Simulated annealing
    initial_temperature: float = 10_000.0
    cooling_rate: float = 0.99990
    num_parallel_instances: Optional[int] = None
    temperature_diversity_delta: float = 1_000.0
    same_category_swap_probability: float = 0.4

    # Early stop and reheat
    good_solution_threshold: float = 1.0
    reheat_after_iterations: int = 1_000
    reheat_temperature_factor: float = 0.5
    reheat_min_accept_count: int = 100

    @classmethod
    def default(cls) -> "OptimizationParameters":
        return cls()

    @classmethod
    def relaxed(cls) -> "OptimizationParameters":
        """Looser thresholds, faster cooling."""
        return cls(
            max_score_diff=2.0,
            max_subject_score_diff=2.0,
            max_gender_ratio_diff=0.15,
            penalty_power=3,
            initial_temperature=8_000.0,
            cooling_rate=0.9995,
        )

    @classmethod
    def strict(cls) -> "OptimizationParameters":
        """Tighter thresholds, slower cooling."""
        return cls(
            max_score_diff=0.5,
            max_subject_score_diff=0.5,
            max_gender_ratio_diff=0.05,
            penalty_power=5,
            total_score_penalty_weight=5_000_000_000.0,
            subject_score_penalty_weight=5_000_000_000.0,
            gender_ratio_penalty_weight=5_000_000_000.0,
            initial_temperature=15_000.0,
            cooling_rate=0.99995,
        )

    @classmethod
    def adaptive(cls, population_size: int) -> "OptimizationParameters":
        """Default parameters with a hotter, slower schedule for large populations."""
        params = cls()
        if population_size > 2000:
            return replace(params,
                           initial_temperature=params.initial_temperature * 3.0,
                           cooling_rate=0.99992)
        if population_size > 1000:
            return replace(params,
                           initial_temperature=params.initial_temperature * 2.0,
                           cooling_rate=0.99991)
        return params

    @classmethod
    def from_preset(cls, preset: str, population_size: int = 0) -> "OptimizationParameters":
        """
        Build parameters from a preset name.

        Args:
            preset: One of "default", "relaxed", "strict", "adaptive"
            population_size: Used by the adaptive preset only

        Raises:
            ValueError: If the preset is unknown
        """
        if preset == "default":
            return cls.default()
        if preset == "relaxed":
            return cls.relaxed()
        if preset == "strict":
            return cls.strict()
        if preset == "adaptive":
            return cls.adaptive(population_size)
        raise ValueError(f"Unknown parameter preset: {preset}. "
                         f"Must be one of {', '.join(PRESETS)}")

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def with_overrides(self, **overrides: Any) -> "OptimizationParameters":
        """
        Copy with selected fields replaced.

        Raises:
            ValueError: If an override names an unknown field
        """
        unknown = sorted(set(overrides) - set(self.field_names()))
        if unknown:
            raise ValueError(f"Unknown optimization parameter(s): {', '.join(unknown)}")
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OptimizationParameters":
        """Inverse of to_dict; missing keys keep their defaults, unknown keys are ignored."""
        known = set(cls.field_names())
        return cls(**{k: v for k, v in data.items() if k in known})


PRESETS = ("default", "relaxed", "strict", "adaptive")
EXECUTORS = ("process", "thread")


@dataclass
class DivideConfig:
    """
    Settings for one division request.

    Attributes:
        num_groups: Number of groups K
        max_iterations: Iteration budget per annealer instance
        parameters: Cost and schedule parameters
        random_seed: Base seed; instance i uses random_seed + i (None for non-deterministic)
        executor: "process" or "thread"
        enforce_iteration_floor: Raise the budget to a population-tiered minimum
    """
    num_groups: int = 3
    max_iterations: int = 500_000
    parameters: OptimizationParameters = field(default_factory=OptimizationParameters)
    random_seed: Optional[int] = None
    executor: str = "process"
    enforce_iteration_floor: bool = False

    def __post_init__(self):
        if self.executor not in EXECUTORS:
            raise ValueError(f"Invalid executor: {self.executor}. Must be 'process' or 'thread'")

    def effective_iterations(self, population_size: int) -> int:
        """Iteration budget after the optional population-tiered floor."""
        if not self.enforce_iteration_floor:
            return self.max_iterations
        if population_size > 3000:
            return max(self.max_iterations, 500_000)
        if population_size > 1000:
            return max(self.max_iterations, 400_000)
        return max(self.max_iterations, 300_000)
