"""
Balanced Grouping - Parallel Simulated Annealing Divider

Splits a population of scored, two-category individuals into K groups
whose average scores, per-attribute averages and category ratios are as
close to each other as possible.

Modules:
- data_models: Individual, Category and Group
- parameters: OptimizationParameters presets and DivideConfig
- group_statistics: Incrementally maintained per-group sums and counts
- partition: Assignment of individuals to groups and the cost function
- initial_partition: Greedy LPT seed partition
- moves: Same-category and cross-category swap proposals
- annealer: Single simulated annealing run with reheating and early stop
- parallel_search: Independent annealers on a process or thread pool
- validation: Post-hoc hard constraint check
- divider: Entry point with the degenerate-input policy
- group_metrics: Statistics and text report
- visualization: Matplotlib plots of a division
- io_utils: CSV population loading and result export
- config_loader: YAML configuration
- history: JSON run history
- sample_data: Synthetic populations
"""

__version__ = "1.0.0"
__author__ = "Balanced Grouping Team"

from .data_models import Category, Individual, Group
from .parameters import OptimizationParameters, DivideConfig
from .partition import Partition
from .initial_partition import InitialPartitionBuilder
from .annealer import Annealer
from .parallel_search import ParallelSearchCoordinator
from .validation import ConstraintValidation, validate_constraints
from .divider import DivisionResult, divide_population, run_division

__all__ = [
    'Category',
    'Individual',
    'Group',
    'OptimizationParameters',
    'DivideConfig',
    'Partition',
    'InitialPartitionBuilder',
    'Annealer',
    'ParallelSearchCoordinator',
    'ConstraintValidation',
    'validate_constraints',
    'DivisionResult',
    'divide_population',
    'run_division',
]
