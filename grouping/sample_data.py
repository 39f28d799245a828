"""
Synthetic populations for demos and tests.
"""

from typing import List, Optional, Sequence

import numpy as np

from .data_models import Category, Individual

DEFAULT_ATTRIBUTES = (
    "chinese", "math", "english",
    "physics", "chemistry", "biology",
    "politics", "history", "geography",
)

# Upper score bound per attribute; anything not listed uses 100
ATTRIBUTE_MAX_SCORES = {"chinese": 150.0, "math": 150.0, "english": 150.0}


def sample_population(count: int,
                      attributes: Sequence[str] = DEFAULT_ATTRIBUTES,
                      seed: Optional[int] = None,
                      mean: float = 100.0,
                      std: float = 15.0,
                      primary_share: float = 0.5) -> List[Individual]:
    """
    Generate individuals with normally distributed attribute scores.

    Scores are drawn from N(mean, std) and clipped to [0, max score].
    Categories alternate (primary first) so that the primary share is
    exactly primary_share when it is 0.5; other shares are drawn randomly.

    Args:
        count: Number of individuals
        attributes: Attribute names, in order
        seed: Random seed (None for non-deterministic)
        mean: Mean of the score distribution
        std: Standard deviation of the score distribution
        primary_share: Expected fraction of primary-category individuals

    Returns:
        List of Individual
    """
    rng = np.random.default_rng(seed)
    upper = np.array([ATTRIBUTE_MAX_SCORES.get(a, 100.0) for a in attributes])
    raw = rng.normal(mean, std, size=(count, len(attributes)))
    scores = np.clip(raw, 0.0, upper)

    if primary_share == 0.5:
        primary_flags = [idx % 2 == 0 for idx in range(count)]
    else:
        primary_flags = list(rng.random(count) < primary_share)

    population = []
    for idx in range(count):
        population.append(Individual(
            name=f"Student{idx}",
            category=Category.PRIMARY if primary_flags[idx] else Category.SECONDARY,
            scores={a: float(scores[idx, j]) for j, a in enumerate(attributes)},
            id=f"S{idx + 1:05d}",
        ))
    return population
