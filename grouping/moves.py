"""
Swap move proposals for the annealer.

Each proposal is an explicit tagged value: a same-category swap (changes
scores only) or a cross-category swap (changes category ratios too).
"""

import random
from enum import Enum
from typing import NamedTuple, Optional, Sequence

from .data_models import Individual


class MoveKind(Enum):
    SAME_CATEGORY = "same_category"
    CROSS_CATEGORY = "cross_category"


class Move(NamedTuple):
    kind: MoveKind
    first: int
    second: int

    def is_degenerate(self) -> bool:
        return self.first == self.second


class MoveGenerator:
    """
    Proposes pairs of individual indices to swap.

    With probability same_category_probability a same-category pair is
    drawn, otherwise one individual of each category. When the requested
    kind is impossible the generator falls back to the other kind, and
    returns None only when no pair can be drawn at all.
    """

    def __init__(self, population: Sequence[Individual], same_category_probability: float = 0.4):
        self.same_category_probability = same_category_probability
        self.primary_indices = [idx for idx, ind in enumerate(population) if ind.is_primary]
        self.secondary_indices = [idx for idx, ind in enumerate(population) if not ind.is_primary]

    def choose_kind(self, rng: random.Random) -> MoveKind:
        if rng.random() < self.same_category_probability:
            return MoveKind.SAME_CATEGORY
        return MoveKind.CROSS_CATEGORY

    def propose(self, rng: random.Random) -> Optional[Move]:
        kind = self.choose_kind(rng)
        if kind is MoveKind.SAME_CATEGORY:
            return self.same_category_move(rng)
        return self.cross_category_move(rng)

    def same_category_move(self, rng: random.Random) -> Optional[Move]:
        """Two independent draws from one category bucket (50/50 bucket choice)."""
        if rng.random() < 0.5:
            preferred, other = self.primary_indices, self.secondary_indices
        else:
            preferred, other = self.secondary_indices, self.primary_indices

        if len(preferred) >= 2:
            bucket = preferred
        elif len(other) >= 2:
            bucket = other
        elif self.primary_indices and self.secondary_indices:
            return self._draw_cross(rng)
        else:
            return None

        first = bucket[rng.randrange(len(bucket))]
        second = bucket[rng.randrange(len(bucket))]
        return Move(MoveKind.SAME_CATEGORY, first, second)

    def cross_category_move(self, rng: random.Random) -> Optional[Move]:
        """One draw from each category; same-category fallback when one bucket is empty."""
        if self.primary_indices and self.secondary_indices:
            return self._draw_cross(rng)
        return self.same_category_move(rng)

    def _draw_cross(self, rng: random.Random) -> Move:
        first = self.primary_indices[rng.randrange(len(self.primary_indices))]
        second = self.secondary_indices[rng.randrange(len(self.secondary_indices))]
        return Move(MoveKind.CROSS_CATEGORY, first, second)
