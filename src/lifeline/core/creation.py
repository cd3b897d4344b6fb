"""
Point-buy stat allocation for new characters.

Every stat starts at the base value with a fixed budget of extra points.
Adjustments keep each stat inside the creation bounds and never spend more
than the remaining budget; a rejected adjustment returns False and leaves
the allocation untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from lifeline.core.character import Character
from lifeline.core.stats import STAT_NAMES, CharacterStats, Stat

if TYPE_CHECKING:
    from lifeline.core.config import GameConfig

# Randomized stats are drawn from [RANDOM_LOW, RANDOM_HIGH)
RANDOM_LOW = 30
RANDOM_HIGH = 70


class StatAllocation:
    """Mutable point-buy form backing character creation."""

    def __init__(self, config: GameConfig):
        self.config = config
        self.stats: dict[str, int] = {n: config.base_stat_value for n in STAT_NAMES}
        self.remaining_points: int = config.starting_stat_points

    def adjust(self, stat: str | Stat, change: int) -> bool:
        """Move ``stat`` by ``change`` within the creation bounds.

        The change is clamped to [allocation_min, allocation_max]; the
        clamped amount is charged against (or refunded to) the budget.
        """
        name = Stat(stat).value
        current = self.stats[name]
        target = min(max(current + change, self.config.allocation_min), self.config.allocation_max)
        cost = target - current
        if cost > self.remaining_points:
            return False
        self.stats[name] = target
        self.remaining_points -= cost
        return True

    def randomize(self, rng: np.random.Generator | None = None) -> None:
        """Draw every stat uniformly and recompute the remaining budget."""
        rng = rng or np.random.default_rng()
        self.stats = {
            n: int(rng.integers(RANDOM_LOW, RANDOM_HIGH)) for n in STAT_NAMES
        }
        used = sum(self.stats.values()) - self.config.base_stat_value * len(STAT_NAMES)
        self.remaining_points = max(0, self.config.starting_stat_points - used)

    def build_character(self, name: str) -> Character | None:
        """Create the character, or None if the name is blank."""
        name = name.strip()
        if not name:
            return None
        return Character(
            name=name,
            age=self.config.starting_age,
            stats=CharacterStats(**self.stats),
        )
