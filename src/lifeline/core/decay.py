"""
Passive yearly stat decay.

Each year tick applies a phase-indexed table of negative deltas:
- Childhood and adolescence do not decay
- Decay grows with each later phase (senior is harshest)
- Wealth never decays passively
- Difficulty scales the whole table

Stats are integers, so fractional decay accumulates in a per-stat carry
and only whole points are applied; the remainder rolls into the next tick.
Choice deltas for the same tick are summed with the decay before the single
bounded clamp.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lifeline.core.phases import LifePhase
from lifeline.core.stats import CharacterStats, STAT_NAMES, Stat

if TYPE_CHECKING:
    from lifeline.core.config import GameConfig

# Floating-point noise guard when accumulating fractional decay
_CARRY_PRECISION = 6


@dataclass
class DecayTick:
    """Outcome of one year tick."""
    stats: CharacterStats
    carry: dict[str, float]
    applied: dict[str, int] = field(default_factory=dict)  # total delta per stat


class DecayEngine:
    """Applies passive decay keyed by life phase."""

    def __init__(self, config: GameConfig):
        self.config = config

    def decay_rates(
        self, phase: LifePhase, difficulty: str = "normal",
    ) -> dict[str, float]:
        """Per-stat decay for one year in ``phase`` (wealth always excluded)."""
        table = self.config.decay_table.get(LifePhase(phase).value, {})
        multiplier = self.config.decay_multiplier(difficulty)
        return {
            stat: rate * multiplier
            for stat, rate in table.items()
            if stat in STAT_NAMES and stat != Stat.WEALTH.value and rate
        }

    def year_tick(
        self,
        stats: CharacterStats,
        phase: LifePhase,
        carry: Mapping[str, float] | None = None,
        extra_deltas: Mapping[str, int] | None = None,
        difficulty: str = "normal",
    ) -> DecayTick:
        """
        Advance one year of passive decay.

        ``extra_deltas`` (e.g. a choice effect resolved in the same tick) are
        summed with the whole-point decay, then clamped once.
        """
        new_carry = {k: v for k, v in (carry or {}).items() if v}
        totals: dict[str, int] = {}

        for stat, delta in (extra_deltas or {}).items():
            name = stat.value if isinstance(stat, Stat) else stat
            if name in STAT_NAMES:
                totals[name] = totals.get(name, 0) + int(delta)

        for stat, rate in self.decay_rates(phase, difficulty).items():
            pending = round(new_carry.get(stat, 0.0) + rate, _CARRY_PRECISION)
            whole = math.trunc(pending)
            remainder = round(pending - whole, _CARRY_PRECISION)
            if remainder:
                new_carry[stat] = remainder
            else:
                new_carry.pop(stat, None)
            if whole:
                totals[stat] = totals.get(stat, 0) + whole

        return DecayTick(
            stats=stats.apply(totals),
            carry=new_carry,
            applied={k: v for k, v in totals.items() if v},
        )

    def total_decay_magnitude(
        self, phase: LifePhase, difficulty: str = "normal",
    ) -> float:
        """Sum of absolute decay across stats for one year in ``phase``."""
        return sum(abs(r) for r in self.decay_rates(phase, difficulty).values())
